"""Manifold descriptions for placing new points on (curved) mesh geometry.

A manifold answers two questions for the mesh that lives on it:

  - Given a weighted set of surrounding points (a stencil over a line, quad
    or hex), where is the new point that lies on the manifold?
  - Given two points, what is the tangent direction at the first point of
    the manifold curve connecting them?

Three layers are provided:

  - Manifold: abstract base. Its defaults are expressed in terms of
    ``project_to_manifold``: average the points in ambient space, then
    project the average back onto the manifold. Tangents are obtained by
    finite differences of ``get_new_point``.
  - FlatManifold: Euclidean space, optionally periodic in an axis-aligned
    box. Averages across a periodic seam are computed on the same side of
    the seam, and tangents take the shortest way around the box.
  - ChartManifold: a manifold described by an invertible chart. Points are
    pulled back into chart space, interpolated there by a FlatManifold
    (inheriting its periodicity handling), and pushed forward again.

Manifolds are parametrized by their intrinsic dimension ``dim`` and the
dimension ``spacedim`` of the space they are embedded in, with
1 <= dim <= spacedim <= 3. They are read-only after construction and may be
shared across all entities of a mesh.

Points are (spacedim,) tensors, tangents are (spacedim,) tensors.
"""
# pylint: disable=invalid-name

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import torch
from torch import Tensor

from ..errors import ImpossibleInDimError, PeriodicBoxError, PureFunctionCalledError
from ..quadrature import Quadrature
from .default_quadrature import get_default_quadrature
from .entities import TriaObject

logger = logging.getLogger(__name__)

TANGENT_EPSILON = 1e-8
DEFAULT_TOLERANCE = 1e-10

PeriodicityLike = Union[Tensor, Sequence[float], None]


def _check_dimensions(dim: int, spacedim: int) -> None:
    if not 1 <= dim <= 3:
        raise ImpossibleInDimError(dim, "manifolds exist for dim in 1..3")
    if not dim <= spacedim <= 3:
        raise ImpossibleInDimError(
            dim, f"spacedim={spacedim} must satisfy dim <= spacedim <= 3"
        )


def _as_point(x, like: Optional[Tensor] = None) -> Tensor:
    if like is not None:
        return torch.as_tensor(x, dtype=like.dtype, device=like.device).reshape(-1)
    if not isinstance(x, Tensor):
        return torch.as_tensor(x, dtype=torch.float64).reshape(-1)
    if not x.is_floating_point():
        x = x.to(torch.float64)
    return x.reshape(-1)


# ------------------------------------------------------------------
# Manifold
# ------------------------------------------------------------------


class Manifold(ABC):
    """Abstract base class for manifolds of dimension dim in R^spacedim.

    Subclasses must at least provide ``project_to_manifold`` unless they
    override ``get_new_point`` itself. The ``get_new_point_on_*`` helpers
    build a default stencil from the mesh entity and hand it to
    ``get_new_point``; they rarely need overriding.

    Args:
        dim (int): intrinsic dimension (1, 2 or 3).
        spacedim (int | None): embedding dimension, defaults to ``dim``.

    Raises:
        ImpossibleInDimError: if the (dim, spacedim) pair is not supported.
    """

    def __init__(self, dim: int, spacedim: Optional[int] = None):
        spacedim = dim if spacedim is None else spacedim
        _check_dimensions(dim, spacedim)
        self._dim = int(dim)
        self._spacedim = int(spacedim)

    @property
    def dim(self) -> int:
        """Intrinsic dimension of the manifold."""
        return self._dim

    @property
    def spacedim(self) -> int:
        """Dimension of the embedding space."""
        return self._spacedim

    # -----------------------
    # Point placement
    # -----------------------
    def project_to_manifold(
        self,
        surrounding_points: Tensor,
        candidate: Tensor,
    ) -> Tensor:
        """Return the point on the manifold closest to ``candidate``.

        Args:
            surrounding_points (Tensor): (Q, spacedim) points that generated
                the candidate. Implementations may use them as a hint.
            candidate (Tensor): (spacedim,) unprojected point, typically the
                weighted average of the surrounding points.

        Returns:
            (spacedim,) point on the manifold.

        Raises:
            PureFunctionCalledError: always, unless overridden.
        """
        raise PureFunctionCalledError(self, "project_to_manifold")

    def get_new_point(self, quad: Quadrature) -> Tensor:
        """Return the point on the manifold described by a weighted stencil.

        The default averages the points in ambient space and projects the
        result with ``project_to_manifold``.

        Args:
            quad (Quadrature): (Q, spacedim) points with weights summing to 1.

        Returns:
            (spacedim,) new point.

        Raises:
            ValueError: if the weights do not sum to 1 (within 1e-10).
        """
        quad.check_weights_sum_to_one()
        candidate = quad.weights @ quad.points
        return self.project_to_manifold(quad.points, candidate)

    def get_new_point_on_line(self, line: TriaObject) -> Tensor:
        """New point at the centre of a line."""
        return self.get_new_point(get_default_quadrature(line, self))

    def get_new_point_on_quad(self, quad: TriaObject) -> Tensor:
        """New point at the centre of a quad.

        Raises:
            ImpossibleInDimError: for one-dimensional manifolds.
        """
        if self._dim == 1:
            raise ImpossibleInDimError(self._dim, "a 1d mesh has no quads")
        return self.get_new_point(get_default_quadrature(quad, self))

    def get_new_point_on_hex(self, hex_: TriaObject) -> Tensor:
        """New point at the centre of a hex.

        Only a three-dimensional manifold in R^3 has hexes. Their stencil
        uses the interior structure of the hex (line midpoints and face
        centres) with Laplace-smoothing weights.

        Raises:
            ImpossibleInDimError: unless dim == spacedim == 3.
        """
        if not (self._dim == 3 and self._spacedim == 3):
            raise ImpossibleInDimError(
                self._dim, "hexes exist only for dim == spacedim == 3"
            )
        return self.get_new_point(get_default_quadrature(hex_, self, with_laplace=True))

    def get_new_point_on_face(self, face: TriaObject) -> Tensor:
        """New point at the centre of a face: a line in 2d, a quad in 3d.

        Raises:
            ImpossibleInDimError: for one-dimensional manifolds.
        """
        if self._dim == 2:
            return self.get_new_point_on_line(face)
        if self._dim == 3:
            return self.get_new_point_on_quad(face)
        raise ImpossibleInDimError(self._dim, "a 1d mesh has no faces")

    def get_new_point_on_cell(self, cell: TriaObject) -> Tensor:
        """New point at the centre of a cell: line, quad or hex by dim."""
        if self._dim == 1:
            return self.get_new_point_on_line(cell)
        if self._dim == 2:
            return self.get_new_point_on_quad(cell)
        return self.get_new_point_on_hex(cell)

    # -----------------------
    # Tangents
    # -----------------------
    def get_tangent_vector(self, x1: Tensor, x2: Tensor) -> Tensor:
        """Tangent at x1 of the manifold curve running from x1 to x2.

        The curve is gamma(t) = get_new_point({(x1, 1-t), (x2, t)}) and the
        returned vector approximates gamma'(0) by a forward difference with
        step ``TANGENT_EPSILON``. Its length approximates the length of the
        curve. Concrete manifolds should override this with exact formulas.

        Args:
            x1 (Tensor): (spacedim,) start point.
            x2 (Tensor): (spacedim,) end point.

        Returns:
            (spacedim,) tangent vector.
        """
        x1 = _as_point(x1)
        x2 = _as_point(x2, like=x1)
        epsilon = TANGENT_EPSILON
        quad = Quadrature(
            torch.stack([x1, x2]),
            torch.tensor([1.0 - epsilon, epsilon], dtype=x1.dtype, device=x1.device),
        )
        neighbor_point = self.get_new_point(quad)
        return (neighbor_point - x1) / epsilon

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dim={self._dim}, spacedim={self._spacedim})"


# ------------------------------------------------------------------
# FlatManifold
# ------------------------------------------------------------------


class FlatManifold(Manifold):
    """Euclidean space, optionally periodic in an axis-aligned box.

    With periodicity, every periodic coordinate of a surrounding point must
    lie in [0, period] (up to the tolerance). Points that are more than half
    a period apart along a periodic axis are taken to sit on opposite sides
    of the seam; they are moved to the same side before averaging and the
    average is wrapped back into the box afterwards.

    Args:
        dim (int): intrinsic dimension.
        spacedim (int | None): embedding dimension, defaults to ``dim``.
        periodicity (Tensor | sequence | None): (spacedim,) period per axis,
            0 meaning "not periodic". Defaults to no periodicity.
        tolerance (float): relative tolerance, scaled by the norm of the
            periodicity vector, for the periodic box check.

    Raises:
        ValueError: if the periodicity has the wrong length or a negative
            entry.
    """

    def __init__(
        self,
        dim: int,
        spacedim: Optional[int] = None,
        periodicity: PeriodicityLike = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        super().__init__(dim, spacedim)
        if periodicity is None:
            periodicity = torch.zeros(self._spacedim, dtype=torch.float64)
        else:
            periodicity = _as_point(periodicity)
        if periodicity.shape[0] != self._spacedim:
            raise ValueError(
                f"periodicity must have {self._spacedim} entries, "
                f"got {periodicity.shape[0]}"
            )
        if (periodicity < 0).any():
            raise ValueError(
                f"periodicity must be non-negative, got {periodicity.tolist()}"
            )

        self.periodicity = periodicity
        self.tolerance = float(tolerance)

        if self.is_periodic:
            logger.debug(
                "FlatManifold(dim=%d, spacedim=%d) periodic with %s",
                self._dim,
                self._spacedim,
                periodicity.tolist(),
            )

    @property
    def is_periodic(self) -> bool:
        """Whether any axis is periodic (beyond the tolerance)."""
        return float(self.periodicity.norm()) > self.tolerance

    def project_to_manifold(
        self,
        surrounding_points: Tensor,
        candidate: Tensor,
    ) -> Tensor:
        """Euclidean space needs no projection: return ``candidate``."""
        return candidate

    def _check_periodic_box(self, points: Tensor, periodicity: Tensor) -> None:
        tol = self.tolerance * float(periodicity.norm())
        axes = periodicity > 0
        outside = axes & ((points < -tol) | (points > periodicity + tol))
        if outside.any():
            i, d = (int(v) for v in outside.nonzero()[0])
            raise PeriodicBoxError(d, points[i], periodicity, tol)

    def get_new_point(self, quad: Quadrature) -> Tensor:
        """Weighted average of the stencil, periodicity aware.

        Args:
            quad (Quadrature): (Q, spacedim) points with weights summing to 1.

        Returns:
            (spacedim,) new point, inside the periodic box if any.

        Raises:
            ValueError: if the weights do not sum to 1.
            PeriodicBoxError: if a point lies outside the periodic box.
        """
        quad.check_weights_sum_to_one()
        points = quad.points
        weights = quad.weights

        if not self.is_periodic:
            return self.project_to_manifold(points, weights @ points)

        periodicity = self.periodicity.to(points)
        self._check_periodic_box(points, periodicity)

        axes = periodicity > 0
        min_p = torch.minimum(points.min(dim=0).values, periodicity)

        # move points beyond half a period from the minimum across the seam
        wrap = axes & ((points - min_p) > periodicity / 2.0)
        shifted = torch.where(wrap, points - periodicity, points)

        p = weights @ shifted
        p = torch.where(axes & (p < 0), p + periodicity, p)

        return self.project_to_manifold(points, p)

    def get_tangent_vector(self, x1: Tensor, x2: Tensor) -> Tensor:
        """Exact tangent x2 - x1, going around the periodic box if shorter.

        Along a periodic axis a difference larger than half the period is
        replaced by the difference through the seam.

        Args:
            x1 (Tensor): (spacedim,) start point.
            x2 (Tensor): (spacedim,) end point.

        Returns:
            (spacedim,) tangent vector.
        """
        x1 = _as_point(x1)
        x2 = _as_point(x2, like=x1)
        direction = x2 - x1

        periodicity = self.periodicity.to(direction)
        half = periodicity / 2.0
        axes = periodicity > self.tolerance
        below = axes & (direction < -half)
        above = axes & (direction > half)
        direction = torch.where(below, direction + periodicity, direction)
        direction = torch.where(above, direction - periodicity, direction)
        return direction

    def to(self, *args, **kwargs) -> FlatManifold:
        """Move the periodicity tensor to specified device/dtype."""
        self.periodicity = self.periodicity.to(*args, **kwargs)
        return self

    def cpu(self) -> FlatManifold:
        """Move to CPU."""
        return self.to("cpu")

    def __repr__(self) -> str:
        return (
            f"FlatManifold(dim={self._dim}, spacedim={self._spacedim}, "
            f"periodicity={self.periodicity.tolist()})"
        )


# ------------------------------------------------------------------
# ChartManifold
# ------------------------------------------------------------------


class ChartManifold(Manifold):
    """Manifold described by an invertible chart into R^chartdim.

    Subclasses implement ``pull_back`` (space -> chart) and
    ``push_forward`` (chart -> space). New points are interpolated in chart
    coordinates by an owned :class:`FlatManifold`, so a periodic chart
    coordinate (an angle, say) is averaged correctly across its seam.

    ``get_tangent_vector`` additionally needs ``push_forward_gradient``,
    the (spacedim, chartdim) Jacobian of the push forward.

    Args:
        dim (int): intrinsic dimension.
        spacedim (int | None): embedding dimension, defaults to ``dim``.
        chartdim (int | None): chart dimension, defaults to ``spacedim``.
        periodicity (Tensor | sequence | None): (chartdim,) periodicity of
            the chart coordinates. Defaults to no periodicity.
        tolerance (float): tolerance of the owned FlatManifold.
    """

    def __init__(
        self,
        dim: int,
        spacedim: Optional[int] = None,
        chartdim: Optional[int] = None,
        periodicity: PeriodicityLike = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        super().__init__(dim, spacedim)
        chartdim = self._spacedim if chartdim is None else int(chartdim)
        self._chartdim = chartdim
        self.sub_manifold = FlatManifold(
            chartdim,
            chartdim,
            periodicity=periodicity,
            tolerance=tolerance,
        )

    @property
    def chartdim(self) -> int:
        """Dimension of the chart space."""
        return self._chartdim

    @abstractmethod
    def pull_back(self, space_point: Tensor) -> Tensor:
        """Map a (spacedim,) point to (chartdim,) chart coordinates."""

    @abstractmethod
    def push_forward(self, chart_point: Tensor) -> Tensor:
        """Map (chartdim,) chart coordinates to a (spacedim,) point."""

    def push_forward_gradient(self, chart_point: Tensor) -> Tensor:
        """Jacobian of ``push_forward`` at a chart point.

        Args:
            chart_point (Tensor): (chartdim,) chart coordinates.

        Returns:
            (spacedim, chartdim) derivative of the push forward.

        Raises:
            PureFunctionCalledError: always, unless overridden.
        """
        raise PureFunctionCalledError(self, "push_forward_gradient")

    def get_new_point(self, quad: Quadrature) -> Tensor:
        """Interpolate in chart space and map the result back.

        Args:
            quad (Quadrature): (Q, spacedim) points with weights summing to 1.

        Returns:
            (spacedim,) new point.
        """
        chart_points = torch.stack([self.pull_back(p) for p in quad.points])
        chart_quad = Quadrature(chart_points, quad.weights)
        p_chart = self.sub_manifold.get_new_point(chart_quad)
        return self.push_forward(p_chart)

    def get_tangent_vector(self, x1: Tensor, x2: Tensor) -> Tensor:
        """Tangent at x1 of the curve that is straight in chart space.

        The chart-space tangent (periodicity aware) is transported to
        space by the Jacobian of the push forward at ``pull_back(x1)``.

        Args:
            x1 (Tensor): (spacedim,) start point.
            x2 (Tensor): (spacedim,) end point.

        Returns:
            (spacedim,) tangent vector.

        Raises:
            PureFunctionCalledError: if ``push_forward_gradient`` is not
                implemented.
        """
        x1 = _as_point(x1)
        x2 = _as_point(x2, like=x1)
        chart_x1 = self.pull_back(x1)
        F_prime = self.push_forward_gradient(chart_x1)
        delta = self.sub_manifold.get_tangent_vector(chart_x1, self.pull_back(x2))
        return F_prime.to(delta) @ delta

    def to(self, *args, **kwargs) -> ChartManifold:
        """Move the chart periodicity to specified device/dtype."""
        self.sub_manifold.to(*args, **kwargs)
        return self

    def cpu(self) -> ChartManifold:
        """Move to CPU."""
        return self.to("cpu")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dim={self._dim}, spacedim={self._spacedim}, "
            f"chartdim={self._chartdim})"
        )
