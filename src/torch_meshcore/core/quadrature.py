"""Weighted point sets.

A :class:`Quadrature` is an ordered collection of points with one weight per
point. The manifold layer consumes them as interpolation stencils: the new
point is a weighted combination of the stencil points, so the weights must
add up to one. The same container carries integration rules handed to
shape-function evaluators, in which case the weights sum to the measure of
the reference cell instead.

Points are stored as a (Q, d) tensor, weights as a (Q,) tensor, both in
float64 unless another dtype is requested.
"""
# pylint: disable=invalid-name

from __future__ import annotations

from typing import Optional, Sequence, Union

import torch
from torch import Tensor

WEIGHT_SUM_TOLERANCE = 1e-10

PointsLike = Union[Tensor, Sequence[Sequence[float]]]
WeightsLike = Union[Tensor, Sequence[float]]


class Quadrature:
    """Weighted point set with points in R^d.

    Args:
        points (Tensor | sequence): (Q, d) point coordinates.
        weights (Tensor | sequence | None): (Q,) weights. Defaults to equal
            weights 1/Q.
        dtype (torch.dtype | None): dtype for floating point data. Defaults
            to the dtype of ``points`` if it is a floating tensor, float64
            otherwise.

    Raises:
        ValueError: if the shapes of points and weights are inconsistent or
            the set is empty.
    """

    def __init__(
        self,
        points: PointsLike,
        weights: Optional[WeightsLike] = None,
        dtype: Optional[torch.dtype] = None,
    ):
        if isinstance(points, (list, tuple)) and points and all(
            isinstance(p, Tensor) for p in points
        ):
            points = torch.stack([p.reshape(-1) for p in points])
        if dtype is None:
            if isinstance(points, Tensor) and points.is_floating_point():
                dtype = points.dtype
            else:
                dtype = torch.float64

        points = torch.as_tensor(points, dtype=dtype)
        if points.ndim == 1:
            points = points.unsqueeze(-1)
        if points.ndim != 2:
            raise ValueError(
                f"Quadrature points must be a (Q, d) tensor, got ndim={points.ndim}"
            )
        if points.shape[0] == 0:
            raise ValueError("Quadrature must contain at least one point")

        n_points = points.shape[0]
        if weights is None:
            weights = torch.full(
                (n_points,), 1.0 / n_points, dtype=dtype, device=points.device
            )
        else:
            weights = torch.as_tensor(weights, dtype=dtype, device=points.device)
            weights = weights.reshape(-1)

        if weights.shape[0] != n_points:
            raise ValueError(
                f"Got {n_points} points but {weights.shape[0]} weights"
            )

        self._points = points
        self._weights = weights

    @property
    def points(self) -> Tensor:
        """(Q, d) point coordinates."""
        return self._points

    @property
    def weights(self) -> Tensor:
        """(Q,) weights."""
        return self._weights

    @property
    def dim(self) -> int:
        """Dimension d of the points."""
        return self._points.shape[1]

    def size(self) -> int:
        """Number of points Q."""
        return self._points.shape[0]

    def __len__(self) -> int:
        return self.size()

    def point(self, i: int) -> Tensor:
        """Return the i-th point as a (d,) tensor."""
        return self._points[i]

    def weight(self, i: int) -> float:
        """Return the i-th weight."""
        return float(self._weights[i])

    def weight_sum(self) -> float:
        """Sum of all weights."""
        return float(self._weights.sum())

    def check_weights_sum_to_one(
        self,
        tolerance: float = WEIGHT_SUM_TOLERANCE,
    ) -> None:
        """Check that the weights describe an affine combination.

        Raises:
            ValueError: if ``|sum(w) - 1| >= tolerance``.
        """
        total = self.weight_sum()
        if not abs(total - 1.0) < tolerance:
            raise ValueError(
                "The weights for the individual points should sum to 1, "
                f"got {total!r}"
            )

    def to(self, *args, **kwargs) -> Quadrature:
        """Move points and weights to specified device/dtype."""
        self._points = self._points.to(*args, **kwargs)
        self._weights = self._weights.to(*args, **kwargs)
        return self

    def cpu(self) -> Quadrature:
        """Move to CPU."""
        return self.to("cpu")

    def __repr__(self) -> str:
        return f"Quadrature(size={self.size()}, dim={self.dim})"
