"""Concrete chart manifolds for common curved geometries.

- PolarManifold: polar (2d) or spherical (3d) coordinates around a centre.
  New points on a sphere (or circle) of constant radius stay on it.
- CylindricalManifold: cylindrical coordinates around an arbitrary axis.

Both provide exact Jacobians, so ``get_tangent_vector`` transports chart
tangents without finite differencing. Angle coordinates are periodic with
period 2π and are pulled back into [0, 2π).
"""
# pylint: disable=invalid-name

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Union

import torch
from torch import Tensor

from ..errors import ImpossibleInDimError
from .manifold import ChartManifold, DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi

VectorLike = Union[Tensor, Sequence[float]]


def _wrap_angle(phi: Tensor) -> Tensor:
    return torch.where(phi < 0, phi + TWO_PI, phi)


class PolarManifold(ChartManifold):
    """Polar coordinates in 2d, spherical coordinates in 3d.

    Chart coordinates are (r, phi) for spacedim=2 and (r, theta, phi) for
    spacedim=3, with theta ∈ [0, π] the polar angle measured from the z axis
    and phi ∈ [0, 2π) the azimuth. Only phi is periodic.

    Args:
        dim (int): intrinsic dimension (dim <= spacedim).
        spacedim (int | None): 2 or 3, defaults to ``dim``.
        center (Tensor | sequence | None): (spacedim,) centre, defaults to
            the origin.
        tolerance (float): tolerance of the chart-space FlatManifold.
    """

    def __init__(
        self,
        dim: int,
        spacedim: Optional[int] = None,
        center: Optional[VectorLike] = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        spacedim = dim if spacedim is None else spacedim
        if spacedim not in (2, 3):
            raise ImpossibleInDimError(
                dim, f"polar coordinates need spacedim 2 or 3, got {spacedim}"
            )
        periodicity = torch.zeros(spacedim, dtype=torch.float64)
        periodicity[-1] = TWO_PI
        super().__init__(
            dim,
            spacedim,
            chartdim=spacedim,
            periodicity=periodicity,
            tolerance=tolerance,
        )
        if center is None:
            center = torch.zeros(spacedim, dtype=torch.float64)
        self.center = torch.as_tensor(center, dtype=torch.float64).reshape(-1)
        if self.center.shape[0] != spacedim:
            raise ValueError(
                f"center must have {spacedim} entries, got {self.center.shape[0]}"
            )
        logger.debug("PolarManifold around %s", self.center.tolist())

    def pull_back(self, space_point: Tensor) -> Tensor:
        R = space_point - self.center.to(space_point)
        r = R.norm()
        phi = _wrap_angle(torch.atan2(R[1], R[0]))
        if self._spacedim == 2:
            return torch.stack([r, phi])
        if r > 0:
            theta = torch.acos(torch.clamp(R[2] / r, -1.0, 1.0))
        else:
            theta = torch.zeros_like(r)
        return torch.stack([r, theta, phi])

    def push_forward(self, chart_point: Tensor) -> Tensor:
        center = self.center.to(chart_point)
        if self._spacedim == 2:
            r, phi = chart_point
            return center + r * torch.stack([torch.cos(phi), torch.sin(phi)])
        r, theta, phi = chart_point
        return center + r * torch.stack(
            [
                torch.sin(theta) * torch.cos(phi),
                torch.sin(theta) * torch.sin(phi),
                torch.cos(theta),
            ]
        )

    def push_forward_gradient(self, chart_point: Tensor) -> Tensor:
        """Jacobian d(x)/d(r, [theta,] phi), shape (spacedim, spacedim)."""
        if self._spacedim == 2:
            r, phi = chart_point
            c, s = torch.cos(phi), torch.sin(phi)
            return torch.stack(
                [
                    torch.stack([c, -r * s]),
                    torch.stack([s, r * c]),
                ]
            )
        r, theta, phi = chart_point
        ct, st = torch.cos(theta), torch.sin(theta)
        cp, sp = torch.cos(phi), torch.sin(phi)
        zero = torch.zeros_like(r)
        return torch.stack(
            [
                torch.stack([st * cp, r * ct * cp, -r * st * sp]),
                torch.stack([st * sp, r * ct * sp, r * st * cp]),
                torch.stack([ct, -r * st, zero]),
            ]
        )

    def to(self, *args, **kwargs) -> PolarManifold:
        super().to(*args, **kwargs)
        self.center = self.center.to(*args, **kwargs)
        return self


class CylindricalManifold(ChartManifold):
    """Cylindrical coordinates (r, phi, z) around an arbitrary axis in R^3.

    The axis passes through ``point_on_axis`` with direction ``axis``; the
    angle phi is measured from a unit normal to the axis chosen from the
    coordinate direction least aligned with it.

    Args:
        dim (int): intrinsic dimension, 2 (cylinder surface) or 3.
        axis (Tensor | sequence): (3,) axis direction, need not be unit.
        point_on_axis (Tensor | sequence | None): (3,) point on the axis,
            defaults to the origin.
        tolerance (float): tolerance of the chart-space FlatManifold.

    Raises:
        ValueError: if the axis direction is zero.
    """

    def __init__(
        self,
        dim: int = 3,
        axis: VectorLike = (0.0, 0.0, 1.0),
        point_on_axis: Optional[VectorLike] = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        super().__init__(
            dim,
            3,
            chartdim=3,
            periodicity=(0.0, TWO_PI, 0.0),
            tolerance=tolerance,
        )
        direction = torch.as_tensor(axis, dtype=torch.float64).reshape(-1)
        length = float(direction.norm())
        if length == 0.0:
            raise ValueError("axis direction must be non-zero")
        direction = direction / length

        # normal from the coordinate direction least aligned with the axis
        e = torch.zeros(3, dtype=torch.float64)
        e[int(direction.abs().argmin())] = 1.0
        normal = e - (e @ direction) * direction
        normal = normal / normal.norm()

        self.direction = direction
        self.normal = normal
        self.binormal = torch.linalg.cross(direction, normal)
        if point_on_axis is None:
            point_on_axis = torch.zeros(3, dtype=torch.float64)
        self.point_on_axis = torch.as_tensor(point_on_axis, dtype=torch.float64)
        logger.debug(
            "CylindricalManifold along %s through %s",
            self.direction.tolist(),
            self.point_on_axis.tolist(),
        )

    def pull_back(self, space_point: Tensor) -> Tensor:
        v = space_point - self.point_on_axis.to(space_point)
        direction = self.direction.to(space_point)
        z = v @ direction
        radial = v - z * direction
        r = radial.norm()
        x = radial @ self.normal.to(space_point)
        y = radial @ self.binormal.to(space_point)
        phi = _wrap_angle(torch.atan2(y, x))
        return torch.stack([r, phi, z])

    def push_forward(self, chart_point: Tensor) -> Tensor:
        r, phi, z = chart_point
        normal = self.normal.to(chart_point)
        binormal = self.binormal.to(chart_point)
        return (
            self.point_on_axis.to(chart_point)
            + z * self.direction.to(chart_point)
            + r * (torch.cos(phi) * normal + torch.sin(phi) * binormal)
        )

    def push_forward_gradient(self, chart_point: Tensor) -> Tensor:
        """Jacobian d(x)/d(r, phi, z), shape (3, 3)."""
        r, phi, _ = chart_point
        normal = self.normal.to(chart_point)
        binormal = self.binormal.to(chart_point)
        d_r = torch.cos(phi) * normal + torch.sin(phi) * binormal
        d_phi = r * (-torch.sin(phi) * normal + torch.cos(phi) * binormal)
        return torch.stack([d_r, d_phi, self.direction.to(chart_point)], dim=1)

    def to(self, *args, **kwargs) -> CylindricalManifold:
        super().to(*args, **kwargs)
        self.direction = self.direction.to(*args, **kwargs)
        self.normal = self.normal.to(*args, **kwargs)
        self.binormal = self.binormal.to(*args, **kwargs)
        self.point_on_axis = self.point_on_axis.to(*args, **kwargs)
        return self
