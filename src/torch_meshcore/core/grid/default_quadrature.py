"""Default interpolation stencils for new points on lines, quads and hexes.

When a mesh entity is refined, the new vertex at its centre is placed by the
entity's manifold as a weighted combination of points around it. The weights
below reproduce the centre of a transfinite interpolation from the entity's
boundary, which is exact for flat entities and follows curved boundaries
otherwise:

    line: 1/2 * (v0 + v1)
    quad: 1/2 * Σ line midpoints - 1/4 * Σ vertices
    hex:  1/2 * Σ face centres - 1/4 * Σ line midpoints + 1/8 * Σ vertices

The ``with_laplace`` variants use positive weights, the stencil of a discrete
Laplace smoothing of the centre point. They keep the new point inside the
convex hull of the stencil, which is preferable for strongly curved hexes.

Sub-entity midpoints and centres are themselves computed through the same
manifold, so that a cell's centre is consistent with the new points placed
on its lines and faces.
"""
# pylint: disable=invalid-name

from __future__ import annotations

from typing import TYPE_CHECKING

import torch

from ..errors import ImpossibleInDimError
from ..quadrature import Quadrature
from .entities import TriaObject

if TYPE_CHECKING:
    from .manifold import Manifold


# (vertex, line midpoint, face centre) weights per structural dimension
_TRANSFINITE_WEIGHTS = {
    1: (1.0 / 2.0, None, None),
    2: (-1.0 / 4.0, 1.0 / 2.0, None),
    3: (1.0 / 8.0, -1.0 / 4.0, 1.0 / 2.0),
}

_LAPLACE_WEIGHTS = {
    1: (1.0 / 2.0, None, None),
    2: (1.0 / 16.0, 3.0 / 16.0, None),
    3: (1.0 / 128.0, 7.0 / 192.0, 1.0 / 12.0),
}


def get_default_quadrature(
    obj: TriaObject,
    manifold: Manifold,
    with_laplace: bool = False,
) -> Quadrature:
    """Build the default stencil for the centre of a line, quad or hex.

    Args:
        obj (TriaObject): mesh entity.
        manifold (Manifold): manifold used to place line midpoints and face
            centres of the entity.
        with_laplace (bool): use the positive Laplace-smoothing weights
            instead of the transfinite ones.

    Returns:
        Quadrature whose weights sum to 1.

    Raises:
        ImpossibleInDimError: if the entity is not a line, quad or hex.
    """
    structure_dim = obj.structure_dim
    if structure_dim not in _TRANSFINITE_WEIGHTS:
        raise ImpossibleInDimError(
            structure_dim, "default quadrature exists for lines, quads and hexes"
        )

    table = _LAPLACE_WEIGHTS if with_laplace else _TRANSFINITE_WEIGHTS
    w_vertex, w_line, w_face = table[structure_dim]

    vertices = obj.vertices()
    points = [vertices]
    weights = [torch.full((vertices.shape[0],), w_vertex, dtype=vertices.dtype)]

    if structure_dim >= 2:
        midpoints = torch.stack(
            [manifold.get_new_point_on_line(line) for line in obj.lines()]
        )
        points.append(midpoints.to(vertices))
        weights.append(
            torch.full((midpoints.shape[0],), w_line, dtype=vertices.dtype)
        )

    if structure_dim == 3:
        centres = torch.stack(
            [manifold.get_new_point_on_quad(face) for face in obj.faces()]
        )
        points.append(centres.to(vertices))
        weights.append(torch.full((centres.shape[0],), w_face, dtype=vertices.dtype))

    return Quadrature(
        torch.cat(points, dim=0),
        torch.cat(weights, dim=0).to(vertices.device),
    )
