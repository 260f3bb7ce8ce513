"""Mesh entity interfaces consumed by the manifold layer.

Mesh storage lives outside this package. The manifold layer only needs to
ask an entity (a line, quad or hex of the mesh) for its vertices and, for
quads and hexes, for its bounding lines and faces. Any object implementing
:class:`TriaObject` can be handed to ``Manifold.get_new_point_on_*``.

:class:`CellObject` is a small reference implementation built from a
lexicographically ordered vertex table (x varies fastest), which is the
vertex ordering used for tensor-product cells:

    quad:  2 --- 3        hex: the quad above at z=0 (vertices 0..3)
           |     |             and again at z=1 (vertices 4..7)
           0 --- 1
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import torch
from torch import Tensor

_STRUCTURE_DIM_BY_N_VERTICES = {2: 1, 4: 2, 8: 3}


@runtime_checkable
class TriaObject(Protocol):
    """A line (1), quad (2) or hex (3) of a mesh embedded in R^spacedim."""

    @property
    def structure_dim(self) -> int:
        """Structural dimension of the entity (1 line, 2 quad, 3 hex)."""

    def vertices(self) -> Tensor:
        """(n_vertices, spacedim) vertex coordinates."""

    def lines(self) -> Sequence[TriaObject]:
        """Bounding lines (empty for a line)."""

    def faces(self) -> Sequence[TriaObject]:
        """Bounding quads of a hex (empty for lines and quads)."""


class CellObject:
    """Tensor-product mesh entity defined by its vertex coordinates.

    Args:
        vertices (Tensor | sequence): (2^k, spacedim) vertex coordinates in
            lexicographic order, k = 1, 2 or 3.

    Raises:
        ValueError: if the number of vertices is not 2, 4 or 8.
    """

    def __init__(self, vertices):
        vertices = torch.as_tensor(vertices, dtype=torch.float64)
        if vertices.ndim == 1:
            vertices = vertices.unsqueeze(-1)
        n_vertices = vertices.shape[0]
        if n_vertices not in _STRUCTURE_DIM_BY_N_VERTICES:
            raise ValueError(
                f"A line, quad or hex needs 2, 4 or 8 vertices, got {n_vertices}"
            )
        self._vertices = vertices
        self._structure_dim = _STRUCTURE_DIM_BY_N_VERTICES[n_vertices]

    @property
    def structure_dim(self) -> int:
        return self._structure_dim

    @property
    def spacedim(self) -> int:
        """Dimension of the embedding space."""
        return self._vertices.shape[1]

    def vertices(self) -> Tensor:
        return self._vertices

    def vertex(self, i: int) -> Tensor:
        """Coordinates of vertex i."""
        return self._vertices[i]

    def lines(self) -> list[CellObject]:
        # edges join vertices whose lexicographic indices differ in one bit
        if self._structure_dim == 1:
            return []
        n = self._vertices.shape[0]
        edges = [
            (a, b)
            for a in range(n)
            for b in range(a + 1, n)
            if bin(a ^ b).count("1") == 1
        ]
        return [CellObject(self._vertices[[a, b]]) for a, b in edges]

    def faces(self) -> list[CellObject]:
        if self._structure_dim != 3:
            return []
        faces = []
        for axis in range(3):
            for side in (0, 1):
                idx = [v for v in range(8) if (v >> axis) & 1 == side]
                faces.append(CellObject(self._vertices[idx]))
        return faces

    def center(self) -> Tensor:
        """Arithmetic mean of the vertices."""
        return self._vertices.mean(dim=0)

    def __repr__(self) -> str:
        return (
            f"CellObject(structure_dim={self._structure_dim}, "
            f"spacedim={self.spacedim})"
        )
