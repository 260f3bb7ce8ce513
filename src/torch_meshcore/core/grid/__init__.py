"""Geometry description of meshes.

This package provides:
- Manifold: abstract base class placing new points on (curved) geometry.
- FlatManifold: Euclidean space, optionally periodic.
- ChartManifold: manifolds described by an invertible chart.
- PolarManifold, CylindricalManifold: ready-made chart manifolds.
- TriaObject / CellObject: the mesh entity interface and a reference
  implementation.
- get_default_quadrature: default stencils for new points on lines,
  quads and hexes.

Example usage:
    ```python
    from torch_meshcore.core.grid import CellObject, PolarManifold

    circle = PolarManifold(dim=1, spacedim=2)
    arc = CellObject([[1.0, 0.0], [0.0, 1.0]])
    midpoint = circle.get_new_point_on_line(arc)  # (√2/2, √2/2)
    ```
"""

from .default_quadrature import get_default_quadrature
from .entities import CellObject, TriaObject
from .manifold import ChartManifold, FlatManifold, Manifold
from .manifold_lib import CylindricalManifold, PolarManifold

__all__ = [
    "CellObject",
    "ChartManifold",
    "CylindricalManifold",
    "FlatManifold",
    "Manifold",
    "PolarManifold",
    "TriaObject",
    "get_default_quadrature",
]
