"""Mesh entities and default interpolation stencils."""

import pytest
import torch

from torch_meshcore.core.errors import ImpossibleInDimError
from torch_meshcore.core.grid import CellObject, FlatManifold, TriaObject, get_default_quadrature

UNIT_CUBE = [[x, y, z] for z in (0.0, 1.0) for y in (0.0, 1.0) for x in (0.0, 1.0)]


def test_cell_object_structure() -> None:
    line = CellObject([[0.0], [1.0]])
    quad = CellObject([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    hex_ = CellObject(UNIT_CUBE)

    assert (line.structure_dim, quad.structure_dim, hex_.structure_dim) == (1, 2, 3)
    assert (len(line.lines()), len(quad.lines()), len(hex_.lines())) == (0, 4, 12)
    assert (len(quad.faces()), len(hex_.faces())) == (0, 6)
    assert isinstance(hex_, TriaObject)


def test_hex_edges_have_unit_length() -> None:
    hex_ = CellObject(UNIT_CUBE)
    for line in hex_.lines():
        v = line.vertices()
        assert float((v[1] - v[0]).norm()) == pytest.approx(1.0)


def test_hex_faces_are_planar_unit_squares() -> None:
    hex_ = CellObject(UNIT_CUBE)
    centres = sorted(tuple(face.center().tolist()) for face in hex_.faces())
    assert centres == sorted(
        [
            (0.0, 0.5, 0.5),
            (1.0, 0.5, 0.5),
            (0.5, 0.0, 0.5),
            (0.5, 1.0, 0.5),
            (0.5, 0.5, 0.0),
            (0.5, 0.5, 1.0),
        ]
    )


def test_cell_object_rejects_vertex_count() -> None:
    with pytest.raises(ValueError, match="2, 4 or 8"):
        CellObject([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])


@pytest.mark.parametrize("with_laplace", (False, True))
@pytest.mark.parametrize(
    ("vertices", "dim", "size"),
    (
        ([[0.0], [1.0]], 1, 2),
        ([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]], 2, 8),
        (UNIT_CUBE, 3, 26),
    ),
)
def test_default_quadrature_is_affine(vertices, dim, size, with_laplace) -> None:
    quad = get_default_quadrature(CellObject(vertices), FlatManifold(dim), with_laplace)
    assert quad.size() == size
    assert quad.weight_sum() == pytest.approx(1.0, abs=1e-14)


@pytest.mark.parametrize("with_laplace", (False, True))
def test_affine_hex_centre(with_laplace: bool) -> None:
    """For an affinely mapped cube both stencils give the vertex mean."""
    A = torch.tensor(
        [[2.0, 0.3, 0.0], [0.1, 1.0, -0.4], [0.0, 0.2, 3.0]], dtype=torch.float64
    )
    b = torch.tensor([1.0, -2.0, 0.5], dtype=torch.float64)
    vertices = torch.tensor(UNIT_CUBE, dtype=torch.float64) @ A.T + b
    hex_ = CellObject(vertices)
    manifold = FlatManifold(3)

    quad = get_default_quadrature(hex_, manifold, with_laplace=with_laplace)
    centre = manifold.get_new_point(quad)

    torch.testing.assert_close(centre, vertices.mean(dim=0))


def test_default_quadrature_rejects_unknown_entities() -> None:
    class Pentachoron:
        structure_dim = 4

        def vertices(self):
            return torch.zeros(5, 4, dtype=torch.float64)

    with pytest.raises(ImpossibleInDimError):
        get_default_quadrature(Pentachoron(), FlatManifold(3))
