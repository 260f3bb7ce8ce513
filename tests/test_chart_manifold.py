"""ChartManifold: interpolation in chart space and tangent transport."""

import pytest
import torch

from torch_meshcore.core.errors import PureFunctionCalledError
from torch_meshcore.core.grid import CellObject, ChartManifold, FlatManifold
from torch_meshcore.core.quadrature import Quadrature


class IdentityChart(ChartManifold):
    def pull_back(self, space_point):
        return space_point.clone()

    def push_forward(self, chart_point):
        return chart_point.clone()

    def push_forward_gradient(self, chart_point):
        return torch.eye(self.spacedim, self.chartdim, dtype=chart_point.dtype)


class ScaledChart(ChartManifold):
    """x = 2 * u, without a Jacobian."""

    def pull_back(self, space_point):
        return space_point / 2.0

    def push_forward(self, chart_point):
        return 2.0 * chart_point


def _random_quad(n_points: int, dim: int, seed: int, scale: float = 1.0) -> Quadrature:
    gen = torch.Generator().manual_seed(seed)
    points = torch.rand(n_points, dim, generator=gen, dtype=torch.float64) * scale
    weights = torch.rand(n_points, generator=gen, dtype=torch.float64)
    return Quadrature(points, weights / weights.sum())


def test_sub_manifold_owns_chart_periodicity() -> None:
    chart = IdentityChart(2, periodicity=[0.0, 1.0])

    assert isinstance(chart.sub_manifold, FlatManifold)
    assert chart.sub_manifold.spacedim == chart.chartdim == 2
    assert chart.sub_manifold.periodicity.tolist() == [0.0, 1.0]


def test_default_chart_is_not_periodic() -> None:
    assert not IdentityChart(3).sub_manifold.is_periodic


@pytest.mark.parametrize("seed", (0, 1, 2))
@pytest.mark.parametrize("periodicity", (None, [1.0, 1.0]))
def test_identity_chart_reproduces_flat_manifold(seed, periodicity) -> None:
    chart = IdentityChart(2, periodicity=periodicity)
    flat = FlatManifold(2, periodicity=periodicity)
    quad = _random_quad(5, 2, seed)

    torch.testing.assert_close(chart.get_new_point(quad), flat.get_new_point(quad))


def test_identity_chart_across_seam() -> None:
    chart = IdentityChart(1, periodicity=[1.0])
    flat = FlatManifold(1, periodicity=[1.0])
    quad = Quadrature([[0.9], [0.2]], [0.5, 0.5])

    torch.testing.assert_close(chart.get_new_point(quad), flat.get_new_point(quad))
    assert float(chart.get_new_point(quad)[0]) == pytest.approx(0.05)


def test_identity_chart_tangent_matches_flat() -> None:
    chart = IdentityChart(2, periodicity=[1.0, 0.0])
    flat = FlatManifold(2, periodicity=[1.0, 0.0])
    x1 = torch.tensor([0.95, 0.3], dtype=torch.float64)
    x2 = torch.tensor([0.05, 0.7], dtype=torch.float64)

    torch.testing.assert_close(
        chart.get_tangent_vector(x1, x2), flat.get_tangent_vector(x1, x2)
    )


def test_new_point_is_pushed_forward_chart_average() -> None:
    chart = ScaledChart(2)
    quad = Quadrature([[0.0, 0.0], [4.0, 2.0]], [0.75, 0.25])
    assert chart.get_new_point(quad).tolist() == pytest.approx([1.0, 0.5])


def test_chart_weights_checked() -> None:
    chart = ScaledChart(1)
    with pytest.raises(ValueError, match="sum to 1"):
        chart.get_new_point(Quadrature([[0.0], [1.0]], [0.5, 0.25]))


def test_tangent_needs_push_forward_gradient() -> None:
    chart = ScaledChart(2)
    with pytest.raises(PureFunctionCalledError, match="push_forward_gradient"):
        chart.get_tangent_vector([0.0, 0.0], [1.0, 1.0])


def test_chart_manifold_on_cells() -> None:
    chart = IdentityChart(2)
    quad = CellObject([[0.0, 0.0], [2.0, 0.0], [0.0, 2.0], [2.0, 2.0]])
    assert chart.get_new_point_on_cell(quad).tolist() == pytest.approx([1.0, 1.0])


def test_chart_requires_charts() -> None:
    with pytest.raises(TypeError):
        ChartManifold(2)  # pylint: disable=abstract-class-instantiated
