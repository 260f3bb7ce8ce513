"""Reference collaborators for the assembly tests.

A uniform 1d mesh with continuous piecewise-linear elements: cell i covers
[x_i, x_{i+1}] and owns the global DoFs (i, i+1), so neighbouring cells
share one DoF.
"""

from __future__ import annotations

import math

import pytest
import torch
from torch import Tensor

from torch_meshcore.core.quadrature import Quadrature


class LinearElement:
    """P1 element on a line: two DoFs per cell."""

    dofs_per_cell = 2


class IntervalCell:
    def __init__(self, index: int, x0: float, x1: float):
        self.index = index
        self.x0 = x0
        self.x1 = x1

    def vertices(self) -> Tensor:
        return torch.tensor([[self.x0], [self.x1]], dtype=torch.float64)

    def get_dof_indices(self) -> list[int]:
        return [self.index, self.index + 1]


class IntervalDoFHandler:
    def __init__(self, n_cells: int, length: float = 1.0):
        self.n_cells = n_cells
        self.length = length
        self._fe = LinearElement()

    def n_dofs(self) -> int:
        return self.n_cells + 1

    def get_fe(self) -> LinearElement:
        return self._fe

    def active_cells(self) -> list[IntervalCell]:
        h = self.length / self.n_cells
        return [IntervalCell(i, i * h, (i + 1) * h) for i in range(self.n_cells)]


class LinearFEValues:
    """P1 shape functions on [0, 1] mapped affinely to the current cell."""

    def __init__(self, fe, quadrature: Quadrature, update_flags=None):
        self.fe = fe
        self.quadrature = quadrature
        self.update_flags = update_flags
        self.reinit_calls: list[IntervalCell] = []

        xi = quadrature.points[:, 0]
        self.shape_values = torch.stack([1.0 - xi, xi], dim=0)  # (2, Q)
        self.JxW = None
        self.shape_grads = None

    def reinit(self, cell: IntervalCell) -> None:
        self.reinit_calls.append(cell)
        h = cell.x1 - cell.x0
        self.JxW = self.quadrature.weights * h  # (Q,)
        grads = torch.tensor([-1.0 / h, 1.0 / h], dtype=torch.float64)
        self.shape_grads = grads.unsqueeze(1).expand(2, self.quadrature.size())


def gauss_2pt() -> Quadrature:
    a = 0.5 - math.sqrt(1.0 / 12.0)
    b = 0.5 + math.sqrt(1.0 / 12.0)
    return Quadrature([[a], [b]], [0.5, 0.5])


@pytest.fixture
def gauss_quadrature() -> Quadrature:
    return gauss_2pt()


@pytest.fixture
def two_cell_mesh() -> IntervalDoFHandler:
    return IntervalDoFHandler(n_cells=2)
