"""Cell-wise assembly of a global linear system.

For every active cell of a mesh the assembler runs three phases:

  1. bind:      reinit the shape-function evaluator on the cell and zero the
                local (cell) matrix and vector;
  2. integrate: let the :class:`Equation` fill the local matrix and/or vector;
  3. scatter:   add the local entries into the global matrix and vector at
                the cell's global degree-of-freedom indices.

Scatter always accumulates: neighbouring cells share degrees of freedom on
their common boundary and their contributions must add up. The cell's DoF
indices are fetched once and reused for matrix and vector, so both use the
same index ordering.

Mesh storage, DoF numbering, shape-function evaluation and the global
storage are collaborators described by the protocols below.
"""
# pylint: disable=invalid-name

from __future__ import annotations

import logging
from abc import ABC
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence, Union

import torch
from torch import Tensor

from ..errors import InvalidDataError, NoAssemblingRequiredError, PureFunctionCalledError
from ..lac.sparse import (
    MatrixLike,
    VectorLike,
    add_to_matrix,
    add_to_vector,
    matrix_shape,
    vector_size,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Collaborator protocols
# ------------------------------------------------------------------


class FiniteElement(Protocol):
    """Element description: only the local DoF count is needed here."""

    @property
    def dofs_per_cell(self) -> int:
        """Number of local degrees of freedom on each cell."""


class DoFHandler(Protocol):
    """Global degree-of-freedom numbering."""

    def n_dofs(self) -> int:
        """Total number of global degrees of freedom."""

    def get_fe(self) -> FiniteElement:
        """Element used on every cell."""


class DoFCell(Protocol):
    """Mesh cell that knows its global degree-of-freedom indices."""

    def get_dof_indices(self) -> Union[Tensor, Sequence[int]]:
        """Global indices of the cell's local degrees of freedom."""


class FEValues(Protocol):
    """Shape-function evaluator bound to one cell at a time."""

    def reinit(self, cell: DoFCell) -> None:
        """Evaluate shape functions and mappings on ``cell``."""


FEValuesFactory = Callable[[FiniteElement, Any, Any], FEValues]


# ------------------------------------------------------------------
# Equation callback
# ------------------------------------------------------------------


class Equation(ABC):
    """Local integrals of a weak form.

    Implement the entry points needed by the assembly mode in use; the
    others raise :class:`PureFunctionCalledError`. All entry points fill
    the given local storage in place.

    Args:
        n_components (int): number of solution components (default 1).
    """

    def __init__(self, n_components: int = 1):
        self._n_components = int(n_components)

    @property
    def n_components(self) -> int:
        """Number of solution components the equation is written for."""
        return self._n_components

    def assemble_matrix_and_vector(
        self,
        cell_matrix: Tensor,
        cell_vector: Tensor,
        fe_values: FEValues,
        cell: DoFCell,
    ) -> None:
        """Fill the (n_loc, n_loc) cell matrix and (n_loc,) cell vector."""
        raise PureFunctionCalledError(self, "assemble_matrix_and_vector")

    def assemble_matrix(
        self,
        cell_matrix: Tensor,
        fe_values: FEValues,
        cell: DoFCell,
    ) -> None:
        """Fill the (n_loc, n_loc) cell matrix."""
        raise PureFunctionCalledError(self, "assemble_matrix")

    def assemble_vector(
        self,
        cell_vector: Tensor,
        fe_values: FEValues,
        cell: DoFCell,
    ) -> None:
        """Fill the (n_loc,) cell vector."""
        raise PureFunctionCalledError(self, "assemble_vector")


# ------------------------------------------------------------------
# Assembler
# ------------------------------------------------------------------


class AssemblerData:
    """Context of one assembly pass.

    The global matrix and vector are borrowed for the duration of the pass;
    the caller owns them and must not touch them while a cell is being
    scattered.

    Args:
        dof_handler (DoFHandler): degree-of-freedom numbering.
        assemble_matrix (bool): whether to assemble the global matrix.
        assemble_rhs (bool): whether to assemble the right-hand side.
        matrix (MatrixLike | None): (n_dofs, n_dofs) global matrix, required
            when ``assemble_matrix`` is set.
        rhs_vector (VectorLike | None): (n_dofs,) global vector, required
            when ``assemble_rhs`` is set.
        quadrature: integration rule handed to the shape-function evaluator.
        update_flags: evaluator options handed through unchanged.
        fe_values_factory (callable): ``factory(fe, quadrature,
            update_flags)`` building the shape-function evaluator.
        dtype (torch.dtype): dtype of the local matrix and vector.
    """

    def __init__(
        self,
        dof_handler: DoFHandler,
        assemble_matrix: bool,
        assemble_rhs: bool,
        matrix: Optional[MatrixLike],
        rhs_vector: Optional[VectorLike],
        quadrature: Any,
        update_flags: Any,
        fe_values_factory: FEValuesFactory,
        dtype: torch.dtype = torch.float64,
    ):
        self.dof_handler = dof_handler
        self.assemble_matrix = bool(assemble_matrix)
        self.assemble_rhs = bool(assemble_rhs)
        self.matrix = matrix
        self.rhs_vector = rhs_vector
        self.quadrature = quadrature
        self.update_flags = update_flags
        self.fe_values_factory = fe_values_factory
        self.dtype = dtype


class Assembler:
    """Assembles cell contributions into the global system of a pass.

    Construction validates the global storage against the DoF numbering
    and allocates the local matrix/vector and the shape-function evaluator
    once; :meth:`assemble` is then called for each cell.

    Args:
        data (AssemblerData): assembly pass context.

    Raises:
        InvalidDataError: if the global matrix is not (n_dofs, n_dofs) while
            assembling the matrix, or the rhs does not have n_dofs entries
            while assembling the rhs.
    """

    def __init__(self, data: AssemblerData):
        n_dofs = data.dof_handler.n_dofs()

        if data.assemble_matrix:
            if data.matrix is None:
                raise InvalidDataError("assemble_matrix is set but no matrix was given")
            m, n = matrix_shape(data.matrix)
            if m != n_dofs or n != n_dofs:
                raise InvalidDataError(
                    f"global matrix is ({m}, {n}) but the DoF handler has "
                    f"{n_dofs} degrees of freedom"
                )
        if data.assemble_rhs:
            if data.rhs_vector is None:
                raise InvalidDataError("assemble_rhs is set but no rhs vector was given")
            size = vector_size(data.rhs_vector)
            if size != n_dofs:
                raise InvalidDataError(
                    f"rhs vector has {size} entries but the DoF handler has "
                    f"{n_dofs} degrees of freedom"
                )

        fe = data.dof_handler.get_fe()
        self.dofs_per_cell = int(fe.dofs_per_cell)
        self.assemble_matrix = data.assemble_matrix
        self.assemble_rhs = data.assemble_rhs
        self.matrix = data.matrix
        self.rhs_vector = data.rhs_vector

        self.cell_matrix = torch.zeros(
            self.dofs_per_cell, self.dofs_per_cell, dtype=data.dtype
        )
        self.cell_vector = torch.zeros(self.dofs_per_cell, dtype=data.dtype)
        self.fe_values = data.fe_values_factory(fe, data.quadrature, data.update_flags)

    def assemble(self, cell: DoFCell, equation: Equation) -> None:
        """Compute the contributions of one cell and add them globally.

        Args:
            cell (DoFCell): the cell to assemble.
            equation (Equation): local integrals.

        Raises:
            NoAssemblingRequiredError: if neither matrix nor rhs is assembled.
            InvalidDataError: if the cell reports a wrong number of DoFs.
        """
        # bind
        self.fe_values.reinit(cell)
        self.cell_matrix.zero_()
        self.cell_vector.zero_()

        # integrate
        if self.assemble_matrix and self.assemble_rhs:
            equation.assemble_matrix_and_vector(
                self.cell_matrix, self.cell_vector, self.fe_values, cell
            )
        elif self.assemble_matrix:
            equation.assemble_matrix(self.cell_matrix, self.fe_values, cell)
        elif self.assemble_rhs:
            equation.assemble_vector(self.cell_vector, self.fe_values, cell)
        else:
            raise NoAssemblingRequiredError()

        # scatter
        n = self.dofs_per_cell
        dofs = torch.as_tensor(cell.get_dof_indices(), dtype=torch.long).reshape(-1)
        if dofs.numel() != n:
            raise InvalidDataError(
                f"cell reports {dofs.numel()} DoF indices, expected {n}"
            )

        if self.assemble_matrix:
            rows = dofs.unsqueeze(1).expand(n, n).reshape(-1)
            cols = dofs.unsqueeze(0).expand(n, n).reshape(-1)
            add_to_matrix(self.matrix, rows, cols, self.cell_matrix.reshape(-1))

        if self.assemble_rhs:
            add_to_vector(self.rhs_vector, dofs, self.cell_vector)

        logger.debug("assembled cell with dofs %s", dofs.tolist())


def assemble_system(
    cells: Iterable[DoFCell],
    data: AssemblerData,
    equation: Equation,
) -> int:
    """Assemble the contributions of all given cells.

    Args:
        cells (Iterable[DoFCell]): active cells to visit, in order.
        data (AssemblerData): assembly pass context.
        equation (Equation): local integrals.

    Returns:
        Number of cells assembled.
    """
    assembler = Assembler(data)
    n_cells = 0
    for cell in cells:
        assembler.assemble(cell, equation)
        n_cells += 1

    logger.info(
        "assembled %d cells (matrix=%s, rhs=%s, dofs_per_cell=%d)",
        n_cells,
        data.assemble_matrix,
        data.assemble_rhs,
        assembler.dofs_per_cell,
    )
    return n_cells
