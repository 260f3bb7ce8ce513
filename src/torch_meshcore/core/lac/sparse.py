"""Global linear-system storage seen by the assembler.

The assembler only needs an additive entry update on the global matrix and
right-hand side. This module states that contract as protocols and provides
the adapters used in practice:

- a plain dense ``torch.Tensor`` (updated in place with
  ``index_put_(..., accumulate=True)``),
- :class:`SparseMatrixBuilder`, a COO accumulator that collects
  (row, col, value) triplets and materializes a coalesced
  ``torch_sparse.SparseTensor``; duplicate entries (degrees of freedom shared
  between cells) are summed on coalescing.

Index arguments are 1-D integer tensors, so one call scatters a whole cell
block.
"""
# pylint: disable=invalid-name

from __future__ import annotations

from typing import Optional, Protocol, Union, runtime_checkable

import torch
from torch import Tensor
from torch_sparse import SparseTensor


@runtime_checkable
class GlobalMatrix(Protocol):
    """Additively updatable global matrix."""

    def m(self) -> int:
        """Number of rows."""

    def n(self) -> int:
        """Number of columns."""

    def add(self, rows: Tensor, cols: Tensor, values: Tensor) -> None:
        """Add values[k] to entry (rows[k], cols[k]) for every k."""


@runtime_checkable
class GlobalVector(Protocol):
    """Additively updatable global vector."""

    def size(self) -> int:
        """Number of entries."""

    def add(self, indices: Tensor, values: Tensor) -> None:
        """Add values[k] to entry indices[k] for every k."""


MatrixLike = Union[Tensor, GlobalMatrix]
VectorLike = Union[Tensor, GlobalVector]


# ------------------------------------------------------------------
# Dispatch helpers
# ------------------------------------------------------------------


def matrix_shape(matrix: MatrixLike) -> tuple[int, int]:
    """Return (rows, cols) of a dense tensor or GlobalMatrix.

    Raises:
        ValueError: if a tensor is not two-dimensional.
    """
    if isinstance(matrix, Tensor):
        if matrix.ndim != 2:
            raise ValueError(f"matrix must be 2D, got ndim={matrix.ndim}")
        return matrix.shape[0], matrix.shape[1]
    return matrix.m(), matrix.n()


def vector_size(vector: VectorLike) -> int:
    """Return the length of a dense tensor or GlobalVector.

    Raises:
        ValueError: if a tensor is not one-dimensional.
    """
    if isinstance(vector, Tensor):
        if vector.ndim != 1:
            raise ValueError(f"vector must be 1D, got ndim={vector.ndim}")
        return vector.shape[0]
    return vector.size()


def add_to_matrix(
    matrix: MatrixLike,
    rows: Tensor,
    cols: Tensor,
    values: Tensor,
) -> None:
    """Scatter-add values into a matrix at (rows, cols)."""
    if isinstance(matrix, Tensor):
        matrix.index_put_(
            (rows.to(matrix.device), cols.to(matrix.device)),
            values.to(matrix),
            accumulate=True,
        )
    else:
        matrix.add(rows, cols, values)


def add_to_vector(vector: VectorLike, indices: Tensor, values: Tensor) -> None:
    """Scatter-add values into a vector at indices."""
    if isinstance(vector, Tensor):
        vector.index_put_(
            (indices.to(vector.device),),
            values.to(vector),
            accumulate=True,
        )
    else:
        vector.add(indices, values)


# ------------------------------------------------------------------
# COO accumulator
# ------------------------------------------------------------------


class SparseMatrixBuilder:
    """Accumulates additive entry updates into a sparse (m, n) matrix.

    Triplets are kept in insertion order; :meth:`to_sparse_tensor` sums
    duplicates. The builder never overwrites an entry.

    Args:
        m (int): number of rows.
        n (int | None): number of columns, defaults to ``m``.
        dtype (torch.dtype): value dtype (default float64).
        device (torch.device | str | None): device of the stored triplets.
    """

    def __init__(
        self,
        m: int,
        n: Optional[int] = None,
        dtype: torch.dtype = torch.float64,
        device: Optional[Union[torch.device, str]] = None,
    ):
        if m < 0 or (n is not None and n < 0):
            raise ValueError(f"matrix sizes must be non-negative, got ({m}, {n})")
        self._m = int(m)
        self._n = int(m if n is None else n)
        self.dtype = dtype
        self.device = torch.device("cpu") if device is None else torch.device(device)

        self._rows: list[Tensor] = []
        self._cols: list[Tensor] = []
        self._values: list[Tensor] = []

    def m(self) -> int:
        return self._m

    def n(self) -> int:
        return self._n

    def nnz(self) -> int:
        """Number of stored triplets (duplicates counted separately)."""
        return sum(v.numel() for v in self._values)

    def add(self, rows: Tensor, cols: Tensor, values: Tensor) -> None:
        """Record values[k] to be added at (rows[k], cols[k]).

        Raises:
            ValueError: on length mismatch or out-of-range indices.
        """
        # copies: callers reuse their local buffers between cells
        rows = torch.as_tensor(rows, dtype=torch.long, device=self.device).reshape(-1).clone()
        cols = torch.as_tensor(cols, dtype=torch.long, device=self.device).reshape(-1).clone()
        values = torch.as_tensor(values, dtype=self.dtype, device=self.device).reshape(-1).clone()

        if not rows.numel() == cols.numel() == values.numel():
            raise ValueError(
                f"rows ({rows.numel()}), cols ({cols.numel()}) and values "
                f"({values.numel()}) must have the same length"
            )
        if rows.numel() == 0:
            return
        if rows.min() < 0 or rows.max() >= self._m:
            raise ValueError(f"row index out of range [0, {self._m})")
        if cols.min() < 0 or cols.max() >= self._n:
            raise ValueError(f"column index out of range [0, {self._n})")

        self._rows.append(rows)
        self._cols.append(cols)
        self._values.append(values)

    def zero(self) -> None:
        """Discard all recorded entries."""
        self._rows.clear()
        self._cols.clear()
        self._values.clear()

    def _triplets(self) -> tuple[Tensor, Tensor, Tensor]:
        if not self._values:
            empty = torch.empty(0, dtype=torch.long, device=self.device)
            return empty, empty.clone(), torch.empty(0, dtype=self.dtype, device=self.device)
        return torch.cat(self._rows), torch.cat(self._cols), torch.cat(self._values)

    def to_sparse_tensor(self) -> SparseTensor:
        """Materialize the accumulated entries, summing duplicates.

        Returns:
            SparseTensor (m, n), coalesced.
        """
        row, col, value = self._triplets()
        return SparseTensor(
            row=row,
            col=col,
            value=value,
            sparse_sizes=(self._m, self._n),
        ).coalesce()

    def to_dense(self) -> Tensor:
        """Materialize the accumulated entries as a dense (m, n) tensor."""
        row, col, value = self._triplets()
        dense = torch.zeros(self._m, self._n, dtype=self.dtype, device=self.device)
        dense.index_put_((row, col), value, accumulate=True)
        return dense

    def __repr__(self) -> str:
        return f"SparseMatrixBuilder(m={self._m}, n={self._n}, nnz={self.nnz()})"
