"""Global matrix and vector storage adapters used by the assembler."""

from .sparse import (
    GlobalMatrix,
    GlobalVector,
    SparseMatrixBuilder,
    add_to_matrix,
    add_to_vector,
    matrix_shape,
    vector_size,
)

__all__ = [
    "GlobalMatrix",
    "GlobalVector",
    "SparseMatrixBuilder",
    "add_to_matrix",
    "add_to_vector",
    "matrix_shape",
    "vector_size",
]
