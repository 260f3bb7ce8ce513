""" Core modules """

from .errors import (
    ImpossibleInDimError,
    InvalidDataError,
    NoAssemblingRequiredError,
    PeriodicBoxError,
    PureFunctionCalledError,
)
from .grid import (
    CellObject,
    ChartManifold,
    CylindricalManifold,
    FlatManifold,
    Manifold,
    PolarManifold,
    TriaObject,
    get_default_quadrature,
)
from .lac import SparseMatrixBuilder
from .numerics import Assembler, AssemblerData, Equation, assemble_system
from .quadrature import Quadrature

__all__ = [
    "Assembler",
    "AssemblerData",
    "CellObject",
    "ChartManifold",
    "CylindricalManifold",
    "Equation",
    "FlatManifold",
    "ImpossibleInDimError",
    "InvalidDataError",
    "Manifold",
    "NoAssemblingRequiredError",
    "PeriodicBoxError",
    "PolarManifold",
    "PureFunctionCalledError",
    "Quadrature",
    "SparseMatrixBuilder",
    "TriaObject",
    "assemble_system",
    "get_default_quadrature",
]
