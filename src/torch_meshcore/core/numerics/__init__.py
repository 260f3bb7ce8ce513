"""Cell-wise assembly of global linear systems.

This module provides:
- Equation: abstract local-integral callback.
- AssemblerData: context of one assembly pass.
- Assembler: bind / integrate / scatter for a single cell.
- assemble_system: run an Assembler over a sequence of cells.
"""

from .assembler import (
    Assembler,
    AssemblerData,
    DoFCell,
    DoFHandler,
    Equation,
    FEValues,
    FiniteElement,
    assemble_system,
)

__all__ = [
    "Assembler",
    "AssemblerData",
    "DoFCell",
    "DoFHandler",
    "Equation",
    "FEValues",
    "FiniteElement",
    "assemble_system",
]
