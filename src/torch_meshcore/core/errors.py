"""Exception types raised by the manifold and assembly layers.

Every error in this package signals a caller or programmer mistake (a
violated precondition), never a transient condition. Errors are raised and
left to propagate; nothing inside the package catches or retries them.

The classes derive from the built-in exception a plain implementation would
raise (NotImplementedError / ValueError) so callers may catch either.
"""

from __future__ import annotations

from typing import Optional

from torch import Tensor


class PureFunctionCalledError(NotImplementedError):
    """A capability without a default implementation was invoked.

    Raised by base-class methods such as ``Manifold.project_to_manifold``
    or ``ChartManifold.push_forward_gradient`` that a concrete subclass must
    override before they can be used.
    """

    def __init__(self, owner: object, method: str):
        self.owner = type(owner).__name__
        self.method = method
        super().__init__(
            f"{self.owner}.{method}() is not implemented; a derived class "
            "must override it before it can be called",
        )


class ImpossibleInDimError(NotImplementedError):
    """Operation requested for an object that cannot exist in this dimension.

    Args:
        dim (int): intrinsic dimension of the manifold / mesh.
        what (str | None): description of the rejected operation.
    """

    def __init__(self, dim: int, what: Optional[str] = None):
        self.dim = dim
        msg = f"Impossible in dim={dim}"
        if what:
            msg = f"{msg}: {what}"
        super().__init__(msg)


class PeriodicBoxError(ValueError):
    """A surrounding point lies outside the periodic box of a FlatManifold.

    Args:
        axis (int): offending coordinate axis.
        point (Tensor): the offending point.
        periodicity (Tensor): per-axis period lengths.
        tolerance (float): absolute tolerance that was applied.
    """

    def __init__(
        self,
        axis: int,
        point: Tensor,
        periodicity: Tensor,
        tolerance: float,
    ):
        self.axis = axis
        self.point = point
        self.periodicity = periodicity
        self.tolerance = tolerance
        super().__init__(
            f"point {point.tolist()} is outside the periodic box along axis "
            f"{axis}: expected coordinate in [{-tolerance:g}, "
            f"{float(periodicity[axis]) + tolerance:g}] "
            f"(periodicity={periodicity.tolist()})",
        )


class InvalidDataError(ValueError):
    """Global storage does not match the degree-of-freedom numbering."""


class NoAssemblingRequiredError(ValueError):
    """Assembly requested with neither the matrix nor the rhs flag set."""

    def __init__(self):
        super().__init__(
            "nothing to assemble: both assemble_matrix and assemble_rhs are False",
        )
