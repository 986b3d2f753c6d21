"""
linop: matrix-free linear operators.

An operator is known only through its action on vectors. It can be built from
a dense, sparse or structured matrix, or from user-supplied multiply
callbacks, and always exposes the same in-place generalized apply

    res = alpha * (A @ x) + beta * res

in the forward, transpose and adjoint directions.
"""

__version__ = "0.1.0"

from linop.core.operator import LinearOperator
from linop.core.constructors import (
    make_operator,
    from_matrix,
    from_symmetric,
    from_sym_tridiagonal,
    from_hermitian,
    linear_operator,
)
from linop.algebra.structured import Symmetric, Hermitian, SymTridiagonal
from linop.algebra.storage import HostStorage
from linop.errors import (
    LinearOperatorError,
    MissingCapabilityError,
    DomainNarrowingError,
    DimensionMismatchError,
)

__all__ = [
    "LinearOperator",
    "make_operator",
    "from_matrix",
    "from_symmetric",
    "from_sym_tridiagonal",
    "from_hermitian",
    "linear_operator",
    "Symmetric",
    "Hermitian",
    "SymTridiagonal",
    "HostStorage",
    "LinearOperatorError",
    "MissingCapabilityError",
    "DomainNarrowingError",
    "DimensionMismatchError",
]
