"""Operator type and constructors."""

from linop.core.operator import LinearOperator
from linop.core.callbacks import ApplyKind, PlainApplyAdapter, callback_kind
from linop.core.constructors import (
    MatrixApply,
    make_operator,
    from_matrix,
    from_symmetric,
    from_sym_tridiagonal,
    from_hermitian,
    linear_operator,
)

__all__ = [
    "LinearOperator",
    "ApplyKind",
    "PlainApplyAdapter",
    "callback_kind",
    "MatrixApply",
    "make_operator",
    "from_matrix",
    "from_symmetric",
    "from_sym_tridiagonal",
    "from_hermitian",
    "linear_operator",
]
