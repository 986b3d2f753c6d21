"""Operator constructors.

Every entry point normalizes its input into dimensions, symmetry flags and
callbacks, and hands them to ``LinearOperator``.
"""

from functools import singledispatch
from typing import Any, Callable, Optional
import numpy as np
from numpy.typing import NDArray, DTypeLike

from linop.algebra.dense import DenseBackend
from linop.algebra.protocols import MultiplyBackend, StorageTag
from linop.algebra.storage import storage_type
from linop.algebra.structured import Symmetric, Hermitian, SymTridiagonal
from linop.core.operator import LinearOperator

FORWARD = "forward"
TRANSPOSE = "transpose"
ADJOINT = "adjoint"

_DEFAULT_BACKEND = DenseBackend()


def _is_real(dtype: DTypeLike) -> bool:
    return not np.issubdtype(dtype, np.complexfloating)


class MatrixApply:
    """
    Generalized multiply by a referenced matrix in one direction.

    The transpose and adjoint views are taken at call time, so in-place
    changes to the matrix are seen by the operator.
    """

    def __init__(
        self,
        matrix: Any,
        direction: str = FORWARD,
        backend: Optional[MultiplyBackend] = None,
    ):
        if direction not in (FORWARD, TRANSPOSE, ADJOINT):
            raise ValueError(f"Unknown direction {direction!r}")
        self.matrix = matrix
        self.direction = direction
        self.backend = _DEFAULT_BACKEND if backend is None else backend

    def operand(self) -> Any:
        if self.direction == TRANSPOSE:
            return self.backend.transpose(self.matrix)
        if self.direction == ADJOINT:
            return self.backend.adjoint(self.matrix)
        return self.matrix

    def __call__(self, res: NDArray, x: NDArray, alpha: Any, beta: Any) -> NDArray:
        return self.backend.gemv(res, self.operand(), x, alpha, beta)

    def __repr__(self) -> str:
        return f"MatrixApply({type(self.matrix).__name__}, {self.direction})"


def make_operator(
    dtype: DTypeLike,
    nrow: int,
    ncol: int,
    symmetric: bool,
    hermitian: bool,
    prod: Callable,
    tprod: Optional[Callable] = None,
    ctprod: Optional[Callable] = None,
    storage: Optional[StorageTag] = None,
    debug_checks: Optional[bool] = None,
) -> LinearOperator:
    """
    Construct an operator from multiply callbacks.

    Callbacks take either ``(res, v, alpha, beta)`` and compute
    ``res = alpha * (A @ v) + beta * res``, or ``(res, v)`` and compute
    ``res = A @ v``. Plain callbacks get a temporary vector per generalized
    apply.

    The operator does not enforce dtype. Callbacks producing complex values
    for an operator declared real fail when results are stored, e.g.

        A = np.array([[1j, 1.0], [0.0, 1.0]])
        op = make_operator(np.float64, 2, 2, False, False,
                           lambda res, v, a, b: DenseBackend().gemv(res, A, v, a, b))
        op.to_dense()  # DomainNarrowingError

    A generalized callback must not read res when beta == 0, since res may be
    uninitialized:

        def diag_mul(res, v, alpha, beta):
            if beta == 0:
                res[:] = alpha * d * v
            else:
                res[:] = alpha * d * v + beta * res

    Args:
        dtype: Scalar domain of the operator
        nrow: Output dimension
        ncol: Input dimension
        symmetric: Whether op == op.T
        hermitian: Whether op == op.H
        prod: Forward callback
        tprod: Transpose callback (optional)
        ctprod: Adjoint callback (optional)
        storage: Container family for temporaries
        debug_checks: Override ``linop.config`` debug checks

    Returns:
        LinearOperator
    """
    return LinearOperator(
        nrow,
        ncol,
        symmetric,
        hermitian,
        prod,
        tprod,
        ctprod,
        dtype=dtype,
        storage=storage,
        debug_checks=debug_checks,
    )


def from_matrix(
    M: Any,
    symmetric: bool = False,
    hermitian: bool = False,
    storage: Optional[StorageTag] = None,
    backend: Optional[MultiplyBackend] = None,
) -> LinearOperator:
    """
    Construct an operator from a dense, sparse or structured matrix.

    M is referenced, not copied.

    Args:
        M: Matrix supporting ``M @ x``, ``M.T``, ``M.shape`` and ``M.dtype``
        symmetric: Whether M is symmetric
        hermitian: Whether M is Hermitian
        storage: Container family for temporaries; defaults to
            ``storage_type(M)``
        backend: Multiply kernel; defaults to ``DenseBackend``

    Returns:
        LinearOperator of dtype ``M.dtype``
    """
    if storage is None:
        storage = storage_type(M)
    nrow, ncol = M.shape
    return LinearOperator(
        nrow,
        ncol,
        symmetric,
        hermitian,
        MatrixApply(M, FORWARD, backend),
        MatrixApply(M, TRANSPOSE, backend),
        MatrixApply(M, ADJOINT, backend),
        dtype=M.dtype,
        storage=storage,
    )


def from_symmetric(
    M: Symmetric, storage: Optional[StorageTag] = None
) -> LinearOperator:
    """Operator from a real symmetric matrix; symmetric and Hermitian."""
    if not _is_real(M.dtype):
        raise TypeError(
            f"from_symmetric requires a real matrix, got {M.dtype}; "
            "use from_matrix for complex symmetric matrices"
        )
    return from_matrix(M, symmetric=True, hermitian=True, storage=storage)


def from_sym_tridiagonal(
    M: SymTridiagonal, storage: Optional[StorageTag] = None
) -> LinearOperator:
    """
    Operator from a symmetric tridiagonal matrix.

    Hermitian only when the entries are real; complex symmetric otherwise.
    """
    return from_matrix(
        M, symmetric=True, hermitian=_is_real(M.dtype), storage=storage
    )


def from_hermitian(
    M: Hermitian, storage: Optional[StorageTag] = None
) -> LinearOperator:
    """
    Operator from a Hermitian matrix.

    Symmetric only when the entries are real.
    """
    return from_matrix(
        M, symmetric=_is_real(M.dtype), hermitian=True, storage=storage
    )


@singledispatch
def linear_operator(M: Any, *args, **kwargs) -> LinearOperator:
    """
    Construct an operator, dispatching on the first argument.

    - ``Symmetric`` (real), ``SymTridiagonal``, ``Hermitian``: flags derived
      from the structure
    - a dtype or scalar type: ``make_operator``
    - any other matrix: ``from_matrix``
    """
    return from_matrix(M, *args, **kwargs)


@linear_operator.register
def _(M: Symmetric, *args, **kwargs) -> LinearOperator:
    if _is_real(M.dtype):
        return from_symmetric(M, *args, **kwargs)
    return from_matrix(M, *args, **kwargs)


@linear_operator.register
def _(M: SymTridiagonal, *args, **kwargs) -> LinearOperator:
    return from_sym_tridiagonal(M, *args, **kwargs)


@linear_operator.register
def _(M: Hermitian, *args, **kwargs) -> LinearOperator:
    return from_hermitian(M, *args, **kwargs)


@linear_operator.register(type)
@linear_operator.register(np.dtype)
def _(dtype, *args, **kwargs) -> LinearOperator:
    return make_operator(dtype, *args, **kwargs)
