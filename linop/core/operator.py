"""Matrix-free linear operator."""

import logging
from typing import Any, Callable, Optional, Tuple
import numpy as np
from numpy.typing import NDArray, DTypeLike
from scipy.sparse.linalg import LinearOperator as ScipyLinearOperator

from linop.algebra.dense import store
from linop.algebra.protocols import StorageTag
from linop.algebra.storage import default_storage
from linop.config import get_settings
from linop.core.callbacks import as_generalized
from linop.errors import (
    DimensionMismatchError,
    DomainNarrowingError,
    LinearOperatorError,
    MissingCapabilityError,
)

logger = logging.getLogger(__name__)


class LinearOperator:
    """
    Operator known only through its action on vectors.

    Every direction is applied through the generalized multiply
    ``res = alpha * (op @ x) + beta * res``; when ``beta == 0`` the old
    contents of res are never read. Instances are immutable.

    Args:
        nrow: Output dimension
        ncol: Input dimension
        symmetric: Caller's claim that op == op.T (not verified)
        hermitian: Caller's claim that op == op.H (not verified)
        prod: Forward callback, ``(res, v, alpha, beta)`` or ``(res, v)``
        tprod: Transpose callback (optional)
        ctprod: Adjoint callback (optional)
        dtype: Scalar domain of the operator
        storage: Container family for temporaries; defaults to
            ``default_storage(dtype)``
        debug_checks: Check operand shapes and destination dtypes on
            every apply; defaults to ``get_settings().debug_checks``
    """

    def __init__(
        self,
        nrow: int,
        ncol: int,
        symmetric: bool,
        hermitian: bool,
        prod: Callable,
        tprod: Optional[Callable] = None,
        ctprod: Optional[Callable] = None,
        *,
        dtype: DTypeLike = np.float64,
        storage: Optional[StorageTag] = None,
        debug_checks: Optional[bool] = None,
    ):
        dtype = np.dtype(dtype)
        if storage is None:
            storage = default_storage(dtype)
        if debug_checks is None:
            debug_checks = get_settings().debug_checks

        self._nrow = nrow
        self._ncol = ncol
        self._symmetric = symmetric
        self._hermitian = hermitian
        self._dtype = dtype
        self._storage = storage
        self._debug_checks = debug_checks
        self._prod = as_generalized(prod, dtype, storage)
        self._tprod = as_generalized(tprod, dtype, storage)
        self._ctprod = as_generalized(ctprod, dtype, storage)

        logger.debug(
            "Constructed %dx%d operator (dtype=%s, symmetric=%s, hermitian=%s, "
            "storage=%s)",
            nrow, ncol, dtype, symmetric, hermitian, storage.name,
        )

    # Metadata

    @property
    def nrow(self) -> int:
        return self._nrow

    @property
    def ncol(self) -> int:
        return self._ncol

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._nrow, self._ncol)

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def symmetric(self) -> bool:
        return self._symmetric

    @property
    def hermitian(self) -> bool:
        return self._hermitian

    @property
    def storage(self) -> StorageTag:
        return self._storage

    @property
    def is_square(self) -> bool:
        return self._nrow == self._ncol

    @property
    def has_transpose(self) -> bool:
        """Whether apply_transpose can be computed."""
        return (
            self._tprod is not None
            or self._symmetric
            or self._ctprod is not None
        )

    @property
    def has_adjoint(self) -> bool:
        """Whether apply_adjoint can be computed."""
        return (
            self._ctprod is not None
            or self._hermitian
            or self._tprod is not None
        )

    # Generalized apply

    def apply(
        self, res: NDArray, v: NDArray, alpha: Any = 1, beta: Any = 0
    ) -> NDArray:
        """
        Forward apply: res = alpha * (A @ v) + beta * res.

        Args:
            res: Destination, shape (nrow,) or (nrow, k)
            v: Operand, shape (ncol,) or (ncol, k)
            alpha: Product scale
            beta: Accumulation scale; 0 means res is write-only

        Returns:
            res
        """
        if self._debug_checks:
            self._check_operands(res, v, self._nrow, self._ncol)
        self._prod(res, v, alpha, beta)
        return res

    def apply_transpose(
        self, res: NDArray, u: NDArray, alpha: Any = 1, beta: Any = 0
    ) -> NDArray:
        """
        Transpose apply: res = alpha * (A^T @ u) + beta * res.

        Falls back to the forward callback for symmetric operators and to
        conj(A^H conj(u)) when only the adjoint is available.

        Raises:
            MissingCapabilityError: No way to compute A^T @ u.
        """
        if self._debug_checks:
            self._check_operands(res, u, self._ncol, self._nrow)
        if self._tprod is not None:
            self._tprod(res, u, alpha, beta)
        elif self._symmetric:
            self._prod(res, u, alpha, beta)
        elif self._ctprod is not None:
            logger.debug("Transpose apply through conjugated adjoint")
            self._conjugate_apply(self._ctprod, res, u, alpha, beta)
        else:
            raise MissingCapabilityError("Transpose operation not provided")
        return res

    def apply_adjoint(
        self, res: NDArray, w: NDArray, alpha: Any = 1, beta: Any = 0
    ) -> NDArray:
        """
        Adjoint apply: res = alpha * (A^H @ w) + beta * res.

        Falls back to the forward callback for hermitian operators and to
        conj(A^T conj(w)) when only the transpose is available.

        Raises:
            MissingCapabilityError: No way to compute A^H @ w.
        """
        if self._debug_checks:
            self._check_operands(res, w, self._ncol, self._nrow)
        if self._ctprod is not None:
            self._ctprod(res, w, alpha, beta)
        elif self._hermitian:
            self._prod(res, w, alpha, beta)
        elif self._tprod is not None:
            logger.debug("Adjoint apply through conjugated transpose")
            self._conjugate_apply(self._tprod, res, w, alpha, beta)
        else:
            raise MissingCapabilityError("Adjoint operation not provided")
        return res

    def _conjugate_apply(
        self, fn: Callable, res: NDArray, x: NDArray, alpha: Any, beta: Any
    ) -> None:
        # conj(B @ conj(x)) for B the other of A^T, A^H
        if not np.issubdtype(self._dtype, np.complexfloating):
            fn(res, x, alpha, beta)
            return
        tmp = self._storage.allocate(
            res.shape, np.result_type(self._dtype, x.dtype, res.dtype)
        )
        fn(tmp, np.conj(x), 1, 0)
        if beta == 0:
            store(res, alpha * np.conj(tmp))
        else:
            store(res, alpha * np.conj(tmp) + beta * res)

    def _check_operands(
        self, res: NDArray, x: NDArray, out_dim: int, in_dim: int
    ) -> None:
        if not self._storage.owns(res):
            raise LinearOperatorError(
                f"Destination of type {type(res).__name__} is not "
                f"{self._storage.name} storage"
            )
        if (
            res.shape[:1] != (out_dim,)
            or x.shape[:1] != (in_dim,)
            or res.shape[1:] != x.shape[1:]
        ):
            raise DimensionMismatchError(
                f"Operator of shape ({out_dim}, {in_dim}) cannot map "
                f"{x.shape} into {res.shape}"
            )
        if not np.can_cast(self._dtype, res.dtype, casting="same_kind"):
            raise DomainNarrowingError(
                f"Destination of dtype {res.dtype} cannot hold {self._dtype} "
                "operator results"
            )

    # Allocating apply

    def _allocate_result(self, dim: int, x: NDArray) -> NDArray:
        return self._storage.allocate(
            (dim,) + x.shape[1:], np.result_type(self._dtype, x.dtype)
        )

    def matvec(self, x: NDArray) -> NDArray:
        """Compute A @ x into a new array."""
        x = x if hasattr(x, "shape") else np.asarray(x)
        return self.apply(self._allocate_result(self._nrow, x), x)

    def rmatvec(self, x: NDArray) -> NDArray:
        """Compute A.T @ x into a new array."""
        x = x if hasattr(x, "shape") else np.asarray(x)
        return self.apply_transpose(self._allocate_result(self._ncol, x), x)

    def hmatvec(self, x: NDArray) -> NDArray:
        """Compute A^H @ x into a new array."""
        x = x if hasattr(x, "shape") else np.asarray(x)
        return self.apply_adjoint(self._allocate_result(self._ncol, x), x)

    def __matmul__(self, x: NDArray) -> NDArray:
        """Support A @ x syntax."""
        if isinstance(x, LinearOperator):
            return NotImplemented
        return self.matvec(x)

    # Derived operators

    def _derived(self, prod, tprod, ctprod) -> "LinearOperator":
        return LinearOperator(
            self._ncol,
            self._nrow,
            self._symmetric,
            self._hermitian,
            prod,
            tprod,
            ctprod,
            dtype=self._dtype,
            storage=self._storage,
            debug_checks=self._debug_checks,
        )

    @property
    def T(self) -> "LinearOperator":
        """Transposed operator sharing this operator's callbacks."""
        # (A^T)^H = conj(A) comes from the conjugated-transpose fallback
        return self._derived(self.apply_transpose, self.apply, None)

    @property
    def H(self) -> "LinearOperator":
        """Adjoint operator sharing this operator's callbacks."""
        return self._derived(self.apply_adjoint, None, self.apply)

    # Conversion

    def to_dense(self) -> NDArray:
        """
        Materialize the operator column by column.

        Columns are computed in a complex buffer so that complex output of an
        operator declared real is detected instead of truncated.

        Returns:
            Array of shape (nrow, ncol) and dtype ``self.dtype``

        Raises:
            DomainNarrowingError: Columns have non-zero imaginary part while
                the operator was declared real.
        """
        is_complex = np.issubdtype(self._dtype, np.complexfloating)
        work_dtype = np.result_type(self._dtype, np.complex64)
        out = self._storage.allocate((self._nrow, self._ncol), self._dtype)
        e = self._storage.allocate((self._ncol,), self._dtype)
        col = self._storage.allocate((self._nrow,), work_dtype)

        for j in range(self._ncol):
            e[:] = 0
            e[j] = 1
            self.apply(col, e)
            if not is_complex:
                if np.any(col.imag != 0):
                    raise DomainNarrowingError(
                        f"Column {j} has complex entries but the operator "
                        f"was declared {self._dtype}"
                    )
                out[:, j] = col.real
            else:
                out[:, j] = col
        return out

    def to_scipy(self) -> ScipyLinearOperator:
        """
        View as a ``scipy.sparse.linalg.LinearOperator``.

        SciPy's rmatvec is the adjoint, so it maps to hmatvec.
        """
        return ScipyLinearOperator(
            self.shape,
            matvec=self.matvec,
            rmatvec=self.hmatvec,
            matmat=self.matvec,
            rmatmat=self.hmatvec,
            dtype=self._dtype,
        )

    def __repr__(self) -> str:
        return (
            f"LinearOperator(shape={self.shape}, dtype={self._dtype}, "
            f"symmetric={self._symmetric}, hermitian={self._hermitian}, "
            f"storage={self._storage.name})"
        )
