"""Structured matrix wrappers carrying symmetry information.

Each wrapper keeps a reference to the caller's arrays and multiplies through
``@``, so it can be handed to the dense backend like any other matrix.
"""

from typing import Any
import numpy as np
import scipy.sparse
from numpy.typing import NDArray


def _check_uplo(uplo: str) -> str:
    if uplo not in ("U", "L"):
        raise ValueError(f"uplo must be 'U' or 'L', got {uplo!r}")
    return uplo


def _check_square(data: NDArray) -> NDArray:
    if data.ndim != 2 or data.shape[0] != data.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {data.shape}")
    return data


class ConjugateView:
    """Acts as conj(A) under @ without copying A."""

    def __init__(self, A: Any):
        self.base = A

    @property
    def shape(self):
        return self.base.shape

    @property
    def dtype(self):
        return self.base.dtype

    @property
    def T(self) -> "ConjugateView":
        return ConjugateView(self.base.T)

    def __matmul__(self, x: NDArray) -> NDArray:
        return np.conj(self.base @ np.conj(x))


class Symmetric:
    """
    Symmetric matrix stored in one triangle of data.

    Only the triangle selected by uplo is read; the other is ignored.
    """

    def __init__(self, data: NDArray, uplo: str = "U"):
        self.data = _check_square(np.asarray(data))
        self.uplo = _check_uplo(uplo)

    @property
    def shape(self):
        return self.data.shape

    @property
    def dtype(self):
        return self.data.dtype

    @property
    def T(self) -> "Symmetric":
        return self

    def _strict(self) -> NDArray:
        if self.uplo == "U":
            return np.triu(self.data, 1)
        return np.tril(self.data, -1)

    def toarray(self) -> NDArray:
        strict = self._strict()
        return strict + strict.T + np.diag(np.diag(self.data))

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.toarray() @ x


class Hermitian:
    """
    Hermitian matrix stored in one triangle of data.

    The imaginary part of the diagonal is ignored.
    """

    def __init__(self, data: NDArray, uplo: str = "U"):
        self.data = _check_square(np.asarray(data))
        self.uplo = _check_uplo(uplo)

    @property
    def shape(self):
        return self.data.shape

    @property
    def dtype(self):
        return self.data.dtype

    @property
    def T(self):
        # H^T = conj(H)
        if np.iscomplexobj(self.data):
            return ConjugateView(self)
        return self

    def toarray(self) -> NDArray:
        if self.uplo == "U":
            strict = np.triu(self.data, 1)
        else:
            strict = np.tril(self.data, -1)
        full = strict + strict.conj().T
        full[np.diag_indices_from(full)] = np.real(np.diag(self.data))
        return full

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.toarray() @ x


class SymTridiagonal:
    """
    Symmetric tridiagonal matrix from its diagonal and off-diagonal.

    Args:
        dv: Diagonal, length n
        ev: Off-diagonal, length n - 1 (used both above and below)
    """

    def __init__(self, dv: NDArray, ev: NDArray):
        dv = np.asarray(dv)
        ev = np.asarray(ev)
        if dv.ndim != 1 or ev.ndim != 1:
            raise ValueError("dv and ev must be one-dimensional")
        if len(ev) != max(len(dv) - 1, 0):
            raise ValueError(
                f"Off-diagonal must have length {len(dv) - 1}, got {len(ev)}"
            )
        self.dv = dv
        self.ev = ev

    @property
    def shape(self):
        n = len(self.dv)
        return (n, n)

    @property
    def dtype(self):
        return np.result_type(self.dv, self.ev)

    @property
    def T(self) -> "SymTridiagonal":
        return self

    def tosparse(self) -> scipy.sparse.csr_array:
        n = len(self.dv)
        if n == 0:
            return scipy.sparse.csr_array((0, 0), dtype=self.dtype)
        return scipy.sparse.diags_array(
            [self.ev, self.dv, self.ev],
            offsets=[-1, 0, 1],
            shape=(n, n),
            dtype=self.dtype,
        ).tocsr()

    def toarray(self) -> NDArray:
        return self.tosparse().toarray()

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.tosparse() @ x
