"""Dense linear algebra backend using NumPy/SciPy."""

from typing import Any
import numpy as np
from numpy.typing import NDArray

from linop.algebra.structured import ConjugateView
from linop.errors import DomainNarrowingError


def store(res: NDArray, value: Any) -> NDArray:
    """
    Write value into res without narrowing its scalar domain.

    Args:
        res: Destination array
        value: Array or scalar broadcastable to res

    Returns:
        res

    Raises:
        DomainNarrowingError: value cannot be cast to res.dtype under
            ``same_kind`` rules (e.g. complex into float).
    """
    try:
        np.copyto(res, value, casting="same_kind")
    except TypeError as exc:
        raise DomainNarrowingError(
            f"Cannot store {np.result_type(value)} values into a "
            f"{res.dtype} buffer"
        ) from exc
    return res


class DenseBackend:
    """NumPy implementation of the generalized multiply kernel.

    Anything supporting ``A @ x`` works as A: numpy arrays, scipy sparse
    matrices and arrays, and the wrappers in ``linop.algebra.structured``.
    """

    def gemv(
        self, res: NDArray, A: Any, x: NDArray, alpha: Any, beta: Any
    ) -> NDArray:
        """Compute res = alpha * (A @ x) + beta * res in place."""
        product = A @ x
        if beta == 0:
            # res may hold garbage; never read it
            return store(res, alpha * product)
        return store(res, alpha * product + beta * res)

    def transpose(self, A: Any) -> Any:
        """Transpose view of A (no copy for numpy arrays)."""
        return A.T

    def adjoint(self, A: Any) -> Any:
        """
        Conjugate-transpose view of A.

        For real A this is the plain transpose; otherwise the conjugation is
        applied to the operand and result instead of copying A.
        """
        if np.issubdtype(A.dtype, np.complexfloating):
            return ConjugateView(A.T)
        return A.T
