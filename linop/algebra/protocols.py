"""Linear algebra backend and storage protocols."""

from typing import Protocol, Any, Tuple
from numpy.typing import NDArray, DTypeLike


class MultiplyBackend(Protocol):
    """
    Protocol for the generalized multiply kernel.
    Allows swapping between dense, sparse, structured implementations.
    """

    def gemv(
        self, res: NDArray, A: Any, x: NDArray, alpha: Any, beta: Any
    ) -> NDArray:
        """
        Generalized multiply: res = alpha * (A @ x) + beta * res.

        Args:
            res: Destination, overwritten in place
            A: Matrix (dense, sparse or structured)
            x: Vector or block of column vectors
            alpha: Scale applied to the product
            beta: Scale applied to the old contents of res

        Returns:
            res
        """
        ...

    def transpose(self, A: Any) -> Any:
        """
        Transpose view of A.

        Args:
            A: Matrix

        Returns:
            Object acting as A^T under @
        """
        ...

    def adjoint(self, A: Any) -> Any:
        """
        Conjugate-transpose view of A.

        Args:
            A: Matrix

        Returns:
            Object acting as A^H under @
        """
        ...


class StorageTag(Protocol):
    """
    Container family used for temporaries in the apply path.
    Swapping the tag moves scratch vectors to another memory space.
    """

    @property
    def name(self) -> str:
        """Short identifier of the container family."""
        ...

    def allocate(self, shape: Tuple[int, ...], dtype: DTypeLike) -> Any:
        """
        Allocate an uninitialized array.

        Args:
            shape: Array shape
            dtype: Element type

        Returns:
            Array whose contents must not be read before being written
        """
        ...

    def owns(self, array: Any) -> bool:
        """Whether array belongs to this container family."""
        ...
