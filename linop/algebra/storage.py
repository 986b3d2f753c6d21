"""Host-memory storage tags."""

from typing import Any, Tuple
import numpy as np
from numpy.typing import DTypeLike

from linop.algebra.protocols import StorageTag


class HostStorage:
    """NumPy arrays in host memory."""

    name = "host"

    def allocate(self, shape: Tuple[int, ...], dtype: DTypeLike) -> np.ndarray:
        """Uninitialized array from ``np.empty``."""
        return np.empty(shape, dtype=dtype)

    def owns(self, array: Any) -> bool:
        return isinstance(array, np.ndarray)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, HostStorage)

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return "HostStorage()"


HOST = HostStorage()


def default_storage(dtype: DTypeLike) -> StorageTag:
    """
    Storage tag for operators declared over dtype.

    Every numpy scalar type lives in host memory.

    Args:
        dtype: Element type of the operator

    Returns:
        Storage tag
    """
    return HOST


def storage_type(M: Any) -> StorageTag:
    """
    Storage tag matching the container family of matrix M.

    A matrix may name its own tag in a ``storage`` attribute; otherwise the
    default for its dtype is used.
    """
    storage = getattr(M, "storage", None)
    if storage is not None:
        return storage
    return default_storage(M.dtype)
