"""Linear algebra backend abstractions."""

from linop.algebra.protocols import MultiplyBackend, StorageTag
from linop.algebra.dense import DenseBackend, store
from linop.algebra.storage import HostStorage, default_storage, storage_type
from linop.algebra.structured import Symmetric, Hermitian, SymTridiagonal

__all__ = [
    "MultiplyBackend",
    "StorageTag",
    "DenseBackend",
    "store",
    "HostStorage",
    "default_storage",
    "storage_type",
    "Symmetric",
    "Hermitian",
    "SymTridiagonal",
]
