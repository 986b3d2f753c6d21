"""Callback calling conventions.

Operators store generalized callbacks ``(res, x, alpha, beta)`` computing
``res = alpha * (A @ x) + beta * res``. Users may instead supply a plain
callback ``(res, x)`` computing ``res = A @ x``; it is wrapped here.
"""

import inspect
from enum import Enum, auto
from typing import Any, Callable, Optional
import numpy as np
from numpy.typing import NDArray, DTypeLike

from linop.algebra.dense import store
from linop.algebra.protocols import StorageTag

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class ApplyKind(Enum):
    """Calling convention of a multiply callback."""
    GENERALIZED = auto()  # (res, x, alpha, beta)
    PLAIN = auto()        # (res, x)


def callback_kind(fn: Callable) -> ApplyKind:
    """
    Classify fn by its positional arity.

    Callables whose signature cannot be inspected are assumed generalized.

    Raises:
        TypeError: fn accepts neither two nor four positional arguments.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return ApplyKind.GENERALIZED

    params = list(sig.parameters.values())
    if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
        return ApplyKind.GENERALIZED

    positional = [p for p in params if p.kind in _POSITIONAL]
    required = [p for p in positional if p.default is inspect.Parameter.empty]

    if len(required) <= 4 <= len(positional):
        return ApplyKind.GENERALIZED
    if len(required) <= 2 <= len(positional):
        return ApplyKind.PLAIN
    raise TypeError(
        f"Multiply callback {fn!r} must take (res, x) or (res, x, alpha, beta), "
        f"got signature {sig}"
    )


class PlainApplyAdapter:
    """
    Generalized multiply built from a plain ``(res, x)`` callback.

    The product goes to a temporary allocated through the storage tag on
    every call, with a dtype wide enough for the operator, the operand and
    res, then ``res = alpha * tmp + beta * res``.
    """

    def __init__(self, plain: Callable, dtype: DTypeLike, storage: StorageTag):
        self.plain = plain
        self.dtype = np.dtype(dtype)
        self.storage = storage

    def __call__(self, res: NDArray, x: NDArray, alpha: Any, beta: Any) -> NDArray:
        tmp = self.storage.allocate(
            res.shape, np.result_type(self.dtype, x.dtype, res.dtype)
        )
        self.plain(tmp, x)
        if beta == 0:
            return store(res, alpha * tmp)
        return store(res, alpha * tmp + beta * res)

    def __repr__(self) -> str:
        return f"PlainApplyAdapter({self.plain!r})"


def as_generalized(
    fn: Optional[Callable], dtype: DTypeLike, storage: StorageTag
) -> Optional[Callable]:
    """Return fn in generalized form, wrapping plain callbacks."""
    if fn is None:
        return None
    if callback_kind(fn) is ApplyKind.PLAIN:
        return PlainApplyAdapter(fn, dtype, storage)
    return fn
