"""Tests for callback conventions and the plain-apply adapter."""

import functools
import numpy as np
import pytest

from linop import make_operator, DomainNarrowingError
from linop.algebra.storage import HostStorage
from linop.core.callbacks import (
    ApplyKind,
    PlainApplyAdapter,
    as_generalized,
    callback_kind,
)


class CountingStorage(HostStorage):
    """Host storage that records allocations."""

    name = "counting"

    def __init__(self):
        self.allocations = []

    def allocate(self, shape, dtype):
        self.allocations.append((shape, np.dtype(dtype)))
        return super().allocate(shape, dtype)


A = np.array([[1.0, 2.0], [3.0, 4.0]])


def plain_mul(res, v):
    np.matmul(A, v, out=res)


def test_callback_kind_by_arity():
    """Two positional arguments are plain, four are generalized."""
    assert callback_kind(plain_mul) is ApplyKind.PLAIN
    assert callback_kind(lambda res, v, a, b: None) is ApplyKind.GENERALIZED


def test_callback_kind_with_defaults():
    """Optional scale arguments still count as generalized."""

    def mul(res, v, alpha=1.0, beta=0.0):
        pass

    assert callback_kind(mul) is ApplyKind.GENERALIZED


def test_callback_kind_partial():
    """functools.partial is classified by its remaining arguments."""

    def mul(M, res, v):
        np.matmul(M, v, out=res)

    assert callback_kind(functools.partial(mul, A)) is ApplyKind.PLAIN


def test_callback_kind_varargs_is_generalized():
    """Variadic callables are assumed generalized."""
    assert callback_kind(lambda *args: None) is ApplyKind.GENERALIZED


def test_callback_kind_rejects_other_arities():
    """Three required arguments match neither convention."""
    with pytest.raises(TypeError):
        callback_kind(lambda res, v, alpha: None)


def test_as_generalized_passthrough():
    """Generalized callbacks and None are returned unchanged."""

    def mul(res, v, alpha, beta):
        pass

    storage = HostStorage()
    assert as_generalized(None, np.float64, storage) is None
    assert as_generalized(mul, np.float64, storage) is mul
    assert isinstance(
        as_generalized(plain_mul, np.float64, storage), PlainApplyAdapter
    )


def test_plain_only_matches_plain_callback():
    """α = 1, β = 0 through the adapter equals the plain callback."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)
    v = np.array([0.5, -2.0])

    expected = np.empty(2)
    plain_mul(expected, v)

    res = np.empty(2)
    op.apply(res, v, 1.0, 0.0)

    assert np.array_equal(res, expected)


def test_plain_adapter_scales_and_accumulates():
    """The adapter combines the product as α·tmp + β·res."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)
    v = np.array([1.0, 1.0])
    res0 = np.array([10.0, -10.0])

    res = res0.copy()
    op.apply(res, v, -2.0, 0.5)

    assert np.allclose(res, -2.0 * (A @ v) + 0.5 * res0)


def test_plain_adapter_beta_zero_ignores_nan():
    """The adapter does not read a poisoned destination when β = 0."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)

    res = np.full(2, np.nan)
    op.apply(res, np.array([1.0, 0.0]), 2.0, 0)

    assert np.allclose(res, [2.0, 6.0])


def test_plain_transpose_and_adjoint():
    """Plain callbacks work in every direction."""

    def plain_tmul(res, u):
        np.matmul(A.T, u, out=res)

    op = make_operator(
        np.float64, 2, 2, False, False, plain_mul, plain_tmul, plain_tmul
    )
    u = np.array([1.0, 2.0])
    res0 = np.ones(2)

    res = res0.copy()
    op.apply_transpose(res, u, 1.0, 1.0)
    assert np.allclose(res, A.T @ u + res0)
    assert np.allclose(op.hmatvec(u), A.T @ u)


def test_plain_adapter_allocates_through_storage():
    """Each generalized apply allocates one temporary from the storage tag."""
    storage = CountingStorage()
    op = make_operator(np.float64, 2, 2, False, False, plain_mul, storage=storage)

    res = np.empty(2)
    op.apply(res, np.ones(2), 1.0, 0.0)
    op.apply(res, np.ones(2), 1.0, 1.0)

    assert storage.allocations == [
        ((2,), np.dtype(np.float64)),
        ((2,), np.dtype(np.float64)),
    ]


def test_plain_adapter_block_operand():
    """Temporaries follow the shape of a 2-D destination."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)
    X = np.array([[1.0, 0.0], [0.0, 1.0]])

    res = np.full((2, 2), np.nan)
    op.apply(res, X, 1.0, 0.0)

    assert np.allclose(res, A)


def test_plain_adapter_promotes_temporary_for_complex_operand():
    """A real operator applied to complex vectors keeps the imaginary part."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)
    v = np.array([1j, 1.0])

    assert np.allclose(op @ v, A @ v)


def test_plain_adapter_complex_scale_into_real_destination():
    """A complex α cannot be stored into a real destination."""
    op = make_operator(np.float64, 2, 2, False, False, plain_mul)

    with pytest.raises(DomainNarrowingError):
        op.apply(np.empty(2), np.ones(2), 1j, 0.0)


C = np.array([[1j, 1.0], [0.0, 1.0]])


def plain_complex_mul(res, v):
    res[:] = C @ v


def test_plain_adapter_keeps_imaginary_part_for_complex_destination():
    """A complex destination gets a complex temporary, even for a real operator."""
    op = make_operator(np.float64, 2, 2, False, False, plain_complex_mul)

    res = np.full(2, np.nan, dtype=complex)
    op.apply(res, np.array([1.0, 0.0]), 1.0, 0.0)

    assert np.allclose(res, [1j, 0.0])


def test_plain_to_dense_detects_complex_under_real_dtype():
    """Complex output of a plain callback is not truncated by to_dense."""
    op = make_operator(np.float64, 2, 2, False, False, plain_complex_mul)

    with pytest.raises(DomainNarrowingError):
        op.to_dense()


def test_plain_adapter_temporary_follows_destination_dtype():
    """The temporary dtype covers operator, operand and destination."""
    storage = CountingStorage()
    op = make_operator(np.float32, 2, 2, False, False, plain_mul, storage=storage)

    op.apply(np.empty(2, dtype=np.complex128), np.ones(2, dtype=np.float32))

    assert storage.allocations == [((2,), np.dtype(np.complex128))]
