"""Tests for the dense multiply backend."""

import numpy as np
import pytest
import scipy.sparse

from linop.algebra.dense import DenseBackend, store
from linop.algebra.structured import ConjugateView
from linop.errors import DomainNarrowingError


def test_gemv_basic():
    """gemv computes α·A·x + β·res in place."""
    backend = DenseBackend()
    A = np.array([[1.0, 2.0], [3.0, 4.0]])
    x = np.array([1.0, -1.0])
    res = np.array([1.0, 1.0])

    out = backend.gemv(res, A, x, 2.0, 3.0)

    assert out is res
    assert np.allclose(res, 2.0 * (A @ x) + 3.0)


def test_gemv_beta_zero_skips_destination():
    """β = 0 never combines with a NaN destination."""
    backend = DenseBackend()
    res = np.full(2, np.nan)

    backend.gemv(res, np.eye(2), np.array([1.0, 2.0]), 1.0, 0.0)

    assert np.allclose(res, [1.0, 2.0])


def test_gemv_sparse():
    """Sparse matrices go through the same kernel."""
    backend = DenseBackend()
    A = scipy.sparse.csr_matrix(np.array([[0.0, 2.0], [1.0, 0.0]]))
    res = np.zeros(2)

    backend.gemv(res, A, np.array([3.0, 4.0]), 1.0, 0.0)

    assert np.allclose(res, [8.0, 3.0])


def test_adjoint_view_real_is_transpose():
    """Real adjoints are plain transposes."""
    A = np.array([[1.0, 2.0], [3.0, 4.0]])
    view = DenseBackend().adjoint(A)

    assert not isinstance(view, ConjugateView)
    assert np.allclose(view @ np.array([1.0, 0.0]), [1.0, 2.0])


def test_adjoint_view_complex_conjugates():
    """Complex adjoints conjugate without copying A."""
    A = np.array([[1j, 2.0], [0.0, 1.0 - 1j]])
    view = DenseBackend().adjoint(A)
    x = np.array([1.0, 1j])

    assert isinstance(view, ConjugateView)
    assert view.shape == (2, 2)
    assert np.allclose(view @ x, A.conj().T @ x)


def test_store_allows_widening():
    """Real values fit a complex destination."""
    res = np.zeros(2, dtype=complex)
    store(res, np.array([1.0, 2.0]))
    assert np.allclose(res, [1.0, 2.0])


def test_store_rejects_complex_into_real():
    """Complex values never get truncated into a real destination."""
    res = np.zeros(2)
    with pytest.raises(DomainNarrowingError, match="complex128"):
        store(res, np.array([1.0 + 1j, 2.0]))


def test_store_rejects_float_into_integer():
    """Floating values do not fit an integer destination."""
    with pytest.raises(DomainNarrowingError):
        store(np.zeros(2, dtype=np.int64), np.array([0.5, 1.0]))


def test_domain_narrowing_is_type_error():
    """DomainNarrowingError can be caught as TypeError."""
    with pytest.raises(TypeError):
        store(np.zeros(1), np.array([1j]))
