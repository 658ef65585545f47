# tests/unit/test_matrix_views.py
from __future__ import annotations
import numpy as np
import pytest

from sunbridge.errors import ViewRelinquishedError
from sunbridge.native.ffi import ffi
from sunbridge.runtime.matrix import BandMatrixView, relinquish_matrix, wrap_band, wrap_dense
from fake_sundials import FakeSundials


def _raw(A, count):
    content = ffi.cast("SUNMatrixContent_Dense", A.content)
    return [content.data[k] for k in range(count)]


def test_dense_view_is_column_major():
    lib = FakeSundials()
    A = lib.SUNDenseMatrix(2, 3, ffi.NULL)
    J = wrap_dense(A)
    assert J.shape == (2, 3)
    J[0, 1] = 5.0
    J[1, 2] = 7.0
    # column j occupies data[j*M : (j+1)*M]
    raw = _raw(A, 6)
    assert raw[1 * 2 + 0] == 5.0
    assert raw[2 * 2 + 1] == 7.0
    relinquish_matrix(J)
    with pytest.raises(ViewRelinquishedError):
        J[0, 0] = 1.0


def test_band_offsets():
    lib = FakeSundials()
    n, mu, ml = 4, 1, 2
    A = lib.SUNBandMatrix(n, mu, ml, ffi.NULL)
    B = wrap_band(A)
    assert isinstance(B, BandMatrixView)
    assert (B.s_mu, B.ldim) == (mu + ml, mu + 2 * ml + 1)

    B[2, 1] = 3.5
    B[0, 1] = -1.0
    content = ffi.cast("SUNMatrixContent_Band", A.content)
    assert content.data[1 * B.ldim + B.s_mu + 2 - 1] == 3.5
    assert content.data[1 * B.ldim + B.s_mu + 0 - 1] == -1.0
    assert B[2, 1] == 3.5


def test_band_rejects_entries_outside_the_band():
    lib = FakeSundials()
    B = wrap_band(lib.SUNBandMatrix(4, 1, 1, ffi.NULL))
    with pytest.raises(IndexError):
        B[3, 0] = 1.0
    with pytest.raises(IndexError):
        B[0, 2]
    with pytest.raises(IndexError):
        B[4, 4]


def test_band_to_dense_and_columns():
    lib = FakeSundials()
    B = wrap_band(lib.SUNBandMatrix(3, 1, 1, ffi.NULL))
    for i in range(3):
        B[i, i] = -2.0
    for i in range(2):
        B[i, i + 1] = 1.0
        B[i + 1, i] = 1.0
    expected = np.array([[-2.0, 1.0, 0.0], [1.0, -2.0, 1.0], [0.0, 1.0, -2.0]])
    np.testing.assert_array_equal(B.to_dense(), expected)
    assert B.columns.shape == (3, B.ldim)


def test_band_relinquish():
    lib = FakeSundials()
    B = wrap_band(lib.SUNBandMatrix(2, 1, 1, ffi.NULL))
    relinquish_matrix(B)
    with pytest.raises(ViewRelinquishedError):
        B[0, 0] = 1.0
