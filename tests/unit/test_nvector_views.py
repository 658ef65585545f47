# tests/unit/test_nvector_views.py
"""
Unit tests for native vector views.

Tests cover:
- Write-through between a view and native memory
- Revocation of a view and of everything derived from it
- Host arrays wrapped as N_Vectors (in place, shape/dtype checks)
"""
from __future__ import annotations
import sys

import numpy as np
import pytest

from sunbridge.errors import InvalidArgumentError, ViewRelinquishedError
from sunbridge.native.ffi import ffi
from sunbridge.runtime.nvector import (
    VectorView, borrow, relinquish, relinquish_all, vectorize, vectorized, vectorized_array,
    wrap, wrap_pointer,
)
from fake_sundials import Vec, as_array


# ---- views over native memory -----------------------------------------------

def test_wrap_pointer_writes_through():
    buf = ffi.new("sunrealtype[]", [1.0, 2.0, 3.0])
    v = wrap_pointer(buf, 3)
    assert isinstance(v, VectorView)
    assert not isinstance(v, np.ndarray)
    v[1] = 20.0
    assert buf[1] == 20.0
    buf[2] = 30.0
    assert v[2] == 30.0


def test_wrap_reads_serial_content():
    vec = Vec(np.array([4.0, 5.0]))
    v = wrap(vec.nv)
    assert v.shape == (2,)
    v[:] = [7.0, 8.0]
    np.testing.assert_array_equal(vec.arr, [7.0, 8.0])


def test_empty_view():
    v = wrap_pointer(ffi.NULL, 0)
    assert v.size == 0
    assert v.is_live


def test_relinquished_view_raises():
    buf = ffi.new("sunrealtype[]", 2)
    v = wrap_pointer(buf, 2)
    relinquish(v)
    assert not v.is_live
    with pytest.raises(ViewRelinquishedError):
        v[0]
    with pytest.raises(ViewRelinquishedError):
        v[0] = 1.0
    with pytest.raises(ViewRelinquishedError):
        len(v)
    with pytest.raises(ViewRelinquishedError):
        repr(v)
    with pytest.raises(ViewRelinquishedError):
        np.sum(v)
    with pytest.raises(ViewRelinquishedError):
        v + 1.0


@pytest.mark.parametrize(
    "use",
    [
        lambda v: v.item(0),
        lambda v: v.fill(7.0),
        lambda v: v.tobytes(),
        lambda v: np.asarray(v)[0],
        lambda v: np.array(v),
        lambda v: v.view(),
        lambda v: v.reshape(2, 1),
        lambda v: v.astype(np.float32),
        lambda v: v.sum(),
        lambda v: v.copy(),
        lambda v: list(v),
        lambda v: float(v),
        lambda v: np.dot(v, v),
        lambda v: v.__setitem__(slice(None), 7.0),
    ],
    ids=[
        "item", "fill", "tobytes", "asarray", "array", "view", "reshape", "astype",
        "sum", "copy", "iter", "float", "dot", "setitem-slice",
    ],
)
def test_every_accessor_checks_the_lease(use):
    buf = ffi.new("sunrealtype[]", [1.0, 2.0])
    v = wrap_pointer(buf, 2)
    relinquish(v)
    with pytest.raises(ViewRelinquishedError):
        use(v)
    assert list(buf) == [1.0, 2.0]


def test_methods_taken_while_live_check_on_call():
    buf = ffi.new("sunrealtype[]", [1.0, 2.0])
    v = wrap_pointer(buf, 2)
    fill, item = v.fill, v.item
    relinquish(v)
    with pytest.raises(ViewRelinquishedError):
        fill(7.0)
    with pytest.raises(ViewRelinquishedError):
        item(0)
    assert list(buf) == [1.0, 2.0]


@pytest.mark.skipif(sys.version_info < (3, 12), reason="buffer protocol for Python classes")
def test_memoryview_checks_the_lease():
    buf = ffi.new("sunrealtype[]", [1.0, 2.0])
    v = wrap_pointer(buf, 2)
    assert memoryview(v)[1] == 2.0
    relinquish(v)
    with pytest.raises(ViewRelinquishedError):
        memoryview(v)


def test_raw_memory_attributes_are_hidden():
    v = wrap_pointer(ffi.new("sunrealtype[]", 2), 2)
    for name in ("data", "ctypes", "base", "flat"):
        with pytest.raises(AttributeError):
            getattr(v, name)


def test_metadata_survives_revocation():
    v = wrap_pointer(ffi.new("sunrealtype[]", 3), 3)
    relinquish(v)
    assert v.shape == (3,)
    assert (v.size, v.ndim, v.dtype) == (3, 1, np.float64)


def test_derived_views_share_the_lease():
    buf = ffi.new("sunrealtype[]", 6)
    v = wrap_pointer(buf, 6)
    block = v.reshape(2, 3).T
    tail = v[3:]
    alias = v.view()
    relinquish(v)
    with pytest.raises(ViewRelinquishedError):
        block[0, 0]
    with pytest.raises(ViewRelinquishedError):
        tail.tolist()
    with pytest.raises(ViewRelinquishedError):
        alias.item(0)


def test_copy_outlives_the_view():
    buf = ffi.new("sunrealtype[]", [1.0, 2.0])
    v = wrap_pointer(buf, 2)
    saved = v.copy()
    relinquish(v)
    assert type(saved) is np.ndarray
    np.testing.assert_array_equal(saved, [1.0, 2.0])


def test_borrow_revokes_on_exit_even_on_error():
    a, b = Vec(np.zeros(2)), Vec(np.ones(2))
    kept = []
    with pytest.raises(RuntimeError):
        with borrow(a.nv, b.nv) as (va, vb):
            kept.extend([va, vb])
            va[:] = vb * 2.0
            raise RuntimeError("boom")
    np.testing.assert_array_equal(a.arr, [2.0, 2.0])
    assert not any(v.is_live for v in kept)


def test_ufunc_out_on_live_view():
    buf = ffi.new("sunrealtype[]", [1.0, 4.0])
    v = wrap_pointer(buf, 2)
    np.sqrt(v, out=v)
    assert list(buf) == [1.0, 2.0]
    relinquish_all([v])


# ---- host arrays as N_Vectors ------------------------------------------------

def test_vectorize_shares_host_storage(fake):
    native = fake.native()
    y = np.array([1.0, 2.0, 3.0])
    with vectorized(native, ffi.NULL, y, "y") as nv:
        as_array(nv)[:] = [9.0, 8.0, 7.0]
    np.testing.assert_array_equal(y, [9.0, 8.0, 7.0])
    assert fake.live["nvector"] == 0


def test_vectorize_release_is_idempotent(fake):
    vec = vectorize(fake.native(), ffi.NULL, np.zeros(2), "z")
    vec.release()
    vec.release()
    assert fake.calls["N_VDestroy"] == 1


@pytest.mark.parametrize(
    "bad",
    [
        np.zeros(3, dtype=np.float32),
        np.zeros((2, 2)),
        np.zeros(6)[::2],
    ],
)
def test_vectorize_rejects_bad_arrays(fake, bad):
    with pytest.raises(InvalidArgumentError):
        vectorize(fake.native(), ffi.NULL, bad, "bad")
    assert fake.calls["N_VMake_Serial"] == 0


def test_vectorize_rejects_read_only(fake):
    a = np.zeros(2)
    a.flags.writeable = False
    with pytest.raises(InvalidArgumentError):
        vectorize(fake.native(), ffi.NULL, a, "a")


def test_vectorized_array_releases_every_header(fake):
    arrays = [np.zeros(2), np.ones(2)]
    with vectorized_array(fake.native(), ffi.NULL, arrays, "ys") as ptr:
        assert as_array(ptr[1])[0] == 1.0
        assert fake.live["nvector"] == 2
    assert fake.live["nvector"] == 0
