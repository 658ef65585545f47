# src/sunbridge/runtime/nvector.py
"""
Zero-copy numpy views over native serial vectors.

A :class:`VectorView` aliases the ``double`` buffer of an ``N_Vector`` for
the duration of one native callback. It is not an ``ndarray`` itself: it
holds the aliasing array privately and forwards indexing, arithmetic,
ufuncs, numpy functions and ndarray methods to it, checking a shared lease
on every access. Views derived from it (slices, reshapes, transposes,
``view()``) share the same lease. When the callback returns the lease is
revoked and every further access (``v[i]``, ``v.item()``, ``v.fill()``,
``v.tobytes()``, ``np.asarray(v)``, ``memoryview(v)``, ``len``, ``repr``,
...) raises :class:`~sunbridge.errors.ViewRelinquishedError` instead of
touching memory the solver may already have reused.

Only the metadata ``shape``, ``size``, ``ndim`` and ``dtype`` stay
readable after revocation. ``np.asarray(view)`` inside the callback hands
out the raw aliasing array; keeping that array past the callback is the
caller's decision.

The other direction, :func:`vectorize`, builds an ``N_Vector`` header over
the storage of a host array so the solver reads and writes it in place.
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.lib.mixins import NDArrayOperatorsMixin

from sunbridge.errors import InvalidArgumentError, MemoryFailure, ViewRelinquishedError
from sunbridge.native.ffi import ffi
from sunbridge.native.status import CvStatus
from sunbridge.utils.arrays import require_vector

__all__ = [
    "VectorView",
    "Lease",
    "wrap",
    "wrap_pointer",
    "wrap_array",
    "relinquish",
    "relinquish_all",
    "borrow",
    "NativeVector",
    "NativeVectorArray",
    "vectorize",
    "vectorized",
    "vectorize_array",
    "vectorized_array",
]

log = logging.getLogger(__name__)

_REAL = np.float64
_REAL_SIZE = np.dtype(_REAL).itemsize

# ndarray attributes that would hand out the native memory without a lease
_RAW_ATTRS = frozenset({"data", "ctypes", "base", "flat"})


class Lease:
    """Liveness token shared by a view and everything derived from it."""
    __slots__ = ("live",)

    def __init__(self) -> None:
        self.live = True

    def check(self) -> None:
        if not self.live:
            raise ViewRelinquishedError(
                "vector view used after the callback that received it returned"
            )


def _plain(a: Any) -> Any:
    """The aliasing array behind a live view; anything else unchanged."""
    if isinstance(a, VectorView):
        return a._arr()
    if isinstance(a, tuple):
        return tuple(_plain(b) for b in a)
    if isinstance(a, list):
        return [_plain(b) for b in a]
    return a


def _rewrap(result: Any, base: np.ndarray, lease: Lease) -> Any:
    """Lease ``result`` again when it aliases ``base``."""
    if isinstance(result, np.ndarray):
        if result.size and np.may_share_memory(result, base):
            return VectorView(result, lease)
        return result
    if isinstance(result, (list, tuple)) and any(isinstance(r, np.ndarray) for r in result):
        return type(result)(_rewrap(r, base, lease) for r in result)
    return result


def _collect_views(obj: Any, into: List["VectorView"]) -> None:
    if isinstance(obj, VectorView):
        into.append(obj)
    elif isinstance(obj, (list, tuple)):
        for o in obj:
            _collect_views(o, into)


class VectorView(NDArrayOperatorsMixin):
    """Call-scoped numpy view of native memory."""

    __slots__ = ("_array", "_lease")

    def __init__(self, array: np.ndarray, lease: Optional[Lease] = None):
        self._array = array
        self._lease = lease if lease is not None else Lease()

    @property
    def is_live(self) -> bool:
        return self._lease.live

    def _arr(self) -> np.ndarray:
        self._lease.check()
        return self._array

    # ---- metadata (readable after revocation) ----

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._array.shape

    @property
    def size(self) -> int:
        return self._array.size

    @property
    def ndim(self) -> int:
        return self._array.ndim

    @property
    def dtype(self) -> np.dtype:
        return self._array.dtype

    # ---- element access ----

    def __getitem__(self, key):
        return _rewrap(self._arr()[_plain(key)], self._array, self._lease)

    def __setitem__(self, key, value):
        self._arr()[_plain(key)] = _plain(value)

    def __len__(self) -> int:
        return len(self._arr())

    def __iter__(self):
        n = len(self._arr())
        return (self[i] for i in range(n))

    def __repr__(self) -> str:
        return f"VectorView({np.array2string(self._arr(), separator=', ')})"

    def __str__(self) -> str:
        return str(self._arr())

    def __float__(self) -> float:
        return float(self._arr())

    def __int__(self) -> int:
        return int(self._arr())

    def __bool__(self) -> bool:
        return bool(self._arr())

    # ---- copies outlive the view ----

    def copy(self, order: str = "C") -> np.ndarray:
        return self._arr().copy(order=order)

    def __copy__(self) -> np.ndarray:
        return self.copy()

    def __deepcopy__(self, memo: Any) -> np.ndarray:
        return self.copy()

    def tolist(self) -> Any:
        return self._arr().tolist()

    # ---- numpy protocols ----

    def __array__(self, dtype=None, copy=None):
        arr = self._arr()
        if dtype is not None:
            arr = arr.astype(dtype, copy=False)
        return arr.copy() if copy else arr

    def __buffer__(self, flags: int) -> memoryview:
        return memoryview(self._arr())

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        args = tuple(_plain(a) for a in inputs)
        out = kwargs.get("out")
        if out is not None:
            kwargs["out"] = tuple(_plain(o) for o in out)
        result = getattr(ufunc, method)(*args, **kwargs)
        if out is not None:
            return out[0] if len(out) == 1 else out
        return result

    def __array_function__(self, func, types, args, kwargs):
        views: List[VectorView] = []
        _collect_views(args, views)
        _collect_views(tuple(kwargs.values()), views)
        result = func(*_plain(tuple(args)), **{k: _plain(v) for k, v in kwargs.items()})
        for v in views:
            rewrapped = _rewrap(result, v._array, v._lease)
            if rewrapped is not result:
                return rewrapped
        return result

    # ---- everything else an ndarray offers ----

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in _RAW_ATTRS:
            raise AttributeError(
                f"VectorView does not expose '{name}'; copy the view or use np.asarray"
            )
        attr = getattr(self._arr(), name)
        base, lease = self._array, self._lease
        if not callable(attr):
            return _rewrap(attr, base, lease)

        def method(*args: Any, **kwargs: Any) -> Any:
            lease.check()
            result = attr(*_plain(args), **{k: _plain(v) for k, v in kwargs.items()})
            return _rewrap(result, base, lease)

        method.__name__ = name
        return method


# ---- Wrapping native memory -----------------------------------------------------

def wrap_pointer(ptr: Any, n: int, lease: Optional[Lease] = None) -> VectorView:
    """View ``n`` doubles starting at the native pointer ``ptr``."""
    n = int(n)
    if n == 0 or ptr == ffi.NULL:
        return VectorView(np.empty(0, dtype=_REAL), lease)
    buf = ffi.buffer(ptr, n * _REAL_SIZE)
    return VectorView(np.frombuffer(buf, dtype=_REAL), lease)


def wrap(nv: Any) -> VectorView:
    """View the data of a serial ``N_Vector``."""
    content = ffi.cast("N_VectorContent_Serial", nv.content)
    return wrap_pointer(content.data, content.length)


def wrap_array(nv_ptr: Any, n: int, into: List[VectorView]) -> List[VectorView]:
    """Wrap ``n`` vectors of an ``N_Vector *`` array into the reused list ``into``."""
    into.clear()
    for i in range(int(n)):
        into.append(wrap(nv_ptr[i]))
    return into


def relinquish(view: Any) -> None:
    """Revoke the view's lease; harmless if already revoked."""
    lease = getattr(view, "_lease", None)
    if lease is not None:
        lease.live = False


def relinquish_all(views: Sequence[Any]) -> None:
    for v in views:
        relinquish(v)


@contextmanager
def borrow(*nvs: Any) -> Iterator[Tuple[VectorView, ...]]:
    """Wrap every vector on entry and relinquish all of them on exit."""
    views: List[VectorView] = []
    try:
        for nv in nvs:
            views.append(wrap(nv))
        yield tuple(views)
    finally:
        relinquish_all(views)


# ---- Host arrays as native vectors ------------------------------------------------

def _check_host_array(array: np.ndarray, name: str) -> np.ndarray:
    return require_vector(array, "N_VMake_Serial", name)


class NativeVector:
    """
    An ``N_Vector`` header borrowing a host array's storage.

    ``release`` destroys the header only; the array keeps its data.
    """
    __slots__ = ("native", "nv", "array", "_buffer")

    def __init__(self, native: Any, nv: Any, array: np.ndarray, buffer: Any):
        self.native = native
        self.nv = nv
        self.array = array
        self._buffer = buffer

    def release(self) -> None:
        if self.nv is not None:
            self.native.lib.N_VDestroy(self.nv)
            self.nv = None
            self._buffer = None

    def __enter__(self) -> "NativeVector":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


def vectorize(native: Any, context: Any, array: np.ndarray, name: str = "array") -> NativeVector:
    """Build an ``N_Vector`` over ``array`` (1-D, C-contiguous, float64)."""
    _check_host_array(array, name)
    buf = ffi.from_buffer("sunrealtype[]", array, require_writable=True)
    nv = native.lib.N_VMake_Serial(array.size, buf, context)
    if nv == ffi.NULL:
        raise MemoryFailure("N_VMake_Serial", CvStatus.MEM_FAIL, f"wrapping {name}")
    return NativeVector(native, nv, array, buf)


@contextmanager
def vectorized(native: Any, context: Any, array: np.ndarray, name: str = "array") -> Iterator[Any]:
    """Context-manager form of :func:`vectorize`; yields the ``N_Vector``."""
    vec = vectorize(native, context, array, name)
    try:
        yield vec.nv
    finally:
        vec.release()


class NativeVectorArray:
    """An ``N_Vector *`` array over a sequence of host arrays."""
    __slots__ = ("vectors", "ptr")

    def __init__(self, vectors: List[NativeVector]):
        self.vectors = vectors
        self.ptr = ffi.new("N_Vector[]", [v.nv for v in vectors])

    def __len__(self) -> int:
        return len(self.vectors)

    def release(self) -> None:
        for v in self.vectors:
            v.release()
        self.ptr = None


def vectorize_array(native: Any, context: Any, arrays: Sequence[np.ndarray],
                    name: str = "arrays") -> NativeVectorArray:
    vectors: List[NativeVector] = []
    try:
        for i, a in enumerate(arrays):
            vectors.append(vectorize(native, context, a, f"{name}[{i}]"))
    except BaseException:
        for v in vectors:
            v.release()
        raise
    return NativeVectorArray(vectors)


@contextmanager
def vectorized_array(native: Any, context: Any, arrays: Sequence[np.ndarray],
                     name: str = "arrays") -> Iterator[Any]:
    """Context-manager form of :func:`vectorize_array`; yields the ``N_Vector *``."""
    varr = vectorize_array(native, context, arrays, name)
    try:
        yield varr.ptr
    finally:
        varr.release()
