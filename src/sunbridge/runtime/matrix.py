# src/sunbridge/runtime/matrix.py
from __future__ import annotations
from typing import Any, Tuple

import numpy as np

from sunbridge.native.ffi import ffi
from sunbridge.runtime.nvector import Lease, VectorView, relinquish, wrap_pointer

__all__ = ["wrap_dense", "BandMatrixView", "wrap_band", "relinquish_matrix"]


def wrap_dense(A: Any) -> VectorView:
    """
    ``(M, N)`` view of a dense ``SUNMatrix``.

    Storage is column-major, so the view is Fortran-ordered and
    ``J[i, j]`` is row ``i``, column ``j``.
    """
    content = ffi.cast("SUNMatrixContent_Dense", A.content)
    m, n = int(content.M), int(content.N)
    flat = wrap_pointer(content.data, m * n)
    return flat.reshape(n, m).T


class BandMatrixView:
    """
    Element access into a banded ``SUNMatrix``.

    Column ``j`` is stored contiguously with ``ldim = s_mu + ml + 1``
    entries; element ``(i, j)`` sits at offset ``s_mu + i - j`` inside it,
    valid for ``j - mu <= i <= j + ml``. ``columns`` exposes the raw
    ``(N, ldim)`` storage; rows ``0 .. s_mu - mu - 1`` of each column are
    extra room for LU fill-in.
    """

    def __init__(self, content: Any):
        self.n = int(content.N)
        self.mu = int(content.mu)
        self.ml = int(content.ml)
        self.s_mu = int(content.s_mu)
        self.ldim = int(content.ldim)
        self._lease = Lease()
        self.data = wrap_pointer(content.data, self.n * self.ldim, self._lease)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n, self.n)

    @property
    def columns(self) -> VectorView:
        return self.data.reshape(self.n, self.ldim)

    def _offset(self, key: Tuple[int, int]) -> int:
        i, j = key
        if not (0 <= i < self.n and 0 <= j < self.n):
            raise IndexError(f"index {key} out of range for {self.n}x{self.n} band matrix")
        if not (j - self.mu <= i <= j + self.ml):
            raise IndexError(
                f"index {key} outside the band (mu={self.mu}, ml={self.ml})"
            )
        return j * self.ldim + self.s_mu + i - j

    def __getitem__(self, key: Tuple[int, int]) -> float:
        return float(self.data[self._offset(key)])

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        self.data[self._offset(key)] = value

    def to_dense(self) -> np.ndarray:
        """Dense copy, zeros outside the band."""
        out = np.zeros((self.n, self.n))
        for j in range(self.n):
            for i in range(max(0, j - self.mu), min(self.n, j + self.ml + 1)):
                out[i, j] = self[i, j]
        return out

    def relinquish(self) -> None:
        self._lease.live = False


def wrap_band(A: Any) -> BandMatrixView:
    return BandMatrixView(ffi.cast("SUNMatrixContent_Band", A.content))


def relinquish_matrix(view: Any) -> None:
    if isinstance(view, BandMatrixView):
        view.relinquish()
    else:
        relinquish(view)
