# src/sunbridge/runtime/guards.py
from __future__ import annotations

import math
import warnings
from typing import Callable
import numpy as np

# numba is optional; without it the guard stays pure Python.
try:
    from numba import njit
    _NUMBA_OK = True
except Exception:
    _NUMBA_OK = False
    njit = None  # type: ignore

__all__ = ["allfinite1d", "configure_allfinite_guard", "guard_is_jitted"]


def _allfinite1d_impl(x: np.ndarray) -> bool:
    for i in range(x.size):
        if not math.isfinite(x[i]):
            return False
    return True


_allfinite1d_py = _allfinite1d_impl
_allfinite1d_jit = njit(cache=True)(_allfinite1d_impl) if njit is not None else _allfinite1d_impl

# Mutable binding read by the trampolines at call time.
allfinite1d: Callable[[np.ndarray], bool] = _allfinite1d_py


def configure_allfinite_guard(jit_enabled: bool) -> None:
    """Select Python or numba implementation based on jit flag."""

    global allfinite1d
    if jit_enabled and not _NUMBA_OK:
        warnings.warn(
            "Numba not found; the finite-value guard stays pure Python. "
            "Install the 'jit' extra to compile it: pip install sunbridge[jit]",
            RuntimeWarning,
            stacklevel=2,
        )
    if jit_enabled and njit is not None:
        allfinite1d = _allfinite1d_jit
    else:
        allfinite1d = _allfinite1d_py


def guard_is_jitted() -> bool:
    return allfinite1d is not _allfinite1d_py
