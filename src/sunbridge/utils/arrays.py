# src/sunbridge/utils/arrays.py
"""
Checks for host arrays the solvers read from or write into.

Solver-facing arrays must be 1-D, C-contiguous, writeable ``float64`` so
an ``N_Vector`` header can borrow their storage. Every failure is an
:class:`~sunbridge.errors.InvalidArgumentError` naming the native entry
point the array was meant for.
"""
from __future__ import annotations
from typing import Any, List, Optional, Sequence

import numpy as np

from sunbridge.errors import InvalidArgumentError

__all__ = ["require_vector", "require_vectors"]

_REAL = np.dtype(np.float64)


def require_vector(a: Any, function: str, name: str, n: Optional[int] = None) -> np.ndarray:
    """Return ``a`` unchanged if the solver can alias it as a length-``n`` vector."""
    if not isinstance(a, np.ndarray):
        raise InvalidArgumentError(function, f"{name} must be a numpy.ndarray; got {type(a).__name__}")
    if a.dtype != _REAL:
        raise InvalidArgumentError(function, f"{name} dtype must be float64; got {a.dtype.name}")
    if a.ndim != 1:
        raise InvalidArgumentError(function, f"{name} must be 1D; got shape {a.shape}")
    if n is not None and a.size != n:
        raise InvalidArgumentError(function, f"{name} must have length {n}; got {a.size}")
    if not a.flags.c_contiguous:
        raise InvalidArgumentError(function, f"{name} must be C-contiguous")
    if not a.flags.writeable:
        raise InvalidArgumentError(function, f"{name} must be writeable")
    return a


def require_vectors(arrays: Sequence[Any], function: str, name: str, count: int,
                    n: int) -> List[np.ndarray]:
    """``count`` output vectors of length ``n`` each (one per sensitivity)."""
    arrays = list(arrays)
    if len(arrays) != count:
        raise InvalidArgumentError(function, f"{name} must hold {count} vectors; got {len(arrays)}")
    return [require_vector(a, function, f"{name}[{i}]", n) for i, a in enumerate(arrays)]
