# tests/unit/test_arrays.py
"""Host-array checks shared by the vector wrappers and the output getters."""
from __future__ import annotations
import numpy as np
import pytest

from sunbridge.errors import InvalidArgumentError
from sunbridge.utils.arrays import require_vector, require_vectors


def _readonly():
    a = np.zeros(3)
    a.flags.writeable = False
    return a


@pytest.mark.parametrize(
    "a, message",
    [
        ([0.0, 0.0, 0.0], "numpy.ndarray"),
        (np.zeros(3, dtype=np.float32), "float64"),
        (np.zeros((3, 1)), "1D"),
        (np.zeros(4), "length 3"),
        (np.zeros(6)[::2], "C-contiguous"),
        (_readonly(), "writeable"),
    ],
)
def test_require_vector_rejects(a, message):
    with pytest.raises(InvalidArgumentError, match=message) as info:
        require_vector(a, "CVodeGetSens", "ys", 3)
    assert info.value.function == "CVodeGetSens"


def test_require_vector_returns_the_same_array():
    a = np.zeros(3)
    assert require_vector(a, "CVode", "y") is a


def test_require_vectors_checks_count_and_each_entry():
    arrays = [np.zeros(2), np.zeros(2)]
    checked = require_vectors(arrays, "CVodeGetSens", "ys", 2, 2)
    assert all(x is y for x, y in zip(checked, arrays))
    with pytest.raises(InvalidArgumentError, match="ys must hold 3 vectors; got 2"):
        require_vectors(arrays, "CVodeGetSens", "ys", 3, 2)
    with pytest.raises(InvalidArgumentError, match=r"ys\[1\] must have length 2"):
        require_vectors([np.zeros(2), np.zeros(3)], "CVodeGetSens", "ys", 2, 2)
