# tests/conftest.py
from __future__ import annotations
import gc

import pytest

from sunbridge.errors import LibraryNotFoundError
from sunbridge.native.loader import load_native, set_native
from fake_sundials import FakeSundials


@pytest.fixture
def fake():
    """Install an instrumented fake SUNDIALS backend for the test."""
    lib = FakeSundials()
    previous = set_native(lib.native())
    try:
        yield lib
    finally:
        gc.collect()
        set_native(previous)


@pytest.fixture
def real_native():
    """The real SUNDIALS libraries; the test is skipped when they are missing."""
    try:
        native = load_native()
    except LibraryNotFoundError as e:
        pytest.skip(f"SUNDIALS not available: {e}")
    previous = set_native(native)
    try:
        yield native
    finally:
        gc.collect()
        set_native(previous)
