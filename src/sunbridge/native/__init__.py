# src/sunbridge/native/__init__.py
from __future__ import annotations

from sunbridge.native.ffi import ffi
from sunbridge.native.loader import (
    Native, get_native, set_native, native_available, load_native,
)
from sunbridge.native.paths import NativeConfig, load_config

__all__ = [
    "ffi",
    "Native", "get_native", "set_native", "native_available", "load_native",
    "NativeConfig", "load_config",
]
