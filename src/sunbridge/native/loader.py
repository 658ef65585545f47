# src/sunbridge/native/loader.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sunbridge.errors import LibraryNotFoundError
from sunbridge.native.ffi import ffi as _ffi
from sunbridge.native.paths import NativeConfig, library_candidates, load_config

__all__ = [
    "Native",
    "LibraryChain",
    "REQUIRED_LIBRARIES",
    "OPTIONAL_LIBRARIES",
    "load_native",
    "get_native",
    "set_native",
    "native_available",
]

log = logging.getLogger(__name__)

REQUIRED_LIBRARIES: Tuple[str, ...] = ("sundials_cvodes",)
OPTIONAL_LIBRARIES: Tuple[str, ...] = (
    "sundials_idas",
    "sundials_nvecserial",
    "sundials_sunmatrixdense",
    "sundials_sunmatrixband",
    "sundials_sunlinsoldense",
    "sundials_sunlinsolband",
    "sundials_sunlinsolspgmr",
    "sundials_sunlinsolspbcgs",
    "sundials_sunlinsolsptfqmr",
    "sundials_sunnonlinsolnewton",
    "sundials_sunnonlinsolfixedpoint",
)


class LibraryChain:
    """
    Symbol lookup across several dlopen'ed libraries, first match wins.

    The SUNDIALS packages each export overlapping generic symbols
    (``N_VDestroy``, ``SUNContext_Create``); the chain is ordered so the
    solver packages are searched first. Resolved symbols are cached.
    """

    def __init__(self, libs: Sequence[Tuple[str, Any]]):
        self._libs = list(libs)
        self._cache: Dict[str, Any] = {}

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._libs]

    def __getattr__(self, symbol: str) -> Any:
        if symbol.startswith("_"):
            raise AttributeError(symbol)
        try:
            return self._cache[symbol]
        except KeyError:
            pass
        for _, lib in self._libs:
            try:
                fn = getattr(lib, symbol)
            except (AttributeError, NotImplementedError):
                continue
            self._cache[symbol] = fn
            return fn
        raise AttributeError(
            f"symbol '{symbol}' not found in loaded libraries {self.names}"
        )


class Native:
    """
    Handle on a native SUNDIALS backend.

    ``ffi`` is always the process-wide :data:`sunbridge.native.ffi.ffi`;
    ``lib`` resolves SUNDIALS entry points and ``libc`` the C runtime
    (``fopen``/``fclose``). Sessions keep the backend they were created with.
    """

    def __init__(self, lib: Any, libc: Any, *, name: str = "sundials"):
        self.ffi = _ffi
        self.lib = lib
        self.libc = libc
        self.name = name

    def __repr__(self) -> str:
        return f"Native({self.name!r})"


def _open_first(stem: str, config: NativeConfig) -> Tuple[Optional[Any], List[str]]:
    candidates = library_candidates(stem, config)
    for path in candidates:
        try:
            lib = _ffi.dlopen(path)
        except OSError:
            continue
        log.debug("loaded %s from %s", stem, path)
        return lib, candidates
    return None, candidates


def load_native(config: Optional[NativeConfig] = None) -> Native:
    """
    Open the SUNDIALS libraries described by ``config``.

    Raises:
        LibraryNotFoundError: a required library could not be opened.
    """
    if config is None:
        config = load_config()

    libs: List[Tuple[str, Any]] = []
    for stem in REQUIRED_LIBRARIES:
        lib, candidates = _open_first(stem, config)
        if lib is None:
            raise LibraryNotFoundError(stem, candidates)
        libs.append((stem, lib))
    for stem in OPTIONAL_LIBRARIES:
        lib, _ = _open_first(stem, config)
        if lib is None:
            log.debug("optional library %s not found", stem)
            continue
        libs.append((stem, lib))

    if config.jit_guards:
        from sunbridge.runtime.guards import configure_allfinite_guard
        configure_allfinite_guard(True)

    libc = _ffi.dlopen(None)
    return Native(LibraryChain(libs), libc)


_native: Optional[Native] = None


def get_native() -> Native:
    """Return the current backend, loading the real libraries on first use."""
    global _native
    if _native is None:
        _native = load_native()
    return _native


def set_native(native: Optional[Native]) -> Optional[Native]:
    """Install ``native`` as the current backend and return the previous one."""
    global _native
    previous, _native = _native, native
    return previous


def native_available() -> bool:
    """True when a backend is installed or the real libraries can be loaded."""
    try:
        get_native()
    except LibraryNotFoundError:
        return False
    return True
