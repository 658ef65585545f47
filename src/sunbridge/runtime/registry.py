# src/sunbridge/runtime/registry.py
"""
Weak roots for sessions referenced from native user data.

Native code holds a ``void *`` produced by ``ffi.new_handle(cell)``. The
cell, not the session, is what the handle keeps alive, and the cell only
holds a weak reference, so native user data never pins a session. The
handle object itself is owned by the session's native resources and is
dropped after the native memory has been freed.
"""
from __future__ import annotations
import weakref
from typing import Any, Optional

from sunbridge.errors import RegistryError
from sunbridge.native.ffi import ffi

__all__ = ["RootCell", "register", "handle_of", "resolve", "unregister"]


class RootCell:
    """Capacity-one weak slot pointing at a session."""
    __slots__ = ("_ref", "handle", "label", "__weakref__")

    def __init__(self, session: Any):
        self._ref: Optional[weakref.ref] = weakref.ref(session)
        self.label = type(session).__name__
        self.handle = ffi.new_handle(self)

    def get(self) -> Optional[Any]:
        ref = self._ref
        return ref() if ref is not None else None

    def clear(self) -> None:
        self._ref = None

    @property
    def empty(self) -> bool:
        return self.get() is None

    def __repr__(self) -> str:
        state = "empty" if self.empty else "live"
        return f"RootCell({self.label}, {state})"


def register(session: Any) -> RootCell:
    return RootCell(session)


def handle_of(cell: RootCell) -> Any:
    """The ``void *`` to install as native user data."""
    return cell.handle


def resolve(user_data: Any) -> Any:
    """
    Recover the live session behind a native user-data pointer.

    Raises:
        RegistryError: the pointer is NULL or its cell no longer holds a session.
    """
    if user_data == ffi.NULL:
        raise RegistryError("native user data is NULL")
    cell = ffi.from_handle(user_data)
    session = cell.get()
    if session is None:
        raise RegistryError(f"{cell!r} resolved after its session was released")
    return session


def unregister(cell: Optional[RootCell]) -> None:
    """Empty the cell; must only run once the native memory is gone."""
    if cell is not None:
        cell.clear()
