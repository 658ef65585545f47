# src/sunbridge/runtime/extension.py
from __future__ import annotations
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import numpy as np

from sunbridge.errors import InvalidArgumentError
from sunbridge.runtime.types import not_implemented

__all__ = [
    "NoExtension",
    "ForwardExtension",
    "BackwardExtension",
    "Extension",
    "add_forward_extension",
]


@dataclass
class NoExtension:
    """Plain session: no quadratures, sensitivities or adjoints."""


@dataclass
class ForwardExtension:
    """
    State of a CVODES or IDAS forward problem.

    ``sensarray1``..``sensarray3`` are scratch lists refilled with fresh
    views on every sensitivity callback. ``one_by_one`` records the shape
    of the registered sensitivity function. ``bsessions`` holds the backward
    sessions created through this problem; they share its native memory.
    ``failed_backward`` lists the native indices of backward problems whose
    setup failed part way; they block backward integration until the
    adjoint memory is freed.
    """
    num_sensitivities: int = 0
    num_quadratures: int = 0
    one_by_one: bool = False
    sensarray1: List[Any] = field(default_factory=list)
    sensarray2: List[Any] = field(default_factory=list)
    sensarray3: List[Any] = field(default_factory=list)
    senspvals: Optional[np.ndarray] = None
    bsessions: List[Any] = field(default_factory=list)
    failed_backward: List[int] = field(default_factory=list)
    quadrhsfn: Callable = field(default_factory=lambda: not_implemented("quadrature rhs"))
    sensrhsfn: Callable = field(default_factory=lambda: not_implemented("sensitivity rhs"))
    sensrhsfn1: Callable = field(default_factory=lambda: not_implemented("sensitivity rhs1"))
    quadsensrhsfn: Callable = field(
        default_factory=lambda: not_implemented("quadrature sensitivity rhs")
    )


@dataclass
class BackwardExtension:
    """
    State of a backward (adjoint) problem.

    ``parent`` is a weak reference to the forward session; its strong
    reference to this session lives in the parent's ``bsessions``.
    """
    parent: weakref.ref
    which: int
    num_sensitivities: int = 0
    num_quadratures: int = 0
    bsensarray: List[Any] = field(default_factory=list)
    brhsfn: Callable = field(default_factory=lambda: not_implemented("backward rhs"))
    brhsfn1: Callable = field(
        default_factory=lambda: not_implemented("backward rhs with sensitivities")
    )
    bquadrhsfn: Callable = field(
        default_factory=lambda: not_implemented("backward quadrature rhs")
    )
    bquadrhsfn1: Callable = field(
        default_factory=lambda: not_implemented("backward quadrature rhs with sensitivities")
    )


Extension = Any  # NoExtension | ForwardExtension | BackwardExtension


def add_forward_extension(session: Any) -> ForwardExtension:
    """Give ``session`` a forward extension unless it already has one."""
    ext = session.extension
    if isinstance(ext, ForwardExtension):
        return ext
    if isinstance(ext, BackwardExtension):
        raise InvalidArgumentError(
            "add_forward_extension", "a backward session cannot carry forward sensitivities"
        )
    ext = ForwardExtension()
    session.extension = ext
    return ext
