# src/sunbridge/solvers/linsolv.py
"""
Linear-solver variants.

Each variant describes which SUNDIALS linear solver to attach and which
host callbacks go with it::

    cvode.init(Lmm.BDF, tol, f, y0, linear_solver=Dense(jac))
    cvode.init(Lmm.BDF, tol, f, y0,
               linear_solver=Spgmr(prec=Preconditioner.left(psolve, psetup)))

``Functional()`` selects fixed-point iteration (CVODE only, no linear
solver). Leaving a Jacobian or Jacobian-times-vector function as None uses
the library's internal difference quotients.

The Krylov solvers can also be preconditioned by one of the modules that
ship with the integrators instead of host functions::

    Spgmr(prec=Preconditioner.banded(PrecType.LEFT, mupper=1, mlower=1))
    Spgmr(prec=Preconditioner.bbd(PrecType.LEFT, BBDPrec(2, 2, 1, 1, gloc)))

``BandPrec`` (CVODE only) builds a banded difference-quotient Jacobian of
the right-hand side; ``BBDPrec`` builds a band-block-diagonal one from a
local approximation ``local`` of the right-hand side or residual.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from sunbridge import errors
from sunbridge.errors import InvalidArgumentError
from sunbridge.native.status import CvStatus, GramSchmidt, PrecType
from sunbridge.runtime.nvector import vectorized
from sunbridge.runtime.types import BandCallbacks, DenseCallbacks, SpilsCallbacks

__all__ = [
    "Functional", "Dense", "Band",
    "BandPrec", "BBDPrec", "Preconditioner", "Spgmr", "Spbcgs", "Sptfqmr",
    "CreatedSolver", "create",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Functional:
    """Fixed-point iteration without a linear solver."""


@dataclass(frozen=True)
class Dense:
    jac: Optional[Callable] = None


@dataclass(frozen=True)
class Band:
    mupper: int
    mlower: int
    jac: Optional[Callable] = None


@dataclass(frozen=True)
class BandPrec:
    """Banded difference-quotient preconditioner with half-bandwidths ``mupper``/``mlower``."""
    mupper: int
    mlower: int


@dataclass(frozen=True)
class BBDPrec:
    """
    Band-block-diagonal preconditioner.

    ``local(t, y, g)`` (IDA: ``local(t, y, yp, g)``) fills ``g`` with an
    approximation of the right-hand side (residual); ``comm(t, y)`` (IDA:
    ``comm(t, y, yp)``), when given, runs before every batch of ``local``
    calls. ``mudq``/``mldq`` are the difference-quotient half-bandwidths,
    ``mukeep``/``mlkeep`` those of the retained band matrix, and ``dqrely``
    the relative increment (0 selects the square root of the unit roundoff).
    """
    mudq: int
    mldq: int
    mukeep: int
    mlkeep: int
    local: Callable
    comm: Optional[Callable] = None
    dqrely: float = 0.0


@dataclass(frozen=True)
class Preconditioner:
    """Side and functions of a preconditioner for the Krylov solvers."""
    side: PrecType = PrecType.NONE
    solve: Optional[Callable] = None
    setup: Optional[Callable] = None
    module: Any = None

    @classmethod
    def none(cls) -> "Preconditioner":
        return cls(PrecType.NONE)

    @classmethod
    def left(cls, solve: Callable, setup: Optional[Callable] = None) -> "Preconditioner":
        return cls(PrecType.LEFT, solve, setup)

    @classmethod
    def right(cls, solve: Callable, setup: Optional[Callable] = None) -> "Preconditioner":
        return cls(PrecType.RIGHT, solve, setup)

    @classmethod
    def both(cls, solve: Callable, setup: Optional[Callable] = None) -> "Preconditioner":
        return cls(PrecType.BOTH, solve, setup)

    @classmethod
    def banded(cls, side: PrecType, mupper: int, mlower: int) -> "Preconditioner":
        return cls(PrecType(side), module=BandPrec(int(mupper), int(mlower)))

    @classmethod
    def bbd(cls, side: PrecType, module: BBDPrec) -> "Preconditioner":
        return cls(PrecType(side), module=module)


@dataclass(frozen=True)
class Spgmr:
    maxl: int = 0
    prec: Preconditioner = field(default_factory=Preconditioner.none)
    jac_times: Optional[Callable] = None
    gs_type: Optional[GramSchmidt] = None


@dataclass(frozen=True)
class Spbcgs:
    maxl: int = 0
    prec: Preconditioner = field(default_factory=Preconditioner.none)
    jac_times: Optional[Callable] = None


@dataclass(frozen=True)
class Sptfqmr:
    maxl: int = 0
    prec: Preconditioner = field(default_factory=Preconditioner.none)
    jac_times: Optional[Callable] = None


_KRYLOV = {
    Spgmr: "SUNLinSol_SPGMR",
    Spbcgs: "SUNLinSol_SPBCGS",
    Sptfqmr: "SUNLinSol_SPTFQMR",
}


class CreatedSolver:
    """Native linear solver (and matrix, for direct solvers) not yet owned by a session."""

    def __init__(self, native: Any, linear_solver: Any, matrix: Any, callbacks: Any):
        self.native = native
        self.linear_solver = linear_solver
        self.matrix = matrix
        self.callbacks = callbacks

    @property
    def matrix_arg(self) -> Any:
        return self.matrix if self.matrix is not None else self.native.ffi.NULL

    def release(self) -> None:
        if self.linear_solver is not None:
            self.native.lib.SUNLinSolFree(self.linear_solver)
            self.linear_solver = None
        if self.matrix is not None:
            self.native.lib.SUNMatDestroy(self.matrix)
            self.matrix = None


def _not_null(native: Any, obj: Any, function: str) -> Any:
    if obj == native.ffi.NULL:
        raise errors.MemoryFailure(function, CvStatus.MEM_FAIL)
    return obj


def _check_module(ctor: str, prec: Preconditioner, neqs: int) -> None:
    module = prec.module
    if prec.side == PrecType.NONE:
        raise InvalidArgumentError(ctor, "a preconditioner module needs a side")
    if prec.solve is not None or prec.setup is not None:
        raise InvalidArgumentError(ctor, "a preconditioner module replaces the host functions")
    if isinstance(module, BandPrec):
        widths = {"mupper": module.mupper, "mlower": module.mlower}
    elif isinstance(module, BBDPrec):
        widths = {"mudq": module.mudq, "mldq": module.mldq,
                  "mukeep": module.mukeep, "mlkeep": module.mlkeep}
        if module.dqrely < 0:
            raise InvalidArgumentError(ctor, "dqrely must be non-negative")
        if not callable(module.local):
            raise InvalidArgumentError(ctor, "the BBD preconditioner needs a local function")
    else:
        raise InvalidArgumentError(ctor, f"unknown preconditioner module {module!r}")
    for name, width in widths.items():
        if not 0 <= width < max(neqs, 1):
            raise InvalidArgumentError(ctor, f"{name} must lie in [0, {neqs - 1}]; got {width}")


def create(native: Any, context: Any, neqs: int, spec: Any) -> CreatedSolver:
    """Allocate the native objects described by ``spec`` for a system of size ``neqs``."""
    lib = native.lib
    template = np.zeros(neqs)

    if isinstance(spec, Dense):
        matrix = _not_null(native, lib.SUNDenseMatrix(neqs, neqs, context), "SUNDenseMatrix")
        with vectorized(native, context, template, "template") as y:
            ls = lib.SUNLinSol_Dense(y, matrix, context)
        if ls == native.ffi.NULL:
            lib.SUNMatDestroy(matrix)
            raise errors.MemoryFailure("SUNLinSol_Dense", CvStatus.MEM_FAIL)
        return CreatedSolver(native, ls, matrix, DenseCallbacks(spec.jac))

    if isinstance(spec, Band):
        if not (0 <= spec.mupper < max(neqs, 1) and 0 <= spec.mlower < max(neqs, 1)):
            raise InvalidArgumentError(
                "Band", f"bandwidths must lie in [0, {neqs - 1}]; got "
                f"mupper={spec.mupper}, mlower={spec.mlower}"
            )
        matrix = _not_null(
            native, lib.SUNBandMatrix(neqs, spec.mupper, spec.mlower, context), "SUNBandMatrix"
        )
        with vectorized(native, context, template, "template") as y:
            ls = lib.SUNLinSol_Band(y, matrix, context)
        if ls == native.ffi.NULL:
            lib.SUNMatDestroy(matrix)
            raise errors.MemoryFailure("SUNLinSol_Band", CvStatus.MEM_FAIL)
        return CreatedSolver(native, ls, matrix, BandCallbacks(spec.jac))

    ctor = _KRYLOV.get(type(spec))
    if ctor is None:
        raise InvalidArgumentError("set_linear_solver", f"unknown linear solver {spec!r}")
    if spec.maxl < 0:
        raise InvalidArgumentError(ctor, f"maxl must be >= 0; got {spec.maxl}")
    prec = spec.prec
    if prec.module is not None:
        _check_module(ctor, prec, neqs)
    elif prec.side != PrecType.NONE and prec.solve is None:
        raise InvalidArgumentError(ctor, "a preconditioner side needs a solve function")

    with vectorized(native, context, template, "template") as y:
        ls = getattr(lib, ctor)(y, int(prec.side), int(spec.maxl), context)
    _not_null(native, ls, ctor)
    made = CreatedSolver(
        native, ls, None,
        SpilsCallbacks(
            prec.setup if prec.side != PrecType.NONE else None,
            prec.solve if prec.side != PrecType.NONE else None,
            spec.jac_times,
            prec.module,
        ),
    )
    gs_type = getattr(spec, "gs_type", None)
    if gs_type is not None:
        flag = lib.SUNLinSol_SPGMRSetGSType(ls, int(gs_type))
        if flag != 0:
            made.release()
            raise errors.LinearSolverError("SUNLinSol_SPGMRSetGSType", flag)
    log.debug("created %s (maxl=%d, pretype=%d)", ctor, spec.maxl, int(prec.side))
    return made
