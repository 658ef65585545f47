# src/sunbridge/solvers/adjoint.py
"""
CVODES adjoint sensitivity analysis.

The forward problem is integrated with :func:`forward_normal` /
:func:`forward_one_step`, which store checkpoints. Backward problems are
then created on the same forward session with :func:`init_backward` and
integrated together by :func:`backward_normal` / :func:`backward_one_step`.

A backward session lives inside the forward session's native memory: it
owns no native handle of its own, is released together with the forward
session, and reports callback exceptions through the forward session.
"""
from __future__ import annotations
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np

from sunbridge import errors
from sunbridge.errors import InvalidArgumentError, SessionFinalizedError
from sunbridge.native.status import LS_ERRORS, CvStatus, Interpolation, Lmm, Task
from sunbridge.runtime import trampolines as tramp
from sunbridge.runtime.extension import BackwardExtension, ForwardExtension, add_forward_extension
from sunbridge.runtime.nvector import vectorized
from sunbridge.runtime.session import (
    NativeResources, as_input_vector, check_output_vector, release_resources,
)
from sunbridge.runtime.types import Roots, SolverResult, SStolerances, SVtolerances, default_tolerances
from sunbridge.solvers import cvode
from sunbridge.solvers.linsolv import Functional
from sunbridge.solvers.sensitivity import NoStepSizeControl

__all__ = [
    "NoSens", "WithSens",
    "BackwardSession",
    "init", "reinit", "free", "set_no_sensitivity",
    "forward_normal", "forward_one_step",
    "init_backward", "reinit_backward",
    "backward_normal", "backward_one_step",
    "get", "get_dky",
    "quad_init", "quad_reinit", "quad_get", "quad_set_tolerances",
]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoSens:
    """Backward function ``f(t, y, yb, ybdot)``."""
    f: Callable


@dataclass(frozen=True)
class WithSens:
    """Backward function ``f(t, y, ys, yb, ybdot)`` that also reads the forward sensitivities."""
    f: Callable


# Entry points that exist as ``CVode<name>B(cvode_mem, which, ...)``.
_B_FORMS = frozenset({
    "ReInit", "SStolerances", "SVtolerances", "SetUserData",
    "SetLinearSolver", "SetNonlinearSolver", "SetJacFn", "SetPreconditioner",
    "SetJacTimes", "SetEpsLin",
    "SetMaxOrd", "SetMaxNumSteps", "SetStabLimDet", "SetInitStep", "SetMinStep", "SetMaxStep",
    "QuadReInit", "QuadSStolerances", "QuadSVtolerances", "SetQuadErrCon",
})


class BackwardSession(cvode.Session):
    """
    One backward problem of a forward CVODES session.

    Configuring calls go through the forward memory and ``which``; queries
    (statistics, step sizes, interpolation) read the backward memory
    directly.
    """

    _callback_kinds = ("errh",)
    _trampolines = {
        "errh": tramp.errh,
        "jac": tramp.cv_jac_b,
        "prec_setup": tramp.cv_prec_setup_b,
        "prec_solve": tramp.cv_prec_solve_b,
        "jac_times": tramp.cv_jac_times_b,
    }
    _prec_modules = ("BandPrec",)

    def __init__(self, resources: NativeResources, neqs: int, lmm: Lmm, *,
                 parent: cvode.Session, which: int, with_sens: bool,
                 check_finite: bool = False):
        super().__init__(resources, neqs, lmm, check_finite=check_finite)
        self.which = int(which)
        self.with_sens = bool(with_sens)
        parent_ext = parent.extension
        self.extension = BackwardExtension(
            weakref.ref(parent),
            self.which,
            num_sensitivities=parent_ext.num_sensitivities
            if isinstance(parent_ext, ForwardExtension) else 0,
        )

    def __repr__(self) -> str:
        state = "finalized" if self.finalized else "active"
        return f"BackwardSession(which={self.which}, neqs={self.neqs}, {state})"

    # ---- parent plumbing ----

    @property
    def parent(self) -> Optional[cvode.Session]:
        return self.extension.parent()

    def _live_parent(self, operation: str) -> cvode.Session:
        self._ensure_live(operation)
        parent = self.parent
        if parent is None or parent.finalized:
            raise SessionFinalizedError(operation)
        return parent

    def _exception_sink(self):
        parent = self.parent
        return parent if parent is not None else self

    def _b_call(self, function: str, *args: Any, table=None) -> int:
        parent = self._live_parent(function)
        flag = getattr(self._native.lib, function)(parent._mem(), self.which, *args)
        return self._check(flag, function, table)

    def _native_set(self, name: str, *args: Any, table=None) -> int:
        if name in _B_FORMS:
            return self._b_call(self._prefix + name + "B", *args, table=table)
        return super()._native_set(name, *args, table=table)

    def _prec_set(self, name: str, *args: Any) -> int:
        if name == "BandPrecInit":
            return self._b_call("CVBandPrecInitB", *args, table=LS_ERRORS)
        return super()._prec_set(name, *args)

    # ---- unsupported on backward problems ----

    def _solve(self, tout: float, y: np.ndarray, task: Task):
        raise InvalidArgumentError(
            "CVode", "backward problems are integrated with adjoint.backward_normal"
        )

    def _install_roots(self, roots: Optional[Roots]) -> None:
        if roots is not None and roots.nroots:
            raise InvalidArgumentError("CVodeRootInit", "backward problems have no root functions")

    def wf_tolerances(self, errw: Callable) -> None:
        raise InvalidArgumentError("CVodeWFtolerances", "backward problems take SS or SV tolerances")

    # ---- lifecycle ----

    def reinit(self, tb0: float, yb0: np.ndarray, *, fb: Any = None,
               linear_solver: Any = None, **unused: Any) -> None:
        """Restart from ``(tb0, yb0)``; ``fb`` must keep the shape given to ``init_backward``."""
        self._ensure_live("CVodeReInitB")
        yb0 = as_input_vector(yb0, "CVodeReInitB", "yb0", self.neqs)
        if fb is not None:
            if not isinstance(fb, (NoSens, WithSens)) or isinstance(fb, WithSens) != self.with_sens:
                raise InvalidArgumentError(
                    "CVodeReInitB", "the backward function must keep its NoSens/WithSens shape"
                )
            _store_backward_fn(self.extension, fb)
        with vectorized(self._native, self._resources.context, yb0, "yb0") as nv:
            self._native_set("ReInit", float(tb0), nv)
        if linear_solver is not None:
            self._attach_linear_solver(linear_solver)


def _store_backward_fn(ext: BackwardExtension, fb: Any) -> None:
    if isinstance(fb, WithSens):
        ext.brhsfn1 = fb.f
    else:
        ext.brhsfn = fb.f


def _forward_session(s: Any, operation: str) -> ForwardExtension:
    s._ensure_live(operation)
    if not isinstance(s, cvode.Session) or isinstance(s, BackwardSession):
        raise InvalidArgumentError(operation, "a forward CVODES session is required")
    return add_forward_extension(s)


def _backward_session(bs: Any, operation: str) -> BackwardSession:
    if not isinstance(bs, BackwardSession):
        raise InvalidArgumentError(operation, "a backward session is required")
    bs._ensure_live(operation)
    return bs


# ---- adjoint memory ----

def init(s: Any, nd: int, interpolation: Interpolation = Interpolation.HERMITE) -> None:
    """Allocate adjoint memory storing checkpoints every ``nd`` steps."""
    _forward_session(s, "CVodeAdjInit")
    if int(nd) <= 0:
        raise InvalidArgumentError("CVodeAdjInit", f"nd must be positive; got {nd}")
    s._native_set("AdjInit", int(nd), int(Interpolation(interpolation)))


def reinit(s: Any) -> None:
    """Forget the checkpoints of the previous forward run."""
    _forward_session(s, "CVodeAdjReInit")
    s._native_set("AdjReInit")


def free(s: Any) -> None:
    """
    Release the adjoint memory together with every backward problem of ``s``.

    Backward sessions created so far are finalized. This is the only way to
    recover from a backward problem whose setup failed: its native slot
    cannot be released on its own. Call :func:`init` again afterwards.
    """
    ext = _forward_session(s, "CVodeAdjFree")
    s.native.lib.CVodeAdjFree(s._mem())
    for bs in ext.bsessions:
        bs._closed = True
    ext.bsessions.clear()
    ext.failed_backward.clear()
    children, s._resources.children = s._resources.children, []
    for child in children:
        release_resources(child)
    log.debug("adjoint memory released")


def set_no_sensitivity(s: Any) -> None:
    """Do not store forward sensitivities at the checkpoints."""
    _forward_session(s, "CVodeSetAdjNoSensi")
    s._native_set("SetAdjNoSensi")


# ---- forward integration ----

def forward_normal(s: Any, tout: float, y: np.ndarray) -> Tuple[float, int, SolverResult]:
    """Like ``solve_normal`` but storing checkpoints; returns ``(t, ncheck, result)``."""
    return _forward(s, tout, y, Task.NORMAL)


def forward_one_step(s: Any, tout: float, y: np.ndarray) -> Tuple[float, int, SolverResult]:
    return _forward(s, tout, y, Task.ONE_STEP)


def _forward(s: Any, tout: float, y: np.ndarray, task: Task) -> Tuple[float, int, SolverResult]:
    _forward_session(s, "CVodeF")
    check_output_vector(y, "CVodeF", "y", s.neqs)
    ffi, lib = s.native.ffi, s.native.lib
    tret = ffi.new("sunrealtype *")
    ncheck = ffi.new("int *")
    with vectorized(s.native, s._resources.context, y, "y") as nv:
        flag = lib.CVodeF(s._mem(), float(tout), nv, tret, int(task), ncheck)
    flag = s._check(flag, "CVodeF")
    return float(tret[0]), int(ncheck[0]), s._result(flag)


# ---- backward problems ----

def init_backward(s: Any, lmm: Lmm, tolerances: Any, fb: Any, tb0: float, yb0: np.ndarray,
                  *, linear_solver: Any = None, check_finite: bool = False) -> BackwardSession:
    """
    Create a backward problem on the forward session ``s``.

    ``fb`` is ``NoSens(f)`` or ``WithSens(f)``; ``linear_solver`` defaults
    to ``Functional()``. The returned session stays usable while ``s`` is
    alive and unfinalized.
    """
    ext = _forward_session(s, "CVodeCreateB")
    lmm = Lmm(lmm)
    if not isinstance(fb, (NoSens, WithSens)):
        raise InvalidArgumentError("CVodeInitB", "fb must be NoSens(...) or WithSens(...)")
    if isinstance(fb, WithSens) and ext.num_sensitivities == 0:
        raise InvalidArgumentError("CVodeInitBS", "forward sensitivities are not initialized")
    if tolerances is None:
        tolerances = default_tolerances()
    elif not isinstance(tolerances, (SStolerances, SVtolerances)):
        raise InvalidArgumentError("CVodeSStolerancesB", "backward problems take SS or SV tolerances")
    yb0 = as_input_vector(yb0, "CVodeInitB", "yb0")

    native = s.native
    ffi, lib = native.ffi, native.lib
    which = ffi.new("int *")
    s._native_set("CreateB", int(lmm), which)
    try:
        with vectorized(native, s._resources.context, yb0, "yb0") as nv:
            if isinstance(fb, WithSens):
                s._native_set("InitBS", which[0], tramp.cv_brhs_sens, float(tb0), nv)
            else:
                s._native_set("InitB", which[0], tramp.cv_brhs, float(tb0), nv)
        bmem = lib.CVodeGetAdjCVodeBmem(s._mem(), which[0])
        if bmem == ffi.NULL:
            raise errors.MemNull("CVodeGetAdjCVodeBmem", CvStatus.MEM_NULL)
    except BaseException:
        ext.failed_backward.append(which[0])
        raise

    res = NativeResources(
        native, bmem, None, s._resources.context,
        owns_context=False, label=f"cvode-backward[{which[0]}]",
    )
    s._resources.children.append(res)
    bs = BackwardSession(
        res, yb0.size, lmm, parent=s, which=which[0],
        with_sens=isinstance(fb, WithSens), check_finite=check_finite,
    )
    _store_backward_fn(bs.extension, fb)
    ext.bsessions.append(bs)
    try:
        bs._bind_user_data()
        bs.set_tolerances(tolerances)
        bs._attach_linear_solver(linear_solver if linear_solver is not None else Functional())
    except BaseException:
        bs.finalize()
        ext.bsessions.remove(bs)
        ext.failed_backward.append(bs.which)
        raise
    log.debug("backward problem %d: neqs=%d with_sens=%s", bs.which, bs.neqs, bs.with_sens)
    return bs


def reinit_backward(bs: Any, tb0: float, yb0: np.ndarray, *, fb: Any = None,
                    linear_solver: Any = None) -> None:
    _backward_session(bs, "CVodeReInitB").reinit(tb0, yb0, fb=fb, linear_solver=linear_solver)


def backward_normal(s: Any, tbout: float) -> None:
    """Integrate every backward problem of ``s`` to ``tbout``."""
    _backward(s, tbout, Task.NORMAL)


def backward_one_step(s: Any, tbout: float) -> None:
    _backward(s, tbout, Task.ONE_STEP)


def _backward(s: Any, tbout: float, task: Task) -> None:
    ext = _forward_session(s, "CVodeB")
    if ext.failed_backward:
        raise InvalidArgumentError(
            "CVodeB", f"backward problems {ext.failed_backward} were not fully initialized; "
            "release them with adjoint.free"
        )
    if not ext.bsessions:
        raise InvalidArgumentError("CVodeB", "no backward problem has been created")
    flag = s.native.lib.CVodeB(s._mem(), float(tbout), int(task))
    s._check(flag, "CVodeB")


def get(bs: Any, yb: np.ndarray) -> float:
    """Copy the backward solution into ``yb``; returns the time it belongs to."""
    bs = _backward_session(bs, "CVodeGetB")
    check_output_vector(yb, "CVodeGetB", "yb", bs.neqs)
    tret = bs.native.ffi.new("sunrealtype *")
    with vectorized(bs.native, bs._resources.context, yb, "yb") as nv:
        bs._b_call("CVodeGetB", tret, nv)
    return float(tret[0])


def get_dky(bs: Any, t: float, k: int, dky: np.ndarray) -> None:
    _backward_session(bs, "CVodeGetDky").get_dky(t, k, dky)


# ---- backward quadratures ----

def quad_init(bs: Any, fqb: Any, yqb0: np.ndarray) -> None:
    """
    Start backward quadratures; ``fqb`` is ``NoSens(f)`` with
    ``f(t, y, yb, qbdot)`` or ``WithSens(f)`` with ``f(t, y, ys, yb, qbdot)``.
    A bare callable is taken as ``NoSens``.
    """
    bs = _backward_session(bs, "CVodeQuadInitB")
    if callable(fqb) and not isinstance(fqb, (NoSens, WithSens)):
        fqb = NoSens(fqb)
    if not isinstance(fqb, (NoSens, WithSens)):
        raise InvalidArgumentError("CVodeQuadInitB", "fqb must be NoSens(...) or WithSens(...)")
    yqb0 = as_input_vector(yqb0, "CVodeQuadInitB", "yqb0")
    ext = bs.extension
    with vectorized(bs.native, bs._resources.context, yqb0, "yqb0") as nv:
        if isinstance(fqb, WithSens):
            ext.bquadrhsfn1 = fqb.f
            bs._b_call("CVodeQuadInitBS", tramp.cv_bquad_rhs_sens, nv)
        else:
            ext.bquadrhsfn = fqb.f
            bs._b_call("CVodeQuadInitB", tramp.cv_bquad_rhs, nv)
    ext.num_quadratures = yqb0.size


def quad_reinit(bs: Any, yqb0: np.ndarray) -> None:
    bs = _backward_session(bs, "CVodeQuadReInitB")
    yqb0 = as_input_vector(yqb0, "CVodeQuadReInitB", "yqb0", bs.extension.num_quadratures)
    with vectorized(bs.native, bs._resources.context, yqb0, "yqb0") as nv:
        bs._native_set("QuadReInit", nv)


def quad_get(bs: Any, yqb: np.ndarray) -> float:
    bs = _backward_session(bs, "CVodeGetQuadB")
    check_output_vector(yqb, "CVodeGetQuadB", "yqb", bs.extension.num_quadratures)
    tret = bs.native.ffi.new("sunrealtype *")
    with vectorized(bs.native, bs._resources.context, yqb, "yqb") as nv:
        bs._b_call("CVodeGetQuadB", tret, nv)
    return float(tret[0])


def quad_set_tolerances(bs: Any, tol: Any) -> None:
    """``NoStepSizeControl``, ``SStolerances`` or ``SVtolerances``."""
    bs = _backward_session(bs, "CVodeQuadSStolerancesB")
    if isinstance(tol, NoStepSizeControl):
        bs._native_set("SetQuadErrCon", 0)
        return
    if isinstance(tol, SStolerances):
        if tol.rtol < 0 or tol.atol < 0:
            raise InvalidArgumentError("CVodeQuadSStolerancesB", "tolerances must be non-negative")
        bs._native_set("QuadSStolerances", float(tol.rtol), float(tol.atol))
    elif isinstance(tol, SVtolerances):
        atol = as_input_vector(
            tol.atol, "CVodeQuadSVtolerancesB", "atol", bs.extension.num_quadratures
        )
        if tol.rtol < 0 or np.any(atol < 0):
            raise InvalidArgumentError("CVodeQuadSVtolerancesB", "tolerances must be non-negative")
        with vectorized(bs.native, bs._resources.context, atol, "atol") as nv:
            bs._native_set("QuadSVtolerances", float(tol.rtol), nv)
    else:
        raise InvalidArgumentError("CVodeQuadSStolerancesB", f"unknown tolerance variant {tol!r}")
    bs._native_set("SetQuadErrCon", 1)
