# src/sunbridge/solvers/cvode.py
"""
ODE sessions on CVODE/CVODES.

Minimal use::

    import numpy as np
    from sunbridge.solvers import cvode
    from sunbridge.native.status import Lmm
    from sunbridge.runtime.types import SStolerances

    def f(t, y, ydot):
        ydot[0] = -y[0]

    y = np.array([1.0])
    with cvode.init(Lmm.BDF, SStolerances(1e-4, 1e-8), f, y) as s:
        t, result = s.solve_normal(1.0, y)
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Optional, Tuple

import numpy as np

from sunbridge import errors
from sunbridge.native.loader import get_native
from sunbridge.native.status import CVODE_ERRORS, CvStatus, Lmm, Task, raise_for
from sunbridge.runtime import trampolines as tramp
from sunbridge.runtime.nvector import vectorized
from sunbridge.runtime.session import (
    NativeResources, SessionBase, as_input_vector, check_output_vector, create_context,
    free_context, release_resources,
)
from sunbridge.runtime.types import Roots, SolverResult, default_tolerances
from sunbridge.solvers.linsolv import Functional

__all__ = ["Session", "init"]

log = logging.getLogger(__name__)


class Session(SessionBase):
    """A CVODE problem: ``y' = f(t, y)``."""

    _prefix = "CVode"
    _errors = CVODE_ERRORS
    _callback_kinds = ("rhsfn", "rootsfn", "errw", "errh")
    _trampolines = {
        "rootsfn": tramp.cv_roots,
        "errw": tramp.errw,
        "errh": tramp.errh,
        "jac": tramp.cv_jac,
        "prec_setup": tramp.cv_prec_setup,
        "prec_solve": tramp.cv_prec_solve,
        "jac_times": tramp.cv_jac_times,
        "bbd_local": tramp.cv_bbd_local,
        "bbd_comm": tramp.cv_bbd_comm,
        "quad_rhs": tramp.cv_quad_rhs,
        "sens_rhs": tramp.cv_sens_rhs,
        "sens_rhs1": tramp.cv_sens_rhs1,
        "quad_sens_rhs": tramp.cv_quad_sens_rhs,
    }
    _lin_fevals = "GetNumLinRhsEvals"
    _prec_prefix = "CV"
    _prec_modules = ("BandPrec", "BBDPrec")

    def __init__(self, resources: NativeResources, neqs: int, lmm: Lmm, *,
                 check_finite: bool = False):
        super().__init__(resources, neqs, check_finite=check_finite)
        self.lmm = Lmm(lmm)

    # ---- solving ----

    def solve_normal(self, tout: float, y: np.ndarray) -> Tuple[float, SolverResult]:
        """Integrate to ``tout`` and interpolate ``y`` there."""
        return self._solve(tout, y, Task.NORMAL)

    def solve_one_step(self, tout: float, y: np.ndarray) -> Tuple[float, SolverResult]:
        """Take one internal step towards ``tout``; ``y`` receives the state reached."""
        return self._solve(tout, y, Task.ONE_STEP)

    def _solve(self, tout: float, y: np.ndarray, task: Task) -> Tuple[float, SolverResult]:
        self._ensure_live("CVode")
        check_output_vector(y, "CVode", "y", self.neqs)
        ffi, lib = self._native.ffi, self._native.lib
        tret = ffi.new("sunrealtype *")
        with vectorized(self._native, self._resources.context, y, "y") as nv:
            flag = lib.CVode(self._mem(), float(tout), nv, tret, int(task))
        flag = self._check(flag, "CVode")
        return float(tret[0]), self._result(flag)

    def get_dky(self, t: float, k: int, dky: np.ndarray) -> None:
        """Write the ``k``-th derivative of the interpolant at ``t`` into ``dky``."""
        self._ensure_live("CVodeGetDky")
        check_output_vector(dky, "CVodeGetDky", "dky", self.neqs)
        with vectorized(self._native, self._resources.context, dky, "dky") as nv:
            self._native_get("GetDky", float(t), int(k), nv)

    def reinit(self, t0: float, y0: np.ndarray, *, f: Optional[Callable] = None,
               roots: Optional[Roots] = None, linear_solver: Any = None) -> None:
        """Restart from ``(t0, y0)`` with the same native memory."""
        self._ensure_live("CVodeReInit")
        y0 = as_input_vector(y0, "CVodeReInit", "y0", self.neqs)
        if f is not None:
            self.callbacks["rhsfn"] = f
        with vectorized(self._native, self._resources.context, y0, "y0") as nv:
            self._native_set("ReInit", float(t0), nv)
        if roots is not None:
            self._install_roots(roots)
        if linear_solver is not None:
            self._attach_linear_solver(linear_solver)

    # ---- nonlinear iteration ----

    def _use_fixed_point(self) -> None:
        nls = self._template_call("SUNNonlinSol_FixedPoint", 0, self._resources.context)
        self._swap_nonlinear_solver(nls)
        self._uses_fixed_point = True

    # ---- banded preconditioner ----

    def get_band_prec_work_space(self) -> Tuple[int, int]:
        ffi = self._native.ffi
        lenrw, leniw = ffi.new("long *"), ffi.new("long *")
        self._prec_set("BandPrecGetWorkSpace", lenrw, leniw)
        return int(lenrw[0]), int(leniw[0])

    def get_band_prec_num_rhs_evals(self) -> int:
        """Right-hand side calls made to build the banded preconditioner."""
        out = self._native.ffi.new("long *")
        self._prec_set("BandPrecGetNumRhsEvals", out)
        return int(out[0])

    # ---- CVODE-only statistics and inputs ----

    def get_num_rhs_evals(self) -> int:
        return int(self._get_scalar("GetNumRhsEvals", "long"))

    def get_num_stab_lim_order_reds(self) -> int:
        return int(self._get_scalar("GetNumStabLimOrderReds", "long"))

    def set_max_hnil_warns(self, mxhnil: int) -> None:
        self._native_set("SetMaxHnilWarns", int(mxhnil))

    def set_stab_lim_det(self, enabled: bool) -> None:
        self._native_set("SetStabLimDet", int(bool(enabled)))

    def set_min_step(self, hmin: float) -> None:
        self._native_set("SetMinStep", float(hmin))


def init(lmm: Lmm, tolerances: Any, f: Callable, y0: np.ndarray, *,
         linear_solver: Any = None, roots: Optional[Roots] = None, t0: float = 0.0,
         check_finite: bool = False) -> Session:
    """
    Create a CVODE session for ``y' = f(t, y)``, ``y(t0) = y0``.

    Args:
        lmm: ``Lmm.ADAMS`` or ``Lmm.BDF``.
        tolerances: ``SStolerances``, ``SVtolerances`` or ``WFtolerances``
            (None: ``SStolerances(1e-4, 1e-8)``).
        f: ``f(t, y, ydot)`` writing the derivative into ``ydot``.
        y0: initial state; copied.
        linear_solver: a :mod:`~sunbridge.solvers.linsolv` variant
            (default ``Functional()``).
        roots: optional :class:`~sunbridge.runtime.types.Roots`.
        check_finite: turn non-finite ``ydot`` values into recoverable failures.

    Raises:
        MemoryFailure: the native memory could not be allocated.
        NativeError: a native setup call failed; nothing is leaked.
    """
    lmm = Lmm(lmm)
    y0 = as_input_vector(y0, "CVodeInit", "y0")
    native = get_native()
    ffi, lib = native.ffi, native.lib

    ctx = create_context(native)
    mem = lib.CVodeCreate(int(lmm), ctx)
    if mem == ffi.NULL:
        free_context(native, ctx)
        raise errors.MemoryFailure("CVodeCreate", CvStatus.MEM_FAIL)
    res = NativeResources(native, mem, "CVodeFree", ctx, label="cvode")
    try:
        with vectorized(native, ctx, y0, "y0") as nv:
            raise_for(CVODE_ERRORS, "CVodeInit", lib.CVodeInit(mem, tramp.cv_rhs, float(t0), nv))
    except BaseException:
        release_resources(res)
        raise

    session = Session(res, y0.size, lmm, check_finite=check_finite)
    session.callbacks["rhsfn"] = f
    try:
        session._bind_user_data()
        session._install_roots(roots)
        session.set_tolerances(tolerances if tolerances is not None else default_tolerances())
        session._attach_linear_solver(
            linear_solver if linear_solver is not None else Functional()
        )
    except BaseException:
        session.finalize()
        raise
    log.debug("cvode session: lmm=%s neqs=%d nroots=%d", lmm.name, session.neqs, session.nroots)
    return session
