# src/sunbridge/solvers/ida.py
"""
DAE sessions on IDA/IDAS: ``F(t, y, y') = 0``.

The residual closure has the signature ``res(t, y, yp, r)`` and writes
``F`` into ``r``. A direct or iterative linear solver is required.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

from sunbridge import errors
from sunbridge.errors import InvalidArgumentError
from sunbridge.native.loader import get_native
from sunbridge.native.status import IDA_ERRORS, IcOption, IdaStatus, Task, raise_for
from sunbridge.runtime import trampolines as tramp
from sunbridge.runtime.nvector import vectorized
from sunbridge.runtime.session import (
    NativeResources, SessionBase, as_input_vector, check_output_vector, create_context,
    free_context, release_resources,
)
from sunbridge.runtime.types import Roots, SolverResult, VarType, default_tolerances
from sunbridge.solvers.linsolv import Dense

__all__ = ["Session", "init"]

log = logging.getLogger(__name__)


class Session(SessionBase):
    """An IDA problem."""

    _prefix = "IDA"
    _errors = IDA_ERRORS
    _callback_kinds = ("resfn", "rootsfn", "errw", "errh")
    _trampolines = {
        "rootsfn": tramp.ida_roots,
        "errw": tramp.errw,
        "errh": tramp.errh,
        "jac": tramp.ida_jac,
        "prec_setup": tramp.ida_prec_setup,
        "prec_solve": tramp.ida_prec_solve,
        "jac_times": tramp.ida_jac_times,
        "bbd_local": tramp.ida_bbd_local,
        "bbd_comm": tramp.ida_bbd_comm,
        "quad_rhs": tramp.ida_quad_rhs,
        "sens_rhs": tramp.ida_sens_res,
    }
    _lin_fevals = "GetNumLinResEvals"
    _prec_prefix = "IDA"
    _prec_modules = ("BBDPrec",)

    # ---- solving ----

    def solve_normal(self, tout: float, y: np.ndarray, yp: np.ndarray) -> Tuple[float, SolverResult]:
        return self._solve(tout, y, yp, Task.NORMAL)

    def solve_one_step(self, tout: float, y: np.ndarray, yp: np.ndarray) -> Tuple[float, SolverResult]:
        return self._solve(tout, y, yp, Task.ONE_STEP)

    def _solve(self, tout: float, y: np.ndarray, yp: np.ndarray,
               task: Task) -> Tuple[float, SolverResult]:
        self._ensure_live("IDASolve")
        check_output_vector(y, "IDASolve", "y", self.neqs)
        check_output_vector(yp, "IDASolve", "yp", self.neqs)
        ffi, lib = self._native.ffi, self._native.lib
        ctx = self._resources.context
        tret = ffi.new("sunrealtype *")
        with vectorized(self._native, ctx, y, "y") as nvy, \
                vectorized(self._native, ctx, yp, "yp") as nvyp:
            flag = lib.IDASolve(self._mem(), float(tout), tret, nvy, nvyp, int(task))
        flag = self._check(flag, "IDASolve")
        return float(tret[0]), self._result(flag)

    def get_dky(self, t: float, k: int, dky: np.ndarray) -> None:
        self._ensure_live("IDAGetDky")
        check_output_vector(dky, "IDAGetDky", "dky", self.neqs)
        with vectorized(self._native, self._resources.context, dky, "dky") as nv:
            self._native_get("GetDky", float(t), int(k), nv)

    def reinit(self, t0: float, y0: np.ndarray, yp0: np.ndarray, *,
               res: Optional[Callable] = None, roots: Optional[Roots] = None,
               linear_solver: Any = None) -> None:
        self._ensure_live("IDAReInit")
        y0 = as_input_vector(y0, "IDAReInit", "y0", self.neqs)
        yp0 = as_input_vector(yp0, "IDAReInit", "yp0", self.neqs)
        if res is not None:
            self.callbacks["resfn"] = res
        ctx = self._resources.context
        with vectorized(self._native, ctx, y0, "y0") as nvy, \
                vectorized(self._native, ctx, yp0, "yp0") as nvyp:
            self._native_set("ReInit", float(t0), nvy, nvyp)
        if roots is not None:
            self._install_roots(roots)
        if linear_solver is not None:
            self._attach_linear_solver(linear_solver)

    # ---- algebraic variables and initial conditions ----

    def set_id(self, varid: np.ndarray) -> None:
        """``varid[i]`` is 1.0 for a differential and 0.0 for an algebraic component."""
        varid = as_input_vector(varid, "IDASetId", "varid", self.neqs)
        if not np.all((varid == 0.0) | (varid == 1.0)):
            raise InvalidArgumentError("IDASetId", "varid entries must be 0.0 or 1.0")
        self._ensure_live("IDASetId")
        with vectorized(self._native, self._resources.context, varid, "varid") as nv:
            self._native_set("SetId", nv)

    def set_var_types(self, types: Sequence[VarType]) -> None:
        self.set_id(np.array([float(VarType(v)) for v in types]))

    def set_constraints(self, constraints: np.ndarray) -> None:
        """Entries 0, +-1 (>= 0 / <= 0) or +-2 (> 0 / < 0) per component."""
        constraints = as_input_vector(constraints, "IDASetConstraints", "constraints", self.neqs)
        if not np.all(np.isin(constraints, (-2.0, -1.0, 0.0, 1.0, 2.0))):
            raise InvalidArgumentError(
                "IDASetConstraints", "constraint entries must be one of -2, -1, 0, 1, 2"
            )
        self._ensure_live("IDASetConstraints")
        with vectorized(self._native, self._resources.context, constraints, "constraints") as nv:
            self._native_set("SetConstraints", nv)

    def set_suppress_alg(self, suppress: bool) -> None:
        self._native_set("SetSuppressAlg", int(bool(suppress)))

    def calc_ic_y(self, tout1: float, y: Optional[np.ndarray] = None) -> None:
        """Compute all of ``y`` given ``y'``; optionally copy the corrected ``y`` out."""
        self._native_set("CalcIC", int(IcOption.Y_INIT), float(tout1))
        if y is not None:
            self._consistent_ic(y, None)

    def calc_ic_ya_yd(self, tout1: float, y: Optional[np.ndarray] = None,
                      yp: Optional[np.ndarray] = None,
                      varid: Optional[np.ndarray] = None) -> None:
        """Compute algebraic ``y`` and differential ``y'`` given differential ``y``."""
        if varid is not None:
            self.set_id(varid)
        self._native_set("CalcIC", int(IcOption.YA_YDP_INIT), float(tout1))
        if y is not None or yp is not None:
            self._consistent_ic(y, yp)

    def _consistent_ic(self, y: Optional[np.ndarray], yp: Optional[np.ndarray]) -> None:
        ffi = self._native.ffi
        ctx = self._resources.context
        if y is not None:
            check_output_vector(y, "IDAGetConsistentIC", "y", self.neqs)
        if yp is not None:
            check_output_vector(yp, "IDAGetConsistentIC", "yp", self.neqs)
        # unused outputs get a scratch vector so both `with` targets exist
        ybuf = y if y is not None else np.zeros(self.neqs)
        ypbuf = yp if yp is not None else np.zeros(self.neqs)
        with vectorized(self._native, ctx, ybuf, "y") as nvy, \
                vectorized(self._native, ctx, ypbuf, "yp") as nvyp:
            self._native_get(
                "GetConsistentIC",
                nvy if y is not None else ffi.NULL,
                nvyp if yp is not None else ffi.NULL,
            )

    # ---- IDA-only statistics ----

    def get_num_res_evals(self) -> int:
        return int(self._get_scalar("GetNumResEvals", "long"))

    def get_num_backtrack_ops(self) -> int:
        return int(self._get_scalar("GetNumBacktrackOps", "long"))


def init(tolerances: Any, res: Callable, y0: np.ndarray, yp0: np.ndarray, *,
         linear_solver: Any = None, roots: Optional[Roots] = None, t0: float = 0.0,
         check_finite: bool = False) -> Session:
    """
    Create an IDA session for ``res(t, y, yp, r)``.

    ``linear_solver`` defaults to ``Dense()``; ``Functional()`` is rejected.
    """
    y0 = as_input_vector(y0, "IDAInit", "y0")
    yp0 = as_input_vector(yp0, "IDAInit", "yp0", y0.size)
    native = get_native()
    ffi, lib = native.ffi, native.lib

    ctx = create_context(native)
    mem = lib.IDACreate(ctx)
    if mem == ffi.NULL:
        free_context(native, ctx)
        raise errors.MemoryFailure("IDACreate", IdaStatus.MEM_FAIL)
    resources = NativeResources(native, mem, "IDAFree", ctx, label="ida")
    try:
        with vectorized(native, ctx, y0, "y0") as nvy, vectorized(native, ctx, yp0, "yp0") as nvyp:
            raise_for(IDA_ERRORS, "IDAInit", lib.IDAInit(mem, tramp.ida_res, float(t0), nvy, nvyp))
    except BaseException:
        release_resources(resources)
        raise

    session = Session(resources, y0.size, check_finite=check_finite)
    session.callbacks["resfn"] = res
    try:
        session._bind_user_data()
        session._install_roots(roots)
        session.set_tolerances(tolerances if tolerances is not None else default_tolerances())
        session._attach_linear_solver(linear_solver if linear_solver is not None else Dense())
    except BaseException:
        session.finalize()
        raise
    log.debug("ida session: neqs=%d nroots=%d", session.neqs, session.nroots)
    return session
