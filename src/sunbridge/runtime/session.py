# src/sunbridge/runtime/session.py
"""
Lifecycle shared by every solver session.

A session owns one block of native solver memory plus the SUNDIALS objects
attached to it. Those objects live in a :class:`NativeResources` record
that the session and its ``weakref.finalize`` both reference, so the
finalizer never keeps the session alive. :func:`release_resources` frees
everything exactly once, in dependency order, and empties the registry
cell last.

Native entry points are addressed by name (``prefix + name``) so CVODE and
IDA sessions share the tolerance, root, error-handler, linear-solver and
statistics plumbing; solver classes supply the prefix, the status table
and the trampolines for their callback signatures.
"""
from __future__ import annotations
import logging
import os
import sys
import warnings
import weakref
from dataclasses import replace
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Type

import numpy as np

from sunbridge import errors
from sunbridge.errors import InvalidArgumentError, SessionFinalizedError
from sunbridge.native.loader import Native
from sunbridge.native.status import CvStatus, LS_ERRORS, error_for
from sunbridge.runtime import registry
from sunbridge.runtime.extension import ForwardExtension, NoExtension
from sunbridge.runtime.nvector import vectorized
from sunbridge.runtime.types import (
    BandCallbacks, DenseCallbacks, IntegratorStats, LinearSolverStats, NoCallbacks,
    Roots, SolverResult, SpilsCallbacks, SStolerances, SVtolerances, WFtolerances,
    not_implemented,
)
from sunbridge.utils.arrays import require_vector

__all__ = [
    "NativeResources",
    "release_resources",
    "create_context",
    "free_context",
    "as_input_vector",
    "check_output_vector",
    "SessionBase",
]

log = logging.getLogger(__name__)

WARNING_STATUS = 99


# ---- Native resources -------------------------------------------------------------

class NativeResources:
    """
    Everything native a session owns.

    ``free_fn`` names the function releasing ``mem`` (``CVodeFree``,
    ``IDAFree``); it is None for backward problems, whose memory belongs to
    the forward problem. ``children`` holds the resources of backward
    sessions, released right after the forward memory.
    """
    __slots__ = (
        "native", "mem", "free_fn", "context", "owns_context",
        "linear_solver", "matrix", "nonlinear_solver", "err_file",
        "cell", "children", "alive", "label",
    )

    def __init__(self, native: Native, mem: Any, free_fn: Optional[str], context: Any,
                 *, owns_context: bool = True, label: str = "session"):
        self.native = native
        self.mem = mem
        self.free_fn = free_fn
        self.context = context
        self.owns_context = owns_context
        self.linear_solver = None
        self.matrix = None
        self.nonlinear_solver = None
        self.err_file = None
        self.cell: Optional[registry.RootCell] = None
        self.children: List["NativeResources"] = []
        self.alive = True
        self.label = label


def _free_solver_objects(res: NativeResources) -> None:
    lib = res.native.lib
    if res.linear_solver is not None:
        lib.SUNLinSolFree(res.linear_solver)
        res.linear_solver = None
    if res.matrix is not None:
        lib.SUNMatDestroy(res.matrix)
        res.matrix = None
    if res.nonlinear_solver is not None:
        lib.SUNNonlinSolFree(res.nonlinear_solver)
        res.nonlinear_solver = None


def release_resources(res: NativeResources) -> None:
    """Free the native memory and everything attached to it; idempotent."""
    if not res.alive:
        return
    res.alive = False
    ffi, lib = res.native.ffi, res.native.lib

    if res.free_fn is not None and res.mem is not None and res.mem != ffi.NULL:
        getattr(lib, res.free_fn)(ffi.new("void **", res.mem))
        log.debug("%s: %s", res.label, res.free_fn)
    res.mem = None

    for child in res.children:
        release_resources(child)
    res.children.clear()

    _free_solver_objects(res)
    if res.err_file is not None:
        res.native.libc.fclose(res.err_file)
        res.err_file = None
    if res.owns_context and res.context is not None:
        lib.SUNContext_Free(ffi.new("SUNContext *", res.context))
    res.context = None

    registry.unregister(res.cell)
    log.debug("%s: released", res.label)


def as_input_vector(a: Any, function: str, name: str, n: Optional[int] = None) -> np.ndarray:
    """Private float64 copy of an input vector, checked for shape."""
    arr = np.array(a, dtype=np.float64)
    if arr.ndim != 1 or (n is not None and arr.size != n):
        want = f"length {n}" if n is not None else "a 1D array"
        raise InvalidArgumentError(function, f"{name} must be {want}; got shape {arr.shape}")
    return arr


def check_output_vector(a: Any, function: str, name: str, n: int) -> np.ndarray:
    """An output vector must alias host storage the solver can write into."""
    return require_vector(a, function, name, n)


def create_context(native: Native) -> Any:
    ctx = native.ffi.new("SUNContext *")
    flag = native.lib.SUNContext_Create(native.ffi.NULL, ctx)
    if flag != 0 or ctx[0] == native.ffi.NULL:
        raise errors.MemoryFailure("SUNContext_Create", CvStatus.MEM_FAIL)
    return ctx[0]


def free_context(native: Native, context: Any) -> None:
    native.lib.SUNContext_Free(native.ffi.new("SUNContext *", context))


# ---- Session base -------------------------------------------------------------------

class SessionBase:
    """
    Common state and plumbing of a solver session.

    Subclasses set the class attributes below; ``_trampolines`` maps
    callback kinds (``"rootsfn"``, ``"errw"``, ``"errh"``, ``"jac"``,
    ``"prec_setup"``, ``"prec_solve"``, ``"jac_times"``) to the module-level
    cffi callbacks with the matching native signature; forward sessions add
    ``"bbd_local"``, ``"bbd_comm"``, ``"quad_rhs"`` and ``"sens_rhs"``.
    ``_prec_modules`` names the preconditioner modules the integrator
    accepts and ``_prec_prefix`` prefixes their entry points.
    """

    _prefix: ClassVar[str] = ""
    _errors: ClassVar[Mapping[int, Type[errors.NativeError]]] = {}
    _callback_kinds: ClassVar[Tuple[str, ...]] = ("rootsfn", "errw", "errh")
    _trampolines: ClassVar[Dict[str, Any]] = {}
    _lin_fevals: ClassVar[str] = "GetNumLinRhsEvals"
    _prec_prefix: ClassVar[str] = ""
    _prec_modules: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, resources: NativeResources, neqs: int, *, check_finite: bool = False):
        self._native = resources.native
        self._resources = resources
        self.neqs = int(neqs)
        self.nroots = 0
        self.callbacks: Dict[str, Callable] = {
            kind: not_implemented(kind) for kind in self._callback_kinds
        }
        self.ls_callbacks: Any = NoCallbacks()
        self.extension: Any = NoExtension()
        self.check_finite = bool(check_finite)
        self._pending: Optional[BaseException] = None
        self._closed = False
        self._uses_fixed_point = False
        resources.cell = registry.register(self)
        if resources.free_fn is not None:
            self._finalizer: Optional[weakref.finalize] = weakref.finalize(
                self, release_resources, resources
            )
        else:
            self._finalizer = None

    # ---- lifecycle ----

    @property
    def native(self) -> Native:
        return self._native

    @property
    def finalized(self) -> bool:
        return self._closed or not self._resources.alive

    @property
    def handle(self) -> Any:
        """The native user-data pointer of this session."""
        return registry.handle_of(self._resources.cell)

    def _ensure_live(self, operation: str) -> None:
        if self.finalized:
            raise SessionFinalizedError(operation)

    def _bind_user_data(self) -> None:
        self._native_set("SetUserData", self.handle)

    def finalize(self) -> None:
        """Release the native memory now; later calls do nothing."""
        if isinstance(self.extension, ForwardExtension):
            for child in self.extension.bsessions:
                child._closed = True
            self.extension.bsessions.clear()
        self._closed = True
        if self._finalizer is not None:
            self._finalizer()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.finalize()

    def __repr__(self) -> str:
        state = "finalized" if self.finalized else "active"
        return f"{type(self).__name__}(neqs={self.neqs}, nroots={self.nroots}, {state})"

    # ---- status handling ----

    def _exception_sink(self) -> "SessionBase":
        return self

    def store_pending(self, exc: BaseException) -> None:
        """Keep the first exception raised by a callback during one native call."""
        sink = self._exception_sink()
        if sink._pending is None:
            sink._pending = exc

    def _take_pending(self) -> Optional[BaseException]:
        sink = self._exception_sink()
        exc, sink._pending = sink._pending, None
        return exc

    def _check(self, flag: int, function: str,
               table: Optional[Mapping[int, Type[errors.NativeError]]] = None) -> int:
        """
        Raise the pending callback exception, if any, else map ``flag``.

        Negative flags raise the typed :class:`~sunbridge.errors.NativeError`;
        ``WARNING`` issues a RuntimeWarning; other flags are returned.
        """
        exc = self._take_pending()
        if exc is not None:
            raise exc
        flag = int(flag)
        if flag < 0:
            raise error_for(self._errors if table is None else table, function, flag)
        if flag == WARNING_STATUS:
            warnings.warn(f"{function} returned a warning status", RuntimeWarning, stacklevel=3)
        return flag

    def _result(self, flag: int) -> SolverResult:
        if flag in (SolverResult.STOP_TIME_REACHED, SolverResult.ROOTS_FOUND):
            return SolverResult(flag)
        return SolverResult.SUCCESS

    # ---- native call helpers ----

    def _lib_fn(self, name: str) -> Any:
        return getattr(self._native.lib, self._prefix + name)

    def _mem(self) -> Any:
        return self._resources.mem

    def _native_set(self, name: str, *args: Any, table=None) -> int:
        """Call ``prefix + name(mem, *args)``; used for every configuring call."""
        self._ensure_live(self._prefix + name)
        flag = self._lib_fn(name)(self._mem(), *args)
        return self._check(flag, self._prefix + name, table)

    def _native_get(self, name: str, *args: Any, table=None) -> int:
        """Call ``prefix + name(mem, *args)`` for a query."""
        self._ensure_live(self._prefix + name)
        flag = self._lib_fn(name)(self._mem(), *args)
        return self._check(flag, self._prefix + name, table)

    def _get_scalar(self, name: str, ctype: str, table=None):
        out = self._native.ffi.new(ctype + " *")
        self._native_get(name, out, table=table)
        return out[0]

    def _get_vector(self, name: str, out: Optional[np.ndarray]) -> np.ndarray:
        if out is None:
            out = np.zeros(self.neqs)
        check_output_vector(out, self._prefix + name, "out", self.neqs)
        with vectorized(self._native, self._resources.context, out, "out") as nv:
            self._native_get(name, nv)
        return out

    # ---- tolerances ----

    def set_tolerances(self, tol: Any) -> None:
        """Install ``SStolerances``, ``SVtolerances`` or ``WFtolerances``."""
        self._ensure_live("set_tolerances")
        if isinstance(tol, SStolerances):
            self.ss_tolerances(tol.rtol, tol.atol)
        elif isinstance(tol, SVtolerances):
            self.sv_tolerances(tol.rtol, tol.atol)
        elif isinstance(tol, WFtolerances):
            self.wf_tolerances(tol.errw)
        else:
            raise InvalidArgumentError("set_tolerances", f"unknown tolerance variant {tol!r}")

    def ss_tolerances(self, rtol: float, atol: float) -> None:
        if rtol < 0 or atol < 0:
            raise InvalidArgumentError("ss_tolerances", "tolerances must be non-negative")
        self._native_set("SStolerances", float(rtol), float(atol))

    def sv_tolerances(self, rtol: float, atol: np.ndarray) -> None:
        atol = as_input_vector(atol, "sv_tolerances", "atol", self.neqs)
        if rtol < 0 or np.any(atol < 0):
            raise InvalidArgumentError("sv_tolerances", "tolerances must be non-negative")
        self._ensure_live("sv_tolerances")
        with vectorized(self._native, self._resources.context, atol, "atol") as nv:
            self._native_set("SVtolerances", float(rtol), nv)

    def wf_tolerances(self, errw: Callable[[np.ndarray, np.ndarray], None]) -> None:
        self._ensure_live("wf_tolerances")
        self.callbacks["errw"] = errw
        self._native_set("WFtolerances", self._trampolines["errw"])

    # ---- roots ----

    def _install_roots(self, roots: Optional[Roots]) -> None:
        ffi = self._native.ffi
        if roots is None or roots.nroots == 0:
            if self.nroots:
                self._native_set("RootInit", 0, ffi.NULL)
            self.nroots = 0
            self.callbacks["rootsfn"] = not_implemented("rootsfn")
            return
        self.callbacks["rootsfn"] = roots.g
        self._native_set("RootInit", int(roots.nroots), self._trampolines["rootsfn"])
        self.nroots = int(roots.nroots)

    def get_root_info(self) -> np.ndarray:
        """Per root function: +1 rising, -1 falling, 0 no root found."""
        self._ensure_live("get_root_info")
        ffi = self._native.ffi
        found = ffi.new("int[]", max(self.nroots, 1))
        self._native_get("GetRootInfo", found)
        return np.array([found[i] for i in range(self.nroots)], dtype=np.int32)

    def set_root_direction(self, directions: Sequence[int]) -> None:
        directions = [int(d) for d in directions]
        if len(directions) != self.nroots:
            raise InvalidArgumentError(
                "set_root_direction",
                f"expected {self.nroots} directions; got {len(directions)}",
            )
        if any(d not in (-1, 0, 1) for d in directions):
            raise InvalidArgumentError("set_root_direction", "directions must be -1, 0 or 1")
        self._native_set("SetRootDirection", self._native.ffi.new("int[]", directions))

    def set_all_root_directions(self, direction: int) -> None:
        self.set_root_direction([direction] * self.nroots)

    def set_no_inactive_root_warn(self) -> None:
        self._native_set("SetNoInactiveRootWarn")

    # ---- diagnostics ----

    def set_error_file(self, path: str, truncate: bool = True) -> None:
        """Send native diagnostics to ``path``; the file is owned by this session."""
        self._ensure_live("set_error_file")
        ffi, libc = self._native.ffi, self._native.libc
        mode = b"w" if truncate else b"a"
        fp = libc.fopen(str(path).encode(), mode)
        if fp == ffi.NULL:
            raise InvalidArgumentError(
                "set_error_file", f"cannot open {path}: {os.strerror(ffi.errno)}"
            )
        try:
            self._native_set("SetErrFile", fp)
        except BaseException:
            libc.fclose(fp)
            raise
        old, self._resources.err_file = self._resources.err_file, fp
        if old is not None:
            libc.fclose(old)

    def set_err_handler_fn(self, handler: Callable[[Any], None]) -> None:
        """``handler(ErrorDetails)`` receives every native diagnostic."""
        self._ensure_live("set_err_handler_fn")
        self.callbacks["errh"] = handler
        self._native_set("SetErrHandlerFn", self._trampolines["errh"], self.handle)

    def clear_err_handler_fn(self) -> None:
        ffi = self._native.ffi
        self._native_set("SetErrHandlerFn", ffi.NULL, ffi.NULL)
        self.callbacks["errh"] = not_implemented("errh")

    # ---- linear solvers ----

    def set_linear_solver(self, solver: Any) -> None:
        """Attach a linear solver variant from :mod:`sunbridge.solvers.linsolv`."""
        self._ensure_live("set_linear_solver")
        self._attach_linear_solver(solver)

    def _attach_linear_solver(self, solver: Any) -> None:
        from sunbridge.solvers import linsolv

        res = self._resources
        if isinstance(solver, linsolv.Functional):
            self._use_fixed_point()
            self.ls_callbacks = NoCallbacks()
            return

        module = getattr(getattr(solver, "prec", None), "module", None)
        if module is not None and type(module).__name__ not in self._prec_modules:
            raise InvalidArgumentError(
                "set_linear_solver",
                f"{type(self).__name__} does not support {type(module).__name__}",
            )
        made = linsolv.create(self._native, res.context, self.neqs, solver)
        try:
            self._native_set("SetLinearSolver", made.linear_solver, made.matrix_arg, table=LS_ERRORS)
        except BaseException:
            made.release()
            raise
        old_ls, old_mat = res.linear_solver, res.matrix
        res.linear_solver, res.matrix = made.linear_solver, made.matrix
        if old_ls is not None:
            self._native.lib.SUNLinSolFree(old_ls)
        if old_mat is not None:
            self._native.lib.SUNMatDestroy(old_mat)
        log.debug("%s: attached %s", type(self).__name__, type(solver).__name__)

        if self._uses_fixed_point:
            self._use_newton()
        self.ls_callbacks = made.callbacks
        self._install_ls_callbacks()

    def _swap_nonlinear_solver(self, nls: Any) -> None:
        res = self._resources
        try:
            self._native_set("SetNonlinearSolver", nls)
        except BaseException:
            self._native.lib.SUNNonlinSolFree(nls)
            raise
        old, res.nonlinear_solver = res.nonlinear_solver, nls
        if old is not None:
            self._native.lib.SUNNonlinSolFree(old)

    def _template_call(self, fn_name: str, *args: Any) -> Any:
        """Call a constructor that needs a template ``N_Vector``."""
        ffi = self._native.ffi
        template = np.zeros(self.neqs)
        with vectorized(self._native, self._resources.context, template, "template") as nv:
            obj = getattr(self._native.lib, fn_name)(nv, *args)
        if obj == ffi.NULL:
            raise errors.MemoryFailure(fn_name, CvStatus.MEM_FAIL)
        return obj

    def _use_fixed_point(self) -> None:
        raise InvalidArgumentError(
            "set_linear_solver", f"{type(self).__name__} requires a linear solver"
        )

    def _use_newton(self) -> None:
        nls = self._template_call("SUNNonlinSol_Newton", self._resources.context)
        self._swap_nonlinear_solver(nls)
        self._uses_fixed_point = False

    def _install_ls_callbacks(self) -> None:
        ffi = self._native.ffi
        cbs = self.ls_callbacks
        if isinstance(cbs, (DenseCallbacks, BandCallbacks)):
            jac = self._trampolines["jac"] if cbs.jac is not None else ffi.NULL
            self._native_set("SetJacFn", jac, table=LS_ERRORS)
        elif isinstance(cbs, SpilsCallbacks):
            if cbs.prec_module is not None:
                self._init_prec_module(cbs.prec_module)
            elif cbs.prec_solve is not None:
                setup = self._trampolines["prec_setup"] if cbs.prec_setup is not None else ffi.NULL
                self._native_set(
                    "SetPreconditioner", setup, self._trampolines["prec_solve"], table=LS_ERRORS
                )
            if cbs.jac_times is not None:
                self._native_set(
                    "SetJacTimes", ffi.NULL, self._trampolines["jac_times"], table=LS_ERRORS
                )

    def set_dense_jac_fn(self, jac: Callable) -> None:
        self._replace_jac("set_dense_jac_fn", DenseCallbacks, jac)

    def clear_dense_jac_fn(self) -> None:
        self._replace_jac("clear_dense_jac_fn", DenseCallbacks, None)

    def set_band_jac_fn(self, jac: Callable) -> None:
        self._replace_jac("set_band_jac_fn", BandCallbacks, jac)

    def clear_band_jac_fn(self) -> None:
        self._replace_jac("clear_band_jac_fn", BandCallbacks, None)

    def _replace_jac(self, operation: str, kind: type, jac: Optional[Callable]) -> None:
        self._ensure_live(operation)
        if not isinstance(self.ls_callbacks, kind):
            label = "dense" if kind is DenseCallbacks else "band"
            raise InvalidArgumentError(operation, f"no {label} linear solver is attached")
        self.ls_callbacks = kind(jac)
        ffi = self._native.ffi
        self._native_set("SetJacFn", self._trampolines["jac"] if jac else ffi.NULL, table=LS_ERRORS)

    def set_preconditioner(self, solve: Callable, setup: Optional[Callable] = None) -> None:
        """Replace the preconditioner functions of an iterative linear solver."""
        self._ensure_live("set_preconditioner")
        cbs = self._require_spils("set_preconditioner")
        self.ls_callbacks = SpilsCallbacks(setup, solve, cbs.jac_times, cbs.prec_module)
        ffi = self._native.ffi
        self._native_set(
            "SetPreconditioner",
            self._trampolines["prec_setup"] if setup is not None else ffi.NULL,
            self._trampolines["prec_solve"],
            table=LS_ERRORS,
        )

    def set_jac_times_vec_fn(self, jac_times: Callable) -> None:
        self._ensure_live("set_jac_times_vec_fn")
        cbs = self._require_spils("set_jac_times_vec_fn")
        self.ls_callbacks = SpilsCallbacks(
            cbs.prec_setup, cbs.prec_solve, jac_times, cbs.prec_module
        )
        ffi = self._native.ffi
        self._native_set("SetJacTimes", ffi.NULL, self._trampolines["jac_times"], table=LS_ERRORS)

    def clear_jac_times_vec_fn(self) -> None:
        self._ensure_live("clear_jac_times_vec_fn")
        cbs = self._require_spils("clear_jac_times_vec_fn")
        self.ls_callbacks = SpilsCallbacks(cbs.prec_setup, cbs.prec_solve, None, cbs.prec_module)
        ffi = self._native.ffi
        self._native_set("SetJacTimes", ffi.NULL, ffi.NULL, table=LS_ERRORS)

    def _require_spils(self, operation: str) -> SpilsCallbacks:
        if not isinstance(self.ls_callbacks, SpilsCallbacks):
            raise InvalidArgumentError(operation, "no iterative linear solver is attached")
        return self.ls_callbacks

    # ---- preconditioner modules ----

    def _prec_set(self, name: str, *args: Any) -> int:
        """Call ``prec_prefix + name(mem, *args)``; these report linear-solver codes."""
        function = self._prec_prefix + name
        self._ensure_live(function)
        flag = getattr(self._native.lib, function)(self._mem(), *args)
        return self._check(flag, function, LS_ERRORS)

    def _init_prec_module(self, module: Any) -> None:
        from sunbridge.solvers import linsolv

        if isinstance(module, linsolv.BandPrec):
            self._prec_set("BandPrecInit", self.neqs, module.mupper, module.mlower)
        else:
            ffi = self._native.ffi
            comm = self._trampolines["bbd_comm"] if module.comm is not None else ffi.NULL
            self._prec_set(
                "BBDPrecInit", self.neqs, module.mudq, module.mldq, module.mukeep,
                module.mlkeep, float(module.dqrely), self._trampolines["bbd_local"], comm,
            )
        log.debug("%s: preconditioned by %s", type(self).__name__, type(module).__name__)

    def _require_bbd(self, operation: str) -> Any:
        from sunbridge.solvers import linsolv

        cbs = self.ls_callbacks
        module = cbs.prec_module if isinstance(cbs, SpilsCallbacks) else None
        if not isinstance(module, linsolv.BBDPrec):
            raise InvalidArgumentError(operation, "no BBD preconditioner is attached")
        return module

    def reinit_bbd_prec(self, mudq: int, mldq: int, dqrely: float = 0.0) -> None:
        """Change the difference-quotient bandwidths; the retained bandwidths stay."""
        self._ensure_live("reinit_bbd_prec")
        module = self._require_bbd("reinit_bbd_prec")
        if dqrely < 0:
            raise InvalidArgumentError("reinit_bbd_prec", "dqrely must be non-negative")
        self._prec_set("BBDPrecReInit", int(mudq), int(mldq), float(dqrely))
        cbs = self.ls_callbacks
        self.ls_callbacks = SpilsCallbacks(
            cbs.prec_setup, cbs.prec_solve, cbs.jac_times,
            replace(module, mudq=int(mudq), mldq=int(mldq), dqrely=float(dqrely)),
        )

    def get_bbd_prec_work_space(self) -> Tuple[int, int]:
        ffi = self._native.ffi
        lenrw, leniw = ffi.new("long *"), ffi.new("long *")
        self._prec_set("BBDPrecGetWorkSpace", lenrw, leniw)
        return int(lenrw[0]), int(leniw[0])

    def get_bbd_prec_num_gfn_evals(self) -> int:
        """Calls of the local function made by the BBD preconditioner."""
        out = self._native.ffi.new("long *")
        self._prec_set("BBDPrecGetNumGfnEvals", out)
        return int(out[0])

    # ---- statistics ----

    def get_num_steps(self) -> int:
        return int(self._get_scalar("GetNumSteps", "long"))

    def get_num_lin_solv_setups(self) -> int:
        return int(self._get_scalar("GetNumLinSolvSetups", "long"))

    def get_num_err_test_fails(self) -> int:
        return int(self._get_scalar("GetNumErrTestFails", "long"))

    def get_last_order(self) -> int:
        return int(self._get_scalar("GetLastOrder", "int"))

    def get_current_order(self) -> int:
        return int(self._get_scalar("GetCurrentOrder", "int"))

    def get_actual_init_step(self) -> float:
        return float(self._get_scalar("GetActualInitStep", "sunrealtype"))

    def get_last_step(self) -> float:
        return float(self._get_scalar("GetLastStep", "sunrealtype"))

    def get_current_step(self) -> float:
        return float(self._get_scalar("GetCurrentStep", "sunrealtype"))

    def get_current_time(self) -> float:
        return float(self._get_scalar("GetCurrentTime", "sunrealtype"))

    def get_tol_scale_factor(self) -> float:
        return float(self._get_scalar("GetTolScaleFactor", "sunrealtype"))

    def get_num_g_evals(self) -> int:
        return int(self._get_scalar("GetNumGEvals", "long"))

    def get_num_nonlin_solv_iters(self) -> int:
        return int(self._get_scalar("GetNumNonlinSolvIters", "long"))

    def get_num_nonlin_solv_conv_fails(self) -> int:
        return int(self._get_scalar("GetNumNonlinSolvConvFails", "long"))

    def get_work_space(self) -> Tuple[int, int]:
        """``(real words, integer words)`` used by the solver memory."""
        ffi = self._native.ffi
        lenrw, leniw = ffi.new("long *"), ffi.new("long *")
        self._native_get("GetWorkSpace", lenrw, leniw)
        return int(lenrw[0]), int(leniw[0])

    def get_err_weights(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        return self._get_vector("GetErrWeights", out)

    def get_est_local_errors(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        return self._get_vector("GetEstLocalErrors", out)

    def get_integrator_stats(self) -> IntegratorStats:
        ffi = self._native.ffi
        longs = [ffi.new("long *") for _ in range(4)]
        ints = [ffi.new("int *") for _ in range(2)]
        reals = [ffi.new("sunrealtype *") for _ in range(4)]
        self._native_get("GetIntegratorStats", *longs, *ints, *reals)
        return IntegratorStats(
            *(int(p[0]) for p in longs),
            *(int(p[0]) for p in ints),
            *(float(p[0]) for p in reals),
        )

    def get_linear_solver_stats(self) -> LinearSolverStats:
        ffi = self._native.ffi
        lenrw, leniw = ffi.new("long *"), ffi.new("long *")
        self._native_get("GetLinWorkSpace", lenrw, leniw, table=LS_ERRORS)

        def count(name: str) -> int:
            return int(self._get_scalar(name, "long", table=LS_ERRORS))

        return LinearSolverStats(
            work_space=(int(lenrw[0]), int(leniw[0])),
            num_jac_evals=count("GetNumJacEvals"),
            num_prec_evals=count("GetNumPrecEvals"),
            num_prec_solves=count("GetNumPrecSolves"),
            num_lin_iters=count("GetNumLinIters"),
            num_lin_conv_fails=count("GetNumLinConvFails"),
            num_jtimes_evals=count("GetNumJtimesEvals"),
            num_lin_rhs_evals=count(self._lin_fevals),
        )

    def print_integrator_stats(self, file=None) -> None:
        """Write the integrator statistics as ``name = value`` lines."""
        stats = self.get_integrator_stats()
        out = file if file is not None else sys.stdout
        for name, value in vars(stats).items():
            print(f"{name:<22} = {value}", file=out)

    # ---- optional inputs ----

    def set_max_ord(self, maxord: int) -> None:
        self._native_set("SetMaxOrd", int(maxord))

    def set_max_num_steps(self, mxsteps: int) -> None:
        self._native_set("SetMaxNumSteps", int(mxsteps))

    def set_init_step(self, hin: float) -> None:
        self._native_set("SetInitStep", float(hin))

    def set_max_step(self, hmax: float) -> None:
        self._native_set("SetMaxStep", float(hmax))

    def set_stop_time(self, tstop: float) -> None:
        self._native_set("SetStopTime", float(tstop))

    def set_max_err_test_fails(self, maxnef: int) -> None:
        self._native_set("SetMaxErrTestFails", int(maxnef))

    def set_max_nonlin_iters(self, maxcor: int) -> None:
        self._native_set("SetMaxNonlinIters", int(maxcor))

    def set_max_conv_fails(self, maxncf: int) -> None:
        self._native_set("SetMaxConvFails", int(maxncf))

    def set_nonlin_conv_coef(self, coef: float) -> None:
        self._native_set("SetNonlinConvCoef", float(coef))

    def set_eps_lin(self, eplifac: float) -> None:
        self._native_set("SetEpsLin", float(eplifac), table=LS_ERRORS)
