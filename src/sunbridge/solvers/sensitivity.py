# src/sunbridge/solvers/sensitivity.py
"""
Quadratures and forward sensitivities on CVODES and IDAS.

All functions take the forward :class:`~sunbridge.solvers.cvode.Session`
or :class:`~sunbridge.solvers.ida.Session` as first argument and are
grouped in three namespaces:

* :class:`Quadrature` - integrals ``yQ' = fQ(t, y)`` (IDA: ``fQ(t, y, yp)``)
  carried along the solve;
* :class:`Sensitivity` - ``dy/dp`` for ``Ns`` parameters;
* :class:`SensitivityQuadrature` - ``d yQ / dp`` (CVODES only).

Every vector array is checked against the registered counts before the
first native call is made.
"""
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from sunbridge.errors import InvalidArgumentError
from sunbridge.native.status import DQMethod, SensMethod
from sunbridge.runtime.extension import BackwardExtension, ForwardExtension, add_forward_extension
from sunbridge.runtime.nvector import vectorized, vectorized_array
from sunbridge.runtime.session import as_input_vector, check_output_vector
from sunbridge.runtime.types import SStolerances, SVtolerances, not_implemented
from sunbridge.solvers import cvode, ida
from sunbridge.utils.arrays import require_vector, require_vectors

__all__ = [
    # tolerance variants
    "NoStepSizeControl", "EEtolerances",
    # sensitivity function shapes
    "AllAtOnce", "OneByOne",
    "SensParams",
    # statistics
    "QuadStats", "SensStats",
    # namespaces
    "Quadrature", "Sensitivity", "SensitivityQuadrature",
]


@dataclass(frozen=True)
class NoStepSizeControl:
    """Integrate without including the variables in the error test."""


@dataclass(frozen=True)
class EEtolerances:
    """Estimate sensitivity tolerances from the state tolerances and ``pbar``."""


@dataclass(frozen=True)
class AllAtOnce:
    """
    Sensitivity function computing every sensitivity in one call; None
    selects difference quotients.

    CVODES: ``f(t, y, ydot, ys, ysdot, tmp1, tmp2)`` fills every ``ysdot[i]``.
    IDAS: ``f(t, y, yp, r, ys, yps, rs, tmp1, tmp2, tmp3)`` fills every
    sensitivity residual ``rs[i]``.
    """
    f: Optional[Callable] = None


@dataclass(frozen=True)
class OneByOne:
    """``f(t, y, ydot, i, ys_i, ysdot_i, tmp1, tmp2)`` computes one ``ysdot_i``; None: difference quotients."""
    f: Optional[Callable] = None


@dataclass
class SensParams:
    """
    Problem parameters seen by the difference-quotient routines.

    ``pvals`` is shared with the solver: it must be a writeable float64
    array and changes to it are visible during the solve. ``pbar`` holds
    one scaling factor per sensitivity and ``plist`` the index in
    ``pvals`` of each sensitivity parameter.
    """
    pvals: Optional[np.ndarray] = None
    pbar: Optional[Sequence[float]] = None
    plist: Optional[Sequence[int]] = None


@dataclass(frozen=True)
class QuadStats:
    num_rhs_evals: int
    num_err_test_fails: int


@dataclass(frozen=True)
class SensStats:
    """On IDAS the two evaluation counts refer to residual calls."""
    num_sens_rhs_evals: int
    num_rhs_evals_sens: int
    num_err_test_fails: int
    num_lin_solv_setups: int
    num_nonlin_solv_iters: int
    num_nonlin_solv_conv_fails: int


# ---- helpers ----

def _name(s: Any, name: str) -> str:
    return getattr(s, "_prefix", "CVode") + name


def _is_dae(s: Any) -> bool:
    return isinstance(s, ida.Session)


def _forward(s: Any, name: str, *, cvodes_only: bool = False) -> ForwardExtension:
    function = _name(s, name)
    s._ensure_live(function)
    if not isinstance(s, (cvode.Session, ida.Session)) or isinstance(s.extension, BackwardExtension):
        raise InvalidArgumentError(function, "a forward CVODES or IDAS session is required")
    if cvodes_only and _is_dae(s):
        raise InvalidArgumentError(function, "quadrature sensitivities need a CVODES session")
    return add_forward_extension(s)


def _input_arrays(function: str, name: str, arrays: Sequence[Any], count: int,
                  n: int) -> List[np.ndarray]:
    arrays = list(arrays)
    if len(arrays) != count:
        raise InvalidArgumentError(function, f"{name} must hold {count} vectors; got {len(arrays)}")
    return [as_input_vector(a, function, f"{name}[{i}]", n) for i, a in enumerate(arrays)]


def _scalars(function: str, name: str, values: Any, count: int) -> np.ndarray:
    try:
        out = np.broadcast_to(np.asarray(values, dtype=np.float64), (count,))
    except ValueError:
        raise InvalidArgumentError(function, f"{name} must be a scalar or hold {count} values") from None
    if np.any(out < 0):
        raise InvalidArgumentError(function, f"{name} must be non-negative")
    return out


def _sens_index(function: str, ext: ForwardExtension, i: int) -> int:
    if not 0 <= int(i) < ext.num_sensitivities:
        raise InvalidArgumentError(
            function, f"sensitivity index {i} outside [0, {ext.num_sensitivities})"
        )
    return int(i)


@contextmanager
def _sens_vectors(s: Any, ys: List[np.ndarray],
                  yps: Optional[List[np.ndarray]]) -> Iterator[Tuple[Any, ...]]:
    """``N_Vector *`` arguments for ``ys`` and, on IDAS, ``yps``."""
    with vectorized_array(s.native, s._resources.context, ys, "ys") as ptr:
        if yps is None:
            yield (ptr,)
            return
        with vectorized_array(s.native, s._resources.context, yps, "yps") as pptr:
            yield (ptr, pptr)


def _sens_derivatives(s: Any, function: str, yps0: Any, ns: int) -> Optional[List[np.ndarray]]:
    if _is_dae(s):
        if yps0 is None:
            raise InvalidArgumentError(function, "yps0 is required for a DAE")
        return _input_arrays(function, "yps0", yps0, ns, s.neqs)
    if yps0 is not None:
        raise InvalidArgumentError(function, "yps0 applies to IDAS sessions only")
    return None


# ---- quadratures ----

class Quadrature:
    """Quadrature variables of a forward problem."""

    @staticmethod
    def init(s: Any, fq: Callable, yq0: np.ndarray) -> None:
        """
        Start integrating the quadratures; ``fq(t, y, yqdot)`` (IDA:
        ``fq(t, y, yp, yqdot)``) fills ``yqdot``.
        """
        ext = _forward(s, "QuadInit")
        yq0 = as_input_vector(yq0, _name(s, "QuadInit"), "yq0")
        ext.quadrhsfn = fq
        with vectorized(s.native, s._resources.context, yq0, "yq0") as nv:
            s._native_set("QuadInit", s._trampolines["quad_rhs"], nv)
        ext.num_quadratures = yq0.size

    @staticmethod
    def reinit(s: Any, yq0: np.ndarray) -> None:
        ext = _forward(s, "QuadReInit")
        yq0 = as_input_vector(yq0, _name(s, "QuadReInit"), "yq0", ext.num_quadratures)
        with vectorized(s.native, s._resources.context, yq0, "yq0") as nv:
            s._native_set("QuadReInit", nv)

    @staticmethod
    def set_tolerances(s: Any, tol: Any) -> None:
        """``NoStepSizeControl``, ``SStolerances`` or ``SVtolerances``."""
        ext = _forward(s, "QuadSStolerances")
        if isinstance(tol, NoStepSizeControl):
            s._native_set("SetQuadErrCon", 0)
            return
        if isinstance(tol, SStolerances):
            if tol.rtol < 0 or tol.atol < 0:
                raise InvalidArgumentError(_name(s, "QuadSStolerances"), "tolerances must be non-negative")
            s._native_set("QuadSStolerances", float(tol.rtol), float(tol.atol))
        elif isinstance(tol, SVtolerances):
            function = _name(s, "QuadSVtolerances")
            atol = as_input_vector(tol.atol, function, "atol", ext.num_quadratures)
            if tol.rtol < 0 or np.any(atol < 0):
                raise InvalidArgumentError(function, "tolerances must be non-negative")
            with vectorized(s.native, s._resources.context, atol, "atol") as nv:
                s._native_set("QuadSVtolerances", float(tol.rtol), nv)
        else:
            raise InvalidArgumentError(_name(s, "QuadSStolerances"), f"unknown tolerance variant {tol!r}")
        s._native_set("SetQuadErrCon", 1)

    @staticmethod
    def get(s: Any, yq: np.ndarray) -> float:
        """Copy the quadratures at the last output time into ``yq``; returns that time."""
        ext = _forward(s, "GetQuad")
        check_output_vector(yq, _name(s, "GetQuad"), "yq", ext.num_quadratures)
        tret = s.native.ffi.new("sunrealtype *")
        with vectorized(s.native, s._resources.context, yq, "yq") as nv:
            s._native_get("GetQuad", tret, nv)
        return float(tret[0])

    @staticmethod
    def get_dky(s: Any, t: float, k: int, dky: np.ndarray) -> None:
        ext = _forward(s, "GetQuadDky")
        check_output_vector(dky, _name(s, "GetQuadDky"), "dky", ext.num_quadratures)
        with vectorized(s.native, s._resources.context, dky, "dky") as nv:
            s._native_get("GetQuadDky", float(t), int(k), nv)

    @staticmethod
    def get_num_rhs_evals(s: Any) -> int:
        _forward(s, "GetQuadNumRhsEvals")
        return int(s._get_scalar("GetQuadNumRhsEvals", "long"))

    @staticmethod
    def get_num_err_test_fails(s: Any) -> int:
        _forward(s, "GetQuadNumErrTestFails")
        return int(s._get_scalar("GetQuadNumErrTestFails", "long"))

    @staticmethod
    def get_err_weights(s: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
        ext = _forward(s, "GetQuadErrWeights")
        if out is None:
            out = np.zeros(ext.num_quadratures)
        check_output_vector(out, _name(s, "GetQuadErrWeights"), "out", ext.num_quadratures)
        with vectorized(s.native, s._resources.context, out, "out") as nv:
            s._native_get("GetQuadErrWeights", nv)
        return out

    @staticmethod
    def get_stats(s: Any) -> QuadStats:
        return QuadStats(Quadrature.get_num_rhs_evals(s), Quadrature.get_num_err_test_fails(s))


# ---- forward sensitivities ----

class Sensitivity:
    """Forward sensitivity analysis."""

    @staticmethod
    def init(s: Any, tol: Any, method: SensMethod, sens_params: Optional[SensParams],
             fs: Any, ys0: Sequence[np.ndarray],
             yps0: Optional[Sequence[np.ndarray]] = None) -> None:
        """
        Activate ``len(ys0)`` sensitivities.

        Args:
            tol: ``SStolerances`` (``atol`` scalar or one per sensitivity),
                ``SVtolerances`` (``atol`` one vector per sensitivity) or
                ``EEtolerances``.
            method: ``SIMULTANEOUS``, ``STAGGERED`` or ``STAGGERED1`` (CVODES).
            sens_params: optional :class:`SensParams`.
            fs: ``AllAtOnce(f)`` or, on CVODES, ``OneByOne(f)``.
            ys0: initial sensitivity vectors.
            yps0: initial sensitivity derivatives; required on IDAS,
                rejected on CVODES.

        Raises:
            InvalidArgumentError: bad shapes, or ``STAGGERED1`` with an
                all-at-once function; no native call was made.

        If setting the parameters or the tolerances fails after the native
        initialization, the sensitivities are switched off again and no
        sensitivity is registered on the session.
        """
        ext = _forward(s, "SensInit")
        function = _name(s, "SensInit")
        method = SensMethod(method)
        if not isinstance(fs, (AllAtOnce, OneByOne)):
            raise InvalidArgumentError(function, "fs must be AllAtOnce(...) or OneByOne(...)")
        if isinstance(fs, OneByOne) and _is_dae(s):
            raise InvalidArgumentError(function, "IDAS takes an all-at-once sensitivity residual")
        if isinstance(fs, AllAtOnce) and method == SensMethod.STAGGERED1:
            raise InvalidArgumentError(function, "STAGGERED1 needs a one-by-one sensitivity function")
        ys0 = list(ys0)
        ns = len(ys0)
        if ns < 1:
            raise InvalidArgumentError(function, "at least one sensitivity is required")
        ys0 = _input_arrays(function, "ys0", ys0, ns, s.neqs)
        yps0 = _sens_derivatives(s, function, yps0, ns)
        if sens_params is not None:
            _check_params(function, sens_params, ns)
        _check_sens_tolerances(function, tol, ns, s.neqs)

        ffi = s.native.ffi
        with _sens_vectors(s, ys0, yps0) as vectors:
            if isinstance(fs, AllAtOnce):
                fn = s._trampolines["sens_rhs"] if fs.f is not None else ffi.NULL
                s._native_set("SensInit", ns, int(method), fn, *vectors)
            else:
                fn = s._trampolines["sens_rhs1"] if fs.f is not None else ffi.NULL
                s._native_set("SensInit1", ns, int(method), fn, *vectors)
        ext.num_sensitivities = ns
        ext.one_by_one = isinstance(fs, OneByOne)
        if fs.f is not None:
            if ext.one_by_one:
                ext.sensrhsfn1 = fs.f
            else:
                ext.sensrhsfn = fs.f
        try:
            if sens_params is not None:
                Sensitivity.set_params(s, sens_params)
            Sensitivity.set_tolerances(s, tol)
        except BaseException:
            _drop_sensitivities(s, ext)
            raise

    @staticmethod
    def reinit(s: Any, method: SensMethod, ys0: Sequence[np.ndarray],
               yps0: Optional[Sequence[np.ndarray]] = None) -> None:
        ext = _forward(s, "SensReInit")
        function = _name(s, "SensReInit")
        method = SensMethod(method)
        if method == SensMethod.STAGGERED1 and not ext.one_by_one:
            raise InvalidArgumentError(function, "STAGGERED1 needs a one-by-one sensitivity function")
        ys0 = _input_arrays(function, "ys0", ys0, ext.num_sensitivities, s.neqs)
        yps0 = _sens_derivatives(s, function, yps0, ext.num_sensitivities)
        with _sens_vectors(s, ys0, yps0) as vectors:
            s._native_set("SensReInit", int(method), *vectors)

    @staticmethod
    def toggle_off(s: Any) -> None:
        """Stop computing sensitivities; ``reinit`` turns them back on."""
        _forward(s, "SensToggleOff")
        s._native_set("SensToggleOff")

    @staticmethod
    def set_params(s: Any, params: SensParams) -> None:
        ext = _forward(s, "SetSensParams")
        _check_params(_name(s, "SetSensParams"), params, ext.num_sensitivities)
        ffi = s.native.ffi
        p = ffi.NULL
        if params.pvals is not None:
            ext.senspvals = params.pvals
            p = ffi.from_buffer("sunrealtype[]", params.pvals, require_writable=True)
        pbar = ffi.NULL if params.pbar is None else ffi.new(
            "sunrealtype[]", [float(v) for v in params.pbar]
        )
        plist = ffi.NULL if params.plist is None else ffi.new(
            "int[]", [int(v) for v in params.plist]
        )
        s._native_set("SetSensParams", p, pbar, plist)

    @staticmethod
    def set_tolerances(s: Any, tol: Any) -> None:
        ext = _forward(s, "SensSStolerances")
        ns = ext.num_sensitivities
        _check_sens_tolerances(_name(s, "SensSStolerances"), tol, ns, s.neqs)
        ffi = s.native.ffi
        if isinstance(tol, EEtolerances):
            s._native_set("SensEEtolerances")
        elif isinstance(tol, SStolerances):
            atol = _scalars(_name(s, "SensSStolerances"), "atol", tol.atol, ns)
            s._native_set("SensSStolerances", float(tol.rtol), ffi.new("sunrealtype[]", atol.tolist()))
        else:
            atol = _input_arrays(_name(s, "SensSVtolerances"), "atol", tol.atol, ns, s.neqs)
            with vectorized_array(s.native, s._resources.context, atol, "atol") as ptr:
                s._native_set("SensSVtolerances", float(tol.rtol), ptr)

    @staticmethod
    def set_err_con(s: Any, errcon: bool) -> None:
        """Include the sensitivities in the local error test."""
        _forward(s, "SetSensErrCon")
        s._native_set("SetSensErrCon", int(bool(errcon)))

    @staticmethod
    def set_dq_method(s: Any, method: DQMethod, rhomax: float = 0.0) -> None:
        _forward(s, "SetSensDQMethod")
        s._native_set("SetSensDQMethod", int(DQMethod(method)), float(rhomax))

    @staticmethod
    def set_max_nonlin_iters(s: Any, maxcor: int) -> None:
        _forward(s, "SetSensMaxNonlinIters")
        s._native_set("SetSensMaxNonlinIters", int(maxcor))

    @staticmethod
    def num_sensitivities(s: Any) -> int:
        ext = s.extension
        return ext.num_sensitivities if isinstance(ext, ForwardExtension) else 0

    @staticmethod
    def get(s: Any, ys: Sequence[np.ndarray]) -> float:
        """Copy every sensitivity at the last output time into ``ys``; returns that time."""
        ext = _forward(s, "GetSens")
        ys = require_vectors(ys, _name(s, "GetSens"), "ys", ext.num_sensitivities, s.neqs)
        tret = s.native.ffi.new("sunrealtype *")
        with vectorized_array(s.native, s._resources.context, ys, "ys") as ptr:
            s._native_get("GetSens", tret, ptr)
        return float(tret[0])

    @staticmethod
    def get1(s: Any, i: int, ys_i: np.ndarray) -> float:
        ext = _forward(s, "GetSens1")
        function = _name(s, "GetSens1")
        i = _sens_index(function, ext, i)
        check_output_vector(ys_i, function, "ys_i", s.neqs)
        tret = s.native.ffi.new("sunrealtype *")
        with vectorized(s.native, s._resources.context, ys_i, "ys_i") as nv:
            s._native_get("GetSens1", tret, i, nv)
        return float(tret[0])

    @staticmethod
    def get_dky(s: Any, t: float, k: int, dkys: Sequence[np.ndarray]) -> None:
        ext = _forward(s, "GetSensDky")
        dkys = require_vectors(dkys, _name(s, "GetSensDky"), "dkys", ext.num_sensitivities, s.neqs)
        with vectorized_array(s.native, s._resources.context, dkys, "dkys") as ptr:
            s._native_get("GetSensDky", float(t), int(k), ptr)

    @staticmethod
    def get_dky1(s: Any, t: float, k: int, i: int, dky: np.ndarray) -> None:
        ext = _forward(s, "GetSensDky1")
        function = _name(s, "GetSensDky1")
        i = _sens_index(function, ext, i)
        check_output_vector(dky, function, "dky", s.neqs)
        with vectorized(s.native, s._resources.context, dky, "dky") as nv:
            s._native_get("GetSensDky1", float(t), int(k), i, nv)

    @staticmethod
    def get_err_weights(s: Any, esweight: Sequence[np.ndarray]) -> None:
        ext = _forward(s, "GetSensErrWeights")
        esweight = require_vectors(
            esweight, _name(s, "GetSensErrWeights"), "esweight", ext.num_sensitivities, s.neqs
        )
        with vectorized_array(s.native, s._resources.context, esweight, "esweight") as ptr:
            s._native_get("GetSensErrWeights", ptr)

    @staticmethod
    def get_consistent_ic(s: Any, ys: Sequence[np.ndarray], yps: Sequence[np.ndarray]) -> None:
        """Initial sensitivities corrected by the last ``calc_ic_*`` call (IDAS only)."""
        ext = _forward(s, "GetSensConsistentIC")
        function = _name(s, "GetSensConsistentIC")
        if not _is_dae(s):
            raise InvalidArgumentError(function, "consistent initial sensitivities need an IDAS session")
        ns = ext.num_sensitivities
        ys = require_vectors(ys, function, "ys", ns, s.neqs)
        yps = require_vectors(yps, function, "yps", ns, s.neqs)
        with _sens_vectors(s, ys, yps) as vectors:
            s._native_get("GetSensConsistentIC", *vectors)

    @staticmethod
    def get_num_rhs_evals(s: Any) -> int:
        """Calls of the sensitivity function (residual on IDAS)."""
        _forward(s, "GetSensNumRhsEvals")
        name = "GetSensNumResEvals" if _is_dae(s) else "GetSensNumRhsEvals"
        return int(s._get_scalar(name, "long"))

    @staticmethod
    def get_num_rhs_evals_sens(s: Any) -> int:
        """Calls of the state function made by the difference quotients."""
        _forward(s, "GetNumRhsEvalsSens")
        name = "GetNumResEvalsSens" if _is_dae(s) else "GetNumRhsEvalsSens"
        return int(s._get_scalar(name, "long"))

    @staticmethod
    def get_num_err_test_fails(s: Any) -> int:
        _forward(s, "GetSensNumErrTestFails")
        return int(s._get_scalar("GetSensNumErrTestFails", "long"))

    @staticmethod
    def get_num_lin_solv_setups(s: Any) -> int:
        _forward(s, "GetSensNumLinSolvSetups")
        return int(s._get_scalar("GetSensNumLinSolvSetups", "long"))

    @staticmethod
    def get_num_nonlin_solv_iters(s: Any) -> int:
        _forward(s, "GetSensNumNonlinSolvIters")
        return int(s._get_scalar("GetSensNumNonlinSolvIters", "long"))

    @staticmethod
    def get_num_nonlin_solv_conv_fails(s: Any) -> int:
        _forward(s, "GetSensNumNonlinSolvConvFails")
        return int(s._get_scalar("GetSensNumNonlinSolvConvFails", "long"))

    @staticmethod
    def get_stats(s: Any) -> SensStats:
        return SensStats(
            Sensitivity.get_num_rhs_evals(s),
            Sensitivity.get_num_rhs_evals_sens(s),
            Sensitivity.get_num_err_test_fails(s),
            Sensitivity.get_num_lin_solv_setups(s),
            Sensitivity.get_num_nonlin_solv_iters(s),
            Sensitivity.get_num_nonlin_solv_conv_fails(s),
        )


def _drop_sensitivities(s: Any, ext: ForwardExtension) -> None:
    """Undo a half-finished initialization; the native side is switched off last."""
    ext.num_sensitivities = 0
    ext.one_by_one = False
    ext.senspvals = None
    ext.sensrhsfn = not_implemented("sensitivity rhs")
    ext.sensrhsfn1 = not_implemented("sensitivity rhs1")
    s._native_set("SensToggleOff")


def _check_params(function: str, params: SensParams, ns: int) -> None:
    if params.pvals is not None:
        require_vector(params.pvals, function, "pvals")
    if params.pbar is not None:
        if len(params.pbar) != ns:
            raise InvalidArgumentError(function, f"pbar must hold {ns} values; got {len(params.pbar)}")
        if any(float(v) == 0.0 for v in params.pbar):
            raise InvalidArgumentError(function, "pbar entries must be non-zero")
    if params.plist is not None:
        if len(params.plist) != ns:
            raise InvalidArgumentError(function, f"plist must hold {ns} values; got {len(params.plist)}")
        if params.pvals is None:
            raise InvalidArgumentError(function, "plist requires pvals")
        np_ = np.size(params.pvals)
        if any(not 0 <= int(v) < np_ for v in params.plist):
            raise InvalidArgumentError(function, f"plist entries must lie in [0, {np_})")


def _check_sens_tolerances(function: str, tol: Any, ns: int, neqs: int) -> None:
    if isinstance(tol, EEtolerances):
        return
    if isinstance(tol, SStolerances):
        if tol.rtol < 0:
            raise InvalidArgumentError(function, "rtol must be non-negative")
        _scalars(function, "atol", tol.atol, ns)
    elif isinstance(tol, SVtolerances):
        if tol.rtol < 0:
            raise InvalidArgumentError(function, "rtol must be non-negative")
        atol = _input_arrays(function, "atol", tol.atol, ns, neqs)
        if any(np.any(a < 0) for a in atol):
            raise InvalidArgumentError(function, "atol must be non-negative")
    else:
        raise InvalidArgumentError(function, f"unknown tolerance variant {tol!r}")


# ---- quadrature sensitivities ----

class SensitivityQuadrature:
    """Sensitivities of the quadrature variables."""

    @staticmethod
    def _counts(s: Any, name: str):
        ext = _forward(s, name, cvodes_only=True)
        if ext.num_sensitivities == 0 or ext.num_quadratures == 0:
            raise InvalidArgumentError(
                _name(s, name), "quadratures and sensitivities must be initialized first"
            )
        return ext, ext.num_sensitivities, ext.num_quadratures

    @staticmethod
    def init(s: Any, fqs: Optional[Callable], yqs0: Sequence[np.ndarray]) -> None:
        """
        ``fqs(t, y, ys, yqdot, yqsdot, tmp, tmpq)`` fills every ``yqsdot[i]``;
        None selects difference quotients.
        """
        ext, ns, nq = SensitivityQuadrature._counts(s, "QuadSensInit")
        yqs0 = _input_arrays("CVodeQuadSensInit", "yqs0", yqs0, ns, nq)
        fn = s._trampolines["quad_sens_rhs"] if fqs is not None else s.native.ffi.NULL
        with vectorized_array(s.native, s._resources.context, yqs0, "yqs0") as ptr:
            s._native_set("QuadSensInit", fn, ptr)
        if fqs is not None:
            ext.quadsensrhsfn = fqs

    @staticmethod
    def reinit(s: Any, yqs0: Sequence[np.ndarray]) -> None:
        _, ns, nq = SensitivityQuadrature._counts(s, "QuadSensReInit")
        yqs0 = _input_arrays("CVodeQuadSensReInit", "yqs0", yqs0, ns, nq)
        with vectorized_array(s.native, s._resources.context, yqs0, "yqs0") as ptr:
            s._native_set("QuadSensReInit", ptr)

    @staticmethod
    def set_tolerances(s: Any, tol: Any) -> None:
        """``NoStepSizeControl``, ``SStolerances``, ``SVtolerances`` or ``EEtolerances``."""
        _, ns, nq = SensitivityQuadrature._counts(s, "QuadSensSStolerances")
        if isinstance(tol, NoStepSizeControl):
            s._native_set("SetQuadSensErrCon", 0)
            return
        ffi = s.native.ffi
        if isinstance(tol, EEtolerances):
            s._native_set("QuadSensEEtolerances")
        elif isinstance(tol, SStolerances):
            if tol.rtol < 0:
                raise InvalidArgumentError("CVodeQuadSensSStolerances", "rtol must be non-negative")
            atol = _scalars("CVodeQuadSensSStolerances", "atol", tol.atol, ns)
            s._native_set(
                "QuadSensSStolerances", float(tol.rtol), ffi.new("sunrealtype[]", atol.tolist())
            )
        elif isinstance(tol, SVtolerances):
            if tol.rtol < 0:
                raise InvalidArgumentError("CVodeQuadSensSVtolerances", "rtol must be non-negative")
            atol = _input_arrays("CVodeQuadSensSVtolerances", "atol", tol.atol, ns, nq)
            with vectorized_array(s.native, s._resources.context, atol, "atol") as ptr:
                s._native_set("QuadSensSVtolerances", float(tol.rtol), ptr)
        else:
            raise InvalidArgumentError("CVodeQuadSensSStolerances", f"unknown tolerance variant {tol!r}")
        s._native_set("SetQuadSensErrCon", 1)

    @staticmethod
    def get(s: Any, yqs: Sequence[np.ndarray]) -> float:
        _, ns, nq = SensitivityQuadrature._counts(s, "GetQuadSens")
        yqs = require_vectors(yqs, "CVodeGetQuadSens", "yqs", ns, nq)
        tret = s.native.ffi.new("sunrealtype *")
        with vectorized_array(s.native, s._resources.context, yqs, "yqs") as ptr:
            s._native_get("GetQuadSens", tret, ptr)
        return float(tret[0])

    @staticmethod
    def get_dky(s: Any, t: float, k: int, dkyqs: Sequence[np.ndarray]) -> None:
        _, ns, nq = SensitivityQuadrature._counts(s, "GetQuadSensDky")
        dkyqs = require_vectors(dkyqs, "CVodeGetQuadSensDky", "dkyqs", ns, nq)
        with vectorized_array(s.native, s._resources.context, dkyqs, "dkyqs") as ptr:
            s._native_get("GetQuadSensDky", float(t), int(k), ptr)
