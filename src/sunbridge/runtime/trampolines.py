# src/sunbridge/runtime/trampolines.py
"""
Process-wide native callbacks.

Every callback kind has exactly one ``ffi.callback`` created at import
time. Native code calls it with the session's user-data pointer; the
trampoline resolves the session, wraps the vector arguments, calls the
closure currently stored in the session and translates the outcome:

* normal return -> ``0``
* :class:`~sunbridge.errors.RecoverableFailure` -> ``1`` (solver retries)
* any other exception -> ``-1``; the exception is kept on the session and
  re-raised once the native call returns.

Views handed to closures are revoked before the trampoline returns.
"""
from __future__ import annotations
import logging
from typing import Any, Callable

import numpy as np

from sunbridge.errors import (
    CallbackNotSetError, NonPositiveEwt, RecoverableFailure, RegistryError,
)
from sunbridge.native.ffi import ffi
from sunbridge.native.status import RECOVERABLE, SUCCESS, UNRECOVERABLE
from sunbridge.runtime import guards, registry
from sunbridge.runtime.extension import BackwardExtension, ForwardExtension
from sunbridge.runtime.matrix import relinquish_matrix, wrap_band, wrap_dense
from sunbridge.runtime.nvector import borrow, relinquish_all, wrap_array, wrap_pointer
from sunbridge.runtime.types import (
    BackwardJacobianArgs, BandCallbacks, DaeJacobianArgs, DenseCallbacks, ErrorDetails,
    JacobianArgs, PrecSolveArgs, SpilsCallbacks,
)

__all__ = [
    # CVODE
    "cv_rhs", "cv_roots", "errw", "errh", "cv_jac", "cv_prec_setup", "cv_prec_solve",
    "cv_jac_times",
    # CVODES forward
    "cv_quad_rhs", "cv_sens_rhs", "cv_sens_rhs1", "cv_quad_sens_rhs",
    # preconditioner modules
    "cv_bbd_local", "cv_bbd_comm", "ida_bbd_local", "ida_bbd_comm",
    # CVODES backward
    "cv_brhs", "cv_brhs_sens", "cv_bquad_rhs", "cv_bquad_rhs_sens",
    "cv_jac_b", "cv_prec_setup_b", "cv_prec_solve_b", "cv_jac_times_b",
    # IDA
    "ida_res", "ida_roots", "ida_jac", "ida_prec_setup", "ida_prec_solve", "ida_jac_times",
    # IDAS forward
    "ida_quad_rhs", "ida_sens_res",
]

log = logging.getLogger(__name__)


def _onerror(exc_type, exc_value, tb):
    log.critical("exception escaped a native callback", exc_info=(exc_type, exc_value, tb))
    return UNRECOVERABLE


def _dispatch(user_data: Any, body: Callable[..., Any], *args: Any) -> int:
    try:
        session = registry.resolve(user_data)
    except RegistryError as e:
        log.critical("native callback without a live session: %s", e)
        return UNRECOVERABLE
    try:
        rc = body(session, *args)
    except RecoverableFailure:
        return RECOVERABLE
    except BaseException as exc:
        session.store_pending(exc)
        return UNRECOVERABLE
    return SUCCESS if rc is None else rc


def _guard_finite(session: Any, out: np.ndarray, kind: str) -> None:
    if session.check_finite and not guards.allfinite1d(np.asarray(out)):
        raise RecoverableFailure(f"non-finite values in {kind} output")


def _forward_ext(session: Any) -> ForwardExtension:
    ext = session.extension
    if not isinstance(ext, ForwardExtension):
        raise CallbackNotSetError("forward extension")
    return ext


def _backward_ext(session: Any) -> BackwardExtension:
    ext = session.extension
    if not isinstance(ext, BackwardExtension):
        raise CallbackNotSetError("backward extension")
    return ext


def _wrap_jacobian(session: Any, J: Any, kind: str):
    cbs = session.ls_callbacks
    if isinstance(cbs, DenseCallbacks) and cbs.jac is not None:
        return cbs.jac, wrap_dense(J)
    if isinstance(cbs, BandCallbacks) and cbs.jac is not None:
        return cbs.jac, wrap_band(J)
    raise CallbackNotSetError(kind)


def _spils(session: Any, field: str, kind: str) -> Callable:
    cbs = session.ls_callbacks
    fn = getattr(cbs, field, None) if isinstance(cbs, SpilsCallbacks) else None
    if fn is None:
        raise CallbackNotSetError(kind)
    return fn


def _bbd(session: Any, field: str) -> Callable:
    cbs = session.ls_callbacks
    module = cbs.prec_module if isinstance(cbs, SpilsCallbacks) else None
    fn = getattr(module, field, None)
    if fn is None:
        raise CallbackNotSetError("bbd " + field)
    return fn


def _text(p: Any) -> str:
    return ffi.string(p).decode(errors="replace") if p != ffi.NULL else ""


# ---- Shared ------------------------------------------------------------------------

def _errw_body(session, y, ewt):
    with borrow(y, ewt) as (yv, ewtv):
        try:
            session.callbacks["errw"](yv, ewtv)
        except NonPositiveEwt:
            return UNRECOVERABLE
    return None


@ffi.callback("CVEwtFn", error=UNRECOVERABLE, onerror=_onerror)
def errw(y, ewt, user_data):
    return _dispatch(user_data, _errw_body, y, ewt)


def _errh_body(session, code, module, function, msg):
    details = ErrorDetails(int(code), _text(module), _text(function), _text(msg))
    session.callbacks["errh"](details)


@ffi.callback("CVErrHandlerFn", onerror=_onerror)
def errh(error_code, module, function, msg, user_data):
    _dispatch(user_data, _errh_body, error_code, module, function, msg)


# ---- CVODE -------------------------------------------------------------------------

def _cv_rhs_body(session, t, y, ydot):
    with borrow(y, ydot) as (yv, ydotv):
        session.callbacks["rhsfn"](t, yv, ydotv)
        _guard_finite(session, ydotv, "rhs")


@ffi.callback("CVRhsFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_rhs(t, y, ydot, user_data):
    return _dispatch(user_data, _cv_rhs_body, t, y, ydot)


def _cv_roots_body(session, t, y, gout):
    goutv = wrap_pointer(gout, session.nroots)
    try:
        with borrow(y) as (yv,):
            session.callbacks["rootsfn"](t, yv, goutv)
    finally:
        relinquish_all([goutv])


@ffi.callback("CVRootFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_roots(t, y, gout, user_data):
    return _dispatch(user_data, _cv_roots_body, t, y, gout)


def _cv_jac_body(session, t, y, fy, J, tmp1, tmp2, tmp3):
    jac, Jv = _wrap_jacobian(session, J, "jac")
    try:
        with borrow(y, fy, tmp1, tmp2, tmp3) as (yv, fyv, t1, t2, t3):
            jac(JacobianArgs(t, yv, fyv, (t1, t2, t3)), Jv)
    finally:
        relinquish_matrix(Jv)


@ffi.callback("CVLsJacFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_jac(t, y, fy, J, user_data, tmp1, tmp2, tmp3):
    return _dispatch(user_data, _cv_jac_body, t, y, fy, J, tmp1, tmp2, tmp3)


def _cv_prec_setup_body(session, t, y, fy, jok, jcur, gamma):
    setup = _spils(session, "prec_setup", "prec_setup")
    with borrow(y, fy) as (yv, fyv):
        try:
            result = setup(JacobianArgs(t, yv, fyv), bool(jok), gamma)
        except RecoverableFailure as e:
            jcur[0] = int(bool(e.jac_current))
            raise
        jcur[0] = int(bool(result))


@ffi.callback("CVLsPrecSetupFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_prec_setup(t, y, fy, jok, jcurPtr, gamma, user_data):
    return _dispatch(user_data, _cv_prec_setup_body, t, y, fy, jok, jcurPtr, gamma)


def _cv_prec_solve_body(session, t, y, fy, r, z, gamma, delta, lr):
    solve = _spils(session, "prec_solve", "prec_solve")
    with borrow(y, fy, r, z) as (yv, fyv, rv, zv):
        solve(JacobianArgs(t, yv, fyv), PrecSolveArgs(rv, gamma, delta, lr == 1), zv)


@ffi.callback("CVLsPrecSolveFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_prec_solve(t, y, fy, r, z, gamma, delta, lr, user_data):
    return _dispatch(user_data, _cv_prec_solve_body, t, y, fy, r, z, gamma, delta, lr)


def _cv_jac_times_body(session, v, Jv, t, y, fy, tmp):
    jac_times = _spils(session, "jac_times", "jac_times")
    with borrow(v, Jv, y, fy, tmp) as (vv, Jvv, yv, fyv, tmpv):
        jac_times(JacobianArgs(t, yv, fyv, (tmpv,)), vv, Jvv)


@ffi.callback("CVLsJacTimesVecFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_jac_times(v, Jv, t, y, fy, user_data, tmp):
    return _dispatch(user_data, _cv_jac_times_body, v, Jv, t, y, fy, tmp)


# ---- CVODES forward extension ------------------------------------------------------

def _cv_quad_rhs_body(session, t, y, yqdot):
    ext = _forward_ext(session)
    with borrow(y, yqdot) as (yv, yqdotv):
        ext.quadrhsfn(t, yv, yqdotv)


@ffi.callback("CVQuadRhsFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_quad_rhs(t, y, yQdot, user_data):
    return _dispatch(user_data, _cv_quad_rhs_body, t, y, yQdot)


def _cv_sens_rhs_body(session, ns, t, y, ydot, yS, ySdot, tmp1, tmp2):
    ext = _forward_ext(session)
    ys = wrap_array(yS, ns, ext.sensarray1)
    ysdot = wrap_array(ySdot, ns, ext.sensarray2)
    try:
        with borrow(y, ydot, tmp1, tmp2) as (yv, ydotv, t1, t2):
            ext.sensrhsfn(t, yv, ydotv, ys, ysdot, t1, t2)
    finally:
        relinquish_all(ys)
        relinquish_all(ysdot)


@ffi.callback("CVSensRhsFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_sens_rhs(Ns, t, y, ydot, yS, ySdot, user_data, tmp1, tmp2):
    return _dispatch(user_data, _cv_sens_rhs_body, Ns, t, y, ydot, yS, ySdot, tmp1, tmp2)


def _cv_sens_rhs1_body(session, t, y, ydot, iS, yS, ySdot, tmp1, tmp2):
    ext = _forward_ext(session)
    with borrow(y, ydot, yS, ySdot, tmp1, tmp2) as (yv, ydotv, ysv, ysdotv, t1, t2):
        ext.sensrhsfn1(t, yv, ydotv, int(iS), ysv, ysdotv, t1, t2)


@ffi.callback("CVSensRhs1Fn", error=UNRECOVERABLE, onerror=_onerror)
def cv_sens_rhs1(Ns, t, y, ydot, iS, yS, ySdot, user_data, tmp1, tmp2):
    return _dispatch(user_data, _cv_sens_rhs1_body, t, y, ydot, iS, yS, ySdot, tmp1, tmp2)


def _cv_quad_sens_rhs_body(session, ns, t, y, yS, yQdot, yQSdot, tmp, tmpQ):
    ext = _forward_ext(session)
    ys = wrap_array(yS, ns, ext.sensarray1)
    yqsdot = wrap_array(yQSdot, ns, ext.sensarray2)
    try:
        with borrow(y, yQdot, tmp, tmpQ) as (yv, yqdotv, tmpv, tmpqv):
            ext.quadsensrhsfn(t, yv, ys, yqdotv, yqsdot, tmpv, tmpqv)
    finally:
        relinquish_all(ys)
        relinquish_all(yqsdot)


@ffi.callback("CVQuadSensRhsFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_quad_sens_rhs(Ns, t, y, yS, yQdot, yQSdot, user_data, tmp, tmpQ):
    return _dispatch(user_data, _cv_quad_sens_rhs_body, Ns, t, y, yS, yQdot, yQSdot, tmp, tmpQ)


# ---- CVODES backward problems ------------------------------------------------------

def _cv_brhs_body(session, t, y, yB, yBdot):
    ext = _backward_ext(session)
    with borrow(y, yB, yBdot) as (yv, ybv, ybdotv):
        ext.brhsfn(t, yv, ybv, ybdotv)
        _guard_finite(session, ybdotv, "backward rhs")


@ffi.callback("CVRhsFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_brhs(t, y, yB, yBdot, user_dataB):
    return _dispatch(user_dataB, _cv_brhs_body, t, y, yB, yBdot)


def _cv_brhs_sens_body(session, t, y, yS, yB, yBdot):
    ext = _backward_ext(session)
    ys = wrap_array(yS, ext.num_sensitivities, ext.bsensarray)
    try:
        with borrow(y, yB, yBdot) as (yv, ybv, ybdotv):
            ext.brhsfn1(t, yv, ys, ybv, ybdotv)
            _guard_finite(session, ybdotv, "backward rhs")
    finally:
        relinquish_all(ys)


@ffi.callback("CVRhsFnBS", error=UNRECOVERABLE, onerror=_onerror)
def cv_brhs_sens(t, y, yS, yB, yBdot, user_dataB):
    return _dispatch(user_dataB, _cv_brhs_sens_body, t, y, yS, yB, yBdot)


def _cv_bquad_rhs_body(session, t, y, yB, qBdot):
    ext = _backward_ext(session)
    with borrow(y, yB, qBdot) as (yv, ybv, qbdotv):
        ext.bquadrhsfn(t, yv, ybv, qbdotv)


@ffi.callback("CVQuadRhsFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_bquad_rhs(t, y, yB, qBdot, user_dataB):
    return _dispatch(user_dataB, _cv_bquad_rhs_body, t, y, yB, qBdot)


def _cv_bquad_rhs_sens_body(session, t, y, yS, yB, qBdot):
    ext = _backward_ext(session)
    ys = wrap_array(yS, ext.num_sensitivities, ext.bsensarray)
    try:
        with borrow(y, yB, qBdot) as (yv, ybv, qbdotv):
            ext.bquadrhsfn1(t, yv, ys, ybv, qbdotv)
    finally:
        relinquish_all(ys)


@ffi.callback("CVQuadRhsFnBS", error=UNRECOVERABLE, onerror=_onerror)
def cv_bquad_rhs_sens(t, y, yS, yB, qBdot, user_dataB):
    return _dispatch(user_dataB, _cv_bquad_rhs_sens_body, t, y, yS, yB, qBdot)


def _cv_jac_b_body(session, t, y, yB, fyB, JB, tmp1, tmp2, tmp3):
    jac, Jv = _wrap_jacobian(session, JB, "backward jac")
    try:
        with borrow(y, yB, fyB, tmp1, tmp2, tmp3) as (yv, ybv, fybv, t1, t2, t3):
            jac(BackwardJacobianArgs(t, yv, ybv, fybv, (t1, t2, t3)), Jv)
    finally:
        relinquish_matrix(Jv)


@ffi.callback("CVLsJacFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_jac_b(t, y, yB, fyB, JB, user_dataB, tmp1B, tmp2B, tmp3B):
    return _dispatch(user_dataB, _cv_jac_b_body, t, y, yB, fyB, JB, tmp1B, tmp2B, tmp3B)


def _cv_prec_setup_b_body(session, t, y, yB, fyB, jok, jcur, gamma):
    setup = _spils(session, "prec_setup", "backward prec_setup")
    with borrow(y, yB, fyB) as (yv, ybv, fybv):
        try:
            result = setup(BackwardJacobianArgs(t, yv, ybv, fybv), bool(jok), gamma)
        except RecoverableFailure as e:
            jcur[0] = int(bool(e.jac_current))
            raise
        jcur[0] = int(bool(result))


@ffi.callback("CVLsPrecSetupFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_prec_setup_b(t, y, yB, fyB, jokB, jcurPtrB, gammaB, user_dataB):
    return _dispatch(user_dataB, _cv_prec_setup_b_body, t, y, yB, fyB, jokB, jcurPtrB, gammaB)


def _cv_prec_solve_b_body(session, t, y, yB, fyB, rB, zB, gamma, delta, lr):
    solve = _spils(session, "prec_solve", "backward prec_solve")
    with borrow(y, yB, fyB, rB, zB) as (yv, ybv, fybv, rbv, zbv):
        solve(BackwardJacobianArgs(t, yv, ybv, fybv), PrecSolveArgs(rbv, gamma, delta, lr == 1), zbv)


@ffi.callback("CVLsPrecSolveFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_prec_solve_b(t, y, yB, fyB, rB, zB, gammaB, deltaB, lrB, user_dataB):
    return _dispatch(
        user_dataB, _cv_prec_solve_b_body, t, y, yB, fyB, rB, zB, gammaB, deltaB, lrB
    )


def _cv_jac_times_b_body(session, vB, JvB, t, y, yB, fyB, tmpB):
    jac_times = _spils(session, "jac_times", "backward jac_times")
    with borrow(vB, JvB, y, yB, fyB, tmpB) as (vv, jvv, yv, ybv, fybv, tmpv):
        jac_times(BackwardJacobianArgs(t, yv, ybv, fybv, (tmpv,)), vv, jvv)


@ffi.callback("CVLsJacTimesVecFnB", error=UNRECOVERABLE, onerror=_onerror)
def cv_jac_times_b(vB, JvB, t, y, yB, fyB, user_dataB, tmpB):
    return _dispatch(user_dataB, _cv_jac_times_b_body, vB, JvB, t, y, yB, fyB, tmpB)


# ---- IDA ---------------------------------------------------------------------------

def _ida_res_body(session, t, yy, yp, rr):
    with borrow(yy, yp, rr) as (yv, ypv, rv):
        session.callbacks["resfn"](t, yv, ypv, rv)
        _guard_finite(session, rv, "residual")


@ffi.callback("IDAResFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_res(tt, yy, yp, rr, user_data):
    return _dispatch(user_data, _ida_res_body, tt, yy, yp, rr)


def _ida_roots_body(session, t, y, yp, gout):
    goutv = wrap_pointer(gout, session.nroots)
    try:
        with borrow(y, yp) as (yv, ypv):
            session.callbacks["rootsfn"](t, yv, ypv, goutv)
    finally:
        relinquish_all([goutv])


@ffi.callback("IDARootFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_roots(t, y, yp, gout, user_data):
    return _dispatch(user_data, _ida_roots_body, t, y, yp, gout)


def _ida_jac_body(session, t, cj, y, yp, r, J, tmp1, tmp2, tmp3):
    jac, Jv = _wrap_jacobian(session, J, "jac")
    try:
        with borrow(y, yp, r, tmp1, tmp2, tmp3) as (yv, ypv, rv, t1, t2, t3):
            jac(DaeJacobianArgs(t, cj, yv, ypv, rv, (t1, t2, t3)), Jv)
    finally:
        relinquish_matrix(Jv)


@ffi.callback("IDALsJacFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_jac(t, c_j, y, yp, r, J, user_data, tmp1, tmp2, tmp3):
    return _dispatch(user_data, _ida_jac_body, t, c_j, y, yp, r, J, tmp1, tmp2, tmp3)


def _ida_prec_setup_body(session, t, yy, yp, rr, cj):
    setup = _spils(session, "prec_setup", "prec_setup")
    with borrow(yy, yp, rr) as (yv, ypv, rv):
        setup(DaeJacobianArgs(t, cj, yv, ypv, rv))


@ffi.callback("IDALsPrecSetupFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_prec_setup(tt, yy, yp, rr, c_j, user_data):
    return _dispatch(user_data, _ida_prec_setup_body, tt, yy, yp, rr, c_j)


def _ida_prec_solve_body(session, t, yy, yp, rr, rvec, zvec, cj, delta):
    solve = _spils(session, "prec_solve", "prec_solve")
    with borrow(yy, yp, rr, rvec, zvec) as (yv, ypv, rv, rvecv, zvecv):
        solve(DaeJacobianArgs(t, cj, yv, ypv, rv), rvecv, zvecv, delta)


@ffi.callback("IDALsPrecSolveFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_prec_solve(tt, yy, yp, rr, rvec, zvec, c_j, delta, user_data):
    return _dispatch(user_data, _ida_prec_solve_body, tt, yy, yp, rr, rvec, zvec, c_j, delta)


def _ida_jac_times_body(session, t, yy, yp, rr, v, Jv, cj, tmp1, tmp2):
    jac_times = _spils(session, "jac_times", "jac_times")
    with borrow(yy, yp, rr, v, Jv, tmp1, tmp2) as (yv, ypv, rv, vv, jvv, t1, t2):
        jac_times(DaeJacobianArgs(t, cj, yv, ypv, rv, (t1, t2)), vv, jvv)


@ffi.callback("IDALsJacTimesVecFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_jac_times(tt, yy, yp, rr, v, Jv, c_j, user_data, tmp1, tmp2):
    return _dispatch(user_data, _ida_jac_times_body, tt, yy, yp, rr, v, Jv, c_j, tmp1, tmp2)


# ---- IDAS forward extension --------------------------------------------------------

def _ida_quad_rhs_body(session, t, yy, yp, rrQ):
    ext = _forward_ext(session)
    with borrow(yy, yp, rrQ) as (yv, ypv, rqv):
        ext.quadrhsfn(t, yv, ypv, rqv)


@ffi.callback("IDAQuadRhsFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_quad_rhs(tt, yy, yp, rrQ, user_data):
    return _dispatch(user_data, _ida_quad_rhs_body, tt, yy, yp, rrQ)


def _ida_sens_res_body(session, ns, t, yy, yp, rr, yyS, ypS, rrS, tmp1, tmp2, tmp3):
    ext = _forward_ext(session)
    ys = wrap_array(yyS, ns, ext.sensarray1)
    yps = wrap_array(ypS, ns, ext.sensarray2)
    rs = wrap_array(rrS, ns, ext.sensarray3)
    try:
        with borrow(yy, yp, rr, tmp1, tmp2, tmp3) as (yv, ypv, rv, t1, t2, t3):
            ext.sensrhsfn(t, yv, ypv, rv, ys, yps, rs, t1, t2, t3)
    finally:
        relinquish_all(ys)
        relinquish_all(yps)
        relinquish_all(rs)


@ffi.callback("IDASensResFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_sens_res(Ns, t, yy, yp, resval, yyS, ypS, resvalS, user_data, tmp1, tmp2, tmp3):
    return _dispatch(
        user_data, _ida_sens_res_body, Ns, t, yy, yp, resval, yyS, ypS, resvalS, tmp1, tmp2, tmp3
    )


# ---- Band-block-diagonal preconditioner --------------------------------------------
#
# The local function approximates the right-hand side (CVODE) or residual
# (IDA) on this process; the communication function runs first and may
# stash whatever the local function needs.

def _cv_bbd_local_body(session, t, y, g):
    local = _bbd(session, "local")
    with borrow(y, g) as (yv, gv):
        local(t, yv, gv)


@ffi.callback("CVLocalFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_bbd_local(Nlocal, t, y, g, user_data):
    return _dispatch(user_data, _cv_bbd_local_body, t, y, g)


def _cv_bbd_comm_body(session, t, y):
    comm = _bbd(session, "comm")
    with borrow(y) as (yv,):
        comm(t, yv)


@ffi.callback("CVCommFn", error=UNRECOVERABLE, onerror=_onerror)
def cv_bbd_comm(Nlocal, t, y, user_data):
    return _dispatch(user_data, _cv_bbd_comm_body, t, y)


def _ida_bbd_local_body(session, t, yy, yp, gval):
    local = _bbd(session, "local")
    with borrow(yy, yp, gval) as (yv, ypv, gv):
        local(t, yv, ypv, gv)


@ffi.callback("IDABBDLocalFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_bbd_local(Nlocal, tt, yy, yp, gval, user_data):
    return _dispatch(user_data, _ida_bbd_local_body, tt, yy, yp, gval)


def _ida_bbd_comm_body(session, t, yy, yp):
    comm = _bbd(session, "comm")
    with borrow(yy, yp) as (yv, ypv):
        comm(t, yv, ypv)


@ffi.callback("IDABBDCommFn", error=UNRECOVERABLE, onerror=_onerror)
def ida_bbd_comm(Nlocal, tt, yy, yp, user_data):
    return _dispatch(user_data, _ida_bbd_comm_body, tt, yy, yp)
