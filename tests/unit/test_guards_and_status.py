# tests/unit/test_guards_and_status.py
from __future__ import annotations
import numpy as np
import pytest

from sunbridge import errors
from sunbridge.native.status import (
    CVODE_ERRORS, IDA_ERRORS, CallbackStatus, CvStatus, IdaStatus, error_for, raise_for,
)
from sunbridge.runtime import guards


# ---- finite guard ------------------------------------------------------------

def test_guard_pure_python():
    guards.configure_allfinite_guard(False)
    assert not guards.guard_is_jitted()
    assert guards.allfinite1d(np.array([1.0, 2.0])) is True
    assert guards.allfinite1d(np.array([1.0, np.nan])) is False
    assert guards.allfinite1d(np.array([-np.inf])) is False
    assert guards.allfinite1d(np.empty(0)) is True


def test_guard_with_numba():
    pytest.importorskip("numba")
    try:
        guards.configure_allfinite_guard(True)
        assert guards.guard_is_jitted()
        assert guards.allfinite1d(np.array([1.0, 2.0]))
        assert not guards.allfinite1d(np.array([np.inf, 2.0]))
    finally:
        guards.configure_allfinite_guard(False)


def test_guard_without_numba_warns(monkeypatch):
    monkeypatch.setattr(guards, "_NUMBA_OK", False)
    monkeypatch.setattr(guards, "njit", None)
    with pytest.warns(RuntimeWarning, match="Numba not found"):
        guards.configure_allfinite_guard(True)
    assert not guards.guard_is_jitted()


# ---- status mapping ----------------------------------------------------------

def test_callback_status_values():
    assert [int(s) for s in CallbackStatus] == [0, 1, -1]


@pytest.mark.parametrize(
    "code, cls",
    [
        (CvStatus.TOO_MUCH_WORK, errors.TooMuchWork),
        (CvStatus.ILL_INPUT, errors.IllInput),
        (CvStatus.RHSFUNC_FAIL, errors.RhsFuncFailure),
        (CvStatus.BAD_IS, errors.BadSensIdentifier),
        (CvStatus.NO_BCK, errors.NoBackwardProblem),
    ],
)
def test_cvode_codes(code, cls):
    exc = error_for(CVODE_ERRORS, "CVode", code)
    assert type(exc) is cls
    assert exc.code == int(code)
    assert exc.function == "CVode"


def test_ida_codes_differ_from_cvode():
    # -9 is a repeated residual failure in IDA but the first rhs failure in CVODE
    assert type(error_for(IDA_ERRORS, "IDASolve", -9)) is errors.RepeatedResFuncFailure
    assert type(error_for(CVODE_ERRORS, "CVode", -9)) is errors.FirstRhsFuncFailure
    assert type(error_for(IDA_ERRORS, "IDASolve", IdaStatus.BAD_EWT)) is errors.BadErrorWeights


def test_unknown_code():
    exc = error_for(CVODE_ERRORS, "CVode", -999)
    assert isinstance(exc, errors.UnknownStatusError)
    assert "-999" in str(exc)


def test_raise_for_passes_benign_codes():
    assert raise_for(CVODE_ERRORS, "CVode", CvStatus.ROOT_RETURN) == 2
    with pytest.raises(errors.MemNull):
        raise_for(CVODE_ERRORS, "CVodeSetMaxOrd", CvStatus.MEM_NULL)
