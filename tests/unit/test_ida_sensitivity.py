# tests/unit/test_ida_sensitivity.py
"""
Quadratures and forward sensitivities on IDAS sessions.

The residual r = y' + p y with y(0) = 1 and p = 1 has the solution
y = exp(-t). Its sensitivity s = dy/dp = -t exp(-t) starts from s(0) = 0,
s'(0) = -1, and the quadrature q' = y reaches q(1) = 1 - 1/e.
"""
from __future__ import annotations
import math

import numpy as np
import pytest

from sunbridge import errors
from sunbridge.native.status import Lmm, SensMethod
from sunbridge.runtime.types import SolverResult, SStolerances
from sunbridge.solvers import cvode, ida
from sunbridge.solvers.sensitivity import (
    AllAtOnce, EEtolerances, OneByOne, Quadrature, SensParams, Sensitivity,
    SensitivityQuadrature,
)

E1 = math.exp(-1.0)
TOL = SStolerances(1e-8, 1e-10)


@pytest.fixture
def pvals():
    return np.array([1.0])


@pytest.fixture
def session(fake, pvals):
    def res(t, y, yp, r):
        r[0] = yp[0] + pvals[0] * y[0]

    return ida.init(TOL, res, np.array([1.0]), np.array([-1.0]))


def sens_res(pvals):
    def rs_fn(t, y, yp, r, ys, yps, rs, tmp1, tmp2, tmp3):
        for i in range(len(ys)):
            rs[i][:] = yps[i] + pvals[0] * ys[i] + y
    return AllAtOnce(rs_fn)


def _init_sens(session, fs, params=None):
    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS, params, fs,
                     [np.zeros(1)], [np.array([-1.0])])


def _solve(session, tout=1.0):
    y, yp = np.zeros(1), np.zeros(1)
    t, result = session.solve_normal(tout, y, yp)
    assert result is SolverResult.SUCCESS
    return t, y


# ---- quadratures ---------------------------------------------------------------------

def test_quadrature(session, fake):
    def fq(t, y, yp, yqdot):
        yqdot[0] = y[0]

    Quadrature.init(session, fq, [0.0])
    Quadrature.set_tolerances(session, SStolerances(1e-6, 1e-8))
    assert (fake.calls["IDAQuadSStolerances"], fake.calls["IDASetQuadErrCon"]) == (1, 1)
    _solve(session)
    yq = np.zeros(1)
    assert Quadrature.get(session, yq) == pytest.approx(1.0)
    assert yq[0] == pytest.approx(1.0 - E1, rel=1e-6)
    assert Quadrature.get_num_rhs_evals(session) == 2 * session.get_num_steps()


def test_quadrature_exception_propagates(session):
    boom = OverflowError("quadrature")

    def fq(t, y, yp, yqdot):
        raise boom

    Quadrature.init(session, fq, [0.0])
    with pytest.raises(OverflowError) as info:
        _solve(session)
    assert info.value is boom


# ---- sensitivities -----------------------------------------------------------------------

def test_user_sensitivity_residual(session, pvals):
    _init_sens(session, sens_res(pvals))
    t, y = _solve(session)
    assert y[0] == pytest.approx(E1, rel=1e-6)
    ys = [np.zeros(1)]
    assert Sensitivity.get(session, ys) == pytest.approx(t)
    assert ys[0][0] == pytest.approx(-E1, rel=1e-5)
    ys_0 = np.zeros(1)
    Sensitivity.get1(session, 0, ys_0)
    assert ys_0[0] == ys[0][0]
    stats = Sensitivity.get_stats(session)
    assert stats.num_sens_rhs_evals > 0
    assert stats.num_rhs_evals_sens == 0


def test_difference_quotients(session, pvals):
    _init_sens(session, AllAtOnce(), SensParams(pvals=pvals))
    _solve(session)
    ys = [np.zeros(1)]
    Sensitivity.get(session, ys)
    assert ys[0][0] == pytest.approx(-E1, rel=1e-4)
    assert Sensitivity.get_num_rhs_evals_sens(session) > 0
    assert Sensitivity.get_num_rhs_evals(session) == 0
    assert pvals[0] == 1.0


def test_sensitivity_derivatives(session, pvals):
    _init_sens(session, sens_res(pvals))
    t, _ = _solve(session, 0.5)
    dkys = [np.zeros(1)]
    Sensitivity.get_dky(session, t, 1, dkys)
    # d/dt (-t exp(-t)) = (t - 1) exp(-t)
    assert dkys[0][0] == pytest.approx(-0.5 * math.exp(-0.5), rel=1e-4)


def test_consistent_initial_sensitivities(session, pvals):
    _init_sens(session, sens_res(pvals))
    ys, yps = [np.ones(1)], [np.ones(1)]
    Sensitivity.get_consistent_ic(session, ys, yps)
    assert (ys[0][0], yps[0][0]) == (0.0, -1.0)
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.get_consistent_ic(session, ys, [])


def test_toggle_off_and_reinit(session, pvals, fake):
    _init_sens(session, sens_res(pvals))
    Sensitivity.toggle_off(session)
    _solve(session, 0.5)
    assert Sensitivity.get_num_rhs_evals(session) == 0
    with pytest.raises(errors.InvalidArgumentError, match="yps0"):
        Sensitivity.reinit(session, SensMethod.SIMULTANEOUS, [np.zeros(1)])
    Sensitivity.reinit(session, SensMethod.STAGGERED, [np.zeros(1)], [np.array([-0.5])])
    assert fake.calls["IDASensReInit"] == 1
    _solve(session)
    assert Sensitivity.get_num_rhs_evals(session) > 0


def test_sensitivity_residual_exception_propagates(session):
    boom = ZeroDivisionError("sensitivity residual")

    def rs_fn(t, y, yp, r, ys, yps, rs, tmp1, tmp2, tmp3):
        raise boom

    _init_sens(session, AllAtOnce(rs_fn))
    with pytest.raises(ZeroDivisionError) as info:
        _solve(session)
    assert info.value is boom


# ---- restrictions -------------------------------------------------------------------------

@pytest.mark.parametrize(
    "method, fs, yps0",
    [
        (SensMethod.SIMULTANEOUS, AllAtOnce(), None),
        (SensMethod.SIMULTANEOUS, AllAtOnce(), [np.zeros(2)]),
        (SensMethod.SIMULTANEOUS, OneByOne(), [np.zeros(1)]),
        (SensMethod.STAGGERED1, AllAtOnce(), [np.zeros(1)]),
    ],
)
def test_init_is_checked_before_native_calls(session, fake, method, fs, yps0):
    before = fake.total_calls
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.init(session, EEtolerances(), method, None, fs, [np.zeros(1)], yps0)
    assert fake.total_calls == before


def test_cvodes_only_operations(session, fake, pvals):
    _init_sens(session, sens_res(pvals))
    Quadrature.init(session, lambda t, y, yp, yqdot: None, [0.0])
    with pytest.raises(errors.InvalidArgumentError, match="CVODES"):
        SensitivityQuadrature.init(session, None, [np.zeros(1)])

    s = cvode.init(Lmm.ADAMS, TOL, lambda t, y, ydot: None, np.array([1.0]))
    with pytest.raises(errors.InvalidArgumentError, match="yps0"):
        Sensitivity.init(s, EEtolerances(), SensMethod.SIMULTANEOUS, None, AllAtOnce(),
                         [np.zeros(1)], [np.zeros(1)])
    with pytest.raises(errors.InvalidArgumentError, match="IDAS"):
        Sensitivity.get_consistent_ic(s, [], [])
