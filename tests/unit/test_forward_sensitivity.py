# tests/unit/test_forward_sensitivity.py
"""
Quadratures and forward sensitivities of y' = -p y, y(0) = 1.

With p = 1: y = exp(-t), dy/dp = -t exp(-t), and for the quadrature
q' = y the values at t = 1 are q = 1 - 1/e and dq/dp = 2/e - 1.
"""
from __future__ import annotations
import math

import numpy as np
import pytest

from sunbridge import errors
from sunbridge.native.status import Lmm, SensMethod
from sunbridge.runtime.extension import add_forward_extension
from sunbridge.runtime.types import SStolerances
from sunbridge.solvers import cvode
from sunbridge.solvers.sensitivity import (
    AllAtOnce, EEtolerances, NoStepSizeControl, OneByOne, Quadrature, SensParams,
    Sensitivity, SensitivityQuadrature,
)

E1 = math.exp(-1.0)


@pytest.fixture
def pvals():
    return np.array([1.0])


@pytest.fixture
def session(fake, pvals):
    def f(t, y, ydot):
        ydot[0] = -pvals[0] * y[0]

    return cvode.init(Lmm.ADAMS, SStolerances(1e-8, 1e-10), f, np.array([1.0]))


def q_of_y(t, y, yqdot):
    yqdot[0] = y[0]


def _all_at_once(pvals):
    def fs(t, y, ydot, ys, ysdot, tmp1, tmp2):
        for i in range(len(ys)):
            ysdot[i][:] = -pvals[0] * ys[i] - y
    return AllAtOnce(fs)


def _one_by_one(pvals):
    def fs1(t, y, ydot, i, ys_i, ysdot_i, tmp1, tmp2):
        assert i == 0
        ysdot_i[:] = -pvals[0] * ys_i - y
    return OneByOne(fs1)


# ---- quadratures ---------------------------------------------------------------------

def test_quadrature(session):
    Quadrature.init(session, q_of_y, [0.0])
    session.solve_normal(1.0, np.zeros(1))
    yq = np.zeros(1)
    t = Quadrature.get(session, yq)
    assert t == pytest.approx(1.0)
    assert yq[0] == pytest.approx(1.0 - E1, rel=1e-8)
    assert Quadrature.get_num_rhs_evals(session) == session.get_num_rhs_evals()


def test_quadrature_tolerances(session, fake):
    Quadrature.init(session, lambda t, y, yqdot: None, [0.0, 0.0])
    Quadrature.set_tolerances(session, NoStepSizeControl())
    Quadrature.set_tolerances(session, SStolerances(1e-6, 1e-8))
    assert fake.calls["CVodeSetQuadErrCon"] == 2
    with pytest.raises(errors.InvalidArgumentError):
        Quadrature.get(session, np.zeros(1))


def test_quadrature_exception_propagates(session):
    class QuadError(Exception):
        pass

    def fq(t, y, yqdot):
        raise QuadError()

    Quadrature.init(session, fq, [0.0])
    with pytest.raises(QuadError):
        session.solve_normal(1.0, np.zeros(1))


# ---- sensitivities ---------------------------------------------------------------------

def test_difference_quotients(session, pvals):
    Sensitivity.init(
        session, SStolerances(1e-6, 1e-8), SensMethod.SIMULTANEOUS,
        SensParams(pvals=pvals, plist=[0]), AllAtOnce(), [np.zeros(1)],
    )
    y = np.zeros(1)
    session.solve_normal(1.0, y)
    ys = [np.zeros(1)]
    t = Sensitivity.get(session, ys)
    assert t == pytest.approx(1.0)
    assert y[0] == pytest.approx(E1, rel=1e-8)
    assert ys[0][0] == pytest.approx(-E1, rel=1e-5)
    # the perturbed parameter is restored after every quotient
    assert pvals[0] == 1.0


@pytest.mark.parametrize("shape", [_all_at_once, _one_by_one])
def test_user_sensitivity_functions(session, pvals, shape):
    Sensitivity.init(
        session, EEtolerances(), SensMethod.STAGGERED,
        SensParams(pvals=pvals, pbar=[1.0], plist=[0]), shape(pvals), [np.zeros(1)],
    )
    session.solve_normal(1.0, np.zeros(1))
    ys0 = np.zeros(1)
    Sensitivity.get1(session, 0, ys0)
    assert ys0[0] == pytest.approx(-E1, rel=1e-8)
    assert Sensitivity.get_num_rhs_evals(session) > 0
    assert Sensitivity.num_sensitivities(session) == 1


def test_staggered1_needs_one_by_one(session, pvals, fake):
    before = fake.total_calls
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.init(session, EEtolerances(), SensMethod.STAGGERED1, None,
                         _all_at_once(pvals), [np.zeros(1)])
    assert fake.total_calls == before
    Sensitivity.init(session, EEtolerances(), SensMethod.STAGGERED1, None,
                     _one_by_one(pvals), [np.zeros(1)])


@pytest.mark.parametrize(
    "params, ys0, tol",
    [
        (None, [np.zeros(2)], EEtolerances()),
        (None, [], EEtolerances()),
        (SensParams(pvals=[1.0]), [np.zeros(1)], EEtolerances()),
        (SensParams(pvals=np.array([1.0]), plist=[3]), [np.zeros(1)], EEtolerances()),
        (SensParams(pvals=np.array([1.0]), pbar=[0.0]), [np.zeros(1)], EEtolerances()),
        (SensParams(plist=[0]), [np.zeros(1)], EEtolerances()),
        (None, [np.zeros(1)], SStolerances(1e-6, [1e-8, 1e-8])),
        (None, [np.zeros(1)], "tight"),
    ],
)
def test_init_validates_before_native_calls(session, fake, params, ys0, tol):
    before = fake.total_calls
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.init(session, tol, SensMethod.SIMULTANEOUS, params, AllAtOnce(), ys0)
    assert fake.total_calls == before


def test_get1_index_is_checked(session, pvals):
    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS, None,
                     _all_at_once(pvals), [np.zeros(1)])
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.get1(session, 1, np.zeros(1))
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.get(session, [np.zeros(1), np.zeros(1)])


@pytest.mark.parametrize("failing", ["CVodeSetSensParams", "CVodeSensSStolerances"])
def test_failed_setup_leaves_no_sensitivities(session, pvals, fake, failing):
    fake.fail[failing] = -22
    with pytest.raises(errors.IllInput):
        Sensitivity.init(session, SStolerances(1e-6, 1e-8), SensMethod.SIMULTANEOUS,
                         SensParams(pvals=pvals), _all_at_once(pvals), [np.zeros(1)])
    del fake.fail[failing]
    ext = session.extension
    assert (ext.num_sensitivities, ext.senspvals) == (0, None)
    assert fake.calls["CVodeSensToggleOff"] == 1
    y = np.zeros(1)
    session.solve_normal(1.0, y)
    assert y[0] == pytest.approx(E1, rel=1e-8)
    assert Sensitivity.get_num_rhs_evals(session) == 0
    with pytest.raises(errors.InvalidArgumentError):
        Sensitivity.get(session, [np.zeros(1)])

    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS, None,
                     _all_at_once(pvals), [np.zeros(1)])
    assert Sensitivity.num_sensitivities(session) == 1


def test_toggle_off_and_reinit(session, pvals, fake):
    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS, None,
                     _all_at_once(pvals), [np.zeros(1)])
    Sensitivity.toggle_off(session)
    session.solve_normal(0.5, np.zeros(1))
    assert Sensitivity.get_num_rhs_evals(session) == 0
    Sensitivity.reinit(session, SensMethod.SIMULTANEOUS, [np.zeros(1)])
    session.solve_normal(1.0, np.zeros(1))
    assert Sensitivity.get_num_rhs_evals(session) > 0


def test_sensitivity_exception_propagates(session):
    boom = RuntimeError("sensitivity")

    def fs(t, y, ydot, ys, ysdot, tmp1, tmp2):
        raise boom

    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS, None,
                     AllAtOnce(fs), [np.zeros(1)])
    with pytest.raises(RuntimeError) as info:
        session.solve_normal(1.0, np.zeros(1))
    assert info.value is boom


# ---- quadrature sensitivities ------------------------------------------------------------

def test_quadrature_sensitivities_need_both(session, pvals):
    with pytest.raises(errors.InvalidArgumentError):
        SensitivityQuadrature.init(session, None, [np.zeros(1)])
    Quadrature.init(session, lambda t, y, yqdot: None, [0.0])
    with pytest.raises(errors.InvalidArgumentError):
        SensitivityQuadrature.init(session, None, [np.zeros(1)])


def test_quadrature_sensitivities(session, pvals):
    def fqs(t, y, ys, yqdot, yqsdot, tmp, tmpq):
        for i in range(len(ys)):
            yqsdot[i][:] = ys[i]

    Quadrature.init(session, q_of_y, [0.0])
    Sensitivity.init(session, EEtolerances(), SensMethod.SIMULTANEOUS,
                     SensParams(pvals=pvals), _all_at_once(pvals), [np.zeros(1)])
    SensitivityQuadrature.init(session, fqs, [np.zeros(1)])
    SensitivityQuadrature.set_tolerances(session, EEtolerances())
    session.solve_normal(1.0, np.zeros(1))
    yqs = [np.zeros(1)]
    t = SensitivityQuadrature.get(session, yqs)
    assert t == pytest.approx(1.0)
    assert yqs[0][0] == pytest.approx(2.0 * E1 - 1.0, rel=1e-6)


def test_backward_sessions_cannot_carry_sensitivities(session, fake):
    from sunbridge.solvers import adjoint

    adjoint.init(session, 10)
    adjoint.forward_normal(session, 1.0, np.zeros(1))
    bs = adjoint.init_backward(session, Lmm.ADAMS, None,
                               adjoint.NoSens(lambda t, y, yb, ybdot: None), 1.0, [0.0])
    with pytest.raises(errors.InvalidArgumentError):
        Quadrature.init(bs, lambda t, y, yqdot: None, [0.0])
    with pytest.raises(errors.InvalidArgumentError, match="add_forward_extension"):
        add_forward_extension(bs)
