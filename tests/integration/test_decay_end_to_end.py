# tests/integration/test_decay_end_to_end.py
"""
Integration tests: end-to-end runs of y' = -y.

Tests verify:
- Output-time sampling matches exp(-t) on the fake backend
- The same problems against a real SUNDIALS installation (skipped without one)
- Adjoint gradient of y(1) with respect to y(0) equals exp(-1)
"""
from __future__ import annotations
import math

import numpy as np
import pytest

from sunbridge.native.status import Lmm
from sunbridge.runtime.types import Roots, SolverResult, SStolerances
from sunbridge.solvers import adjoint, cvode, ida
from sunbridge.solvers.adjoint import NoSens
from sunbridge.solvers.linsolv import Dense

TOL = SStolerances(1e-8, 1e-10)


def decay(t, y, ydot):
    ydot[:] = -y


def decay_dae(t, y, yp, r):
    r[0] = yp[0] + y[0]
    r[1] = y[1] - y[0]


def adjoint_rhs(t, y, yb, ybdot):
    ybdot[0] = yb[0]


def _sample(session, times):
    y = np.zeros(1)
    out = []
    for tout in times:
        t, result = session.solve_normal(tout, y)
        assert result is SolverResult.SUCCESS
        out.append((t, y[0]))
    return out


def test_sampled_trajectory(fake):
    s = cvode.init(Lmm.ADAMS, TOL, decay, np.array([1.0]))
    for t, y in _sample(s, np.linspace(0.1, 2.0, 20)):
        assert y == pytest.approx(math.exp(-t), rel=1e-8)
    s.finalize()
    assert all(v == 0 for v in fake.live.values())


# ---- real libraries ------------------------------------------------------------------

@pytest.mark.native
@pytest.mark.parametrize("lmm, solver", [(Lmm.ADAMS, None), (Lmm.BDF, Dense())])
def test_cvode_with_sundials(real_native, lmm, solver):
    with cvode.init(lmm, TOL, decay, np.array([1.0]), linear_solver=solver) as s:
        for t, y in _sample(s, [0.5, 1.0, 2.0]):
            assert y == pytest.approx(math.exp(-t), rel=1e-3)


@pytest.mark.native
def test_cvode_root_with_sundials(real_native):
    def g(t, y, gout):
        gout[0] = y[0] - 0.5

    with cvode.init(Lmm.BDF, TOL, decay, np.array([1.0]),
                    linear_solver=Dense(), roots=Roots(1, g)) as s:
        t, result = s.solve_normal(2.0, np.zeros(1))
        assert result is SolverResult.ROOTS_FOUND
        assert t == pytest.approx(math.log(2.0), rel=1e-3)


@pytest.mark.native
def test_ida_with_sundials(real_native):
    s = ida.init(TOL, decay_dae, np.array([1.0, 1.0]), np.array([-1.0, -1.0]),
                 linear_solver=Dense())
    s.set_id([1.0, 0.0])
    y, yp = np.zeros(2), np.zeros(2)
    t, result = s.solve_normal(1.0, y, yp)
    assert result is SolverResult.SUCCESS
    np.testing.assert_allclose(y, [math.exp(-t)] * 2, rtol=1e-3)
    s.finalize()


@pytest.mark.native
def test_adjoint_with_sundials(real_native):
    s = cvode.init(Lmm.BDF, TOL, decay, np.array([1.0]), linear_solver=Dense())
    adjoint.init(s, 100)
    adjoint.forward_normal(s, 1.0, np.zeros(1))
    bs = adjoint.init_backward(s, Lmm.BDF, TOL, NoSens(adjoint_rhs), 1.0, [1.0],
                               linear_solver=Dense())
    adjoint.backward_normal(s, 0.0)
    yb = np.zeros(1)
    adjoint.get(bs, yb)
    assert yb[0] == pytest.approx(math.exp(-1.0), rel=1e-3)
    s.finalize()
    assert bs.finalized
