# src/sunbridge/runtime/types.py
from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional, Tuple

import numpy as np

from sunbridge.errors import CallbackNotSetError, InvalidArgumentError

__all__ = [
    # solve outcomes
    "SolverResult",
    # tolerances
    "SStolerances", "SVtolerances", "WFtolerances", "Tolerances", "default_tolerances",
    # roots
    "RootDirection", "Roots",
    # callback argument records
    "ErrorDetails", "JacobianArgs", "DaeJacobianArgs", "BackwardJacobianArgs",
    "PrecSolveArgs",
    # linear-solver callback variants
    "NoCallbacks", "DenseCallbacks", "BandCallbacks", "SpilsCallbacks",
    "LinearCallbacks",
    # statistics
    "IntegratorStats", "LinearSolverStats",
    # IDA
    "VarType",
    # slots
    "not_implemented",
]


class SolverResult(IntEnum):
    """Benign outcome of a solve call."""
    SUCCESS = 0
    STOP_TIME_REACHED = 1
    ROOTS_FOUND = 2


# ---- Tolerances -------------------------------------------------------------------

@dataclass(frozen=True)
class SStolerances:
    """Scalar relative and absolute tolerance."""
    rtol: float = 1.0e-4
    atol: float = 1.0e-8


@dataclass(frozen=True)
class SVtolerances:
    """Scalar relative tolerance and per-component absolute tolerances."""
    rtol: float
    atol: np.ndarray


@dataclass(frozen=True)
class WFtolerances:
    """
    User error weights: ``errw(y, ewt)`` fills ``ewt`` in place.

    Raise :class:`~sunbridge.errors.NonPositiveEwt` when a weight would
    not be strictly positive.
    """
    errw: Callable[[np.ndarray, np.ndarray], None]


Tolerances = Any  # SStolerances | SVtolerances | WFtolerances


def default_tolerances() -> SStolerances:
    return SStolerances(1.0e-4, 1.0e-8)


# ---- Roots --------------------------------------------------------------------------

class RootDirection(IntEnum):
    """Direction of zero crossing reported for a root function."""
    INCREASING = 1
    DECREASING = -1
    EITHER = 0


@dataclass(frozen=True)
class Roots:
    """``nroots`` root functions evaluated together by ``g``."""
    nroots: int
    g: Callable[..., None]

    def __post_init__(self):
        if self.nroots < 0:
            raise InvalidArgumentError("Roots", f"nroots must be >= 0; got {self.nroots}")


# ---- Callback argument records -------------------------------------------------------

@dataclass(frozen=True)
class ErrorDetails:
    """Diagnostic passed to an error handler."""
    error_code: int
    module_name: str
    function_name: str
    error_message: str


@dataclass
class JacobianArgs:
    """Arguments shared by the CVODE Jacobian and preconditioner callbacks."""
    t: float
    y: np.ndarray
    fy: np.ndarray
    tmp: Tuple[np.ndarray, ...] = ()


@dataclass
class DaeJacobianArgs:
    """Arguments shared by the IDA Jacobian and preconditioner callbacks."""
    t: float
    coef: float
    y: np.ndarray
    yp: np.ndarray
    res: np.ndarray
    tmp: Tuple[np.ndarray, ...] = ()


@dataclass
class BackwardJacobianArgs:
    """Arguments of the adjoint Jacobian and preconditioner callbacks."""
    t: float
    y: np.ndarray
    yb: np.ndarray
    fyb: np.ndarray
    tmp: Tuple[np.ndarray, ...] = ()


@dataclass(frozen=True)
class PrecSolveArgs:
    """Right-hand side and scalars of a CVODE preconditioner solve."""
    rhs: np.ndarray
    gamma: float
    delta: float
    left: bool


# ---- Linear-solver callback variants --------------------------------------------------

@dataclass(frozen=True)
class NoCallbacks:
    pass


@dataclass(frozen=True)
class DenseCallbacks:
    jac: Optional[Callable] = None


@dataclass(frozen=True)
class BandCallbacks:
    jac: Optional[Callable] = None


@dataclass(frozen=True)
class SpilsCallbacks:
    prec_setup: Optional[Callable] = None
    prec_solve: Optional[Callable] = None
    jac_times: Optional[Callable] = None
    prec_module: Any = None  # linsolv.BandPrec | linsolv.BBDPrec


LinearCallbacks = Any  # NoCallbacks | DenseCallbacks | BandCallbacks | SpilsCallbacks


# ---- Statistics ----------------------------------------------------------------------

@dataclass(frozen=True)
class IntegratorStats:
    num_steps: int
    num_rhs_evals: int
    num_lin_solv_setups: int
    num_err_test_fails: int
    last_order: int
    current_order: int
    actual_init_step: float
    last_step: float
    current_step: float
    current_time: float


@dataclass(frozen=True)
class LinearSolverStats:
    work_space: Tuple[int, int]
    num_jac_evals: int
    num_prec_evals: int
    num_prec_solves: int
    num_lin_iters: int
    num_lin_conv_fails: int
    num_jtimes_evals: int
    num_lin_rhs_evals: int


class VarType(IntEnum):
    """IDA variable classification passed to ``set_id``."""
    ALGEBRAIC = 0
    DIFFERENTIAL = 1


def not_implemented(kind: str) -> Callable[..., None]:
    """Default closure for a callback slot that was never filled."""
    def _missing(*args: Any) -> None:
        raise CallbackNotSetError(kind)
    _missing.__name__ = f"missing_{kind.replace(' ', '_')}"
    return _missing
