# src/sunbridge/__init__.py
from __future__ import annotations

# Re-export frozen constants/types for stable imports
from sunbridge.native.status import (
    Lmm, Task, SensMethod, DQMethod, Interpolation, GramSchmidt,
    CallbackStatus, SUCCESS, RECOVERABLE, UNRECOVERABLE,
)
from .runtime.types import (
    SolverResult, SStolerances, SVtolerances, WFtolerances, Roots, RootDirection,
    ErrorDetails, VarType,
)
from .errors import (
    SunbridgeError, RecoverableFailure, NonPositiveEwt, NativeError,
    InvalidArgumentError, SessionFinalizedError, CallbackNotSetError,
)
from .native.loader import get_native, set_native, native_available

from .solvers import (
    cvode, ida, sensitivity, adjoint,
    Functional, Dense, Band, Preconditioner, Spgmr, Spbcgs, Sptfqmr,
)

__version__ = "0.1.0"

__all__ = [
    # Solver modules
    "cvode", "ida", "sensitivity", "adjoint",
    # Linear solvers
    "Functional", "Dense", "Band", "Preconditioner", "Spgmr", "Spbcgs", "Sptfqmr",
    # Constants
    "Lmm", "Task", "SensMethod", "DQMethod", "Interpolation", "GramSchmidt",
    "CallbackStatus", "SUCCESS", "RECOVERABLE", "UNRECOVERABLE",
    # Values
    "SolverResult", "SStolerances", "SVtolerances", "WFtolerances", "Roots",
    "RootDirection", "ErrorDetails", "VarType",
    # Errors
    "SunbridgeError", "RecoverableFailure", "NonPositiveEwt", "NativeError",
    "InvalidArgumentError", "SessionFinalizedError", "CallbackNotSetError",
    # Native backend
    "get_native", "set_native", "native_available",
]
