# src/sunbridge/errors.py
from __future__ import annotations
from typing import List

__all__ = [
    "SunbridgeError",
    # callback-side signals
    "RecoverableFailure",
    "NonPositiveEwt",
    # native status errors
    "NativeError",
    "IllInput", "TooClose", "TooMuchWork", "TooMuchAccuracy",
    "ErrFailure", "ConvergenceFailure",
    "LinearInitFailure", "LinearSetupFailure", "LinearSolveFailure",
    "RhsFuncFailure", "FirstRhsFuncFailure", "RepeatedRhsFuncFailure",
    "UnrecoverableRhsFuncFailure", "RootFuncFailure",
    "ResFuncFailure", "FirstResFuncFailure", "RepeatedResFuncFailure",
    "ConstraintFailure", "LinesearchFailure", "NoRecovery",
    "NonlinearSolverFailure", "BadErrorWeights",
    "BadK", "BadT", "BadDky",
    "MemoryFailure", "MemNull", "NoMalloc", "VectorOpError",
    "QuadNotInitialized", "QuadRhsFuncFailure", "FirstQuadRhsFuncFailure",
    "RepeatedQuadRhsFuncFailure", "UnrecoverableQuadRhsFuncFailure",
    "SensNotInitialized", "SensRhsFuncFailure", "FirstSensRhsFuncFailure",
    "RepeatedSensRhsFuncFailure", "UnrecoverableSensRhsFuncFailure",
    "BadSensIdentifier",
    "QuadSensNotInitialized", "QuadSensRhsFuncFailure",
    "FirstQuadSensRhsFuncFailure", "RepeatedQuadSensRhsFuncFailure",
    "UnrecoverableQuadSensRhsFuncFailure",
    "AdjointNotInitialized", "NoForwardCall", "NoBackwardProblem",
    "BadFinalTime", "ForwardReinitFailure", "ForwardFailure", "BadInterpolationTime",
    "LinearSolverError", "JacobianFailure", "UnknownStatusError",
    # api misuse / bridge faults
    "InvalidArgumentError",
    "SessionFinalizedError",
    "CallbackNotSetError",
    "RegistryError",
    "ViewRelinquishedError",
    # configuration
    "ConfigError",
    "LibraryNotFoundError",
]


class SunbridgeError(Exception):
    """Base error for the sunbridge package."""


# ---- Raised by user callbacks ------------------------------------------------

class RecoverableFailure(SunbridgeError):
    """
    Raised by a callback to ask the solver to retry with a smaller step.

    Identified by type only; the message is never inspected. When raised
    from a preconditioner setup function, ``jac_current`` is reported back
    to the solver as the ``jcur`` flag.
    """
    def __init__(self, message: str = "", *, jac_current: bool = False):
        self.jac_current = jac_current
        super().__init__(message)


class NonPositiveEwt(SunbridgeError):
    """Raised by an error-weight function when a weight would be <= 0."""


# ---- Native status errors ----------------------------------------------------

class NativeError(SunbridgeError):
    """A non-zero status returned by a native entry point."""
    def __init__(self, function: str, code: int, detail: str = ""):
        self.function = function
        self.code = int(code)
        msg = f"{function} failed with status {self.code}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class IllInput(NativeError):
    """Illegal input detected by the native library."""

class TooClose(NativeError):
    """Initial time and output time are too close to each other."""

class TooMuchWork(NativeError):
    """Too many internal steps were taken before reaching the output time."""

class TooMuchAccuracy(NativeError):
    """The requested accuracy could not be satisfied."""

class ErrFailure(NativeError):
    """Too many error test failures, or the minimum step was reached."""

class ConvergenceFailure(NativeError):
    """Too many convergence failures in the nonlinear solver."""

class LinearInitFailure(NativeError):
    """The linear solver's initialization function failed."""

class LinearSetupFailure(NativeError):
    """The linear solver's setup function failed."""

class LinearSolveFailure(NativeError):
    """The linear solver's solve function failed."""

class RhsFuncFailure(NativeError):
    """The right-hand side function failed unrecoverably."""

class FirstRhsFuncFailure(NativeError):
    """The right-hand side function failed recoverably at the first call."""

class RepeatedRhsFuncFailure(NativeError):
    """Too many recoverable failures of the right-hand side function."""

class UnrecoverableRhsFuncFailure(NativeError):
    """A recoverable right-hand side failure could not be recovered from."""

class RootFuncFailure(NativeError):
    """The root function failed."""

class ResFuncFailure(NativeError):
    """The residual function failed unrecoverably."""

class FirstResFuncFailure(NativeError):
    """The residual function failed recoverably at the first call."""

class RepeatedResFuncFailure(NativeError):
    """Too many recoverable failures of the residual function."""

class ConstraintFailure(NativeError):
    """Inequality constraints could not be met."""

class LinesearchFailure(NativeError):
    """The line search failed during initial condition calculation."""

class NoRecovery(NativeError):
    """A recoverable failure occurred but no recovery was possible."""

class NonlinearSolverFailure(NativeError):
    """The nonlinear solver module failed to initialize, set up or solve."""

class BadErrorWeights(NativeError):
    """An error weight was zero or negative."""

class BadK(NativeError):
    """The derivative order passed to ``get_dky`` is out of range."""

class BadT(NativeError):
    """The time passed to ``get_dky`` is outside the last step."""

class BadDky(NativeError):
    """The output vector passed to ``get_dky`` is invalid."""

class MemoryFailure(NativeError):
    """The native library could not allocate memory."""

class MemNull(NativeError):
    """The native memory block was NULL."""

class NoMalloc(NativeError):
    """The native memory block was not initialized."""

class VectorOpError(NativeError):
    """A vector operation failed inside the native library."""

class QuadNotInitialized(NativeError):
    """Quadrature integration was not initialized."""

class QuadRhsFuncFailure(NativeError):
    """The quadrature function failed unrecoverably."""

class FirstQuadRhsFuncFailure(NativeError):
    """The quadrature function failed recoverably at the first call."""

class RepeatedQuadRhsFuncFailure(NativeError):
    """Too many recoverable failures of the quadrature function."""

class UnrecoverableQuadRhsFuncFailure(NativeError):
    """A recoverable quadrature failure could not be recovered from."""

class SensNotInitialized(NativeError):
    """Forward sensitivity analysis was not initialized."""

class SensRhsFuncFailure(NativeError):
    """The sensitivity function failed unrecoverably."""

class FirstSensRhsFuncFailure(NativeError):
    """The sensitivity function failed recoverably at the first call."""

class RepeatedSensRhsFuncFailure(NativeError):
    """Too many recoverable failures of the sensitivity function."""

class UnrecoverableSensRhsFuncFailure(NativeError):
    """A recoverable sensitivity failure could not be recovered from."""

class BadSensIdentifier(NativeError):
    """The sensitivity index is out of range."""

class QuadSensNotInitialized(NativeError):
    """Quadrature sensitivity integration was not initialized."""

class QuadSensRhsFuncFailure(NativeError):
    """The quadrature sensitivity function failed unrecoverably."""

class FirstQuadSensRhsFuncFailure(NativeError):
    """The quadrature sensitivity function failed recoverably at the first call."""

class RepeatedQuadSensRhsFuncFailure(NativeError):
    """Too many recoverable failures of the quadrature sensitivity function."""

class UnrecoverableQuadSensRhsFuncFailure(NativeError):
    """A recoverable quadrature sensitivity failure could not be recovered from."""

class AdjointNotInitialized(NativeError):
    """Adjoint sensitivity analysis was not initialized."""

class NoForwardCall(NativeError):
    """The forward integration has not been performed."""

class NoBackwardProblem(NativeError):
    """No backward problem has been created."""

class BadFinalTime(NativeError):
    """The final time of a backward problem is outside the forward interval."""

class ForwardReinitFailure(NativeError):
    """Re-initialization of the forward problem failed during a backward solve."""

class ForwardFailure(NativeError):
    """The forward problem failed during a backward solve."""

class BadInterpolationTime(NativeError):
    """Forward interpolation was requested outside the checkpointed interval."""

class LinearSolverError(NativeError):
    """A linear solver interface function failed."""

class JacobianFailure(NativeError):
    """The Jacobian function failed."""

class UnknownStatusError(NativeError):
    """A status code missing from the solver's status table."""


# ---- API misuse and bridge faults ---------------------------------------------

class InvalidArgumentError(SunbridgeError, ValueError):
    """An argument was rejected before any native call was made."""
    def __init__(self, function: str, message: str):
        self.function = function
        super().__init__(f"{function}: {message}")


class SessionFinalizedError(SunbridgeError, RuntimeError):
    """The session's native memory has already been released."""
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation}: session has been finalized")


class CallbackNotSetError(SunbridgeError, NotImplementedError):
    """A native callback fired for a slot the host never filled."""
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"no {kind} callback has been registered")


class RegistryError(SunbridgeError, RuntimeError):
    """Native user data no longer resolves to a live session."""


class ViewRelinquishedError(SunbridgeError, RuntimeError):
    """A vector view was used after the callback that created it returned."""


# ---- Configuration ------------------------------------------------------------

class ConfigError(SunbridgeError):
    """Raised when configuration file is malformed or invalid."""
    def __init__(self, message: str):
        super().__init__(message)


class LibraryNotFoundError(SunbridgeError):
    """Raised when a native library cannot be located."""
    def __init__(self, name: str, candidates: List[str]):
        self.name = name
        self.candidates = candidates
        msg = f"Native library not found: {name}\n"
        if candidates:
            msg += "Searched locations:\n"
            for c in candidates:
                msg += f"  - {c}\n"
        msg += "Set SUNDIALS_LIBRARY_PATH or [native] search_paths in the sunbridge config."
        super().__init__(msg)
