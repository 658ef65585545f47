# src/sunbridge/native/status.py
from __future__ import annotations
from enum import IntEnum
from typing import Dict, Mapping, Type

from sunbridge import errors

__all__ = [
    "CallbackStatus", "SUCCESS", "RECOVERABLE", "UNRECOVERABLE",
    "CvStatus", "IdaStatus", "LsStatus",
    "Lmm", "Task", "SensMethod", "DQMethod", "Interpolation",
    "PrecType", "GramSchmidt", "IcOption",
    "CVODE_ERRORS", "IDA_ERRORS", "LS_ERRORS",
    "error_for", "raise_for",
]


class CallbackStatus(IntEnum):
    """Return convention of every native callback."""
    SUCCESS = 0          # callback completed
    RECOVERABLE = 1      # solver may retry with a smaller step
    UNRECOVERABLE = -1   # solver must stop; host exception is pending


# Plain int constants for the trampolines
SUCCESS: int = int(CallbackStatus.SUCCESS)
RECOVERABLE: int = int(CallbackStatus.RECOVERABLE)
UNRECOVERABLE: int = int(CallbackStatus.UNRECOVERABLE)


class CvStatus(IntEnum):
    """CVODE/CVODES return flags (SUNDIALS 6.x)."""
    SUCCESS = 0
    TSTOP_RETURN = 1
    ROOT_RETURN = 2
    WARNING = 99
    TOO_MUCH_WORK = -1
    TOO_MUCH_ACC = -2
    ERR_FAILURE = -3
    CONV_FAILURE = -4
    LINIT_FAIL = -5
    LSETUP_FAIL = -6
    LSOLVE_FAIL = -7
    RHSFUNC_FAIL = -8
    FIRST_RHSFUNC_ERR = -9
    REPTD_RHSFUNC_ERR = -10
    UNREC_RHSFUNC_ERR = -11
    RTFUNC_FAIL = -12
    NLS_INIT_FAIL = -13
    NLS_SETUP_FAIL = -14
    CONSTR_FAIL = -15
    NLS_FAIL = -16
    MEM_FAIL = -20
    MEM_NULL = -21
    ILL_INPUT = -22
    NO_MALLOC = -23
    BAD_K = -24
    BAD_T = -25
    BAD_DKY = -26
    TOO_CLOSE = -27
    VECTOROP_ERR = -28
    NO_QUAD = -30
    QRHSFUNC_FAIL = -31
    FIRST_QRHSFUNC_ERR = -32
    REPTD_QRHSFUNC_ERR = -33
    UNREC_QRHSFUNC_ERR = -34
    NO_SENS = -40
    SRHSFUNC_FAIL = -41
    FIRST_SRHSFUNC_ERR = -42
    REPTD_SRHSFUNC_ERR = -43
    UNREC_SRHSFUNC_ERR = -44
    BAD_IS = -45
    NO_QUADSENS = -50
    QSRHSFUNC_FAIL = -51
    FIRST_QSRHSFUNC_ERR = -52
    REPTD_QSRHSFUNC_ERR = -53
    UNREC_QSRHSFUNC_ERR = -54
    NO_ADJ = -101
    NO_FWD = -102
    NO_BCK = -103
    BAD_TB0 = -104
    REIFWD_FAIL = -105
    FWD_FAIL = -106
    GETY_BADT = -107


class IdaStatus(IntEnum):
    """IDA/IDAS return flags (SUNDIALS 6.x)."""
    SUCCESS = 0
    TSTOP_RETURN = 1
    ROOT_RETURN = 2
    WARNING = 99
    TOO_MUCH_WORK = -1
    TOO_MUCH_ACC = -2
    ERR_FAIL = -3
    CONV_FAIL = -4
    LINIT_FAIL = -5
    LSETUP_FAIL = -6
    LSOLVE_FAIL = -7
    RES_FAIL = -8
    REP_RES_ERR = -9
    RTFUNC_FAIL = -10
    CONSTR_FAIL = -11
    FIRST_RES_FAIL = -12
    LINESEARCH_FAIL = -13
    NO_RECOVERY = -14
    NLS_INIT_FAIL = -15
    NLS_SETUP_FAIL = -16
    NLS_FAIL = -17
    MEM_NULL = -20
    MEM_FAIL = -21
    ILL_INPUT = -22
    NO_MALLOC = -23
    BAD_EWT = -24
    BAD_K = -25
    BAD_T = -26
    BAD_DKY = -27
    VECTOROP_ERR = -28
    NO_QUAD = -30
    QRHS_FAIL = -31
    FIRST_QRHS_ERR = -32
    REP_QRHS_ERR = -33
    NO_SENS = -40
    SRES_FAIL = -41
    REP_SRES_ERR = -42
    BAD_IS = -43


class LsStatus(IntEnum):
    """Return flags of the CVLS/IDALS linear solver interfaces."""
    SUCCESS = 0
    MEM_NULL = -1
    LMEM_NULL = -2
    ILL_INPUT = -3
    MEM_FAIL = -4
    PMEM_NULL = -5
    JACFUNC_UNRECVR = -6
    JACFUNC_RECVR = -7
    SUNMAT_FAIL = -8
    SUNLS_FAIL = -9


# ---- Input constants ------------------------------------------------------------

class Lmm(IntEnum):
    """Linear multistep method."""
    ADAMS = 1
    BDF = 2


class Task(IntEnum):
    """``itask`` argument of the solve entry points."""
    NORMAL = 1
    ONE_STEP = 2


class SensMethod(IntEnum):
    """Sensitivity corrector method (``ism``)."""
    SIMULTANEOUS = 1
    STAGGERED = 2
    STAGGERED1 = 3


class DQMethod(IntEnum):
    """Difference-quotient scheme for internal sensitivity functions."""
    CENTERED = 1
    FORWARD = 2


class Interpolation(IntEnum):
    """Checkpoint interpolation for adjoint problems."""
    HERMITE = 1
    POLYNOMIAL = 2


class PrecType(IntEnum):
    """Side on which an iterative linear solver applies preconditioning."""
    NONE = 0
    LEFT = 1
    RIGHT = 2
    BOTH = 3


class GramSchmidt(IntEnum):
    """Orthogonalization used by SPGMR."""
    MODIFIED = 1
    CLASSICAL = 2


class IcOption(IntEnum):
    """``icopt`` argument of ``IDACalcIC``."""
    YA_YDP_INIT = 1
    Y_INIT = 2


# ---- Status -> exception tables ---------------------------------------------------

ErrorTable = Mapping[int, Type[errors.NativeError]]

CVODE_ERRORS: Dict[int, Type[errors.NativeError]] = {
    CvStatus.TOO_MUCH_WORK: errors.TooMuchWork,
    CvStatus.TOO_MUCH_ACC: errors.TooMuchAccuracy,
    CvStatus.ERR_FAILURE: errors.ErrFailure,
    CvStatus.CONV_FAILURE: errors.ConvergenceFailure,
    CvStatus.LINIT_FAIL: errors.LinearInitFailure,
    CvStatus.LSETUP_FAIL: errors.LinearSetupFailure,
    CvStatus.LSOLVE_FAIL: errors.LinearSolveFailure,
    CvStatus.RHSFUNC_FAIL: errors.RhsFuncFailure,
    CvStatus.FIRST_RHSFUNC_ERR: errors.FirstRhsFuncFailure,
    CvStatus.REPTD_RHSFUNC_ERR: errors.RepeatedRhsFuncFailure,
    CvStatus.UNREC_RHSFUNC_ERR: errors.UnrecoverableRhsFuncFailure,
    CvStatus.RTFUNC_FAIL: errors.RootFuncFailure,
    CvStatus.NLS_INIT_FAIL: errors.NonlinearSolverFailure,
    CvStatus.NLS_SETUP_FAIL: errors.NonlinearSolverFailure,
    CvStatus.CONSTR_FAIL: errors.ConstraintFailure,
    CvStatus.NLS_FAIL: errors.NonlinearSolverFailure,
    CvStatus.MEM_FAIL: errors.MemoryFailure,
    CvStatus.MEM_NULL: errors.MemNull,
    CvStatus.ILL_INPUT: errors.IllInput,
    CvStatus.NO_MALLOC: errors.NoMalloc,
    CvStatus.BAD_K: errors.BadK,
    CvStatus.BAD_T: errors.BadT,
    CvStatus.BAD_DKY: errors.BadDky,
    CvStatus.TOO_CLOSE: errors.TooClose,
    CvStatus.VECTOROP_ERR: errors.VectorOpError,
    CvStatus.NO_QUAD: errors.QuadNotInitialized,
    CvStatus.QRHSFUNC_FAIL: errors.QuadRhsFuncFailure,
    CvStatus.FIRST_QRHSFUNC_ERR: errors.FirstQuadRhsFuncFailure,
    CvStatus.REPTD_QRHSFUNC_ERR: errors.RepeatedQuadRhsFuncFailure,
    CvStatus.UNREC_QRHSFUNC_ERR: errors.UnrecoverableQuadRhsFuncFailure,
    CvStatus.NO_SENS: errors.SensNotInitialized,
    CvStatus.SRHSFUNC_FAIL: errors.SensRhsFuncFailure,
    CvStatus.FIRST_SRHSFUNC_ERR: errors.FirstSensRhsFuncFailure,
    CvStatus.REPTD_SRHSFUNC_ERR: errors.RepeatedSensRhsFuncFailure,
    CvStatus.UNREC_SRHSFUNC_ERR: errors.UnrecoverableSensRhsFuncFailure,
    CvStatus.BAD_IS: errors.BadSensIdentifier,
    CvStatus.NO_QUADSENS: errors.QuadSensNotInitialized,
    CvStatus.QSRHSFUNC_FAIL: errors.QuadSensRhsFuncFailure,
    CvStatus.FIRST_QSRHSFUNC_ERR: errors.FirstQuadSensRhsFuncFailure,
    CvStatus.REPTD_QSRHSFUNC_ERR: errors.RepeatedQuadSensRhsFuncFailure,
    CvStatus.UNREC_QSRHSFUNC_ERR: errors.UnrecoverableQuadSensRhsFuncFailure,
    CvStatus.NO_ADJ: errors.AdjointNotInitialized,
    CvStatus.NO_FWD: errors.NoForwardCall,
    CvStatus.NO_BCK: errors.NoBackwardProblem,
    CvStatus.BAD_TB0: errors.BadFinalTime,
    CvStatus.REIFWD_FAIL: errors.ForwardReinitFailure,
    CvStatus.FWD_FAIL: errors.ForwardFailure,
    CvStatus.GETY_BADT: errors.BadInterpolationTime,
}

IDA_ERRORS: Dict[int, Type[errors.NativeError]] = {
    IdaStatus.TOO_MUCH_WORK: errors.TooMuchWork,
    IdaStatus.TOO_MUCH_ACC: errors.TooMuchAccuracy,
    IdaStatus.ERR_FAIL: errors.ErrFailure,
    IdaStatus.CONV_FAIL: errors.ConvergenceFailure,
    IdaStatus.LINIT_FAIL: errors.LinearInitFailure,
    IdaStatus.LSETUP_FAIL: errors.LinearSetupFailure,
    IdaStatus.LSOLVE_FAIL: errors.LinearSolveFailure,
    IdaStatus.RES_FAIL: errors.ResFuncFailure,
    IdaStatus.REP_RES_ERR: errors.RepeatedResFuncFailure,
    IdaStatus.RTFUNC_FAIL: errors.RootFuncFailure,
    IdaStatus.CONSTR_FAIL: errors.ConstraintFailure,
    IdaStatus.FIRST_RES_FAIL: errors.FirstResFuncFailure,
    IdaStatus.LINESEARCH_FAIL: errors.LinesearchFailure,
    IdaStatus.NO_RECOVERY: errors.NoRecovery,
    IdaStatus.NLS_INIT_FAIL: errors.NonlinearSolverFailure,
    IdaStatus.NLS_SETUP_FAIL: errors.NonlinearSolverFailure,
    IdaStatus.NLS_FAIL: errors.NonlinearSolverFailure,
    IdaStatus.MEM_NULL: errors.MemNull,
    IdaStatus.MEM_FAIL: errors.MemoryFailure,
    IdaStatus.ILL_INPUT: errors.IllInput,
    IdaStatus.NO_MALLOC: errors.NoMalloc,
    IdaStatus.BAD_EWT: errors.BadErrorWeights,
    IdaStatus.BAD_K: errors.BadK,
    IdaStatus.BAD_T: errors.BadT,
    IdaStatus.BAD_DKY: errors.BadDky,
    IdaStatus.VECTOROP_ERR: errors.VectorOpError,
    IdaStatus.NO_QUAD: errors.QuadNotInitialized,
    IdaStatus.QRHS_FAIL: errors.QuadRhsFuncFailure,
    IdaStatus.FIRST_QRHS_ERR: errors.FirstQuadRhsFuncFailure,
    IdaStatus.REP_QRHS_ERR: errors.RepeatedQuadRhsFuncFailure,
    IdaStatus.NO_SENS: errors.SensNotInitialized,
    IdaStatus.SRES_FAIL: errors.SensRhsFuncFailure,
    IdaStatus.REP_SRES_ERR: errors.RepeatedSensRhsFuncFailure,
    IdaStatus.BAD_IS: errors.BadSensIdentifier,
}

LS_ERRORS: Dict[int, Type[errors.NativeError]] = {
    LsStatus.MEM_NULL: errors.MemNull,
    LsStatus.LMEM_NULL: errors.LinearSolverError,
    LsStatus.ILL_INPUT: errors.IllInput,
    LsStatus.MEM_FAIL: errors.MemoryFailure,
    LsStatus.PMEM_NULL: errors.LinearSolverError,
    LsStatus.JACFUNC_UNRECVR: errors.JacobianFailure,
    LsStatus.JACFUNC_RECVR: errors.JacobianFailure,
    LsStatus.SUNMAT_FAIL: errors.LinearSolverError,
    LsStatus.SUNLS_FAIL: errors.LinearSolverError,
}


def error_for(table: ErrorTable, function: str, code: int) -> errors.NativeError:
    """Build the typed exception for a negative native status."""
    cls = table.get(int(code), errors.UnknownStatusError)
    return cls(function, int(code))


def raise_for(table: ErrorTable, function: str, code: int) -> int:
    """Raise for negative ``code``; return non-negative codes unchanged."""
    code = int(code)
    if code < 0:
        raise error_for(table, function, code)
    return code
