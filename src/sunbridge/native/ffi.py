# src/sunbridge/native/ffi.py
"""
cffi declarations for the subset of the SUNDIALS 6.x C API used by sunbridge.

ABI mode only: nothing is compiled, the shared libraries are opened with
``ffi.dlopen`` by :mod:`sunbridge.native.loader`. Scalar typedefs assume the
default SUNDIALS build (``double`` reals, 64-bit indices).
"""
from __future__ import annotations
from cffi import FFI

__all__ = ["ffi", "CDEF", "LIBC_CDEF"]

ffi = FFI()

CDEF = """
typedef double sunrealtype;
typedef int64_t sunindextype;
typedef int sunbooleantype;

typedef struct _SUNContext *SUNContext;
int SUNContext_Create(void *comm, SUNContext *sunctx);
int SUNContext_Free(SUNContext *sunctx);

/* ---- N_Vector (serial) ---- */
typedef struct _generic_N_Vector_Ops *N_Vector_Ops;
struct _generic_N_Vector {
    void *content;
    N_Vector_Ops ops;
    SUNContext sunctx;
};
typedef struct _generic_N_Vector *N_Vector;

struct _N_VectorContent_Serial {
    sunindextype length;
    sunbooleantype own_data;
    sunrealtype *data;
};
typedef struct _N_VectorContent_Serial *N_VectorContent_Serial;

N_Vector N_VMake_Serial(sunindextype vec_length, sunrealtype *v_data, SUNContext sunctx);
void N_VDestroy(N_Vector v);

/* ---- SUNMatrix ---- */
typedef struct _generic_SUNMatrix_Ops *SUNMatrix_Ops;
struct _generic_SUNMatrix {
    void *content;
    SUNMatrix_Ops ops;
    SUNContext sunctx;
};
typedef struct _generic_SUNMatrix *SUNMatrix;

struct _SUNMatrixContent_Dense {
    sunindextype M;
    sunindextype N;
    sunrealtype *data;
    sunindextype ldata;
    sunrealtype **cols;
};
typedef struct _SUNMatrixContent_Dense *SUNMatrixContent_Dense;

struct _SUNMatrixContent_Band {
    sunindextype M;
    sunindextype N;
    sunindextype ldim;
    sunindextype mu;
    sunindextype ml;
    sunindextype s_mu;
    sunrealtype *data;
    sunindextype ldata;
    sunrealtype **cols;
};
typedef struct _SUNMatrixContent_Band *SUNMatrixContent_Band;

SUNMatrix SUNDenseMatrix(sunindextype M, sunindextype N, SUNContext sunctx);
SUNMatrix SUNBandMatrix(sunindextype N, sunindextype mu, sunindextype ml, SUNContext sunctx);
void SUNMatDestroy(SUNMatrix A);

/* ---- SUNLinearSolver / SUNNonlinearSolver ---- */
typedef struct _generic_SUNLinearSolver *SUNLinearSolver;
SUNLinearSolver SUNLinSol_Dense(N_Vector y, SUNMatrix A, SUNContext sunctx);
SUNLinearSolver SUNLinSol_Band(N_Vector y, SUNMatrix A, SUNContext sunctx);
SUNLinearSolver SUNLinSol_SPGMR(N_Vector y, int pretype, int maxl, SUNContext sunctx);
SUNLinearSolver SUNLinSol_SPBCGS(N_Vector y, int pretype, int maxl, SUNContext sunctx);
SUNLinearSolver SUNLinSol_SPTFQMR(N_Vector y, int pretype, int maxl, SUNContext sunctx);
int SUNLinSol_SPGMRSetGSType(SUNLinearSolver S, int gstype);
int SUNLinSolFree(SUNLinearSolver S);

typedef struct _generic_SUNNonlinearSolver *SUNNonlinearSolver;
SUNNonlinearSolver SUNNonlinSol_Newton(N_Vector y, SUNContext sunctx);
SUNNonlinearSolver SUNNonlinSol_FixedPoint(N_Vector y, int m, SUNContext sunctx);
int SUNNonlinSolFree(SUNNonlinearSolver NLS);

/* ---- CVODE(S) callback types ---- */
typedef int (*CVRhsFn)(sunrealtype t, N_Vector y, N_Vector ydot, void *user_data);
typedef int (*CVRootFn)(sunrealtype t, N_Vector y, sunrealtype *gout, void *user_data);
typedef int (*CVEwtFn)(N_Vector y, N_Vector ewt, void *user_data);
typedef void (*CVErrHandlerFn)(int error_code, const char *module, const char *function,
                               char *msg, void *user_data);
typedef int (*CVLsJacFn)(sunrealtype t, N_Vector y, N_Vector fy, SUNMatrix Jac,
                         void *user_data, N_Vector tmp1, N_Vector tmp2, N_Vector tmp3);
typedef int (*CVLsPrecSetupFn)(sunrealtype t, N_Vector y, N_Vector fy, sunbooleantype jok,
                               sunbooleantype *jcurPtr, sunrealtype gamma, void *user_data);
typedef int (*CVLsPrecSolveFn)(sunrealtype t, N_Vector y, N_Vector fy, N_Vector r, N_Vector z,
                               sunrealtype gamma, sunrealtype delta, int lr, void *user_data);
typedef int (*CVLsJacTimesSetupFn)(sunrealtype t, N_Vector y, N_Vector fy, void *user_data);
typedef int (*CVLsJacTimesVecFn)(N_Vector v, N_Vector Jv, sunrealtype t, N_Vector y,
                                 N_Vector fy, void *user_data, N_Vector tmp);
typedef int (*CVQuadRhsFn)(sunrealtype t, N_Vector y, N_Vector yQdot, void *user_data);
typedef int (*CVSensRhsFn)(int Ns, sunrealtype t, N_Vector y, N_Vector ydot, N_Vector *yS,
                           N_Vector *ySdot, void *user_data, N_Vector tmp1, N_Vector tmp2);
typedef int (*CVSensRhs1Fn)(int Ns, sunrealtype t, N_Vector y, N_Vector ydot, int iS,
                            N_Vector yS, N_Vector ySdot, void *user_data,
                            N_Vector tmp1, N_Vector tmp2);
typedef int (*CVQuadSensRhsFn)(int Ns, sunrealtype t, N_Vector y, N_Vector *yS,
                               N_Vector yQdot, N_Vector *yQSdot, void *user_data,
                               N_Vector tmp, N_Vector tmpQ);
typedef int (*CVRhsFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector yBdot,
                        void *user_dataB);
typedef int (*CVRhsFnBS)(sunrealtype t, N_Vector y, N_Vector *yS, N_Vector yB,
                         N_Vector yBdot, void *user_dataB);
typedef int (*CVQuadRhsFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector qBdot,
                            void *user_dataB);
typedef int (*CVQuadRhsFnBS)(sunrealtype t, N_Vector y, N_Vector *yS, N_Vector yB,
                             N_Vector qBdot, void *user_dataB);
typedef int (*CVLsJacFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector fyB,
                          SUNMatrix JB, void *user_dataB,
                          N_Vector tmp1B, N_Vector tmp2B, N_Vector tmp3B);
typedef int (*CVLsPrecSetupFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector fyB,
                                sunbooleantype jokB, sunbooleantype *jcurPtrB,
                                sunrealtype gammaB, void *user_dataB);
typedef int (*CVLsPrecSolveFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector fyB,
                                N_Vector rB, N_Vector zB, sunrealtype gammaB,
                                sunrealtype deltaB, int lrB, void *user_dataB);
typedef int (*CVLsJacTimesSetupFnB)(sunrealtype t, N_Vector y, N_Vector yB, N_Vector fyB,
                                    void *jac_dataB);
typedef int (*CVLsJacTimesVecFnB)(N_Vector vB, N_Vector JvB, sunrealtype t, N_Vector y,
                                  N_Vector yB, N_Vector fyB, void *jac_dataB, N_Vector tmpB);

/* ---- CVODE(S) entry points ---- */
void *CVodeCreate(int lmm, SUNContext sunctx);
int CVodeInit(void *cvode_mem, CVRhsFn f, sunrealtype t0, N_Vector y0);
int CVodeReInit(void *cvode_mem, sunrealtype t0, N_Vector y0);
void CVodeFree(void **cvode_mem);
int CVodeSStolerances(void *cvode_mem, sunrealtype reltol, sunrealtype abstol);
int CVodeSVtolerances(void *cvode_mem, sunrealtype reltol, N_Vector abstol);
int CVodeWFtolerances(void *cvode_mem, CVEwtFn efun);
int CVodeSetUserData(void *cvode_mem, void *user_data);
int CVodeRootInit(void *cvode_mem, int nrtfn, CVRootFn g);
int CVodeSetRootDirection(void *cvode_mem, int *rootdir);
int CVodeSetNoInactiveRootWarn(void *cvode_mem);
int CVodeGetRootInfo(void *cvode_mem, int *rootsfound);
int CVode(void *cvode_mem, sunrealtype tout, N_Vector yout, sunrealtype *tret, int itask);
int CVodeGetDky(void *cvode_mem, sunrealtype t, int k, N_Vector dky);
int CVodeSetErrHandlerFn(void *cvode_mem, CVErrHandlerFn ehfun, void *eh_data);
int CVodeSetErrFile(void *cvode_mem, FILE *errfp);
int CVodeSetLinearSolver(void *cvode_mem, SUNLinearSolver LS, SUNMatrix A);
int CVodeSetNonlinearSolver(void *cvode_mem, SUNNonlinearSolver NLS);
int CVodeSetJacFn(void *cvode_mem, CVLsJacFn jac);
int CVodeSetPreconditioner(void *cvode_mem, CVLsPrecSetupFn pset, CVLsPrecSolveFn psolve);
int CVodeSetJacTimes(void *cvode_mem, CVLsJacTimesSetupFn jtsetup, CVLsJacTimesVecFn jtimes);
int CVodeSetEpsLin(void *cvode_mem, sunrealtype eplifac);

int CVodeSetMaxOrd(void *cvode_mem, int maxord);
int CVodeSetMaxNumSteps(void *cvode_mem, long int mxsteps);
int CVodeSetMaxHnilWarns(void *cvode_mem, int mxhnil);
int CVodeSetStabLimDet(void *cvode_mem, sunbooleantype stldet);
int CVodeSetInitStep(void *cvode_mem, sunrealtype hin);
int CVodeSetMinStep(void *cvode_mem, sunrealtype hmin);
int CVodeSetMaxStep(void *cvode_mem, sunrealtype hmax);
int CVodeSetStopTime(void *cvode_mem, sunrealtype tstop);
int CVodeSetMaxErrTestFails(void *cvode_mem, int maxnef);
int CVodeSetMaxNonlinIters(void *cvode_mem, int maxcor);
int CVodeSetMaxConvFails(void *cvode_mem, int maxncf);
int CVodeSetNonlinConvCoef(void *cvode_mem, sunrealtype nlscoef);

int CVodeGetWorkSpace(void *cvode_mem, long int *lenrw, long int *leniw);
int CVodeGetNumSteps(void *cvode_mem, long int *nsteps);
int CVodeGetNumRhsEvals(void *cvode_mem, long int *nfevals);
int CVodeGetNumLinSolvSetups(void *cvode_mem, long int *nlinsetups);
int CVodeGetNumErrTestFails(void *cvode_mem, long int *netfails);
int CVodeGetLastOrder(void *cvode_mem, int *qlast);
int CVodeGetCurrentOrder(void *cvode_mem, int *qcur);
int CVodeGetNumStabLimOrderReds(void *cvode_mem, long int *nslred);
int CVodeGetActualInitStep(void *cvode_mem, sunrealtype *hinused);
int CVodeGetLastStep(void *cvode_mem, sunrealtype *hlast);
int CVodeGetCurrentStep(void *cvode_mem, sunrealtype *hcur);
int CVodeGetCurrentTime(void *cvode_mem, sunrealtype *tcur);
int CVodeGetTolScaleFactor(void *cvode_mem, sunrealtype *tolsfac);
int CVodeGetErrWeights(void *cvode_mem, N_Vector eweight);
int CVodeGetEstLocalErrors(void *cvode_mem, N_Vector ele);
int CVodeGetNumGEvals(void *cvode_mem, long int *ngevals);
int CVodeGetNumNonlinSolvIters(void *cvode_mem, long int *nniters);
int CVodeGetNumNonlinSolvConvFails(void *cvode_mem, long int *nncfails);
int CVodeGetIntegratorStats(void *cvode_mem, long int *nsteps, long int *nfevals,
                            long int *nlinsetups, long int *netfails, int *qlast,
                            int *qcur, sunrealtype *hinused, sunrealtype *hlast,
                            sunrealtype *hcur, sunrealtype *tcur);
int CVodeGetLinWorkSpace(void *cvode_mem, long int *lenrwLS, long int *leniwLS);
int CVodeGetNumJacEvals(void *cvode_mem, long int *njevals);
int CVodeGetNumPrecEvals(void *cvode_mem, long int *npevals);
int CVodeGetNumPrecSolves(void *cvode_mem, long int *npsolves);
int CVodeGetNumLinIters(void *cvode_mem, long int *nliters);
int CVodeGetNumLinConvFails(void *cvode_mem, long int *nlcfails);
int CVodeGetNumJtimesEvals(void *cvode_mem, long int *njvevals);
int CVodeGetNumLinRhsEvals(void *cvode_mem, long int *nfevalsLS);

/* quadratures */
int CVodeQuadInit(void *cvode_mem, CVQuadRhsFn fQ, N_Vector yQ0);
int CVodeQuadReInit(void *cvode_mem, N_Vector yQ0);
int CVodeQuadSStolerances(void *cvode_mem, sunrealtype reltolQ, sunrealtype abstolQ);
int CVodeQuadSVtolerances(void *cvode_mem, sunrealtype reltolQ, N_Vector abstolQ);
int CVodeSetQuadErrCon(void *cvode_mem, sunbooleantype errconQ);
int CVodeGetQuad(void *cvode_mem, sunrealtype *tret, N_Vector yQout);
int CVodeGetQuadDky(void *cvode_mem, sunrealtype t, int k, N_Vector dky);
int CVodeGetQuadNumRhsEvals(void *cvode_mem, long int *nfQevals);
int CVodeGetQuadNumErrTestFails(void *cvode_mem, long int *nQetfails);
int CVodeGetQuadErrWeights(void *cvode_mem, N_Vector eQweight);

/* forward sensitivities */
int CVodeSensInit(void *cvode_mem, int Ns, int ism, CVSensRhsFn fS, N_Vector *yS0);
int CVodeSensInit1(void *cvode_mem, int Ns, int ism, CVSensRhs1Fn fS1, N_Vector *yS0);
int CVodeSensReInit(void *cvode_mem, int ism, N_Vector *yS0);
int CVodeSensToggleOff(void *cvode_mem);
int CVodeSensSStolerances(void *cvode_mem, sunrealtype reltolS, sunrealtype *abstolS);
int CVodeSensSVtolerances(void *cvode_mem, sunrealtype reltolS, N_Vector *abstolS);
int CVodeSensEEtolerances(void *cvode_mem);
int CVodeSetSensParams(void *cvode_mem, sunrealtype *p, sunrealtype *pbar, int *plist);
int CVodeSetSensErrCon(void *cvode_mem, sunbooleantype errconS);
int CVodeSetSensDQMethod(void *cvode_mem, int DQtype, sunrealtype DQrhomax);
int CVodeSetSensMaxNonlinIters(void *cvode_mem, int maxcorS);
int CVodeGetSens(void *cvode_mem, sunrealtype *tret, N_Vector *ySout);
int CVodeGetSens1(void *cvode_mem, sunrealtype *tret, int is, N_Vector ySout);
int CVodeGetSensDky(void *cvode_mem, sunrealtype t, int k, N_Vector *dkyA);
int CVodeGetSensDky1(void *cvode_mem, sunrealtype t, int k, int is, N_Vector dky);
int CVodeGetSensErrWeights(void *cvode_mem, N_Vector *eSweight);
int CVodeGetSensNumRhsEvals(void *cvode_mem, long int *nfSevals);
int CVodeGetNumRhsEvalsSens(void *cvode_mem, long int *nfevalsS);
int CVodeGetSensNumErrTestFails(void *cvode_mem, long int *nSetfails);
int CVodeGetSensNumLinSolvSetups(void *cvode_mem, long int *nlinsetupsS);
int CVodeGetSensNumNonlinSolvIters(void *cvode_mem, long int *nSniters);
int CVodeGetSensNumNonlinSolvConvFails(void *cvode_mem, long int *nSncfails);

/* quadrature sensitivities */
int CVodeQuadSensInit(void *cvode_mem, CVQuadSensRhsFn fQS, N_Vector *yQS0);
int CVodeQuadSensReInit(void *cvode_mem, N_Vector *yQS0);
int CVodeQuadSensSStolerances(void *cvode_mem, sunrealtype reltolQS, sunrealtype *abstolQS);
int CVodeQuadSensSVtolerances(void *cvode_mem, sunrealtype reltolQS, N_Vector *abstolQS);
int CVodeQuadSensEEtolerances(void *cvode_mem);
int CVodeSetQuadSensErrCon(void *cvode_mem, sunbooleantype errconQS);
int CVodeGetQuadSens(void *cvode_mem, sunrealtype *tret, N_Vector *yQSout);
int CVodeGetQuadSensDky(void *cvode_mem, sunrealtype t, int k, N_Vector *dkyQS_all);

/* adjoint */
int CVodeAdjInit(void *cvode_mem, long int steps, int interp);
int CVodeAdjReInit(void *cvode_mem);
int CVodeSetAdjNoSensi(void *cvode_mem);
int CVodeF(void *cvode_mem, sunrealtype tout, N_Vector yout, sunrealtype *tret,
           int itask, int *ncheckPtr);
int CVodeCreateB(void *cvode_mem, int lmmB, int *which);
int CVodeInitB(void *cvode_mem, int which, CVRhsFnB fB, sunrealtype tB0, N_Vector yB0);
int CVodeInitBS(void *cvode_mem, int which, CVRhsFnBS fBs, sunrealtype tB0, N_Vector yB0);
int CVodeReInitB(void *cvode_mem, int which, sunrealtype tB0, N_Vector yB0);
int CVodeSStolerancesB(void *cvode_mem, int which, sunrealtype reltolB, sunrealtype abstolB);
int CVodeSVtolerancesB(void *cvode_mem, int which, sunrealtype reltolB, N_Vector abstolB);
int CVodeQuadInitB(void *cvode_mem, int which, CVQuadRhsFnB fQB, N_Vector yQB0);
int CVodeQuadInitBS(void *cvode_mem, int which, CVQuadRhsFnBS fQBs, N_Vector yQB0);
int CVodeQuadReInitB(void *cvode_mem, int which, N_Vector yQB0);
int CVodeQuadSStolerancesB(void *cvode_mem, int which, sunrealtype reltolQB, sunrealtype abstolQB);
int CVodeQuadSVtolerancesB(void *cvode_mem, int which, sunrealtype reltolQB, N_Vector abstolQB);
int CVodeSetQuadErrConB(void *cvode_mem, int which, sunbooleantype errconQB);
int CVodeSetUserDataB(void *cvode_mem, int which, void *user_dataB);
int CVodeB(void *cvode_mem, sunrealtype tBout, int itaskB);
int CVodeGetB(void *cvode_mem, int which, sunrealtype *tBret, N_Vector yB);
int CVodeGetQuadB(void *cvode_mem, int which, sunrealtype *tBret, N_Vector qB);
void *CVodeGetAdjCVodeBmem(void *cvode_mem, int which);
int CVodeSetLinearSolverB(void *cvode_mem, int which, SUNLinearSolver LS, SUNMatrix A);
int CVodeSetNonlinearSolverB(void *cvode_mem, int which, SUNNonlinearSolver NLS);
int CVodeSetJacFnB(void *cvode_mem, int which, CVLsJacFnB jacB);
int CVodeSetPreconditionerB(void *cvode_mem, int which, CVLsPrecSetupFnB psetB,
                            CVLsPrecSolveFnB psolveB);
int CVodeSetJacTimesB(void *cvode_mem, int which, CVLsJacTimesSetupFnB jtsetupB,
                      CVLsJacTimesVecFnB jtimesB);
int CVodeSetEpsLinB(void *cvode_mem, int which, sunrealtype eplifacB);
int CVodeSetMaxOrdB(void *cvode_mem, int which, int maxordB);
int CVodeSetMaxNumStepsB(void *cvode_mem, int which, long int mxstepsB);
int CVodeSetStabLimDetB(void *cvode_mem, int which, sunbooleantype stldetB);
int CVodeSetInitStepB(void *cvode_mem, int which, sunrealtype hinB);
int CVodeSetMinStepB(void *cvode_mem, int which, sunrealtype hminB);
int CVodeSetMaxStepB(void *cvode_mem, int which, sunrealtype hmaxB);
void CVodeAdjFree(void *cvode_mem);

/* band and band-block-diagonal preconditioners */
int CVBandPrecInit(void *cvode_mem, sunindextype N, sunindextype mu, sunindextype ml);
int CVBandPrecGetWorkSpace(void *cvode_mem, long int *lenrwLS, long int *leniwLS);
int CVBandPrecGetNumRhsEvals(void *cvode_mem, long int *nfevalsBP);
int CVBandPrecInitB(void *cvode_mem, int which, sunindextype nB, sunindextype muB,
                    sunindextype mlB);
typedef int (*CVLocalFn)(sunindextype Nlocal, sunrealtype t, N_Vector y, N_Vector g,
                         void *user_data);
typedef int (*CVCommFn)(sunindextype Nlocal, sunrealtype t, N_Vector y, void *user_data);
int CVBBDPrecInit(void *cvode_mem, sunindextype Nlocal, sunindextype mudq, sunindextype mldq,
                  sunindextype mukeep, sunindextype mlkeep, sunrealtype dqrely,
                  CVLocalFn gloc, CVCommFn cfn);
int CVBBDPrecReInit(void *cvode_mem, sunindextype mudq, sunindextype mldq, sunrealtype dqrely);
int CVBBDPrecGetWorkSpace(void *cvode_mem, long int *lenrwBBDP, long int *leniwBBDP);
int CVBBDPrecGetNumGfnEvals(void *cvode_mem, long int *ngevalsBBDP);

/* ---- IDA(S) callback types ---- */
typedef int (*IDAResFn)(sunrealtype tt, N_Vector yy, N_Vector yp, N_Vector rr, void *user_data);
typedef int (*IDARootFn)(sunrealtype t, N_Vector y, N_Vector yp, sunrealtype *gout,
                         void *user_data);
typedef int (*IDAEwtFn)(N_Vector y, N_Vector ewt, void *user_data);
typedef void (*IDAErrHandlerFn)(int error_code, const char *module, const char *function,
                                char *msg, void *user_data);
typedef int (*IDALsJacFn)(sunrealtype t, sunrealtype c_j, N_Vector y, N_Vector yp,
                          N_Vector r, SUNMatrix Jac, void *user_data,
                          N_Vector tmp1, N_Vector tmp2, N_Vector tmp3);
typedef int (*IDALsPrecSetupFn)(sunrealtype tt, N_Vector yy, N_Vector yp, N_Vector rr,
                                sunrealtype c_j, void *user_data);
typedef int (*IDALsPrecSolveFn)(sunrealtype tt, N_Vector yy, N_Vector yp, N_Vector rr,
                                N_Vector rvec, N_Vector zvec, sunrealtype c_j,
                                sunrealtype delta, void *user_data);
typedef int (*IDALsJacTimesSetupFn)(sunrealtype tt, N_Vector yy, N_Vector yp, N_Vector rr,
                                    sunrealtype c_j, void *user_data);
typedef int (*IDALsJacTimesVecFn)(sunrealtype tt, N_Vector yy, N_Vector yp, N_Vector rr,
                                  N_Vector v, N_Vector Jv, sunrealtype c_j,
                                  void *user_data, N_Vector tmp1, N_Vector tmp2);

/* ---- IDA(S) entry points ---- */
void *IDACreate(SUNContext sunctx);
int IDAInit(void *ida_mem, IDAResFn res, sunrealtype t0, N_Vector yy0, N_Vector yp0);
int IDAReInit(void *ida_mem, sunrealtype t0, N_Vector yy0, N_Vector yp0);
void IDAFree(void **ida_mem);
int IDASStolerances(void *ida_mem, sunrealtype reltol, sunrealtype abstol);
int IDASVtolerances(void *ida_mem, sunrealtype reltol, N_Vector abstol);
int IDAWFtolerances(void *ida_mem, IDAEwtFn efun);
int IDASetUserData(void *ida_mem, void *user_data);
int IDARootInit(void *ida_mem, int nrtfn, IDARootFn g);
int IDASetRootDirection(void *ida_mem, int *rootdir);
int IDASetNoInactiveRootWarn(void *ida_mem);
int IDAGetRootInfo(void *ida_mem, int *rootsfound);
int IDASolve(void *ida_mem, sunrealtype tout, sunrealtype *tret, N_Vector yret,
             N_Vector ypret, int itask);
int IDAGetDky(void *ida_mem, sunrealtype t, int k, N_Vector dky);
int IDASetErrHandlerFn(void *ida_mem, IDAErrHandlerFn ehfun, void *eh_data);
int IDASetErrFile(void *ida_mem, FILE *errfp);
int IDASetLinearSolver(void *ida_mem, SUNLinearSolver LS, SUNMatrix A);
int IDASetJacFn(void *ida_mem, IDALsJacFn jac);
int IDASetPreconditioner(void *ida_mem, IDALsPrecSetupFn pset, IDALsPrecSolveFn psolve);
int IDASetJacTimes(void *ida_mem, IDALsJacTimesSetupFn jtsetup, IDALsJacTimesVecFn jtimes);
int IDASetEpsLin(void *ida_mem, sunrealtype eplifac);
int IDASetId(void *ida_mem, N_Vector id);
int IDASetConstraints(void *ida_mem, N_Vector constraints);
int IDASetSuppressAlg(void *ida_mem, sunbooleantype suppressalg);
int IDACalcIC(void *ida_mem, int icopt, sunrealtype tout1);
int IDAGetConsistentIC(void *ida_mem, N_Vector yy0_mod, N_Vector yp0_mod);

int IDASetMaxOrd(void *ida_mem, int maxord);
int IDASetMaxNumSteps(void *ida_mem, long int mxsteps);
int IDASetInitStep(void *ida_mem, sunrealtype hin);
int IDASetMaxStep(void *ida_mem, sunrealtype hmax);
int IDASetStopTime(void *ida_mem, sunrealtype tstop);
int IDASetMaxErrTestFails(void *ida_mem, int maxnef);
int IDASetMaxNonlinIters(void *ida_mem, int maxcor);
int IDASetMaxConvFails(void *ida_mem, int maxncf);
int IDASetNonlinConvCoef(void *ida_mem, sunrealtype epcon);

int IDAGetWorkSpace(void *ida_mem, long int *lenrw, long int *leniw);
int IDAGetNumSteps(void *ida_mem, long int *nsteps);
int IDAGetNumResEvals(void *ida_mem, long int *nrevals);
int IDAGetNumLinSolvSetups(void *ida_mem, long int *nlinsetups);
int IDAGetNumErrTestFails(void *ida_mem, long int *netfails);
int IDAGetNumBacktrackOps(void *ida_mem, long int *nbacktr);
int IDAGetLastOrder(void *ida_mem, int *klast);
int IDAGetCurrentOrder(void *ida_mem, int *kcur);
int IDAGetActualInitStep(void *ida_mem, sunrealtype *hinused);
int IDAGetLastStep(void *ida_mem, sunrealtype *hlast);
int IDAGetCurrentStep(void *ida_mem, sunrealtype *hcur);
int IDAGetCurrentTime(void *ida_mem, sunrealtype *tcur);
int IDAGetTolScaleFactor(void *ida_mem, sunrealtype *tolsfact);
int IDAGetErrWeights(void *ida_mem, N_Vector eweight);
int IDAGetEstLocalErrors(void *ida_mem, N_Vector ele);
int IDAGetNumGEvals(void *ida_mem, long int *ngevals);
int IDAGetNumNonlinSolvIters(void *ida_mem, long int *nniters);
int IDAGetNumNonlinSolvConvFails(void *ida_mem, long int *nncfails);
int IDAGetIntegratorStats(void *ida_mem, long int *nsteps, long int *nrevals,
                          long int *nlinsetups, long int *netfails, int *qlast,
                          int *qcur, sunrealtype *hinused, sunrealtype *hlast,
                          sunrealtype *hcur, sunrealtype *tcur);
int IDAGetLinWorkSpace(void *ida_mem, long int *lenrwLS, long int *leniwLS);
int IDAGetNumJacEvals(void *ida_mem, long int *njevals);
int IDAGetNumPrecEvals(void *ida_mem, long int *npevals);
int IDAGetNumPrecSolves(void *ida_mem, long int *npsolves);
int IDAGetNumLinIters(void *ida_mem, long int *nliters);
int IDAGetNumLinConvFails(void *ida_mem, long int *nlcfails);
int IDAGetNumJtimesEvals(void *ida_mem, long int *njvevals);
int IDAGetNumLinResEvals(void *ida_mem, long int *nrevalsLS);

/* IDA band-block-diagonal preconditioner */
typedef int (*IDABBDLocalFn)(sunindextype Nlocal, sunrealtype tt, N_Vector yy, N_Vector yp,
                             N_Vector gval, void *user_data);
typedef int (*IDABBDCommFn)(sunindextype Nlocal, sunrealtype tt, N_Vector yy, N_Vector yp,
                            void *user_data);
int IDABBDPrecInit(void *ida_mem, sunindextype Nlocal, sunindextype mudq, sunindextype mldq,
                   sunindextype mukeep, sunindextype mlkeep, sunrealtype dq_rel_yy,
                   IDABBDLocalFn Gres, IDABBDCommFn Gcomm);
int IDABBDPrecReInit(void *ida_mem, sunindextype mudq, sunindextype mldq, sunrealtype dq_rel_yy);
int IDABBDPrecGetWorkSpace(void *ida_mem, long int *lenrwBBDP, long int *leniwBBDP);
int IDABBDPrecGetNumGfnEvals(void *ida_mem, long int *ngevalsBBDP);

/* IDAS quadratures */
typedef int (*IDAQuadRhsFn)(sunrealtype tres, N_Vector yy, N_Vector yp, N_Vector rrQ,
                            void *user_data);
int IDAQuadInit(void *ida_mem, IDAQuadRhsFn rhsQ, N_Vector yQ0);
int IDAQuadReInit(void *ida_mem, N_Vector yQ0);
int IDAQuadSStolerances(void *ida_mem, sunrealtype reltolQ, sunrealtype abstolQ);
int IDAQuadSVtolerances(void *ida_mem, sunrealtype reltolQ, N_Vector abstolQ);
int IDASetQuadErrCon(void *ida_mem, sunbooleantype errconQ);
int IDAGetQuad(void *ida_mem, sunrealtype *t, N_Vector yQout);
int IDAGetQuadDky(void *ida_mem, sunrealtype t, int k, N_Vector dky);
int IDAGetQuadNumRhsEvals(void *ida_mem, long int *nrhsQevals);
int IDAGetQuadNumErrTestFails(void *ida_mem, long int *nQetfails);
int IDAGetQuadErrWeights(void *ida_mem, N_Vector eQweight);

/* IDAS forward sensitivities */
typedef int (*IDASensResFn)(int Ns, sunrealtype t, N_Vector yy, N_Vector yp, N_Vector resval,
                            N_Vector *yyS, N_Vector *ypS, N_Vector *resvalS, void *user_data,
                            N_Vector tmp1, N_Vector tmp2, N_Vector tmp3);
int IDASensInit(void *ida_mem, int Ns, int ism, IDASensResFn resS, N_Vector *yS0,
                N_Vector *ypS0);
int IDASensReInit(void *ida_mem, int ism, N_Vector *yS0, N_Vector *ypS0);
int IDASensSStolerances(void *ida_mem, sunrealtype reltolS, sunrealtype *abstolS);
int IDASensSVtolerances(void *ida_mem, sunrealtype reltolS, N_Vector *abstolS);
int IDASensEEtolerances(void *ida_mem);
int IDASensToggleOff(void *ida_mem);
int IDASetSensParams(void *ida_mem, sunrealtype *p, sunrealtype *pbar, int *plist);
int IDASetSensDQMethod(void *ida_mem, int DQtype, sunrealtype DQrhomax);
int IDASetSensErrCon(void *ida_mem, sunbooleantype errconS);
int IDASetSensMaxNonlinIters(void *ida_mem, int maxcorS);
int IDAGetSens(void *ida_mem, sunrealtype *tret, N_Vector *yySout);
int IDAGetSens1(void *ida_mem, sunrealtype *tret, int is, N_Vector yySret);
int IDAGetSensDky(void *ida_mem, sunrealtype t, int k, N_Vector *dkyS);
int IDAGetSensDky1(void *ida_mem, sunrealtype t, int k, int is, N_Vector dkyS);
int IDAGetSensConsistentIC(void *ida_mem, N_Vector *yyS0, N_Vector *ypS0);
int IDAGetSensErrWeights(void *ida_mem, N_Vector *eSweight);
int IDAGetSensNumResEvals(void *ida_mem, long int *nresSevals);
int IDAGetNumResEvalsSens(void *ida_mem, long int *nresevalsS);
int IDAGetSensNumErrTestFails(void *ida_mem, long int *nSetfails);
int IDAGetSensNumLinSolvSetups(void *ida_mem, long int *nlinsetupsS);
int IDAGetSensNumNonlinSolvIters(void *ida_mem, long int *nSniters);
int IDAGetSensNumNonlinSolvConvFails(void *ida_mem, long int *nSncfails);
"""

# C runtime entry points used for the optional diagnostic file.
LIBC_CDEF = """
FILE *fopen(const char *path, const char *mode);
int fclose(FILE *stream);
"""

ffi.cdef(CDEF)
ffi.cdef(LIBC_CDEF)
