# src/sunbridge/solvers/__init__.py
from .linsolv import (
    Functional, Dense, Band, Preconditioner, Spgmr, Spbcgs, Sptfqmr,
)

# Import order follows the dependencies between the solver modules
from . import cvode, ida
from . import sensitivity, adjoint

__all__ = [
    "Functional", "Dense", "Band", "Preconditioner", "Spgmr", "Spbcgs", "Sptfqmr",
    "cvode", "ida", "sensitivity", "adjoint",
]
