from .linear_solvers import (
    LinearSolver,
    LinearSolverConvergenceError,
    LinearSolverReport,
    ScipyLinearSolver,
)
