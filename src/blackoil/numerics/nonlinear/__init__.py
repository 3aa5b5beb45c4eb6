from .nonlinear_solvers import (
    NewtonSolver,
    OscillationDiagnosis,
    RelaxType,
    SolverParameters,
    detect_newton_oscillations,
    stabilize_newton,
)
from .solver_statistics import NewtonSolverStatistics
