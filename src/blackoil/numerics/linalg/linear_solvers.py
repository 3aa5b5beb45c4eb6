"""
Module for the linear solvers used by the pressure assembler and the nonlinear models.

The solvers consume a sparse matrix in compressed row format and a dense right hand
side, and return the solution together with a report. Whether a failed solve is fatal
is decided by the caller: the IMPES assembler raises
:class:`LinearSolverConvergenceError`, while the Newton solver turns the same error
into a failed time step.

"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import scipy.sparse as sps
import scipy.sparse.linalg as spla

import blackoil as bo

__all__ = [
    "LinearSolver",
    "LinearSolverConvergenceError",
    "LinearSolverReport",
    "ScipyLinearSolver",
]

logger = logging.getLogger(__name__)

module_sections = ["numerics"]


class LinearSolverConvergenceError(RuntimeError):
    """Raised when a linear solve does not converge and the caller cannot recover."""


@dataclass
class LinearSolverReport:
    """Outcome of a linear solve."""

    converged: bool
    """Whether the solver reached its tolerance."""
    iterations: int = 0
    """Number of iterations. Direct solvers report a single iteration."""
    residual_norm: float = np.nan
    """Euclidean norm of ``b - A x`` for the returned solution."""


class LinearSolver(Protocol):
    """Interface for linear solvers."""

    def solve(
        self, A: sps.csr_matrix, b: np.ndarray
    ) -> tuple[np.ndarray, LinearSolverReport]:
        """Solve ``A x = b``.

        Parameters:
            A: System matrix.
            b: Right hand side.

        Returns:
            The solution and a report on the solve.

        """
        ...


class ScipyLinearSolver:
    """Linear solvers from scipy.sparse.linalg.

    Parameters:
        method: One of ``"direct"`` (sparse LU), ``"gmres"`` or ``"bicgstab"``.
        tol: Relative tolerance for the iterative methods.
        max_iterations: Maximum number of iterations for the iterative methods.

    """

    methods = ("direct", "gmres", "bicgstab")

    def __init__(
        self, method: str = "direct", tol: float = 1e-10, max_iterations: int = 500
    ) -> None:
        if method not in self.methods:
            raise ValueError(
                f"Unknown linear solver {method}, expected one of {self.methods}."
            )
        self.method = method
        self.tol = tol
        self.max_iterations = max_iterations

    def __repr__(self) -> str:
        return (
            f"Scipy linear solver, method {self.method}, tolerance {self.tol}, "
            f"maximum {self.max_iterations} iterations."
        )

    @bo.time_logger(sections=module_sections)
    def solve(
        self, A: sps.csr_matrix, b: np.ndarray
    ) -> tuple[np.ndarray, LinearSolverReport]:
        A = sps.csr_matrix(A)
        b = np.asarray(b, dtype=float)
        if A.shape[0] != A.shape[1] or A.shape[0] != b.size:
            raise ValueError(
                f"Incompatible system: matrix {A.shape}, right hand side {b.size}."
            )

        iterations = 0

        def count(*args) -> None:
            nonlocal iterations
            iterations += 1

        if self.method == "direct":
            x = np.atleast_1d(spla.spsolve(A.tocsc(), b))
            converged = bool(np.all(np.isfinite(x)))
            iterations = 1
        elif self.method == "gmres":
            x, info = spla.gmres(
                A,
                b,
                rtol=self.tol,
                maxiter=self.max_iterations,
                callback=count,
                callback_type="pr_norm",
            )
            converged = info == 0
        else:
            x, info = spla.bicgstab(
                A, b, rtol=self.tol, maxiter=self.max_iterations, callback=count
            )
            converged = info == 0

        residual_norm = (
            float(np.linalg.norm(b - A @ x)) if converged else float(np.nan)
        )
        report = LinearSolverReport(converged, iterations, residual_norm)
        if not converged:
            logger.warning(f"Linear solver {self.method} failed to converge.")
        else:
            logger.debug(f"Linear solver {self.method}: {report}")
        return x, report
