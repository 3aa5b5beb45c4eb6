"""Protocols declaring the methods that collaborators of the solvers must provide.

:class:`NonlinearModel` is the capability set used by
:class:`~blackoil.numerics.nonlinear.nonlinear_solvers.NewtonSolver`; any
discretization implementing it can be solved by the Newton solver without
modification of the solver.

:class:`BlackoilFluid` is the interface of the fluid property models consumed by
:class:`~blackoil.models.fluid_data.PressureDependentFluidData`. Array layout is row
major: one row per cell, one column per phase (``num_phases**2`` columns for the
surface-to-reservoir volume matrix).

Note:
    The protocols are used for type hints only. Implementations need not inherit
    from them.

"""
from __future__ import annotations

from typing import Any, Optional, Protocol

import numpy as np


class NonlinearModel(Protocol):
    """Model that can be advanced in time by the Newton solver."""

    def prepare_step(self, dt: float, reservoir_state: Any, well_state: Any) -> None:
        """Once-per-step calculations, called before the first assembly."""

    def assemble(
        self, reservoir_state: Any, well_state: Any, initial_assembly: bool
    ) -> None:
        """Assemble the residual and the Jacobian at the current state.

        Parameters:
            reservoir_state: Reservoir state variables.
            well_state: Well state variables.
            initial_assembly: True for the first assembly of a step.

        """

    def compute_residual_norms(self) -> list[float]:
        """Residual norms of the last assembly, at least one per phase."""

    def get_convergence(self, dt: float, iteration: int) -> bool:
        """Whether the last assembled residual is converged."""

    def size_non_linear(self) -> int:
        """Number of unknowns in the nonlinear system."""

    def solve_jacobian_system(self) -> np.ndarray:
        """Solve the linearized system for the Newton update.

        The sign convention is that :meth:`update_state` adds the update.

        Raises:
            LinearSolverConvergenceError: If the linear solver fails.

        """

    def linear_iterations_last_solve(self) -> int:
        """Number of linear iterations used in the last call to
        :meth:`solve_jacobian_system`."""

    def update_state(
        self, dx: np.ndarray, reservoir_state: Any, well_state: Any
    ) -> None:
        """Apply an update, with model-specific limits, to the states."""

    def after_step(self, dt: float, reservoir_state: Any, well_state: Any) -> None:
        """Once-per-step post-processing after convergence."""

    def num_phases(self) -> int:
        """Number of phases with residual norms."""


class BlackoilFluid(Protocol):
    """Fluid property model for black-oil simulations."""

    def num_phases(self) -> int:
        """Number of active phases."""

    def relperm(
        self, s: np.ndarray, cells: np.ndarray
    ) -> tuple[np.ndarray, Optional[np.ndarray]]:
        """Relative permeabilities.

        Parameters:
            s: ``shape=(num_cells, num_phases)`` Saturations.
            cells: Cell indices.

        Returns:
            Relative permeabilities with the shape of ``s``, and their saturation
            derivatives with ``shape=(num_cells, num_phases**2)``, or None.

        """

    def matrix(
        self, p: np.ndarray, z: np.ndarray, cells: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Matrix converting reservoir volumes to surface volumes.

        The diagonal entry of phase ``j`` (column ``j * (num_phases + 1)``) is the
        inverse formation volume factor ``b = 1 / B``.

        Parameters:
            p: Pressures.
            z: ``shape=(num_cells, num_phases)`` Surface volumes.
            cells: Cell indices.

        Returns:
            The matrix and its pressure derivative, each with
            ``shape=(num_cells, num_phases**2)``.

        """

    def viscosity(
        self, p: np.ndarray, z: np.ndarray, cells: np.ndarray
    ) -> tuple[np.ndarray, Optional[np.ndarray]]:
        """Phase viscosities and, if available, their pressure derivatives, each with
        ``shape=(num_cells, num_phases)``."""
