"""Fully implicit model for slightly compressible single-phase flow.

The model implements :class:`~blackoil.models.protocol.NonlinearModel`, and is solved
with :class:`~blackoil.numerics.nonlinear.nonlinear_solvers.NewtonSolver`. Mass
conservation of a single phase, in surface volumes, is discretized with TPFA and
backward Euler:

    pv * (b(p) - b(p0)) / dt + div(upwind(b * kr / mu) * T * ngrad(p)) - q = 0

where ``b`` is the inverse formation volume factor. Relative permeabilities are
evaluated once per step at the saturations of the reservoir state. The pressure
derivatives of both ``b`` and ``mu`` enter the Jacobian.

"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

import blackoil as bo
from blackoil.ad.forward_mode import AdArray, initAdArrays
from blackoil.models.fluid_data import PressureDependentFluidData
from blackoil.models.protocol import BlackoilFluid
from blackoil.models.states import BlackoilState, WellState
from blackoil.numerics.linalg.linear_solvers import (
    LinearSolver,
    LinearSolverConvergenceError,
)

logger = logging.getLogger(__name__)

module_sections = ["models", "assembly"]


class SinglePhaseCompressibleModel:
    """Single-phase flow with pressure dependent density and viscosity.

    Wells are not included; the well state passed by the solver is ignored.

    Parameters:
        grid: The grid.
        fluid: Fluid property model. Only the phase ``phase`` is used.
        geo: Pore volumes and transmissibilities on ``grid``.
        linsolver: Solver for the Jacobian systems.
        phase: Index of the flowing phase in the fluid model.
        tolerance: Convergence tolerance for the residual, scaled by ``dt / pv``.
        sources: Surface volume rate of injection in each cell. Defaults to zero.
        max_pressure_change: If given, the pressure update in each cell is limited
            to this magnitude.

    """

    def __init__(
        self,
        grid: bo.Grid,
        fluid: BlackoilFluid,
        geo: bo.DerivedGeology,
        linsolver: LinearSolver,
        phase: int = 0,
        tolerance: float = 1e-8,
        sources: Optional[np.ndarray] = None,
        max_pressure_change: Optional[float] = None,
    ) -> None:
        if tolerance <= 0:
            raise ValueError("Convergence tolerance must be positive.")
        if max_pressure_change is not None and max_pressure_change <= 0:
            raise ValueError("Maximum pressure change must be positive.")

        self.grid = grid
        self.geo = geo
        self.linsolver = linsolver
        self.phase = phase
        self.tolerance = tolerance
        self.max_pressure_change = max_pressure_change

        nc = grid.num_cells
        self.fluid_data = PressureDependentFluidData(
            nc, fluid, viscosity_derivatives=True
        )
        if not 0 <= phase < self.fluid_data.num_phases:
            raise ValueError(f"Phase index {phase} not present in the fluid model.")
        self.ops = bo.HelperOps(grid)
        self._transmissibility = geo.transmissibility()[self.ops.internal_faces]

        if sources is None:
            self.sources = np.zeros(nc)
        else:
            self.sources = np.asarray(sources, dtype=float).ravel()
            if self.sources.size != nc:
                raise ValueError(f"Expected {nc} source values, got {self.sources.size}.")

        self._dt: float = 0.0
        self._b0: np.ndarray = np.zeros(nc)
        self._residual: Optional[AdArray] = None
        self._linear_iterations = 0

    def prepare_step(
        self, dt: float, reservoir_state: BlackoilState, well_state: WellState
    ) -> None:
        if dt <= 0:
            raise ValueError("Time step size must be positive.")
        self._dt = dt
        self.fluid_data.compute_saturation_quantities(reservoir_state)
        self.fluid_data.compute_pressure_quantities(reservoir_state)
        p0 = initAdArrays(reservoir_state.pressure)
        self._b0 = self.fluid_data.inverse_formation_volume_factor(self.phase, p0).val

    @bo.time_logger(sections=module_sections)
    def assemble(
        self,
        reservoir_state: BlackoilState,
        well_state: WellState,
        initial_assembly: bool,
    ) -> None:
        """Assemble the mass conservation residual, with the pressure as the only
        primary variable."""
        fd = self.fluid_data
        fd.compute_pressure_quantities(reservoir_state)

        pv = self.geo.pore_volume()
        p = initAdArrays(reservoir_state.pressure)

        b = fd.inverse_formation_volume_factor(self.phase, p)
        mu = fd.phase_viscosity(self.phase, p)
        kr = fd.phase_relperm(self.phase)

        nkgradp = self._transmissibility * (self.ops.ngrad @ p)
        upwind = bo.UpwindSelector(self.grid, self.ops, nkgradp.val)
        flux = upwind.select(b * kr / mu) * nkgradp

        accumulation = pv * (b - self._b0) / self._dt
        self._residual = accumulation + self.ops.div @ flux - self.sources

    def compute_residual_norms(self) -> list[float]:
        """Maximum norm of the residual, scaled to a change in ``b``."""
        scaled = np.abs(self._residual.val) * self._dt / self.geo.pore_volume()
        return [float(np.max(scaled, initial=0.0))]

    def get_convergence(self, dt: float, iteration: int) -> bool:
        norm = self.compute_residual_norms()[0]
        logger.debug(f"Iteration {iteration}: scaled residual {norm:.3e}")
        return norm < self.tolerance

    def size_non_linear(self) -> int:
        return self.grid.num_cells

    @bo.time_logger(sections=module_sections)
    def solve_jacobian_system(self) -> np.ndarray:
        jacobian = self._residual.full_jac()
        dx, report = self.linsolver.solve(jacobian, -self._residual.val)
        self._linear_iterations = report.iterations
        if not report.converged:
            raise LinearSolverConvergenceError(
                "SinglePhaseCompressibleModel: Linear solver convergence failure."
            )
        return dx

    def linear_iterations_last_solve(self) -> int:
        return self._linear_iterations

    def update_state(
        self, dx: np.ndarray, reservoir_state: BlackoilState, well_state: WellState
    ) -> None:
        if self.max_pressure_change is not None:
            dx = np.clip(dx, -self.max_pressure_change, self.max_pressure_change)
        reservoir_state.pressure = reservoir_state.pressure + dx

    def after_step(
        self, dt: float, reservoir_state: BlackoilState, well_state: WellState
    ) -> None:
        """Update the surface volumes of the phase to the converged pressure."""
        self.fluid_data.compute_pressure_quantities(reservoir_state)
        p = initAdArrays(reservoir_state.pressure)
        b = self.fluid_data.inverse_formation_volume_factor(self.phase, p).val
        reservoir_state.surfacevol[:, self.phase] = (
            b * reservoir_state.saturation[:, self.phase]
        )

    def num_phases(self) -> int:
        return 1
