"""Implicit pressure solver for black-oil models, discretized with TPFA.

The pressure equation is formed by weighting the mass conservation equation of each
phase with its formation volume factor and summing over the phases, with saturations
held at their values from the start of the step. The equation is linearized once and
solved for a pressure correction. No outer nonlinear iteration is performed.

With ``pv`` the pore volumes, ``z0`` the surface volumes per unit pore volume at the
start of the step and ``B`` the formation volume factors, the residual is

    r = pv - sum_phases B * (pv * z0 + dt * (q - div(flux / B_face)))

where ``flux = upwind(kr / mu) * T * ngrad(p)`` is the phase flux on internal faces,
and ``B_face`` the upwind formation volume factor.

Note:
    The well bottom-hole pressures are part of the block pattern of the primary
    variables, so that perforation pressures carry their derivatives. No well
    equations are assembled, however, and only the pressure block of the Jacobian is
    solved: the bottom-hole pressures are fixed input to the linearization.

"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

import blackoil as bo
from blackoil.ad.forward_mode import AdArray, initAdArrays
from blackoil.ad.utils import subset
from blackoil.models.fluid_data import PressureDependentFluidData
from blackoil.models.protocol import BlackoilFluid
from blackoil.models.states import BlackoilState, WellState
from blackoil.models.wells import Wells
from blackoil.numerics.linalg.linear_solvers import (
    LinearSolver,
    LinearSolverConvergenceError,
    LinearSolverReport,
)

logger = logging.getLogger(__name__)

module_sections = ["models", "assembly"]


class ImpesTpfaAd:
    """Pressure solver for the IMPES scheme.

    The object holds references to its collaborators; none of them are modified.

    Parameters:
        grid: The grid.
        fluid: Fluid property model.
        geo: Pore volumes and transmissibilities on ``grid``.
        wells: Well perforations.
        linsolver: Solver for the pressure system.

    Attributes:
        cell_residual (AdArray): Residual of the last assembly. None before the
            first assembly.
        perforation_pressures (AdArray): Well pressures at the perforations of the
            last assembly, with derivatives against the bottom-hole pressures.
        perforation_cell_pressures (AdArray): Cell pressures at the perforations of
            the last assembly.
        last_linear_report (LinearSolverReport): Report of the last linear solve.

    """

    def __init__(
        self,
        grid: bo.Grid,
        fluid: BlackoilFluid,
        geo: bo.DerivedGeology,
        wells: Wells,
        linsolver: LinearSolver,
    ) -> None:
        self.grid = grid
        self.geo = geo
        self.wells = wells
        self.linsolver = linsolver
        self.fluid_data = PressureDependentFluidData(grid.num_cells, fluid)
        self.ops = bo.HelperOps(grid)

        self.cell_residual: Optional[AdArray] = None
        self.perforation_pressures: Optional[AdArray] = None
        self.perforation_cell_pressures: Optional[AdArray] = None
        self.last_linear_report: Optional[LinearSolverReport] = None

    def __repr__(self) -> str:
        return (
            f"IMPES TPFA pressure solver on a grid with {self.grid.num_cells} cells "
            f"and {self.wells.number_of_wells} wells."
        )

    @bo.time_logger(sections=module_sections)
    def solve(
        self,
        dt: float,
        state: BlackoilState,
        well_state: WellState,
        sources: Optional[np.ndarray] = None,
    ) -> None:
        """Advance the pressure one time step.

        The pressure of ``state`` is updated in place. Saturations, surface volumes
        and the well state are not modified.

        Parameters:
            dt: Time step size.
            state: Reservoir state at the start of the step.
            well_state: Well state. The bottom-hole pressures are kept fixed.
            sources: ``shape=(num_cells, num_phases)`` Surface volume rates of
                injection per cell and phase. Defaults to zero.

        Raises:
            LinearSolverConvergenceError: If the pressure system could not be
                solved. The pressure is not modified in this case.

        """
        self.assemble(dt, state, well_state, sources)

        residual = self.cell_residual
        matrix = residual.jac[0]
        dp, report = self.linsolver.solve(matrix, residual.val)
        self.last_linear_report = report
        if not report.converged:
            raise LinearSolverConvergenceError(
                "ImpesTpfaAd.solve(): Linear solver convergence failure."
            )

        state.pressure = state.pressure - dp
        logger.debug(
            f"Pressure update with max norm {np.max(np.abs(dp), initial=0.0):.3e}"
        )

    @bo.time_logger(sections=module_sections)
    def assemble(
        self,
        dt: float,
        state: BlackoilState,
        well_state: WellState,
        sources: Optional[np.ndarray] = None,
    ) -> None:
        """Assemble the pressure residual at the current state.

        Relative permeabilities are evaluated at the saturations of ``state``, and
        are held fixed in the pressure derivatives.

        """
        nc = self.grid.num_cells
        num_phases = state.num_phases
        nw = self.wells.number_of_wells
        if state.num_cells != nc:
            raise ValueError(f"State has {state.num_cells} cells, grid has {nc}.")
        if well_state.num_wells != nw:
            raise ValueError(
                f"Well state has {well_state.num_wells} wells, expected {nw}."
            )
        if num_phases != self.fluid_data.num_phases:
            raise ValueError(
                f"State has {num_phases} phases, the fluid "
                f"{self.fluid_data.num_phases}."
            )

        if sources is None:
            sources = np.zeros((nc, num_phases))
        else:
            sources = np.asarray(sources, dtype=float)
            if sources.shape != (nc, num_phases):
                raise ValueError(
                    f"Expected sources of shape {(nc, num_phases)}, got "
                    f"{sources.shape}."
                )

        self.fluid_data.compute_saturation_quantities(state)
        self.fluid_data.compute_pressure_quantities(state)

        pv = self.geo.pore_volume()
        z0_all = state.surfacevol
        transi = self.geo.transmissibility()[self.ops.internal_faces]

        # Primary variables: cell pressures and well bottom-hole pressures.
        p, bhp = initAdArrays([state.pressure, well_state.bhp])
        block_pattern = p.block_pattern

        # Use T_ij * (p_i - p_j) for upwinding.
        nkgradp = transi * (self.ops.ngrad @ p)
        upwind = bo.UpwindSelector(self.grid, self.ops, nkgradp.val)

        # Pressures at the perforations, seen from the cells and from the wells.
        self.perforation_cell_pressures = subset(p, self.wells.well_cells)
        well_perf_dp = self.well_perforation_pressure_differences(state)
        self.perforation_pressures = (
            self.wells.well_to_perforation() @ bhp + well_perf_dp
        )

        residual = AdArray.constant(pv, block_pattern)
        for phase in range(num_phases):
            cell_B = self.fluid_data.formation_volume_factor(phase, p)

            kr = self.fluid_data.phase_relperm(phase)
            mu = self.fluid_data.phase_viscosity(phase, p)
            mobility = upwind.select(kr / mu)
            flux = mobility * nkgradp

            face_B = upwind.select(cell_B)

            z0 = z0_all[:, phase]
            q = sources[:, phase]

            component = pv * z0 + dt * (q - self.ops.div @ (flux / face_B))
            residual = residual - cell_B * component

        self.cell_residual = residual

    def well_perforation_pressure_differences(self, state: BlackoilState) -> np.ndarray:
        """Pressure difference between the bottom-hole reference depth and each
        perforation.

        Gravity is not included, hence the differences are all zero.

        """
        return np.zeros(self.wells.num_perforations)
