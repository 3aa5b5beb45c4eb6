"""Fluid properties as AD quantities.

The fluid property model evaluates values and pressure derivatives outside the AD
framework. :class:`PressureDependentFluidData` stores these, and hands them out as
AdArrays whose pressure block is the diagonal matrix of the derivatives, so that they
can be combined with the primary variables in residual expressions.

"""
from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sps

import blackoil as bo
from blackoil.ad.forward_mode import AdArray, BlockPatternError
from blackoil.ad.utils import spdiag
from blackoil.models.protocol import BlackoilFluid
from blackoil.models.states import BlackoilState

logger = logging.getLogger(__name__)

module_sections = ["properties"]


class PressureDependentFluidData:
    """Cell-wise fluid properties for all phases, with pressure derivatives.

    Saturation dependent quantities (relative permeabilities) and pressure dependent
    quantities (formation volume factors and viscosities) are refreshed separately,
    since the IMPES scheme keeps saturations fixed during a step.

    The pressure must be the first block of the block pattern of the AdArrays
    passed to the methods, with one unknown per cell.

    Parameters:
        num_cells: Number of cells.
        fluid: Fluid property model.
        viscosity_derivatives: If False, the pressure derivative of the viscosities
            is ignored, and viscosities enter the Jacobian as constants.

    """

    def __init__(
        self,
        num_cells: int,
        fluid: BlackoilFluid,
        viscosity_derivatives: bool = False,
    ) -> None:
        self.num_cells = num_cells
        self.num_phases = fluid.num_phases()
        self.cells = np.arange(num_cells)
        self.fluid = fluid
        self.viscosity_derivatives = viscosity_derivatives

        nc, np_ = num_cells, self.num_phases
        # Pressure dependent quantities (essentially 1/B and mu)
        self._A = np.zeros((nc, np_ * np_))
        self._dA = np.zeros((nc, np_ * np_))
        self._mu = np.zeros((nc, np_))
        self._dmu = np.zeros((nc, np_))
        # Saturation dependent quantities (rel-perm only)
        self._kr = np.zeros((nc, np_))

    @bo.time_logger(sections=module_sections)
    def compute_saturation_quantities(self, state: BlackoilState) -> None:
        """Evaluate relative permeabilities at the saturations of ``state``.

        Relative permeability derivatives are not stored.

        """
        s = state.saturation
        if s.shape != (self.num_cells, self.num_phases):
            raise ValueError(
                f"Expected saturations of shape {(self.num_cells, self.num_phases)}, "
                f"got {s.shape}."
            )
        kr, _ = self.fluid.relperm(s, self.cells)
        self._kr = np.asarray(kr, dtype=float).reshape(self.num_cells, self.num_phases)

    @bo.time_logger(sections=module_sections)
    def compute_pressure_quantities(self, state: BlackoilState) -> None:
        """Evaluate inverse formation volume factors and viscosities, with their
        pressure derivatives, at the pressures and surface volumes of ``state``."""
        p = state.pressure
        z = state.surfacevol
        if p.size != self.num_cells or z.shape != (self.num_cells, self.num_phases):
            raise ValueError("State does not match the size of the fluid data.")

        nc, np_ = self.num_cells, self.num_phases
        A, dA = self.fluid.matrix(p, z, self.cells)
        self._A = np.asarray(A, dtype=float).reshape(nc, np_ * np_)
        self._dA = np.asarray(dA, dtype=float).reshape(nc, np_ * np_)

        mu, dmu = self.fluid.viscosity(p, z, self.cells)
        self._mu = np.asarray(mu, dtype=float).reshape(nc, np_)
        if self.viscosity_derivatives and dmu is not None:
            self._dmu = np.asarray(dmu, dtype=float).reshape(nc, np_)
        else:
            self._dmu = np.zeros((nc, np_))

    def inverse_formation_volume_factor(self, phase: int, p: AdArray) -> AdArray:
        """Inverse formation volume factor ``b = 1 / B`` of a phase.

        Parameters:
            phase: Phase index.
            p: Cell pressures as primary variable.

        Returns:
            ``b`` with Jacobian ``diag(db/dp)`` against the pressure, zero against
            all other blocks.

        """
        self._check_phase(phase)
        col = phase * (self.num_phases + 1)
        return AdArray.function(
            self._A[:, col], self._pressure_jacobian(self._dA[:, col], p)
        )

    def formation_volume_factor(self, phase: int, p: AdArray) -> AdArray:
        """Formation volume factor ``B`` of a phase, as the reciprocal of
        :meth:`inverse_formation_volume_factor`."""
        return 1.0 / self.inverse_formation_volume_factor(phase, p)

    def phase_relperm(self, phase: int) -> np.ndarray:
        """Relative permeability of a phase. No derivatives are formed."""
        self._check_phase(phase)
        return self._kr[:, phase].copy()

    def phase_viscosity(self, phase: int, p: AdArray) -> AdArray:
        """Viscosity of a phase, with Jacobian ``diag(dmu/dp)`` against the pressure.

        The pressure block is zero unless viscosity derivatives are requested.

        """
        self._check_phase(phase)
        return AdArray.function(
            self._mu[:, phase], self._pressure_jacobian(self._dmu[:, phase], p)
        )

    def _pressure_jacobian(
        self, derivative: np.ndarray, p: AdArray
    ) -> list[sps.csr_matrix]:
        pattern = p.block_pattern
        if pattern[0] != self.num_cells:
            raise BlockPatternError(
                f"Pressure block has {pattern[0]} columns, expected {self.num_cells}."
            )
        jac = [spdiag(derivative)]
        jac += [sps.csr_matrix((self.num_cells, m)) for m in pattern[1:]]
        return jac

    def _check_phase(self, phase: int) -> None:
        if not 0 <= phase < self.num_phases:
            raise ValueError(
                f"Phase index {phase} out of range for {self.num_phases} phases."
            )
