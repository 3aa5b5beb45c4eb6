"""State containers for reservoir and well quantities."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class BlackoilState:
    """Reservoir state variables.

    Shapes are checked at construction; arrays are stored as float copies.

    """

    pressure: np.ndarray
    """``shape=(num_cells,)`` Cell pressures."""
    saturation: np.ndarray
    """``shape=(num_cells, num_phases)`` Phase saturations."""
    surfacevol: np.ndarray
    """``shape=(num_cells, num_phases)`` Surface volume of each phase per unit pore
    volume."""

    def __post_init__(self) -> None:
        self.pressure = np.array(self.pressure, dtype=float).ravel()
        self.saturation = np.array(self.saturation, dtype=float, ndmin=2)
        self.surfacevol = np.array(self.surfacevol, dtype=float, ndmin=2)

        nc = self.pressure.size
        if self.saturation.shape[0] != nc:
            raise ValueError(
                f"Expected saturations for {nc} cells, got {self.saturation.shape[0]}."
            )
        if self.surfacevol.shape != self.saturation.shape:
            raise ValueError(
                f"Surface volumes of shape {self.surfacevol.shape} do not match "
                f"saturations of shape {self.saturation.shape}."
            )

    @property
    def num_cells(self) -> int:
        return self.pressure.size

    @property
    def num_phases(self) -> int:
        return self.saturation.shape[1]


@dataclass
class WellState:
    """Well state variables."""

    bhp: np.ndarray
    """``shape=(num_wells,)`` Bottom-hole pressures."""

    def __post_init__(self) -> None:
        self.bhp = np.array(self.bhp, dtype=float).ravel()

    @property
    def num_wells(self) -> int:
        return self.bhp.size
