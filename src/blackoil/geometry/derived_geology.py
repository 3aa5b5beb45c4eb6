"""Pore volumes and two-point transmissibilities."""
from __future__ import annotations

from typing import Optional, Union

import numpy as np

import blackoil as bo

module_sections = ["geometry"]


class DerivedGeology:
    """Geological quantities needed by finite volume discretizations.

    Parameters:
        grid: Grid with geometry.
        porosity: Cell-wise porosity, or a single value for all cells.
        permeability: Cell-wise isotropic permeability, or a single value.
        ntg: Optional net-to-gross ratio, scales pore volumes.

    """

    def __init__(
        self,
        grid: bo.Grid,
        porosity: Union[np.ndarray, float],
        permeability: Union[np.ndarray, float],
        ntg: Optional[Union[np.ndarray, float]] = None,
    ) -> None:
        self.grid = grid
        self.porosity = np.broadcast_to(
            np.asarray(porosity, dtype=float), (grid.num_cells,)
        )
        self.permeability = np.broadcast_to(
            np.asarray(permeability, dtype=float), (grid.num_cells,)
        )
        ntg = 1.0 if ntg is None else ntg
        self.ntg = np.broadcast_to(np.asarray(ntg, dtype=float), (grid.num_cells,))

        if np.any(self.porosity < 0) or np.any(self.permeability < 0):
            raise ValueError("Porosity and permeability must be non-negative.")

        self._pore_volume = self.porosity * self.ntg * grid.cell_volumes
        self._transmissibility = self._compute_transmissibility()

    def pore_volume(self) -> np.ndarray:
        """Pore volume of each cell."""
        return self._pore_volume

    def transmissibility(self) -> np.ndarray:
        """Two-point transmissibility of each face.

        Internal faces get the harmonic combination of the half transmissibilities
        of the two neighbors, boundary faces the half transmissibility of their
        single neighbor.

        """
        return self._transmissibility

    @bo.time_logger(sections=module_sections)
    def _compute_transmissibility(self) -> np.ndarray:
        g = self.grid
        fi, ci = [], []
        for side in range(2):
            inside = g.face_neighbors[side] >= 0
            fi.append(np.flatnonzero(inside))
            ci.append(g.face_neighbors[side, inside])
        fi = np.concatenate(fi)
        ci = np.concatenate(ci)

        # Distance from cell center to face center
        fc_cc = g.face_centers[:, fi] - g.cell_centers[:, ci]
        dist_face_cell = np.power(fc_cc, 2).sum(axis=0)

        # Half transmissibility: K |n . (x_f - x_c)| / |x_f - x_c|^2
        nk = np.abs((g.face_normals[:, fi] * fc_cc).sum(axis=0))
        t_half = self.permeability[ci] * nk / dist_face_cell

        # Harmonic combination of the half transmissibilities on each face
        with np.errstate(divide="ignore"):
            t = 1 / np.bincount(fi, weights=1 / t_half, minlength=g.num_faces)
        return t
