"""Well topology: which cells each well is perforated in."""
from __future__ import annotations

from typing import Sequence

import numpy as np
import scipy.sparse as sps


class Wells:
    """Perforations of a set of wells.

    Parameters:
        well_cells: Perforated cells, concatenated over all wells.
        well_connpos: ``shape=(num_wells + 1,)`` Offsets into ``well_cells``: the
            perforations of well ``w`` are ``well_cells[well_connpos[w]:
            well_connpos[w + 1]]``.

    """

    def __init__(self, well_cells: Sequence[int], well_connpos: Sequence[int]) -> None:
        self.well_cells = np.asarray(well_cells, dtype=int).ravel()
        self.well_connpos = np.asarray(well_connpos, dtype=int).ravel()

        if self.well_connpos.size == 0 or self.well_connpos[0] != 0:
            raise ValueError("Perforation offsets must start at zero.")
        if np.any(np.diff(self.well_connpos) < 0):
            raise ValueError("Perforation offsets must be non-decreasing.")
        if self.well_connpos[-1] != self.well_cells.size:
            raise ValueError(
                "Last perforation offset must equal the number of perforations."
            )

    @classmethod
    def from_perforations(cls, perforations: Sequence[Sequence[int]]) -> Wells:
        """Construct wells from a list of perforated cells per well."""
        sizes = [len(perf) for perf in perforations]
        cells = np.array([c for perf in perforations for c in perf], dtype=int)
        return cls(cells, np.concatenate(([0], np.cumsum(sizes, dtype=int))))

    def __repr__(self) -> str:
        return (
            f"Wells: {self.number_of_wells} wells with {self.num_perforations} "
            "perforations."
        )

    @property
    def number_of_wells(self) -> int:
        return self.well_connpos.size - 1

    @property
    def num_perforations(self) -> int:
        return self.well_cells.size

    def perforation_well_index(self) -> np.ndarray:
        """The well each perforation belongs to."""
        return np.repeat(np.arange(self.number_of_wells), np.diff(self.well_connpos))

    def well_to_perforation(self) -> sps.csr_matrix:
        """Map from wells to their perforations.

        Returns:
            ``shape=(num_perforations, num_wells)`` with a single unit entry in each
            row, in the column of the well the perforation belongs to.

        """
        num_perf = self.num_perforations
        return sps.csr_matrix(
            (np.ones(num_perf), (np.arange(num_perf), self.perforation_well_index())),
            shape=(num_perf, self.number_of_wells),
        )
