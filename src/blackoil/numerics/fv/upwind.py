"""Upwind selection of cell quantities on internal faces."""
from __future__ import annotations

from typing import Union

import numpy as np
import scipy.sparse as sps

import blackoil as bo
from blackoil.ad.forward_mode import AdArray


class UpwindSelector:
    """Select upstream cell values for each internal face.

    The flow direction is given by a single flux per face, thus all phases share the
    upstream cell. This is exact when neither gravity nor capillary pressure is
    present.

    Parameters:
        grid: The grid.
        ops: Operators on the internal faces of the grid.
        ifaceflux: Flux on each internal face. For non-negative values the first
            neighbor is upstream, otherwise the second.

    """

    def __init__(
        self, grid: bo.Grid, ops: bo.HelperOps, ifaceflux: np.ndarray
    ) -> None:
        ifaceflux = np.asarray(ifaceflux, dtype=float)
        num_internal = ops.internal_faces.size
        if ifaceflux.shape != (num_internal,):
            raise ValueError(
                f"Expected one flux per internal face ({num_internal}), got "
                f"{ifaceflux.size}."
            )

        upstream = np.where(ifaceflux >= 0.0, ops.nbi[:, 0], ops.nbi[:, 1])
        self.upstream_cells: np.ndarray = upstream
        self.select_matrix: sps.csr_matrix = sps.csr_matrix(
            (np.ones(num_internal), (np.arange(num_internal), upstream)),
            shape=(num_internal, grid.num_cells),
        )

    def select(self, x: Union[AdArray, np.ndarray]) -> Union[AdArray, np.ndarray]:
        """Apply the upwind selection to a cell quantity.

        Parameters:
            x: One value per cell, with or without derivatives.

        Returns:
            One value per internal face.

        """
        if isinstance(x, AdArray):
            return self.select_matrix @ x
        return self.select_matrix @ np.asarray(x, dtype=float)
