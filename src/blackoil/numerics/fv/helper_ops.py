"""Discrete gradient and divergence operators on the internal faces of a grid."""
from __future__ import annotations

import numpy as np
import scipy.sparse as sps

import blackoil as bo

module_sections = ["numerics"]


class HelperOps:
    """Two-point difference operators restricted to internal faces.

    With ``nbi[i] = (c0, c1)`` the neighbors of internal face ``i``, the operators
    are defined as

        ngrad: (ngrad @ p)[i] = p[c0] - p[c1],
        grad:  -ngrad,
        div:   ngrad.T, i.e. a positive face flux leaves c0 and enters c1.

    Boundary faces are left out, thus the operators describe a closed domain.

    Parameters:
        grid: Grid to construct the operators for.

    Attributes:
        internal_faces (np.ndarray): Indices of the internal faces.
        nbi (np.ndarray): ``shape=(num_internal_faces, 2)``, neighbors of the
            internal faces.
        ngrad (sps.csr_matrix): ``shape=(num_internal_faces, num_cells)``
        grad (sps.csr_matrix): ``shape=(num_internal_faces, num_cells)``
        div (sps.csr_matrix): ``shape=(num_cells, num_internal_faces)``

    """

    @bo.time_logger(sections=module_sections)
    def __init__(self, grid: bo.Grid) -> None:
        self.internal_faces: np.ndarray = grid.get_internal_faces()
        self.nbi: np.ndarray = grid.face_neighbors[:, self.internal_faces].T

        num_internal = self.internal_faces.size
        rows = np.tile(np.arange(num_internal), 2)
        cols = np.concatenate((self.nbi[:, 0], self.nbi[:, 1]))
        vals = np.concatenate((np.ones(num_internal), -np.ones(num_internal)))

        self.ngrad: sps.csr_matrix = sps.csr_matrix(
            (vals, (rows, cols)), shape=(num_internal, grid.num_cells)
        )
        self.grad: sps.csr_matrix = -self.ngrad
        self.div: sps.csr_matrix = self.ngrad.T.tocsr()
