""" Module containing classes for structured grids.

Acknowledgements:
    The ordering of cells and faces follows the conventions of the Matlab Reservoir
    Simulation Toolbox (MRST) developed by SINTEF ICT, see
    www.sintef.no/projectweb/mrst/

"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

import blackoil as bo
from blackoil.grids.grid import Grid

module_sections = ["gridding"]


class CartGrid(Grid):
    """Cartesian grid in 1, 2 or 3 dimensions.

    Cells are numbered with the x-index running fastest. Faces are numbered direction
    by direction: first all faces with normal in the x-direction, then y, then z,
    each group ordered with the face index along the normal direction running
    fastest.

    Parameters:
        nx: Number of cells in each direction.
        physdims: Physical extent of the domain in each direction. Defaults to the
            number of cells, i.e. unit cell sizes.
        name: Name of the grid.

    Attributes:
        cart_dims (np.ndarray): Number of cells in each direction.
        spacing (np.ndarray): Cell size in each direction.

    """

    @bo.time_logger(sections=module_sections)
    def __init__(
        self,
        nx: Sequence[int],
        physdims: Optional[Sequence[float]] = None,
        name: Optional[str] = None,
    ) -> None:
        nx = np.atleast_1d(np.asarray(nx, dtype=int))
        if nx.size not in (1, 2, 3) or np.any(nx < 1):
            raise ValueError("Expected one to three positive cell counts.")
        if physdims is None:
            physdims = nx.astype(float)
        physdims = np.atleast_1d(np.asarray(physdims, dtype=float))
        if physdims.shape != nx.shape:
            raise ValueError("Physical dimensions must match the number of cells.")

        self.cart_dims = nx
        self.spacing = physdims / nx

        dim = nx.size
        cell_idx = np.indices(nx).reshape(dim, -1, order="F")
        cell_centers = np.zeros((3, cell_idx.shape[1]))
        cell_centers[:dim] = (cell_idx + 0.5) * self.spacing[:, None]
        cell_volumes = np.full(cell_idx.shape[1], np.prod(self.spacing))

        neighbors, centers, normals = [], [], []
        for d in range(dim):
            nb, fc, fn = self._faces_in_direction(d)
            neighbors.append(nb)
            centers.append(fc)
            normals.append(fn)

        super().__init__(
            dim,
            np.hstack(neighbors),
            cell_centers,
            np.hstack(centers),
            np.hstack(normals),
            cell_volumes,
            name if name is not None else "CartGrid",
        )

    def _faces_in_direction(self, d: int) -> tuple[np.ndarray, ...]:
        """Compute neighbors, centers and normals of faces with normal along ``d``."""
        dim = self.cart_dims.size
        shape = self.cart_dims.copy()
        shape[d] += 1
        face_idx = np.indices(shape).reshape(dim, -1, order="F")
        num_faces = face_idx.shape[1]

        # The cell on the negative side has index one lower along d.
        lower = face_idx.copy()
        lower[d] -= 1
        neighbors = np.vstack(
            (self._cell_index(lower), self._cell_index(face_idx))
        )

        centers = np.zeros((3, num_faces))
        centers[:dim] = (face_idx + 0.5) * self.spacing[:, None]
        centers[d] = face_idx[d] * self.spacing[d]

        normals = np.zeros((3, num_faces))
        normals[d] = np.prod(np.delete(self.spacing, d))
        return neighbors, centers, normals

    def _cell_index(self, idx: np.ndarray) -> np.ndarray:
        """Linear cell index of Cartesian indices, -1 outside the grid."""
        inside = np.all((idx >= 0) & (idx < self.cart_dims[:, None]), axis=0)
        linear = np.full(idx.shape[1], -1)
        linear[inside] = np.ravel_multi_index(
            tuple(idx[:, inside]), tuple(self.cart_dims), order="F"
        )
        return linear
