"""Module containing the parent class for all grids.

The grid stores the topology and geometry needed by cell-centered finite volume
discretizations: cell and face centers, areas, volumes, and the neighbor relation
between faces and cells. Node information is not kept.

"""
from __future__ import annotations

import numpy as np
import scipy.sparse as sps


class Grid:
    """Parent class for cell-centered grids.

    Parameters:
        dim: Grid dimension.
        face_neighbors: ``shape=(2, num_faces)``

            For each face, the cell on the negative and the positive side relative to
            the face normal. A value of -1 denotes the outside of the domain.
        cell_centers: ``shape=(3, num_cells)``
        face_centers: ``shape=(3, num_faces)``
        face_normals: ``shape=(3, num_faces)``

            Normal vectors with length equal to the face area, pointing from the
            first to the second neighbor.
        cell_volumes: ``shape=(num_cells,)``
        name: Name of the grid.

    Attributes:
        num_cells (int): Number of cells.
        num_faces (int): Number of faces.
        face_areas (np.ndarray): Areas of the faces.
        cell_faces (sps.csc_matrix): ``shape=(num_faces, num_cells)``

            Face-cell incidence, +1 if the face normal points out of the cell, -1
            if it points into the cell.

    """

    def __init__(
        self,
        dim: int,
        face_neighbors: np.ndarray,
        cell_centers: np.ndarray,
        face_centers: np.ndarray,
        face_normals: np.ndarray,
        cell_volumes: np.ndarray,
        name: str = "Grid",
    ) -> None:
        self.dim = dim
        self.name = name

        self.face_neighbors = np.asarray(face_neighbors, dtype=int)
        self.cell_centers = np.asarray(cell_centers, dtype=float)
        self.face_centers = np.asarray(face_centers, dtype=float)
        self.face_normals = np.asarray(face_normals, dtype=float)
        self.cell_volumes = np.asarray(cell_volumes, dtype=float)

        self.num_cells: int = self.cell_volumes.size
        self.num_faces: int = self.face_neighbors.shape[1]

        if self.face_neighbors.shape != (2, self.num_faces):
            raise ValueError("Face neighbors must have shape (2, num_faces).")
        if self.face_neighbors.max(initial=-1) >= self.num_cells:
            raise ValueError("Face neighbor refers to a non-existing cell.")

        self.face_areas: np.ndarray = np.linalg.norm(self.face_normals, axis=0)
        self.cell_faces: sps.csc_matrix = self._compute_cell_faces()

    def __repr__(self) -> str:
        s = f"Grid with name {self.name} and dimension {self.dim}.\n"
        s += f"Number of cells {self.num_cells}\n"
        s += f"Number of faces {self.num_faces}\n"
        return s

    def _compute_cell_faces(self) -> sps.csc_matrix:
        faces = np.arange(self.num_faces)
        rows, cols, data = [], [], []
        for side, sgn in ((0, 1.0), (1, -1.0)):
            inside = self.face_neighbors[side] >= 0
            rows.append(faces[inside])
            cols.append(self.face_neighbors[side, inside])
            data.append(np.full(inside.sum(), sgn))
        return sps.csc_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(self.num_faces, self.num_cells),
        )

    def get_internal_faces(self) -> np.ndarray:
        """Get indices of faces with a cell on both sides.

        Returns:
            Sorted face indices.

        """
        return np.flatnonzero(np.all(self.face_neighbors >= 0, axis=0))

    def get_boundary_faces(self) -> np.ndarray:
        """Get indices of faces on the domain boundary.

        Returns:
            Sorted face indices.

        """
        return np.flatnonzero(np.any(self.face_neighbors < 0, axis=0))
