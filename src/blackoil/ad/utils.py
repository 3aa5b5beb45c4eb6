"""Helper functions for AdArrays: diagonal promotion, gathering, scattering and
stacking of rows.

All functions accept both plain numpy arrays and AdArrays, so that the same code can
handle quantities with and without derivatives.

"""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import scipy.sparse as sps

import blackoil as bo
from blackoil.ad.forward_mode import AdArray, BlockPatternError

__all__ = ["spdiag", "subset", "superset", "concatenate"]

module_sections = ["ad"]


def spdiag(vec: np.ndarray) -> sps.csr_matrix:
    """Promote a vector to a sparse diagonal matrix.

    This is the form in which row-wise derivatives from external evaluations, e.g.
    dB/dp from a property model, enter a Jacobian block.

    Parameters:
        vec: Diagonal entries.

    Returns:
        Square csr matrix with ``vec`` on the diagonal.

    """
    vec = np.asarray(vec, dtype=float).ravel()
    rows = np.arange(vec.size)
    return sps.csr_matrix((vec, (rows, rows)), shape=(vec.size, vec.size))


def _check_indices(indices: np.ndarray, size: int) -> np.ndarray:
    indices = np.asarray(indices, dtype=int).ravel()
    if indices.size > 0 and (indices.min() < 0 or indices.max() >= size):
        raise ValueError(f"Indices out of range for an array of size {size}.")
    return indices


def _selection_matrix(indices: np.ndarray, size: int) -> sps.csr_matrix:
    indices = _check_indices(indices, size)
    num = indices.size
    return sps.csr_matrix(
        (np.ones(num), (np.arange(num), indices)), shape=(num, size)
    )


@bo.time_logger(sections=module_sections)
def subset(
    x: Union[AdArray, np.ndarray], indices: Sequence[int]
) -> Union[AdArray, np.ndarray]:
    """Gather rows of an array.

    Parameters:
        x: Array to gather from.
        indices: Rows to extract. Repeated indices are allowed.

    Returns:
        Array of size ``len(indices)``. For AdArrays, the corresponding rows of every
        Jacobian block are extracted, and the block pattern is preserved.

    """
    if isinstance(x, AdArray):
        return _selection_matrix(indices, x.size) @ x
    x = np.asarray(x)
    return x[_check_indices(indices, x.shape[0])]


@bo.time_logger(sections=module_sections)
def superset(
    x: Union[AdArray, np.ndarray], indices: Sequence[int], size: int
) -> Union[AdArray, np.ndarray]:
    """Scatter rows of an array into a larger, otherwise zero, array.

    Parameters:
        x: Array to scatter, of size ``len(indices)``.
        indices: Target rows. Contributions to repeated indices are summed.
        size: Size of the resulting array.

    Returns:
        Array of size ``size``.

    """
    scatter = _selection_matrix(indices, size).T.tocsr()
    if isinstance(x, AdArray):
        return scatter @ x
    return scatter @ np.asarray(x, dtype=float)


def concatenate(variables: Sequence[AdArray]) -> AdArray:
    """Stack AdArrays vertically.

    Parameters:
        variables: AdArrays sharing one block pattern.

    Raises:
        BlockPatternError: If the block patterns differ.

    Returns:
        AdArray whose values are the concatenated values, and whose Jacobian blocks
        are the stacked blocks of the input.

    """
    pattern = variables[0].block_pattern
    for var in variables[1:]:
        if var.block_pattern != pattern:
            raise BlockPatternError(
                f"Cannot concatenate block patterns {pattern} and {var.block_pattern}."
            )

    val = np.concatenate([var.val for var in variables])
    jac = [
        sps.vstack([var.jac[i] for var in variables], format="csr")
        for i in range(len(pattern))
    ]
    return AdArray(val, jac)
