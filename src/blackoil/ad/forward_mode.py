"""Forward mode automatic differentiation with block-partitioned Jacobians.

An :class:`AdArray` holds a value vector of length ``n`` together with its Jacobian,
stored as a list of sparse matrices: one block per group of primary unknowns (e.g.
cell pressures and well bottom-hole pressures). Block ``i`` has ``n`` rows and as
many columns as there are unknowns in group ``i``. The list of column counts is the
*block pattern*.

Residual equations are written as ordinary arithmetic on AdArrays, and the Jacobian
blocks are propagated by the product, quotient and chain rules, block by block.
Operands of a binary operation must have the same size and the same block pattern;
any mismatch is a programming error and raises :class:`BlockPatternError`
immediately.

There are three ways to construct an AdArray:

    - :meth:`AdArray.constant`: All Jacobian blocks are zero.
    - :func:`initAdArrays`: Joint initiation of primary variables. Each variable has
      the identity as Jacobian block for its own group, and zero blocks elsewhere.
    - :meth:`AdArray.function`: Value and Jacobian blocks given explicitly. This is
      used to inject derivatives computed outside the AD framework, e.g. tabulated
      fluid properties with a known pressure derivative.

Example:
    >>> p, bhp = initAdArrays([np.array([1.0, 2.0]), np.array([3.0])])
    >>> p.block_pattern
    [2, 1]
    >>> (p * p).jac[0].toarray()
    array([[2., 0.],
           [0., 4.]])

"""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import scipy.sparse as sps

__all__ = ["AdArray", "BlockPatternError", "initAdArrays"]


class BlockPatternError(ValueError):
    """Raised when AD operands do not share size and block pattern.

    Such a mismatch signals an error in the construction of the equations, and is
    never reconciled silently.

    """


def initAdArrays(
    variables: Union[np.ndarray, Sequence[np.ndarray]],
) -> Union[AdArray, list[AdArray]]:
    """Initialize a set of primary variables with a joint block pattern.

    Parameters:
        variables: A list or tuple of value vectors, one per group of unknowns. A
            single array or scalar (not wrapped in a sequence) is also accepted.

    Returns:
        One AdArray per entry in ``variables``. Variable ``i`` has the identity as its
        ``i``-th Jacobian block and zero blocks elsewhere, thus the block pattern is
        the list of variable sizes. If a single array was passed, a single AdArray is
        returned.

    """
    if isinstance(variables, np.ndarray) or np.isscalar(variables):
        return initAdArrays([variables])[0]

    vals = [np.atleast_1d(np.asarray(v, dtype=float)) for v in variables]
    num_val = [v.size for v in vals]

    ad_arrays = []
    for i, val in enumerate(vals):
        n = num_val[i]
        # Zero Jacobian against all other groups, identity for the group itself.
        jac = [sps.csr_matrix((n, m)) for m in num_val]
        jac[i] = sps.identity(n, format="csr")
        ad_arrays.append(AdArray(val, jac))

    return ad_arrays


class AdArray:
    """Value vector with a block-partitioned sparse Jacobian.

    Parameters:
        val: Values, one per entity (cell, face, well).
        jac: Jacobian blocks, each with ``val.size`` rows. A single sparse matrix is
            interpreted as a pattern with one block.

    Attributes:
        val (np.ndarray): Values.
        jac (list[sps.csr_matrix]): Jacobian blocks.

    """

    # Make numpy operands defer to the AdArray implementation, e.g. in
    # ``np.ones(3) * x``, rather than broadcasting over an object array.
    __array_ufunc__ = None

    def __init__(
        self,
        val: Union[np.ndarray, float],
        jac: Union[sps.spmatrix, Sequence[sps.spmatrix]],
    ) -> None:
        val = np.atleast_1d(np.asarray(val, dtype=float))
        if val.ndim != 1:
            raise ValueError("AdArray values must be a one-dimensional array.")
        if sps.issparse(jac):
            jac = [jac]
        if len(jac) == 0:
            raise BlockPatternError("An AdArray needs at least one Jacobian block.")

        self.val: np.ndarray = val
        self.jac: list[sps.csr_matrix] = [sps.csr_matrix(J) for J in jac]

        for i, J in enumerate(self.jac):
            if J.shape[0] != val.size:
                raise BlockPatternError(
                    f"Jacobian block {i} has {J.shape[0]} rows, expected {val.size}."
                )

    @classmethod
    def constant(cls, val: Union[np.ndarray, float], block_pattern: Sequence[int]):
        """Construct an AdArray with all Jacobian blocks equal to zero.

        Parameters:
            val: Values of the constant.
            block_pattern: Number of columns in each Jacobian block.

        """
        val = np.atleast_1d(np.asarray(val, dtype=float))
        n = val.size
        return cls(val, [sps.csr_matrix((n, m)) for m in block_pattern])

    @classmethod
    def function(cls, val: np.ndarray, jac: Sequence[sps.spmatrix]):
        """Construct an AdArray from a value and explicitly computed derivatives.

        This is the entry point for quantities evaluated outside the AD graph, e.g.
        fluid properties, where the derivatives are supplied by the property model
        and typically promoted to diagonal blocks with
        :func:`~blackoil.ad.utils.spdiag`.

        Parameters:
            val: Values.
            jac: Jacobian blocks, one per block in the pattern the quantity will be
                combined with.

        """
        return cls(val, list(jac))

    @property
    def size(self) -> int:
        """Number of values."""
        return self.val.size

    @property
    def block_pattern(self) -> list[int]:
        """Number of columns in each Jacobian block."""
        return [J.shape[1] for J in self.jac]

    @property
    def num_blocks(self) -> int:
        """Number of Jacobian blocks."""
        return len(self.jac)

    def full_jac(self) -> sps.csr_matrix:
        """The Jacobian with all blocks stacked horizontally."""
        return sps.hstack(self.jac, format="csr")

    def copy(self) -> AdArray:
        return AdArray(self.val.copy(), [J.copy() for J in self.jac])

    def __repr__(self) -> str:
        return (
            f"AdArray of size {self.size} with block pattern {self.block_pattern}\n"
            f"Values: {self.val}"
        )

    def __add__(self, other) -> AdArray:
        if isinstance(other, AdArray):
            self._check_compatible(other)
            jac = [A + B for A, B in zip(self.jac, other.jac)]
            return AdArray(self.val + other.val, jac)
        return AdArray(self.val + self._as_values(other), self._jac_copy())

    def __radd__(self, other) -> AdArray:
        return self.__add__(other)

    def __sub__(self, other) -> AdArray:
        if isinstance(other, AdArray):
            self._check_compatible(other)
            jac = [A - B for A, B in zip(self.jac, other.jac)]
            return AdArray(self.val - other.val, jac)
        return AdArray(self.val - self._as_values(other), self._jac_copy())

    def __rsub__(self, other) -> AdArray:
        return (-self).__add__(other)

    def __neg__(self) -> AdArray:
        return AdArray(-self.val, [-J for J in self.jac])

    def __mul__(self, other) -> AdArray:
        if isinstance(other, AdArray):
            self._check_compatible(other)
            val = self.val * other.val
            jac = [
                A + B
                for A, B in zip(
                    self.diagvec_mul_jac(other.val), other.diagvec_mul_jac(self.val)
                )
            ]
            return AdArray(val, jac)

        other = self._as_values(other)
        return AdArray(self.val * other, self.diagvec_mul_jac(other))

    def __rmul__(self, other) -> AdArray:
        return self.__mul__(other)

    def __truediv__(self, other) -> AdArray:
        if isinstance(other, AdArray):
            self._check_compatible(other)
            return self * other._reciprocal()
        return self * (1.0 / self._as_values(other))

    def __rtruediv__(self, other) -> AdArray:
        return self._reciprocal() * self._as_values(other)

    def __pow__(self, other) -> AdArray:
        if isinstance(other, AdArray):
            self._check_compatible(other)
            val = self.val**other.val
            jac_self = self.diagvec_mul_jac(other.val * self.val ** (other.val - 1))
            jac_other = other.diagvec_mul_jac(val * np.log(self.val))
            return AdArray(val, [A + B for A, B in zip(jac_self, jac_other)])

        other = self._as_values(other)
        val = self.val**other
        return AdArray(val, self.diagvec_mul_jac(other * self.val ** (other - 1)))

    def __rpow__(self, other) -> AdArray:
        other = self._as_values(other)
        val = other**self.val
        return AdArray(val, self.diagvec_mul_jac(val * np.log(other)))

    def __rmatmul__(self, other) -> AdArray:
        """Left multiplication by a matrix, e.g. a divergence or upwind operator."""
        if not sps.issparse(other):
            other = np.asarray(other, dtype=float)
            if other.ndim != 2:
                raise ValueError("Only matrices can act on an AdArray with @.")
            other = sps.csr_matrix(other)
        if other.shape[1] != self.size:
            raise BlockPatternError(
                f"Matrix with {other.shape[1]} columns cannot act on an AdArray of "
                f"size {self.size}."
            )
        return AdArray(other @ self.val, [other @ J for J in self.jac])

    def diagvec_mul_jac(self, a: Union[np.ndarray, float]) -> list[sps.csr_matrix]:
        """Scale the rows of all Jacobian blocks.

        Parameters:
            a: Row scaling, either a scalar or one value per row.

        Returns:
            The scaled Jacobian blocks, i.e. ``diag(a) @ J`` for each block ``J``.

        """
        if np.ndim(a) == 0:
            return [a * J for J in self.jac]
        rows = np.arange(self.size)
        A = sps.csr_matrix((a, (rows, rows)), shape=(self.size, self.size))
        return [A @ J for J in self.jac]

    def _reciprocal(self) -> AdArray:
        # d(1/f) = -df / f^2
        inv = 1.0 / self.val
        return AdArray(inv, self.diagvec_mul_jac(-(inv**2)))

    def _jac_copy(self) -> list[sps.csr_matrix]:
        return [J.copy() for J in self.jac]

    def _as_values(self, other) -> Union[np.ndarray, float]:
        if sps.issparse(other):
            raise TypeError(
                "Elementwise operations between sparse matrices and AdArrays are not "
                "defined. Use the @ operator to apply a matrix."
            )
        if np.ndim(other) == 0:
            return float(other)
        other = np.asarray(other, dtype=float)
        if other.shape != self.val.shape:
            raise BlockPatternError(
                f"Array of shape {other.shape} is not compatible with an AdArray of "
                f"size {self.size}."
            )
        return other

    def _check_compatible(self, other: AdArray) -> None:
        if other.size != self.size:
            raise BlockPatternError(
                f"Size mismatch between AdArrays: {self.size} and {other.size}."
            )
        if other.block_pattern != self.block_pattern:
            raise BlockPatternError(
                "Block pattern mismatch between AdArrays: "
                f"{self.block_pattern} and {other.block_pattern}."
            )
