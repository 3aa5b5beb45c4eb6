"""Tests of the helper functions for AdArrays: diagonal promotion, subset, superset
and concatenation."""
import pytest

import numpy as np

from blackoil.ad.forward_mode import AdArray, BlockPatternError, initAdArrays
from blackoil.ad.utils import concatenate, spdiag, subset, superset


def test_spdiag():
    D = spdiag(np.array([1.0, 2.0, 3.0]))
    assert D.format == "csr"
    assert np.allclose(D.toarray(), np.diag([1, 2, 3]))


def test_spdiag_empty():
    assert spdiag(np.zeros(0)).shape == (0, 0)


class TestSubset:
    def test_ad_array(self):
        p, bhp = initAdArrays([np.array([10.0, 20.0, 30.0]), np.array([1.0])])
        s = subset(p, [2, 0, 2])
        assert np.allclose(s.val, [30, 10, 30])
        assert s.block_pattern == [3, 1]
        known = np.array([[0, 0, 1], [1, 0, 0], [0, 0, 1]])
        assert np.allclose(s.jac[0].toarray(), known)
        assert s.jac[1].nnz == 0

    def test_numpy_array(self):
        x = np.array([10.0, 20.0, 30.0])
        assert np.allclose(subset(x, [1, 2]), [20, 30])

    def test_empty_selection(self):
        p = initAdArrays(np.array([1.0, 2.0]))
        s = subset(p, np.zeros(0, dtype=int))
        assert s.size == 0 and s.block_pattern == [2]

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            subset(np.array([1.0, 2.0]), [2])


class TestSuperset:
    def test_ad_array(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        y = superset(x, [3, 1], 4)
        assert np.allclose(y.val, [0, 2, 0, 1])
        known = np.array([[0, 0], [0, 1], [0, 0], [1, 0]])
        assert np.allclose(y.full_jac().toarray(), known)

    def test_repeated_indices_are_summed(self):
        y = superset(np.array([1.0, 2.0, 3.0]), [0, 0, 2], 3)
        assert np.allclose(y, [3, 0, 3])

    def test_subset_of_superset(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        indices = [4, 0]
        y = subset(superset(x, indices, 5), indices)
        assert np.allclose(y.val, x.val)
        assert np.allclose(y.full_jac().toarray(), np.eye(2))


class TestConcatenate:
    def test_values_and_blocks(self):
        p, bhp = initAdArrays([np.array([1.0, 2.0]), np.array([3.0])])
        c = concatenate([p, bhp])
        assert np.allclose(c.val, [1, 2, 3])
        assert c.block_pattern == [2, 1]
        assert np.allclose(c.full_jac().toarray(), np.eye(3))

    def test_pattern_mismatch(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        y = AdArray.constant(np.array([1.0]), [3])
        with pytest.raises(BlockPatternError):
            concatenate([x, y])
