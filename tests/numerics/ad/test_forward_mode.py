"""Collection of unit tests for the automatic differentiation forward mode. For the class
AdArray, tests are being conducted on the public attributes val and jac, the block
pattern, and the construction modes (constants, primary variables and functions with
injected derivatives). The arithmetic operations are tested both for their values and
for the block structure of their Jacobians.

"""
from __future__ import annotations

import pytest

import numpy as np
import scipy.sparse as sps

from blackoil.ad.forward_mode import AdArray, BlockPatternError, initAdArrays


def _dense_blocks(a: AdArray) -> list[np.ndarray]:
    return [J.toarray() for J in a.jac]


def test_quadratic_function():
    x, y = initAdArrays([np.array([1]), np.array([2])])
    z = 1 * x + 2 * y + 3 * x * y + 4 * x * x + 5 * y * y
    val = 35
    assert z.val == val and np.all(z.full_jac().toarray() == [15, 25])


def test_vector_quadratic():
    x, y = initAdArrays([np.array([1, 1]), np.array([2, 3])])
    z = 1 * x + 2 * y + 3 * x * y + 4 * x * x + 5 * y * y
    val = np.array([35, 65])
    J = np.array([[15, 0, 25, 0], [0, 18, 0, 35]])

    assert np.all(z.val == val)
    assert np.all(z.full_jac().toarray() == J)
    assert z.block_pattern == [2, 2]


def test_mapping_m_to_n():
    x, y = initAdArrays([np.array([1, 1, 3]), np.array([2, 3])])
    A = sps.csc_matrix(np.array([[1, 2, 1], [2, 3, 4]]))

    z = y * (A @ x)
    val = np.array([12, 51])
    J = np.array([[2, 4, 2, 6, 0], [6, 9, 12, 0, 17]])

    assert np.all(z.val == val)
    assert np.all(z.full_jac().toarray() == J)


def test_dense_matrix_acts_on_ad_array():
    x = initAdArrays(np.array([1.0, 2.0]))
    A = np.array([[1.0, 1.0], [0.0, 2.0], [3.0, 0.0]])
    z = A @ x
    assert np.allclose(z.val, [3, 4, 3])
    assert np.allclose(z.full_jac().toarray(), A)


def test_matrix_with_wrong_number_of_columns():
    x = initAdArrays(np.array([1.0, 2.0]))
    with pytest.raises(BlockPatternError):
        sps.identity(3, format="csr") @ x


class TestInitialization:
    """Primary variables, constants and functions with injected derivatives."""

    def test_variables_have_identity_and_zero_blocks(self):
        p, bhp = initAdArrays([np.array([1.0, 2.0, 3.0]), np.array([4.0])])

        assert p.block_pattern == [3, 1] and bhp.block_pattern == [3, 1]
        assert np.allclose(p.jac[0].toarray(), np.eye(3))
        assert p.jac[1].shape == (3, 1) and p.jac[1].nnz == 0
        assert bhp.jac[0].shape == (1, 3) and bhp.jac[0].nnz == 0
        assert np.allclose(bhp.jac[1].toarray(), [[1]])

    def test_single_array_gives_single_variable(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        assert isinstance(x, AdArray)
        assert x.block_pattern == [2]

    def test_tuple_of_variables(self):
        p, bhp = initAdArrays((np.ones(2), np.array([3.0, 4.0, 5.0])))
        assert p.block_pattern == [2, 3] and bhp.block_pattern == [2, 3]
        assert np.allclose(bhp.jac[1].toarray(), np.eye(3))
        assert bhp.jac[0].nnz == 0

    def test_empty_variable_group(self):
        p, bhp = initAdArrays([np.array([1.0, 2.0]), np.zeros(0)])
        assert p.block_pattern == [2, 0]
        assert bhp.size == 0

    def test_constant(self):
        c = AdArray.constant(np.array([1.0, 2.0]), [2, 3])
        assert c.block_pattern == [2, 3]
        assert all(J.nnz == 0 for J in c.jac)
        assert all(J.shape[0] == 2 for J in c.jac)

    def test_function(self):
        jac = [sps.diags([1.0, 2.0]).tocsr(), sps.csr_matrix((2, 1))]
        f = AdArray.function(np.array([3.0, 4.0]), jac)
        assert np.allclose(f.val, [3, 4])
        assert np.allclose(f.jac[0].toarray(), np.diag([1, 2]))
        assert f.block_pattern == [2, 1]

    def test_rows_must_match_values(self):
        with pytest.raises(BlockPatternError):
            AdArray(np.array([1.0, 2.0]), [sps.csr_matrix((3, 2))])

    def test_no_jacobian_blocks(self):
        with pytest.raises(BlockPatternError):
            AdArray(np.array([1.0]), [])

    def test_copy_is_independent(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        y = x.copy()
        y.val[0] = 10
        y.jac[0][0, 0] = 5
        assert x.val[0] == 1 and x.jac[0][0, 0] == 1


class TestArithmetic:
    """Values and Jacobians of the arithmetic operators."""

    @pytest.fixture
    def variables(self):
        return initAdArrays([np.array([1.0, 2.0]), np.array([3.0, 5.0])])

    def test_add_and_subtract_are_inverse(self, variables):
        a, b = variables
        c = (a + b) - b
        assert np.allclose(c.val, a.val)
        for Jc, Ja in zip(_dense_blocks(c), _dense_blocks(a)):
            assert np.allclose(Jc, Ja)

    def test_multiply_and_divide_are_inverse(self, variables):
        a, b = variables
        c = (a * b) / b
        assert np.allclose(c.val, a.val)
        for Jc, Ja in zip(_dense_blocks(c), _dense_blocks(a)):
            assert np.allclose(Jc, Ja)

    def test_product_rule(self, variables):
        a, b = variables
        c = a * b
        assert np.allclose(c.val, [3, 10])
        assert np.allclose(c.jac[0].toarray(), np.diag(b.val))
        assert np.allclose(c.jac[1].toarray(), np.diag(a.val))

    def test_quotient_rule(self, variables):
        a, b = variables
        c = a / b
        assert np.allclose(c.val, a.val / b.val)
        assert np.allclose(c.jac[0].toarray(), np.diag(1 / b.val))
        assert np.allclose(c.jac[1].toarray(), np.diag(-a.val / b.val**2))

    def test_scalar_and_array_operands(self, variables):
        a, _ = variables
        arr = np.array([2.0, 4.0])

        c = arr * a + 1.0
        assert np.allclose(c.val, [3, 9])
        assert np.allclose(c.jac[0].toarray(), np.diag(arr))

        d = 1.0 - a
        assert np.allclose(d.val, [0, -1])
        assert np.allclose(d.jac[0].toarray(), -np.eye(2))

        e = arr / a
        assert np.allclose(e.val, [2, 2])
        assert np.allclose(e.jac[0].toarray(), np.diag(-arr / a.val**2))

    def test_negation(self, variables):
        a, _ = variables
        c = -a
        assert np.allclose(c.val, -a.val)
        assert np.allclose(c.jac[0].toarray(), -np.eye(2))

    def test_power(self, variables):
        a, b = variables
        c = a**2
        assert np.allclose(c.val, [1, 4])
        assert np.allclose(c.jac[0].toarray(), np.diag(2 * a.val))

        d = a**b
        assert np.allclose(d.val, [1, 32])
        assert np.allclose(d.jac[0].toarray(), np.diag(b.val * a.val ** (b.val - 1)))
        assert np.allclose(d.jac[1].toarray(), np.diag(d.val * np.log(a.val)))

        e = 2.0**a
        assert np.allclose(e.val, [2, 4])
        assert np.allclose(e.jac[0].toarray(), np.diag(e.val * np.log(2)))

    def test_block_pattern_mismatch(self):
        x = initAdArrays([np.array([1.0, 2.0]), np.array([1.0])])[0]
        y = initAdArrays([np.array([1.0, 2.0]), np.array([1.0, 2.0])])[0]
        with pytest.raises(BlockPatternError):
            x + y
        with pytest.raises(BlockPatternError):
            x * y

    def test_size_mismatch(self):
        x = initAdArrays(np.array([1.0, 2.0]))
        y = AdArray.constant(np.array([1.0, 2.0, 3.0]), [2])
        with pytest.raises(BlockPatternError):
            x - y
        with pytest.raises(BlockPatternError):
            x * np.ones(3)

    def test_elementwise_sparse_operand_is_rejected(self, variables):
        a, _ = variables
        with pytest.raises(TypeError):
            a * sps.identity(2, format="csr")

    def test_empty_arrays(self):
        p, bhp = initAdArrays([np.array([1.0]), np.zeros(0)])
        c = bhp * bhp + 2.0 * bhp
        assert c.size == 0
        assert c.block_pattern == [1, 0]
