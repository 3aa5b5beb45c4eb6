"""Tests of the scipy based linear solvers."""
import pytest

import numpy as np
import scipy.sparse as sps
import scipy.sparse.linalg as spla

import blackoil as bo


@pytest.fixture
def system():
    A = sps.csr_matrix(
        np.array([[4.0, -1.0, 0.0], [-1.0, 4.0, -1.0], [0.0, -1.0, 4.0]])
    )
    x = np.array([1.0, 2.0, 3.0])
    return A, A @ x, x


@pytest.mark.parametrize("method", ["direct", "gmres", "bicgstab"])
def test_solve(system, method):
    A, b, known = system
    solver = bo.ScipyLinearSolver(method, tol=1e-12)
    x, report = solver.solve(A, b)

    assert report.converged
    assert report.iterations >= 1
    assert np.allclose(x, known)
    assert report.residual_norm < 1e-8


def test_iteration_limit_gives_unconverged_report():
    n = 50
    A = sps.diags(
        [np.full(n - 1, -1.0), np.linspace(1.0, 100.0, n), np.full(n - 1, -1.0)],
        [-1, 0, 1],
        format="csr",
    )
    solver = bo.ScipyLinearSolver("bicgstab", tol=1e-14, max_iterations=1)
    _, report = solver.solve(A, np.ones(n))
    assert not report.converged


def test_singular_direct_solve():
    A = sps.csr_matrix(np.ones((2, 2)))
    with pytest.warns(spla.MatrixRankWarning):
        _, report = bo.ScipyLinearSolver("direct").solve(A, np.ones(2))
    assert not report.converged


def test_invalid_input():
    with pytest.raises(ValueError):
        bo.ScipyLinearSolver("cholesky")
    with pytest.raises(ValueError):
        bo.ScipyLinearSolver().solve(sps.identity(2, format="csr"), np.ones(3))
