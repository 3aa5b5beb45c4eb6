"""Tests of the pressure dependent fluid data: values and derivatives of the formation
volume factors and viscosities, and relative permeabilities."""
import pytest

import numpy as np

import blackoil as bo
from tests.common.blackoil_fluids import ExponentialFluid, saturated_state


@pytest.fixture
def fluid():
    return ExponentialFluid(
        b_ref=(2.0, 0.5),
        compressibility=(0.1, 0.0),
        mu_ref=(1.0, 3.0),
        viscosibility=(0.0, 0.2),
    )


@pytest.fixture
def state(fluid):
    return saturated_state(
        fluid, np.array([0.0, 1.0, 2.0]), np.array([[0.5, 0.5], [1.0, 0.0], [0.2, 0.8]])
    )


@pytest.fixture
def variables(state):
    return bo.initAdArrays([state.pressure, np.zeros(1)])


def _fluid_data(fluid, state, **kwargs):
    fd = bo.PressureDependentFluidData(state.num_cells, fluid, **kwargs)
    fd.compute_saturation_quantities(state)
    fd.compute_pressure_quantities(state)
    return fd


def test_inverse_formation_volume_factor(fluid, state, variables):
    fd = _fluid_data(fluid, state)
    p, _ = variables

    b = fd.inverse_formation_volume_factor(0, p)
    known = 2.0 * np.exp(0.1 * state.pressure)
    assert np.allclose(b.val, known)
    assert np.allclose(b.jac[0].toarray(), np.diag(0.1 * known))
    # No dependency on the bottom-hole pressure.
    assert b.block_pattern == [3, 1]
    assert b.jac[1].nnz == 0


def test_formation_volume_factor(fluid, state, variables):
    fd = _fluid_data(fluid, state)
    p, _ = variables

    B = fd.formation_volume_factor(0, p)
    b = 2.0 * np.exp(0.1 * state.pressure)
    assert np.allclose(B.val, 1 / b)
    assert np.allclose(B.jac[0].toarray(), np.diag(-0.1 / b))

    # Incompressible phase
    B = fd.formation_volume_factor(1, p)
    assert np.allclose(B.val, 2.0)
    assert np.allclose(B.jac[0].toarray(), 0)


@pytest.mark.parametrize("viscosity_derivatives, derivative", [(False, 0), (True, 0.6)])
def test_viscosity(fluid, state, variables, viscosity_derivatives, derivative):
    fd = _fluid_data(fluid, state, viscosity_derivatives=viscosity_derivatives)
    p, _ = variables

    mu = fd.phase_viscosity(1, p)
    assert np.allclose(mu.val, 3.0 * (1 + 0.2 * state.pressure))
    assert np.allclose(mu.jac[0].toarray(), derivative * np.eye(3))


def test_relperm(fluid, state):
    fd = _fluid_data(fluid, state)
    assert np.allclose(fd.phase_relperm(0), [0.25, 1.0, 0.04])
    assert np.allclose(fd.phase_relperm(1), [0.25, 0.0, 0.64])


def test_invalid_phase(fluid, state, variables):
    fd = _fluid_data(fluid, state)
    p, _ = variables
    with pytest.raises(ValueError):
        fd.phase_relperm(2)
    with pytest.raises(ValueError):
        fd.formation_volume_factor(-1, p)


def test_pressure_must_be_first_block(fluid, state):
    fd = _fluid_data(fluid, state)
    bhp, p = bo.initAdArrays([np.zeros(1), state.pressure])
    with pytest.raises(bo.BlockPatternError):
        fd.inverse_formation_volume_factor(0, p)


def test_state_size_mismatch(fluid, state):
    fd = bo.PressureDependentFluidData(4, fluid)
    with pytest.raises(ValueError):
        fd.compute_pressure_quantities(state)
    with pytest.raises(ValueError):
        fd.compute_saturation_quantities(state)
