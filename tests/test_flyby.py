import numpy as np
import pytest

from trajkit.core.constants import ASTRO_MU_VENUS, ASTRO_RADIUS_VENUS
from trajkit.core.exceptions import FlybyError
from trajkit.trajectory.flyby import (
    FlybyBody,
    UnpoweredFlyby,
    bplane_basis,
    compute_aiming_radius,
    compute_turn_angle,
)

VENUS = FlybyBody(np.array([-20.0, 28.0, 0.5]), ASTRO_RADIUS_VENUS, ASTRO_MU_VENUS)


def test_compute_turn_angle():
    # Test case: Earth flyby
    mu = 398600.4418
    v_inf = 5.0  # km/s
    rp = 6378.137 + 500  # 500 km altitude

    delta = compute_turn_angle(v_inf, mu, rp)

    e = 1 + rp * v_inf**2 / mu
    expected_delta = 2 * np.arcsin(1 / e)
    assert np.isclose(delta, expected_delta, atol=1e-8)
    assert 0 < delta < np.pi


def test_compute_aiming_radius():
    mu = 398600.4418
    v_inf = 3.0
    rp = 7000.0

    b = compute_aiming_radius(v_inf, mu, rp)
    expected = rp * np.sqrt(1 + 2 * mu / (rp * v_inf**2))
    assert np.isclose(b, expected, atol=1e-8)


def test_bplane_basis_is_orthonormal():
    B1, B2, B3 = bplane_basis(np.array([3.0, -1.0, 0.5]), VENUS.velocity)
    basis = np.vstack((B1, B2, B3))
    np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)
    assert np.isclose(np.dot(B2, VENUS.velocity), 0.0, atol=1e-12)


def test_excess_velocity_magnitude_conserved():
    flyby = UnpoweredFlyby()
    v_in = VENUS.velocity + np.array([3.0, -1.5, 0.7])
    v_inf_in = np.linalg.norm(v_in - VENUS.velocity)

    for altitude in [300.0, 3331.84, 20000.0]:
        for angle in np.linspace(-np.pi, np.pi, 9):
            v_out = flyby.evaluate(v_in, VENUS, altitude, angle)
            assert np.isclose(np.linalg.norm(v_out - VENUS.velocity), v_inf_in, rtol=1e-12)


def test_turn_angle_consistency():
    flyby = UnpoweredFlyby()
    v_inf_in = np.array([4.0, 1.0, -0.5])
    altitude = 1000.0

    v_out = flyby.evaluate(VENUS.velocity + v_inf_in, VENUS, altitude, 0.7)
    v_inf_out = v_out - VENUS.velocity

    delta = compute_turn_angle(np.linalg.norm(v_inf_in), VENUS.mu, VENUS.radius + altitude)
    calculated = np.arccos(np.dot(v_inf_in, v_inf_out) / np.linalg.norm(v_inf_in)**2)
    assert np.isclose(delta, calculated, atol=1e-8)


def test_bplane_angle_selects_turn_plane():
    flyby = UnpoweredFlyby()
    v_inf_in = np.array([4.0, 1.0, -0.5])
    B1, B2, B3 = bplane_basis(v_inf_in, VENUS.velocity)

    in_plane = flyby.evaluate(VENUS.velocity + v_inf_in, VENUS, 1000.0, 0.0) - VENUS.velocity
    assert np.isclose(np.dot(in_plane, B3), 0.0, atol=1e-10)
    assert np.dot(in_plane, B2) > 0.0

    normal = flyby.evaluate(VENUS.velocity + v_inf_in, VENUS, 1000.0, np.pi / 2) - VENUS.velocity
    assert np.isclose(np.dot(normal, B2), 0.0, atol=1e-10)
    assert np.dot(normal, B3) > 0.0


def test_higher_flyby_turns_less():
    flyby = UnpoweredFlyby()
    v_inf_in = np.array([4.0, 1.0, -0.5])
    low = flyby.evaluate(VENUS.velocity + v_inf_in, VENUS, 300.0, 0.0) - VENUS.velocity
    high = flyby.evaluate(VENUS.velocity + v_inf_in, VENUS, 50000.0, 0.0) - VENUS.velocity
    assert np.dot(high, v_inf_in) > np.dot(low, v_inf_in)


def test_zero_excess_velocity_is_infeasible():
    with pytest.raises(FlybyError):
        UnpoweredFlyby().evaluate(VENUS.velocity.copy(), VENUS, 1000.0, 0.0)


def test_asymptote_parallel_to_body_velocity_is_infeasible():
    with pytest.raises(FlybyError):
        UnpoweredFlyby().evaluate(1.2 * VENUS.velocity, VENUS, 1000.0, 0.0)


def test_periapsis_below_center_is_infeasible():
    with pytest.raises(FlybyError):
        UnpoweredFlyby().evaluate(VENUS.velocity + np.array([3.0, 0.0, 0.0]), VENUS,
                                  -2.0 * ASTRO_RADIUS_VENUS, 0.0)
