"""
Unit Tests for the MGA-DSM Trajectory Evaluator
-----------------------------------------------
Parameter layout, node validation, cost ordering and penalty handling,
plus the Earth-Venus-DSM-Mars regression itinerary.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from trajkit.core.constants import ASTRO_MU_MARS, ASTRO_MU_SUN, DAY_TO_SEC, PENALTY_DELTA_V
from trajkit.core.epoch import Epoch, Time
from trajkit.core.exceptions import TrajectoryDefinitionError
from trajkit.core.state import OrbitalElements
from trajkit.dynamics.propagation import KeplerianPropagator
from trajkit.ephemeris.jpl_approximate import JplApproximateEphemeris
from trajkit.trajectory.lambert import LambertSolver
from trajkit.trajectory.mgadsm import DepartureNode, MGADSMTrajectory, insertion_delta_v

# Earth -> Mars geometry with a 149 degree transfer on the circular test ephemeris
DEPARTURE_MJD2000 = 153.0
TRANSFER_DAYS = 200.0


def earth_venus_mars(ephemeris, altitude=3000.0):
    return (MGADSMTrajectory(ephemeris)
            .add_departure('Earth', 0.0)
            .add_flyby('Venus', 60.0, altitude, 0.3)
            .add_rendezvous('Mars', 250.0))


def test_demo_itinerary():
    """Earth - Venus - DSM - Mars on the JPL approximate ephemeris against the reference tuples."""
    trajectory = MGADSMTrajectory(JplApproximateEphemeris())
    trajectory.add_departure('Earth', Epoch.from_jd(2455412.511))
    trajectory.add_flyby('Venus', 117.17, 3331.84, -1.62453)
    trajectory.add_dsm(0.35435)
    trajectory.add_rendezvous('Mars', 690.286)

    result = trajectory.evaluate_detailed(trajectory.get_nominal_parameters())

    assert result.feasible
    np.testing.assert_allclose(result.delta_v, [2.8049, 1.43987, 3.78799], rtol=1e-3)

    jds = [epoch.jd() for epoch in result.epochs]
    np.testing.assert_allclose(jds, [2455412.511, 2455529.6813, 2456219.967], rtol=0.0, atol=1e-3)


def test_parameter_layout():
    trajectory = (MGADSMTrajectory(JplApproximateEphemeris())
                  .add_departure('Earth', 3867.51, epoch_bounds=(3000.0, 4000.0))
                  .add_flyby('Venus', 117.17, 3331.84, -1.62453)
                  .add_dsm(0.35435, alpha_bounds=(0.01, 0.99))
                  .add_rendezvous('Mars', 690.286))

    assert trajectory.get_parameter_count() == 6
    assert trajectory.get_cost_count() == 3
    np.testing.assert_allclose(trajectory.get_nominal_parameters(),
                               [3867.51, 117.17, 3331.84, -1.62453, 0.35435, 690.286])

    lower, upper = trajectory.get_parameter_bounds()
    np.testing.assert_allclose(lower, [3000.0, 117.17, 3331.84, -1.62453, 0.01, 690.286])
    np.testing.assert_allclose(upper, [4000.0, 117.17, 3331.84, -1.62453, 0.99, 690.286])


def test_departure_epoch_accepts_epoch_or_days():
    from_epoch = DepartureNode('Earth', Epoch.from_jd(2455412.511))
    from_days = DepartureNode('Earth', 3868.011)

    assert isinstance(from_epoch.epoch, float)
    assert from_epoch.epoch == pytest.approx(from_days.epoch)
    assert from_epoch.epoch_bounds == (from_epoch.epoch, from_epoch.epoch)


def test_parameter_layout_with_consecutive_dsms():
    trajectory = (MGADSMTrajectory(JplApproximateEphemeris())
                  .add_departure('Earth', 100.0, v_inf=(2.0, 0.5, 0.5),
                                 v_inf_bounds=((0.0, 0.0, 0.0), (5.0, 1.0, 1.0)))
                  .add_dsm(0.3, delta_v=(0.5, 0.2, 0.7))
                  .add_dsm(0.5)
                  .add_flyby('Venus', 150.0, 500.0, 0.0)
                  .add_rendezvous('Mars', 300.0))

    # Departure epoch + impulse, DSM alpha + impulse, DSM alpha, flyby, rendezvous
    assert trajectory.get_parameter_count() == 4 + 4 + 1 + 3 + 1
    assert trajectory.get_cost_count() == 5
    np.testing.assert_allclose(trajectory.get_nominal_parameters()[:9],
                               [100.0, 2.0, 0.5, 0.5, 0.3, 0.5, 0.2, 0.7, 0.5])

    lower, upper = trajectory.get_parameter_bounds()
    np.testing.assert_allclose(lower[1:4], [0.0, 0.0, 0.0])
    np.testing.assert_allclose(upper[1:4], [5.0, 1.0, 1.0])


def test_flyby_contributes_no_entry(circular_ephemeris):
    trajectory = earth_venus_mars(circular_ephemeris)
    dv = trajectory.evaluate(trajectory.get_nominal_parameters())

    # Earth-Venus Lambert, Venus-Mars Lambert, Mars rendezvous
    assert dv.shape == (3,)
    assert np.all(np.isfinite(dv))
    assert np.all(dv < PENALTY_DELTA_V)


def test_first_costs_match_direct_lambert(circular_ephemeris):
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', DEPARTURE_MJD2000)
                  .add_rendezvous('Mars', TRANSFER_DAYS))
    dv = trajectory.evaluate([DEPARTURE_MJD2000, TRANSFER_DAYS])

    departure = Epoch.from_mjd2000(DEPARTURE_MJD2000)
    earth = circular_ephemeris.get_state('EARTH', departure)
    mars = circular_ephemeris.get_state('MARS', departure + Time.from_days(TRANSFER_DAYS))
    v1, v2 = LambertSolver().evaluate(earth.position, mars.position, TRANSFER_DAYS * DAY_TO_SEC, ASTRO_MU_SUN)

    np.testing.assert_allclose(dv, [np.linalg.norm(v1 - earth.velocity), np.linalg.norm(v2 - mars.velocity)])


def test_dsm_at_departure_matches_direct_transfer(circular_ephemeris):
    direct = (MGADSMTrajectory(circular_ephemeris)
              .add_departure('Earth', DEPARTURE_MJD2000)
              .add_rendezvous('Mars', TRANSFER_DAYS))
    with_dsm = (MGADSMTrajectory(circular_ephemeris)
                .add_departure('Earth', DEPARTURE_MJD2000)
                .add_dsm(0.0)
                .add_rendezvous('Mars', TRANSFER_DAYS))

    dv_direct = direct.evaluate([DEPARTURE_MJD2000, TRANSFER_DAYS])
    dv_dsm = with_dsm.evaluate([DEPARTURE_MJD2000, 0.0, 0.0, 0.0, 0.0, TRANSFER_DAYS])

    # Zero departure impulse, then the DSM is sized by the same Lambert arc
    assert dv_dsm[0] == 0.0
    np.testing.assert_allclose(dv_dsm[1:], dv_direct, rtol=1e-9)


def test_dsm_at_arrival_is_penalized(circular_ephemeris):
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', DEPARTURE_MJD2000)
                  .add_dsm(1.0)
                  .add_rendezvous('Mars', TRANSFER_DAYS))

    result = trajectory.evaluate_detailed([DEPARTURE_MJD2000, 1.0, 0.0, 0.0, 0.0, TRANSFER_DAYS])

    # Nothing is left of the leg for the Lambert arc
    assert not result.feasible
    np.testing.assert_array_equal(result.delta_v, [0.0, PENALTY_DELTA_V, PENALTY_DELTA_V])


def test_propagator_injection(circular_ephemeris):
    params = [DEPARTURE_MJD2000, 1.0, 0.5, 0.5, 0.4, TRANSFER_DAYS]

    def build(**kwargs):
        return (MGADSMTrajectory(circular_ephemeris, **kwargs)
                .add_departure('Earth', DEPARTURE_MJD2000)
                .add_dsm(0.4)
                .add_rendezvous('Mars', TRANSFER_DAYS))

    universal = build().evaluate(params)
    keplerian = build(propagator=KeplerianPropagator()).evaluate(params)

    assert np.isclose(universal[0], 1.0)
    np.testing.assert_allclose(keplerian, universal, rtol=1e-6)


def test_insertion_cost(circular_ephemeris):
    orbit = OrbitalElements(10000.0, 0.3, 0.0, 0.0, 0.0, 0.0)
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', DEPARTURE_MJD2000)
                  .add_insertion('Mars', orbit, TRANSFER_DAYS, 10.0))

    assert trajectory.get_parameter_count() == 3
    result = trajectory.evaluate_detailed([DEPARTURE_MJD2000, TRANSFER_DAYS, 10.0])

    mars = circular_ephemeris.get_state('MARS', Epoch.from_mjd2000(DEPARTURE_MJD2000 + TRANSFER_DAYS))
    rendezvous = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', DEPARTURE_MJD2000)
                  .add_rendezvous('Mars', TRANSFER_DAYS))
    v_inf = rendezvous.evaluate([DEPARTURE_MJD2000, TRANSFER_DAYS])[1]

    assert np.isclose(result.delta_v[1], insertion_delta_v(v_inf, ASTRO_MU_MARS, orbit))
    np.testing.assert_allclose(result.final_state.velocity, mars.velocity)


def test_insertion_delta_v_formula():
    orbit = OrbitalElements(10000.0, 0.5, 0.0, 0.0, 0.0, 0.0)
    mu = 42828.37
    rp = 5000.0
    expected = np.sqrt(9.0 + 2.0 * mu / rp) - np.sqrt(mu * 1.5 / rp)
    assert np.isclose(insertion_delta_v(3.0, mu, orbit), expected)

    # Circular target orbit, zero excess speed
    assert np.isclose(insertion_delta_v(0.0, mu, OrbitalElements(1e4, 0.0, 0.0, 0.0, 0.0, 0.0)),
                      np.sqrt(2.0 * mu / 1e4) - np.sqrt(mu / 1e4))


def test_zero_time_of_flight_is_penalized(circular_ephemeris):
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', 0.0)
                  .add_rendezvous('Mars', 0.0))
    result = trajectory.evaluate_detailed([0.0, 0.0])

    assert not result.feasible
    np.testing.assert_array_equal(result.delta_v, [PENALTY_DELTA_V, PENALTY_DELTA_V])


def test_flyby_failure_keeps_earlier_costs(circular_ephemeris):
    trajectory = earth_venus_mars(circular_ephemeris, altitude=-10000.0)
    result = trajectory.evaluate_detailed(trajectory.get_nominal_parameters())

    assert not result.feasible
    assert result.delta_v[0] < 100.0
    np.testing.assert_array_equal(result.delta_v[1:], [PENALTY_DELTA_V, PENALTY_DELTA_V])


def test_custom_penalty(circular_ephemeris):
    trajectory = MGADSMTrajectory(circular_ephemeris, penalty=1e6)
    trajectory.add_departure('Earth', 0.0).add_rendezvous('Mars', 0.0)
    np.testing.assert_array_equal(trajectory.evaluate([0.0, 0.0]), [1e6, 1e6])


def test_unknown_body_is_logged_and_penalized(circular_ephemeris, caplog):
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', 0.0)
                  .add_rendezvous('Vulcan', 100.0))

    with caplog.at_level(logging.ERROR, logger='trajkit.trajectory.mgadsm'):
        result = trajectory.evaluate_detailed([0.0, 100.0])

    assert not result.feasible
    assert np.all(result.delta_v == PENALTY_DELTA_V)
    assert any('Vulcan' in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("build", [
    lambda t: t.add_departure('Earth', 0.0),
    lambda t: t.add_flyby('Venus', 100.0, 500.0, 0.0).add_rendezvous('Mars', 200.0),
    lambda t: t.add_departure('Earth', 0.0).add_rendezvous('Venus', 100.0).add_rendezvous('Mars', 200.0),
    lambda t: t.add_departure('Earth', 0.0).add_departure('Venus', 10.0).add_rendezvous('Mars', 200.0),
    lambda t: t.add_departure('Earth', 0.0).add_dsm(0.5),
    lambda t: t.add_departure('Earth', 0.0, epoch_bounds=(10.0, -10.0)).add_rendezvous('Mars', 200.0),
], ids=['too_short', 'no_departure', 'rendezvous_not_last', 'second_departure', 'ends_with_dsm', 'bad_bounds'])
def test_invalid_node_sequences(circular_ephemeris, build):
    trajectory = build(MGADSMTrajectory(circular_ephemeris))
    with pytest.raises(TrajectoryDefinitionError):
        trajectory.validate()


def test_parameter_vector_errors(circular_ephemeris):
    trajectory = (MGADSMTrajectory(circular_ephemeris)
                  .add_departure('Earth', DEPARTURE_MJD2000)
                  .add_dsm(0.5)
                  .add_rendezvous('Mars', TRANSFER_DAYS))

    with pytest.raises(TrajectoryDefinitionError):
        trajectory.evaluate([DEPARTURE_MJD2000, TRANSFER_DAYS])
    with pytest.raises(TrajectoryDefinitionError):
        trajectory.evaluate([DEPARTURE_MJD2000, 1.0, 0.5, 0.5, 1.5, TRANSFER_DAYS])
    with pytest.raises(TrajectoryDefinitionError):
        trajectory.evaluate([DEPARTURE_MJD2000, 1.0, 0.5, 0.5, -0.1, TRANSFER_DAYS])


def test_concurrent_evaluation(circular_ephemeris):
    trajectory = earth_venus_mars(circular_ephemeris)
    params = trajectory.get_nominal_parameters()
    expected = trajectory.evaluate(params)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(trajectory.evaluate, [params] * 16))

    for dv in results:
        np.testing.assert_array_equal(dv, expected)
