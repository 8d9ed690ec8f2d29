import logging
import os
import sys

import numpy as np

# Ensure the package is importable when run from a checkout
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from trajkit.core.epoch import Epoch
from trajkit.ephemeris.jpl_approximate import JplApproximateEphemeris
from trajkit.trajectory.mgadsm import MGADSMTrajectory


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    print("MGA-DSM Trajectory: Earth - Venus - DSM - Mars")

    # 1. Build the itinerary
    trajectory = MGADSMTrajectory(JplApproximateEphemeris())
    trajectory.add_departure('Earth', Epoch.from_mjd2000(3868.011), epoch_bounds=(3500.0, 4200.0))
    trajectory.add_flyby('Venus', 117.17, 3331.84, -1.62453,
                         time_of_flight_bounds=(80.0, 200.0),
                         altitude_bounds=(300.0, 20000.0),
                         b_plane_angle_bounds=(-np.pi, np.pi))
    trajectory.add_dsm(0.35435, alpha_bounds=(0.01, 0.99))
    trajectory.add_rendezvous('Mars', 690.286, time_of_flight_bounds=(300.0, 900.0))

    print(f"Parameters: {trajectory.get_parameter_count()}")
    lower, upper = trajectory.get_parameter_bounds()
    for lo, hi, value in zip(lower, upper, trajectory.get_nominal_parameters()):
        print(f"  {value:12.5f}  in [{lo:10.3f}, {hi:10.3f}]")

    # 2. Evaluate the nominal trajectory
    result = trajectory.evaluate_detailed(trajectory.get_nominal_parameters())

    print("\nEvents:")
    for epoch in result.epochs:
        date = epoch.to_gregorian()
        print(f"  JD {epoch.jd():.4f}  ({date.year:04d}-{date.month:02d}-{date.day:02d})")

    print("\nDelta-V (km/s):")
    for k, dv in enumerate(result.delta_v):
        print(f"  [{k}] {dv:.5f}")
    print(f"Total: {result.total_delta_v:.5f} km/s, feasible: {result.feasible}")

    # 3. Random samples inside the bounds, as an optimizer would draw them
    rng = np.random.default_rng(42)
    samples = rng.uniform(lower, upper, size=(200, len(lower)))
    totals = np.array([np.sum(trajectory.evaluate(x)) for x in samples])
    best = np.argmin(totals)
    print(f"\nBest of {len(samples)} random samples: {totals[best]:.5f} km/s")
    print(f"  x = {np.array2string(samples[best], precision=4)}")


if __name__ == "__main__":
    main()
