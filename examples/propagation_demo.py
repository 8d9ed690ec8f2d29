import os
import sys

import numpy as np

# Ensure the package is importable when run from a checkout
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from trajkit.core.conversion import cartesian_to_elements
from trajkit.core.epoch import Time
from trajkit.core.state import CartesianState
from trajkit.dynamics.propagation import KeplerianPropagator, UniversalVariablePropagator

MU_EARTH = 398600.4418


def main():
    print("Two-Body Propagation: forward and back")

    state = CartesianState([1131.340, -2282.343, 6672.423], [-5.64305, 4.30333, 2.42879])
    el = cartesian_to_elements(state, MU_EARTH)
    print(f"a = {el.semi_major_axis:.3f} km, e = {el.eccentricity:.6f}, "
          f"i = {np.degrees(el.inclination):.4f} deg, nu = {np.degrees(el.true_anomaly):.4f} deg")

    dt = Time.from_minutes(40)
    for propagator in (UniversalVariablePropagator(), KeplerianPropagator()):
        name = type(propagator).__name__
        forward = propagator.propagate(state, MU_EARTH, dt)
        back = propagator.propagate(forward, MU_EARTH, -dt)

        print(f"\n{name}")
        print(f"  r(+40 min) = {np.array2string(forward.position, precision=4)} km")
        print(f"  v(+40 min) = {np.array2string(forward.velocity, precision=6)} km/s")
        print(f"  Round trip error: {np.linalg.norm(back.position - state.position):.3e} km, "
              f"{np.linalg.norm(back.velocity - state.velocity):.3e} km/s")

    coeffs = UniversalVariablePropagator().lagrange_coefficients(state, MU_EARTH, dt.seconds())
    print(f"\nf*g_dot - f_dot*g = {coeffs.invariant():.12f}")


if __name__ == "__main__":
    main()
