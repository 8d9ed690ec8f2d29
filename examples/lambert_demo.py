import os
import sys

import numpy as np

# Ensure the package is importable when run from a checkout
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from trajkit.core.epoch import Time
from trajkit.core.state import CartesianState
from trajkit.dynamics.propagation import UniversalVariablePropagator
from trajkit.trajectory.lambert import LambertSolver


def main():
    print("Multi-Revolution Lambert Solutions")

    # Canonical units, quarter turn from r = 1 to r = 1.5
    mu = 1.0
    r1 = np.array([1.0, 0.0, 0.0])
    r2 = np.array([0.0, 1.5, 0.0])
    dt = 25.0

    solver = LambertSolver()
    solutions = solver.evaluate_all(r1, r2, dt, mu, max_revolutions=3)
    propagator = UniversalVariablePropagator()

    print(f"{len(solutions)} solutions for dt = {dt}")
    for s in solutions:
        final = propagator.propagate(CartesianState(r1, s.v1), mu, Time(dt))
        miss = np.linalg.norm(final.position - r2)
        energy = 0.5 * np.dot(s.v1, s.v1) - mu / np.linalg.norm(r1)
        print(f"  N={s.revolutions} {s.branch:>6}: v1 = {np.array2string(s.v1, precision=5)}, "
              f"a = {-mu / (2 * energy):.4f}, miss = {miss:.2e}")

    try:
        import matplotlib.pyplot as plt
    except ImportError:
        print("matplotlib not installed, skipping plot.")
        return

    fig, ax = plt.subplots(figsize=(7, 7))
    for s in solutions:
        times = np.linspace(0.0, dt, 600)
        path = np.array([propagator.propagate(CartesianState(r1, s.v1), mu, Time(t)).position for t in times])
        ax.plot(path[:, 0], path[:, 1], label=f"N={s.revolutions} ({s.branch})")
    ax.plot(*r1[:2], 'go', label='r1')
    ax.plot(*r2[:2], 'ro', label='r2')
    ax.plot(0, 0, 'y*', markersize=15)
    ax.set_aspect('equal')
    ax.set_title("Lambert transfers by revolution count")
    ax.legend()
    ax.grid(True)

    output_path = os.path.join(os.path.dirname(__file__), 'lambert_demo.png')
    plt.savefig(output_path)
    print(f"Saved plot to {output_path}")


if __name__ == "__main__":
    main()
