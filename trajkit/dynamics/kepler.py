import warnings

import numpy as np

from trajkit.core.constants import KEPLER_MIN_SLOPE, MATH_TOLERANCE, MAX_ITERATIONS
from trajkit.core.conversion import (
    eccentric_to_true_anomaly,
    hyperbolic_to_true_anomaly,
    parabolic_to_true_anomaly,
)
from trajkit.core.exceptions import ConvergenceWarning


class KeplerSolver:
    """
    Newton-Raphson solver for Kepler's equation.

    Elliptical orbits: M = E - e*sin(E), solved for the eccentric anomaly E.
    Hyperbolic orbits: M = e*sinh(H) - H, solved for the hyperbolic anomaly H.
    """

    @staticmethod
    def solve(eccentricity: float, mean_anomaly: float,
              max_iter: int = MAX_ITERATIONS, tol: float = MATH_TOLERANCE) -> float:
        """
        Solves Kepler's equation for the eccentric (e < 1) or hyperbolic (e > 1) anomaly.

        Non-convergence is not fatal: a ConvergenceWarning is issued and the
        last estimate is returned, so an outer search is never interrupted.

        Args:
            eccentricity (float): Orbit eccentricity (must not be 1).
            mean_anomaly (float): Mean anomaly [rad].
            max_iter (int): Iteration cap.
            tol (float): Convergence threshold on the Newton correction [rad].

        Returns:
            float: Eccentric or hyperbolic anomaly [rad].
        """
        e = eccentricity
        if abs(e - 1.0) < MATH_TOLERANCE:
            raise ValueError("Kepler's equation is undefined for parabolic orbits; use Barker's equation.")

        if e < 1.0:
            # Wrap into (-pi, pi] where the Newton iteration is well behaved
            M = np.arctan2(np.sin(mean_anomaly), np.cos(mean_anomaly))
            f = lambda E: E - e * np.sin(E)
            df = lambda E: 1.0 - e * np.cos(E)
            # |E - M| = e*|sin(E)| <= e
            lo, hi = M - e, M + e
        else:
            M = mean_anomaly
            f = lambda H: e * np.sinh(H) - H
            df = lambda H: e * np.cosh(H) - 1.0
            lo, hi = -np.inf, np.inf

        anomaly = M
        for _ in range(max_iter):
            slope = df(anomaly)
            if abs(slope) < KEPLER_MIN_SLOPE:
                warnings.warn(
                    f"Kepler solver derivative vanished (e={e}, M={mean_anomaly}); returning last estimate.",
                    ConvergenceWarning)
                return KeplerSolver._unwrap(anomaly, mean_anomaly, e)
            residual = f(anomaly) - M
            if residual > 0.0:
                hi = min(hi, anomaly)
            else:
                lo = max(lo, anomaly)
            new = anomaly - residual / slope
            if np.isfinite(lo) and np.isfinite(hi) and not lo <= new <= hi:
                # Newton left the bracket, bisect instead
                new = 0.5 * (lo + hi)
            correction = anomaly - new
            anomaly = new
            if abs(correction) < tol:
                return KeplerSolver._unwrap(anomaly, mean_anomaly, e)

        warnings.warn(
            f"Kepler solver did not converge in {max_iter} iterations (e={e}, M={mean_anomaly}).",
            ConvergenceWarning)
        return KeplerSolver._unwrap(anomaly, mean_anomaly, e)

    @staticmethod
    def _unwrap(anomaly: float, mean_anomaly: float, e: float) -> float:
        # Restore the revolution count removed when wrapping an elliptical M
        if e < 1.0:
            wrapped = np.arctan2(np.sin(mean_anomaly), np.cos(mean_anomaly))
            return float(anomaly + (mean_anomaly - wrapped))
        return float(anomaly)


def mean_to_true_anomaly(eccentricity: float, mean_anomaly: float) -> float:
    """
    Converts a mean anomaly to the true anomaly for any conic.

    Args:
        eccentricity (float): Orbit eccentricity.
        mean_anomaly (float): Mean anomaly [rad].

    Returns:
        float: True anomaly in [0, 2*pi) [rad].
    """
    e = eccentricity
    if abs(e - 1.0) < MATH_TOLERANCE:
        # Barker: D^3 + 3D - 3M = 0 has a single real root
        z = np.cbrt(1.5 * mean_anomaly + np.sqrt(2.25 * mean_anomaly**2 + 1.0))
        return parabolic_to_true_anomaly(z - 1.0 / z)
    anomaly = KeplerSolver.solve(e, mean_anomaly)
    if e < 1.0:
        return eccentric_to_true_anomaly(e, anomaly)
    return float(np.mod(hyperbolic_to_true_anomaly(e, anomaly), 2.0 * np.pi))
