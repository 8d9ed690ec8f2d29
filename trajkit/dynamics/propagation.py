"""
Two-body propagation.

UniversalVariablePropagator follows Vallado's universal-variable
formulation (Algorithm 8) and is valid for every conic and for negative
durations. KeplerianPropagator advances the mean anomaly of the
osculating elements and is kept as an alternative with the same contract.
propagate_to_true_anomaly places a state at a chosen point of its orbit.
"""
import warnings
from dataclasses import replace
from typing import NamedTuple, Protocol

import numpy as np

from trajkit.core.constants import (
    ASTRO_MU_EARTH,
    MATH_TOLERANCE,
    MAX_ITERATIONS,
    STUMPFF_SERIES_THRESHOLD,
)
from trajkit.core.conversion import cartesian_to_elements, elements_to_cartesian, true_to_mean_anomaly
from trajkit.core.epoch import Time
from trajkit.core.exceptions import ConvergenceWarning
from trajkit.core.state import CartesianState, OrbitalElements
from trajkit.dynamics.kepler import mean_to_true_anomaly

LAGRANGE_TOLERANCE = 1e-6


class Propagator(Protocol):
    def propagate(self, state: CartesianState, mu: float, duration: Time) -> CartesianState:
        ...


class LagrangeCoefficients(NamedTuple):
    f: float
    g: float
    fdot: float
    gdot: float

    def invariant(self) -> float:
        """f*gdot - fdot*g, identically 1 for an exact two-body solution."""
        return self.f * self.gdot - self.fdot * self.g


def stumpff_c2_c3(psi: float) -> tuple[float, float]:
    """
    Stumpff functions c2(psi) and c3(psi).

    Args:
        psi (float): psi = x^2 * alpha.

    Returns:
        tuple[float, float]: (c2, c3).
    """
    if psi > STUMPFF_SERIES_THRESHOLD:
        sqrt_psi = np.sqrt(psi)
        c2 = (1.0 - np.cos(sqrt_psi)) / psi
        c3 = (sqrt_psi - np.sin(sqrt_psi)) / (sqrt_psi**3)
    elif psi < -STUMPFF_SERIES_THRESHOLD:
        sqrt_neg = np.sqrt(-psi)
        c2 = (1.0 - np.cosh(sqrt_neg)) / psi
        c3 = (np.sinh(sqrt_neg) - sqrt_neg) / (sqrt_neg**3)
    else:
        c2 = 0.5
        c3 = 1.0 / 6.0
    return c2, c3


class UniversalVariablePropagator:
    """
    Universal-variable Kepler propagator.

    Args:
        max_iter (int): Newton iteration cap on the universal variable.
        tol (float): Relative convergence threshold on the universal variable.
    """

    def __init__(self, max_iter: int = MAX_ITERATIONS, tol: float = MATH_TOLERANCE):
        self.max_iter = max_iter
        self.tol = tol

    def propagate(self, state: CartesianState, mu: float, duration: Time) -> CartesianState:
        """
        Advances a state by a signed duration.

        Args:
            state (CartesianState): Initial position [km] and velocity [km/s].
            mu (float): Gravitational parameter [km^3/s^2].
            duration (Time): Elapsed time, negative for backward propagation.

        Returns:
            CartesianState: Final position and velocity.
        """
        dt = duration.seconds()
        if dt == 0.0:
            return state
        coeffs = self.lagrange_coefficients(state, mu, dt)
        R, V = state.position, state.velocity
        return CartesianState(coeffs.f * R + coeffs.g * V,
                              coeffs.fdot * R + coeffs.gdot * V)

    def lagrange_coefficients(self, state: CartesianState, mu: float, dt: float) -> LagrangeCoefficients:
        """
        Solves for the universal variable and returns the Lagrange coefficients.

        Args:
            state (CartesianState): Initial position [km] and velocity [km/s].
            mu (float): Gravitational parameter [km^3/s^2].
            dt (float): Elapsed time [s].

        Returns:
            LagrangeCoefficients: f, g, fdot, gdot.
        """
        R, V = state.position, state.velocity
        r0 = np.linalg.norm(R)
        v0 = np.linalg.norm(V)
        r_dot_v = np.dot(R, V)
        sqrt_mu = np.sqrt(mu)

        alpha = 2.0 / r0 - v0**2 / mu
        x = self._initial_guess(R, V, r0, r_dot_v, alpha, mu, dt)

        converged = False
        psi, c2, c3, r = 0.0, 0.5, 1.0 / 6.0, r0
        for _ in range(self.max_iter):
            psi = x**2 * alpha
            c2, c3 = stumpff_c2_c3(psi)
            r = (x**2 * c2
                 + (r_dot_v / sqrt_mu) * x * (1.0 - psi * c3)
                 + r0 * (1.0 - psi * c2))
            delta = (sqrt_mu * dt
                     - x**3 * c3
                     - (r_dot_v / sqrt_mu) * x**2 * c2
                     - r0 * x * (1.0 - psi * c3)) / r
            x += delta
            if abs(delta) < self.tol * max(1.0, abs(x)):
                converged = True
                break

        if not converged:
            warnings.warn(
                f"Universal-variable iteration did not converge in {self.max_iter} iterations (dt={dt} s).",
                ConvergenceWarning)

        psi = x**2 * alpha
        c2, c3 = stumpff_c2_c3(psi)
        r = (x**2 * c2
             + (r_dot_v / sqrt_mu) * x * (1.0 - psi * c3)
             + r0 * (1.0 - psi * c2))

        f = 1.0 - x**2 * c2 / r0
        g = dt - x**3 * c3 / sqrt_mu
        fdot = sqrt_mu / (r * r0) * x * (psi * c3 - 1.0)
        gdot = 1.0 - x**2 * c2 / r
        coeffs = LagrangeCoefficients(float(f), float(g), float(fdot), float(gdot))

        if abs(coeffs.invariant() - 1.0) > LAGRANGE_TOLERANCE:
            warnings.warn(
                f"Lagrange invariant violated: f*gdot - fdot*g = {coeffs.invariant():.12f}",
                ConvergenceWarning)
        return coeffs

    @staticmethod
    def _initial_guess(R, V, r0, r_dot_v, alpha, mu, dt) -> float:
        sqrt_mu = np.sqrt(mu)
        threshold = STUMPFF_SERIES_THRESHOLD * (ASTRO_MU_EARTH / mu)

        if alpha > threshold:
            # Ellipse
            return sqrt_mu * dt * alpha

        if alpha < -threshold:
            # Hyperbola
            a = 1.0 / alpha
            sign = np.sign(dt)
            denom = r_dot_v + sign * np.sqrt(-mu * a) * (1.0 - r0 * alpha)
            arg = (-2.0 * mu * alpha * dt) / denom if denom != 0.0 else -1.0
            if arg > 0.0 and np.isfinite(arg):
                return sign * np.sqrt(-a) * np.log(arg)
            return sqrt_mu * abs(alpha) * dt

        # Parabola
        h = np.linalg.norm(np.cross(R, V))
        p = h**2 / mu
        s = 0.5 * np.arctan(1.0 / (3.0 * np.sqrt(mu / p**3) * dt))
        w = np.arctan(np.cbrt(np.tan(s)))
        return np.sqrt(p) * 2.0 / np.tan(2.0 * w)


class KeplerianPropagator:
    """
    Propagates the osculating elements by advancing the mean anomaly and
    solving Kepler's (or Barker's) equation.
    """

    def propagate(self, state: CartesianState, mu: float, duration: Time) -> CartesianState:
        dt = duration.seconds()
        if dt == 0.0:
            return state
        elements = cartesian_to_elements(state, mu)
        e = elements.eccentricity

        if elements.is_parabolic():
            mean_motion = 2.0 * np.sqrt(mu / elements.p**3)
        else:
            mean_motion = np.sqrt(mu / abs(elements.semi_major_axis)**3)

        M0 = true_to_mean_anomaly(e, elements.true_anomaly)
        nu = mean_to_true_anomaly(e, M0 + mean_motion * dt)

        advanced = OrbitalElements(
            semi_major_axis=elements.semi_major_axis,
            eccentricity=e,
            inclination=elements.inclination,
            arg_of_pericenter=elements.arg_of_pericenter,
            lon_of_ascending_node=elements.lon_of_ascending_node,
            true_anomaly=nu,
            semi_latus_rectum=elements.semi_latus_rectum,
        )
        return elements_to_cartesian(advanced, mu)


def propagate_to_true_anomaly(state: CartesianState, mu: float, true_anomaly: float) -> CartesianState:
    """
    Moves a state along its osculating orbit to the given true anomaly.

    Only the sixth element changes, so the result lies on the same conic.
    For circular orbits the angle is the argument of latitude and for
    circular equatorial orbits the true longitude.

    Args:
        state (CartesianState): Position [km] and velocity [km/s] on the orbit.
        mu (float): Gravitational parameter [km^3/s^2].
        true_anomaly (float): Target true anomaly [rad].

    Returns:
        CartesianState: State at the target true anomaly.
    """
    elements = cartesian_to_elements(state, mu)
    return elements_to_cartesian(replace(elements, true_anomaly=true_anomaly), mu)
