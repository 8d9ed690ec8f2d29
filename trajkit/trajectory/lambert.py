import logging
from typing import NamedTuple, Protocol

import numpy as np
from scipy.optimize import brentq, minimize_scalar

from trajkit.core.constants import MATH_TOLERANCE, MAX_ITERATIONS
from trajkit.core.exceptions import LambertError
from trajkit.dynamics.propagation import stumpff_c2_c3

logger = logging.getLogger(__name__)

# sinh/cosh overflow beyond sqrt(-z) ~ 710
_Z_FLOOR = -700.0**2


class LambertSolution(NamedTuple):
    """
    One transfer orbit connecting r1 and r2 in the requested time of flight.

    Attributes:
        v1 (np.ndarray): Velocity at r1 [km/s].
        v2 (np.ndarray): Velocity at r2 [km/s].
        revolutions (int): Number of complete revolutions.
        branch (str): 'single' for zero revolutions, otherwise 'left' or 'right'
            of the time-of-flight minimum in the universal variable.
    """
    v1: np.ndarray
    v2: np.ndarray
    revolutions: int
    branch: str


class LambertAlgorithm(Protocol):
    def evaluate(self, r1: np.ndarray, r2: np.ndarray, dt: float, mu: float,
                 prograde: bool = True, revolutions: int = 0) -> tuple[np.ndarray, np.ndarray]:
        ...

    def evaluate_all(self, r1: np.ndarray, r2: np.ndarray, dt: float, mu: float,
                     prograde: bool = True, max_revolutions: int = 0) -> list[LambertSolution]:
        ...


class LambertSolver:
    """
    A Lambert solver using Universal Variables with multi-revolution support.
    This implementation solves the boundary value problem: finding the velocity vectors
    at two points (r1, r2) given the time of flight (dt).

    The time of flight is a function of the universal variable z. For zero
    revolutions it increases monotonically on (-inf, 4 pi^2); for N complete
    revolutions it is unimodal on (4 pi^2 N^2, 4 pi^2 (N+1)^2), so each N >= 1
    yields zero, one or two solutions.

    Args:
        max_iter (int): Maximum iterations for the root finders.
        tol (float): Relative tolerance on the time of flight.
    """

    def __init__(self, max_iter: int = MAX_ITERATIONS, tol: float = MATH_TOLERANCE):
        self.max_iter = max_iter
        self.tol = tol

    def evaluate(self, r1: np.ndarray, r2: np.ndarray, dt: float, mu: float,
                 prograde: bool = True, revolutions: int = 0, branch: str = 'left') -> tuple[np.ndarray, np.ndarray]:
        """
        Solves Lambert's problem for the transfer between position vectors r1 and r2
        with time of flight dt and a fixed number of complete revolutions.

        Args:
            r1 (np.ndarray): Initial position vector [km].
            r2 (np.ndarray): Final position vector [km].
            dt (float): Time of flight [seconds].
            mu (float): Gravitational parameter [km^3/s^2].
            prograde (bool): If True, solve for prograde orbit (inclination < 90).
                             If False, retrograde.
            revolutions (int): Number of complete revolutions.
            branch (str): 'left' or 'right' branch when revolutions >= 1.

        Returns:
            tuple[np.ndarray, np.ndarray]: (v1, v2) - Velocity vectors at r1 and r2 [km/s].

        Raises:
            LambertError: If no solution exists for the requested revolution count.
        """
        geometry = self._geometry(r1, r2, dt, mu, prograde)
        solutions = self._solve_revolution(geometry, revolutions)
        if not solutions:
            raise LambertError(f"No Lambert solution with {revolutions} revolution(s) for dt={dt} s.")
        if revolutions > 0 and branch == 'right':
            solution = solutions[-1]
        else:
            solution = solutions[0]
        return solution.v1, solution.v2

    def evaluate_all(self, r1: np.ndarray, r2: np.ndarray, dt: float, mu: float,
                     prograde: bool = True, max_revolutions: int = 0) -> list[LambertSolution]:
        """
        Enumerates every solution from 0 up to max_revolutions complete revolutions.

        Solutions are ordered by revolution count, and within one revolution count
        the left branch precedes the right branch. Revolution counts without a
        solution are omitted. A geometry with no transfer at all (collinear
        vectors, non-positive time of flight) yields an empty list.

        Args:
            r1 (np.ndarray): Initial position vector [km].
            r2 (np.ndarray): Final position vector [km].
            dt (float): Time of flight [seconds].
            mu (float): Gravitational parameter [km^3/s^2].
            prograde (bool): Transfer direction.
            max_revolutions (int): Highest revolution count to search.

        Returns:
            list[LambertSolution]: All solutions found.
        """
        try:
            geometry = self._geometry(r1, r2, dt, mu, prograde)
        except LambertError as e:
            logger.debug("No Lambert transfer for this geometry: %s", e)
            return []
        solutions = []
        for n in range(max_revolutions + 1):
            try:
                solutions.extend(self._solve_revolution(geometry, n))
            except LambertError as e:
                logger.debug("Lambert branch with %d revolution(s) omitted: %s", n, e)
        return solutions

    # ------------------------------------------------------------------

    @staticmethod
    def _geometry(r1, r2, dt, mu, prograde) -> dict:
        r1 = np.asarray(r1, dtype=float)
        r2 = np.asarray(r2, dtype=float)
        if dt <= 0.0:
            raise LambertError(f"Time of flight must be positive, got {dt} s.")

        r1_mag = np.linalg.norm(r1)
        r2_mag = np.linalg.norm(r2)
        if not (np.isfinite(r1_mag) and np.isfinite(r2_mag)) or r1_mag == 0.0 or r2_mag == 0.0:
            raise LambertError("Degenerate position vector.")
        cross_12 = np.cross(r1, r2)

        # Determine the change in true anomaly, dnu
        cos_dnu = np.clip(np.dot(r1, r2) / (r1_mag * r2_mag), -1.0, 1.0)
        dnu = np.arccos(cos_dnu)
        if prograde:
            if cross_12[2] < 0.0:
                dnu = 2.0 * np.pi - dnu
        elif cross_12[2] >= 0.0:
            dnu = 2.0 * np.pi - dnu

        one_minus_cos = 1.0 - np.cos(dnu)
        if one_minus_cos < MATH_TOLERANCE:
            raise LambertError("Limit case dnu=0 (collinear, same direction) not handled.")
        A = np.sin(dnu) * np.sqrt(r1_mag * r2_mag / one_minus_cos)
        if abs(A) < MATH_TOLERANCE * np.sqrt(r1_mag * r2_mag):
            raise LambertError("Limit case A=0 (180 degree transfer) not handled.")

        return {'r1': r1, 'r2': r2, 'r1_mag': r1_mag, 'r2_mag': r2_mag,
                'A': A, 'dt': dt, 'mu': mu}

    @staticmethod
    def _y(z: float, geometry: dict) -> tuple[float, float, float]:
        c, s = stumpff_c2_c3(z)
        y = geometry['r1_mag'] + geometry['r2_mag'] + geometry['A'] * (z * s - 1.0) / np.sqrt(c)
        return y, c, s

    @staticmethod
    def _time_of_flight(z: float, geometry: dict) -> float:
        y, c, s = LambertSolver._y(z, geometry)
        if y <= 0.0:
            # t -> 0 as y -> 0+, so the region beyond is collapsed onto zero
            return 0.0
        x = np.sqrt(y / c)
        return (x**3 * s + geometry['A'] * np.sqrt(y)) / np.sqrt(geometry['mu'])

    def _solve_revolution(self, geometry: dict, n: int) -> list[LambertSolution]:
        dt = geometry['dt']
        residual = lambda z: self._time_of_flight(z, geometry) - dt
        lower = (2.0 * np.pi * n)**2
        upper = (2.0 * np.pi * (n + 1))**2

        if n == 0:
            z_hi = self._approach_edge(residual, upper, 0.0)
            z_lo = 0.0
            while residual(z_lo) > 0.0:
                z_lo = 4.0 * z_lo - 4.0 * np.pi**2
                if z_lo < _Z_FLOOR:
                    raise LambertError("Time of flight too short to bracket a hyperbolic solution.")
            z = brentq(residual, z_lo, z_hi, maxiter=self.max_iter)
            return [self._solution(z, geometry, 0, 'single')]

        width = upper - lower
        search = minimize_scalar(lambda z: self._time_of_flight(z, geometry),
                                 bounds=(lower + 1e-9 * width, upper - 1e-9 * width),
                                 method='bounded',
                                 options={'xatol': 1e-12 * width, 'maxiter': self.max_iter})
        z_min = float(search.x)
        t_min = self._time_of_flight(z_min, geometry)

        if t_min > dt * (1.0 + self.tol):
            raise LambertError(f"Minimum time of flight {t_min:.6g} s for {n} revolution(s) exceeds dt.")
        if abs(t_min - dt) <= self.tol * dt:
            return [self._solution(z_min, geometry, n, 'left')]

        z_left = brentq(residual, self._approach_edge(residual, lower, z_min), z_min, maxiter=self.max_iter)
        z_right = brentq(residual, z_min, self._approach_edge(residual, upper, z_min), maxiter=self.max_iter)
        return [self._solution(z_left, geometry, n, 'left'),
                self._solution(z_right, geometry, n, 'right')]

    @staticmethod
    def _approach_edge(residual, edge: float, limit: float) -> float:
        """Moves from limit toward an interval edge, where the time of flight diverges, until the residual is positive."""
        fraction = 0.5
        while fraction > 1e-15:
            z = edge + (limit - edge) * fraction
            if residual(z) > 0.0:
                return z
            fraction *= 0.1
        raise LambertError("Could not bracket the time-of-flight equation near a singular edge.")

    @staticmethod
    def _solution(z: float, geometry: dict, n: int, branch: str) -> LambertSolution:
        y, _, _ = LambertSolver._y(z, geometry)
        A, mu = geometry['A'], geometry['mu']
        r1, r2 = geometry['r1'], geometry['r2']

        # Lagrange coefficients
        f = 1.0 - y / geometry['r1_mag']
        g = A * np.sqrt(y / mu)
        g_dot = 1.0 - y / geometry['r2_mag']
        if not np.isfinite(g) or abs(g) < 1e-300:
            raise LambertError("Degenerate transfer (g = 0).")

        v1 = (r2 - f * r1) / g
        v2 = (g_dot * r2 - r1) / g
        return LambertSolution(v1, v2, n, branch)
