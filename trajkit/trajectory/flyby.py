from dataclasses import dataclass
from typing import Protocol

import numpy as np

from trajkit.core.constants import MATH_TOLERANCE
from trajkit.core.exceptions import FlybyError


@dataclass(frozen=True)
class FlybyBody:
    """
    Flyby body as seen at the encounter epoch.

    Attributes:
        velocity (np.ndarray): Heliocentric velocity of the body [km/s].
        radius (float): Body radius [km].
        mu (float): Gravitational parameter [km^3/s^2].
    """
    velocity: np.ndarray
    radius: float
    mu: float


class FlybyModel(Protocol):
    def evaluate(self, approach_velocity: np.ndarray, body: FlybyBody,
                 altitude: float, b_plane_angle: float) -> np.ndarray:
        ...


def compute_hyperbola_eccentricity(v_inf_mag: float, mu: float, rp: float) -> float:
    """
    Eccentricity of the flyby hyperbola, e = 1 + rp * v_inf^2 / mu.
    """
    return 1.0 + (rp * v_inf_mag**2) / mu


def compute_turn_angle(v_inf_mag: float, mu: float, rp: float) -> float:
    """
    Computes the turn angle (delta) for a hyperbolic flyby.

    Args:
        v_inf_mag (float): Hyperbolic excess velocity magnitude [km/s].
        mu (float): Gravitational parameter of the flyby body [km^3/s^2].
        rp (float): Periapsis radius [km].

    Returns:
        float: Turn angle in radians.
    """
    e = compute_hyperbola_eccentricity(v_inf_mag, mu, rp)
    return 2.0 * np.arcsin(1.0 / e)


def compute_aiming_radius(v_inf_mag: float, mu: float, rp: float) -> float:
    """
    Computes the aiming radius (b), also known as the impact parameter.

    Args:
        v_inf_mag (float): Hyperbolic excess velocity magnitude [km/s].
        mu (float): Gravitational parameter [km^3/s^2].
        rp (float): Periapsis radius [km].

    Returns:
        float: Aiming radius [km].
    """
    return rp * np.sqrt(1.0 + (2.0 * mu) / (rp * v_inf_mag**2))


def bplane_basis(v_inf: np.ndarray, body_velocity: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Orthonormal B-plane frame built from the incoming asymptote and the body velocity.

    Args:
        v_inf (np.ndarray): Incoming hyperbolic excess velocity [km/s].
        body_velocity (np.ndarray): Body velocity [km/s].

    Returns:
        tuple: (B1, B2, B3) with B1 along v_inf, B2 normal to v_inf and the body
            velocity, and B3 = B1 x B2.

    Raises:
        FlybyError: If the asymptote is parallel to the body velocity.
    """
    B1 = v_inf / np.linalg.norm(v_inf)
    normal = np.cross(B1, body_velocity)
    normal_mag = np.linalg.norm(normal)
    if normal_mag == 0.0 or normal_mag < MATH_TOLERANCE * np.linalg.norm(body_velocity):
        raise FlybyError("Incoming asymptote is parallel to the body velocity; B-plane undefined.")
    B2 = normal / normal_mag
    B3 = np.cross(B1, B2)
    return B1, B2, B3


class UnpoweredFlyby:
    """
    Patched-conic gravity assist without propulsive maneuver.
    The excess velocity magnitude is conserved and its direction is
    turned by the hyperbola turn angle inside the plane selected by the
    B-plane angle.
    """

    def evaluate(self, approach_velocity: np.ndarray, body: FlybyBody,
                 altitude: float, b_plane_angle: float) -> np.ndarray:
        """
        Computes the heliocentric velocity after the flyby.

        Args:
            approach_velocity (np.ndarray): Heliocentric velocity on approach [km/s].
            body (FlybyBody): Velocity, radius and gravitational parameter of the body.
            altitude (float): Flyby altitude above the body radius [km].
            b_plane_angle (float): Orientation of the flyby plane in the B-plane [rad].

        Returns:
            np.ndarray: Heliocentric velocity on departure [km/s].

        Raises:
            FlybyError: If the flyby geometry is infeasible.
        """
        body_velocity = np.asarray(body.velocity, dtype=float)
        v_inf_in = np.asarray(approach_velocity, dtype=float) - body_velocity
        v_inf_mag = np.linalg.norm(v_inf_in)
        if v_inf_mag < MATH_TOLERANCE:
            raise FlybyError("Zero hyperbolic excess velocity; flyby undefined.")

        if body.mu <= 0.0:
            raise FlybyError(f"Non-positive gravitational parameter {body.mu}.")
        rp = body.radius + altitude
        if rp <= 0.0:
            raise FlybyError(f"Non-positive periapsis radius {rp} km.")

        B1, B2, B3 = bplane_basis(v_inf_in, body_velocity)
        delta = compute_turn_angle(v_inf_mag, body.mu, rp)

        v_inf_out = v_inf_mag * (B1 * np.cos(delta)
                                 + B2 * np.cos(b_plane_angle) * np.sin(delta)
                                 + B3 * np.sin(b_plane_angle) * np.sin(delta))
        return body_velocity + v_inf_out
