"""
Conversions between Cartesian states, orbital elements and anomalies.
"""
import numpy as np

from trajkit.core.constants import K_HAT, MATH_TOLERANCE
from trajkit.core.state import CartesianState, OrbitalElements

TWO_PI = 2.0 * np.pi


def _safe_arccos(value: float) -> float:
    return float(np.arccos(np.clip(value, -1.0, 1.0)))


def cartesian_to_elements(state: CartesianState, mu: float) -> OrbitalElements:
    """
    Converts an inertial position/velocity to classical orbital elements.

    Args:
        state (CartesianState): Position [km] and velocity [km/s].
        mu (float): Gravitational parameter [km^3/s^2].

    Returns:
        OrbitalElements: Elements with angles in [0, 2*pi) and the true anomaly
            (or its circular/equatorial surrogate) as sixth element.
    """
    R = state.position
    V = state.velocity
    r = np.linalg.norm(R)
    v = np.linalg.norm(V)
    r_dot_v = np.dot(R, V)

    H = np.cross(R, V)
    h = np.linalg.norm(H)
    N = np.cross(K_HAT, H)
    n = np.linalg.norm(N)
    E = (v**2 / mu - 1.0 / r) * R - (r_dot_v / mu) * V
    e = np.linalg.norm(E)

    energy = 0.5 * v**2 - mu / r
    p = h**2 / mu
    if abs(e - 1.0) < MATH_TOLERANCE:
        a = np.inf
    else:
        a = -0.5 * mu / energy

    inc = _safe_arccos(H[2] / h) if h > 0.0 else 0.0

    circular = e < MATH_TOLERANCE
    equatorial = n <= MATH_TOLERANCE * h
    retrograde = H[2] < 0.0

    if equatorial:
        lan = 0.0
    else:
        lan = _safe_arccos(N[0] / n)
        if N[1] < 0.0:
            lan = TWO_PI - lan

    if circular:
        aop = 0.0
        if equatorial:
            # True longitude
            y = -R[1] if retrograde else R[1]
            ta = np.arctan2(y, R[0])
        else:
            # Argument of latitude
            ta = _safe_arccos(np.dot(N, R) / (n * r))
            if R[2] < 0.0:
                ta = TWO_PI - ta
    else:
        if equatorial:
            y = -E[1] if retrograde else E[1]
            aop = np.arctan2(y, E[0])
        else:
            aop = _safe_arccos(np.dot(N, E) / (n * e))
            if E[2] < 0.0:
                aop = TWO_PI - aop
        ta = _safe_arccos(np.dot(E, R) / (e * r))
        if r_dot_v < 0.0:
            ta = TWO_PI - ta

    return OrbitalElements(
        semi_major_axis=float(a),
        eccentricity=float(e),
        inclination=float(inc),
        arg_of_pericenter=float(np.mod(aop, TWO_PI)),
        lon_of_ascending_node=float(np.mod(lan, TWO_PI)),
        true_anomaly=float(np.mod(ta, TWO_PI)),
        semi_latus_rectum=float(p),
    )


def perifocal_to_inertial_matrix(inc: float, aop: float, lan: float) -> np.ndarray:
    """3-1-3 rotation matrix from the perifocal frame to the inertial frame."""
    cL, sL = np.cos(lan), np.sin(lan)
    cW, sW = np.cos(aop), np.sin(aop)
    ci, si = np.cos(inc), np.sin(inc)
    return np.array([
        [cL * cW - sL * sW * ci, -cL * sW - sL * ci * cW, sL * si],
        [sL * cW + cL * ci * sW, -sL * sW + cL * ci * cW, -cL * si],
        [si * sW, si * cW, ci],
    ])


def elements_to_cartesian(elements: OrbitalElements, mu: float) -> CartesianState:
    """
    Converts classical orbital elements to an inertial position/velocity.

    Args:
        elements (OrbitalElements): Orbit description, true anomaly as sixth element.
        mu (float): Gravitational parameter [km^3/s^2].

    Returns:
        CartesianState: Position [km] and velocity [km/s].
    """
    e = elements.eccentricity
    nu = elements.true_anomaly
    p = elements.p

    cos_nu, sin_nu = np.cos(nu), np.sin(nu)
    r_pf = (p / (1.0 + e * cos_nu)) * np.array([cos_nu, sin_nu, 0.0])
    v_pf = np.sqrt(mu / p) * np.array([-sin_nu, e + cos_nu, 0.0])

    rot = perifocal_to_inertial_matrix(elements.inclination,
                                       elements.arg_of_pericenter,
                                       elements.lon_of_ascending_node)
    return CartesianState(rot @ r_pf, rot @ v_pf)


# ---------------------------------------------------------------------------
# Anomalies
# ---------------------------------------------------------------------------

def true_to_eccentric_anomaly(e: float, nu: float) -> float:
    E = 2.0 * np.arctan(np.sqrt((1.0 - e) / (1.0 + e)) * np.tan(nu / 2.0))
    return float(np.mod(E, TWO_PI))


def eccentric_to_true_anomaly(e: float, E: float) -> float:
    nu = 2.0 * np.arctan(np.sqrt((1.0 + e) / (1.0 - e)) * np.tan(E / 2.0))
    return float(np.mod(nu, TWO_PI))


def true_to_hyperbolic_anomaly(e: float, nu: float) -> float:
    return float(2.0 * np.arctanh(np.sqrt((e - 1.0) / (e + 1.0)) * np.tan(nu / 2.0)))


def hyperbolic_to_true_anomaly(e: float, H: float) -> float:
    return float(2.0 * np.arctan(np.sqrt((e + 1.0) / (e - 1.0)) * np.tanh(H / 2.0)))


def true_to_parabolic_anomaly(nu: float) -> float:
    """Parabolic anomaly D = tan(nu/2)."""
    return float(np.tan(nu / 2.0))


def parabolic_to_true_anomaly(D: float) -> float:
    return float(np.mod(2.0 * np.arctan(D), TWO_PI))


def eccentric_to_mean_anomaly(e: float, E: float) -> float:
    return float(E - e * np.sin(E))


def hyperbolic_to_mean_anomaly(e: float, H: float) -> float:
    return float(e * np.sinh(H) - H)


def parabolic_to_mean_anomaly(D: float) -> float:
    """Barker's equation."""
    return float(D + D**3 / 3.0)


def true_to_mean_anomaly(e: float, nu: float) -> float:
    """
    Converts a true anomaly to the mean anomaly of the matching conic.
    Elliptical results are wrapped to [0, 2*pi); hyperbolic and parabolic
    results are signed.
    """
    if abs(e - 1.0) < MATH_TOLERANCE:
        return parabolic_to_mean_anomaly(true_to_parabolic_anomaly(nu))
    if e < 1.0:
        E = true_to_eccentric_anomaly(e, nu)
        return float(np.mod(eccentric_to_mean_anomaly(e, E), TWO_PI))
    nu_signed = np.arctan2(np.sin(nu), np.cos(nu))
    return hyperbolic_to_mean_anomaly(e, true_to_hyperbolic_anomaly(e, nu_signed))


def normalized_spherical_to_cartesian(magnitude: float, norm_theta: float, norm_phi: float) -> np.ndarray:
    """
    Maps a magnitude and two unit-interval coordinates onto a 3D vector.
    Uniform samples of (norm_theta, norm_phi) in [0, 1]^2 cover the sphere uniformly.

    Args:
        magnitude (float): Vector magnitude.
        norm_theta (float): Normalized azimuth in [0, 1].
        norm_phi (float): Normalized polar coordinate in [0, 1].

    Returns:
        np.ndarray: Cartesian vector.
    """
    theta = TWO_PI * norm_theta
    phi = np.arccos(np.clip(2.0 * norm_phi - 1.0, -1.0, 1.0))
    return magnitude * np.array([
        -np.sin(phi) * np.cos(theta),
        np.sin(phi) * np.sin(theta),
        -np.cos(phi),
    ])
