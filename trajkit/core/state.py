"""
State representations.

A body's mechanical state is either a CartesianState (position/velocity)
or a set of classical OrbitalElements. State is a tagged union over the
two; conversion always takes an explicit gravitational parameter and
returns a new object.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np

from trajkit.core.constants import MATH_TOLERANCE


@dataclass(frozen=True, eq=False)
class CartesianState:
    """
    Position and velocity in an inertial frame.

    Attributes:
        position (np.ndarray): Position vector [km].
        velocity (np.ndarray): Velocity vector [km/s].
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        object.__setattr__(self, 'position', np.asarray(self.position, dtype=float).reshape(3))
        object.__setattr__(self, 'velocity', np.asarray(self.velocity, dtype=float).reshape(3))

    def is_close(self, other: 'CartesianState', rtol: float = 1e-9, atol: float = 1e-9) -> bool:
        return (np.allclose(self.position, other.position, rtol=rtol, atol=atol)
                and np.allclose(self.velocity, other.velocity, rtol=rtol, atol=atol))

    def __eq__(self, other):
        if not isinstance(other, CartesianState):
            return NotImplemented
        return self.is_close(other)

    __hash__ = None

    def is_zero(self) -> bool:
        return not np.any(self.position) and not np.any(self.velocity)

    def to_array(self) -> np.ndarray:
        """Returns the 6-element vector [x, y, z, vx, vy, vz]."""
        return np.concatenate((self.position, self.velocity))

    @classmethod
    def from_array(cls, state: np.ndarray) -> 'CartesianState':
        state = np.asarray(state, dtype=float)
        return cls(state[:3], state[3:6])


@dataclass(frozen=True)
class OrbitalElements:
    """
    Classical orbital elements. Angles in radians, the sixth element is
    always the TRUE anomaly (convert with trajkit.dynamics.kepler when a
    mean anomaly is needed).

    For circular orbits the argument of pericenter is 0 and the true
    anomaly holds the argument of latitude; for equatorial orbits the
    longitude of the ascending node is 0; for circular equatorial orbits
    the true anomaly holds the true longitude. Parabolic orbits carry an
    infinite semi-major axis, so the semi-latus rectum must be supplied.
    """
    semi_major_axis: float
    eccentricity: float
    inclination: float
    arg_of_pericenter: float
    lon_of_ascending_node: float
    true_anomaly: float
    semi_latus_rectum: Optional[float] = None

    @property
    def p(self) -> float:
        """Semi-latus rectum [km]."""
        if self.semi_latus_rectum is not None:
            return self.semi_latus_rectum
        if self.is_parabolic():
            raise ValueError("Parabolic elements require an explicit semi-latus rectum.")
        return self.semi_major_axis * (1.0 - self.eccentricity**2)

    def is_circular(self) -> bool:
        return self.eccentricity < MATH_TOLERANCE

    def is_parabolic(self) -> bool:
        return abs(self.eccentricity - 1.0) < MATH_TOLERANCE

    def is_hyperbolic(self) -> bool:
        return self.eccentricity > 1.0 + MATH_TOLERANCE

    def is_equatorial(self) -> bool:
        return (abs(self.inclination) < MATH_TOLERANCE
                or abs(self.inclination - np.pi) < MATH_TOLERANCE)

    def is_close(self, other: 'OrbitalElements', rtol: float = 1e-8, atol: float = 1e-8) -> bool:
        mine = np.array([self.semi_major_axis, self.eccentricity, self.inclination,
                         self.arg_of_pericenter, self.lon_of_ascending_node, self.true_anomaly])
        theirs = np.array([other.semi_major_axis, other.eccentricity, other.inclination,
                           other.arg_of_pericenter, other.lon_of_ascending_node, other.true_anomaly])
        return bool(np.allclose(mine, theirs, rtol=rtol, atol=atol))


class StateType(Enum):
    CARTESIAN = 'cartesian'
    ELEMENTS = 'elements'


class State:
    """
    Tagged union over CartesianState and OrbitalElements.

    Exactly one representation is held. Conversions are computed on
    request from an explicit gravitational parameter and are never cached.
    """

    __slots__ = ('_value',)

    def __init__(self, value: Union[CartesianState, OrbitalElements]):
        if not isinstance(value, (CartesianState, OrbitalElements)):
            raise TypeError(f"State must wrap CartesianState or OrbitalElements, got {type(value).__name__}")
        self._value = value

    @property
    def type(self) -> StateType:
        if isinstance(self._value, CartesianState):
            return StateType.CARTESIAN
        return StateType.ELEMENTS

    @property
    def value(self) -> Union[CartesianState, OrbitalElements]:
        return self._value

    def to_cartesian(self, mu: float) -> CartesianState:
        from trajkit.core.conversion import elements_to_cartesian
        if isinstance(self._value, CartesianState):
            return self._value
        return elements_to_cartesian(self._value, mu)

    def to_elements(self, mu: float) -> OrbitalElements:
        from trajkit.core.conversion import cartesian_to_elements
        if isinstance(self._value, OrbitalElements):
            return self._value
        return cartesian_to_elements(self._value, mu)

    def converted(self, state_type: StateType, mu: float) -> 'State':
        """Returns a new State holding the requested representation."""
        if state_type == StateType.CARTESIAN:
            return State(self.to_cartesian(mu))
        return State(self.to_elements(mu))

    def __repr__(self):
        return f"State({self._value!r})"
