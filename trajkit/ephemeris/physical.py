from typing import Protocol

from trajkit.core.constants import PLANET_MU, PLANET_RADIUS, SAFE_RADIUS_FACTOR
from trajkit.core.exceptions import EphemerisError


class PhysicalProperties(Protocol):
    def get_radius(self, body: str) -> float:
        ...

    def get_gravitational_parameter(self, body: str) -> float:
        ...


class PlanetaryProperties:
    """
    Radii and gravitational parameters of the Sun and planets.

    Args:
        radii (dict, optional): Overrides of the default radii [km].
        mus (dict, optional): Overrides of the default gravitational parameters [km^3/s^2].
    """

    def __init__(self, radii: dict = None, mus: dict = None):
        self.radii = dict(PLANET_RADIUS)
        self.mus = dict(PLANET_MU)
        if radii:
            self.radii.update({k.upper(): v for k, v in radii.items()})
        if mus:
            self.mus.update({k.upper(): v for k, v in mus.items()})

    def get_radius(self, body: str) -> float:
        try:
            return self.radii[body.upper()]
        except KeyError:
            raise EphemerisError(f"No radius known for body '{body}'.") from None

    def get_gravitational_parameter(self, body: str) -> float:
        try:
            return self.mus[body.upper()]
        except KeyError:
            raise EphemerisError(f"No gravitational parameter known for body '{body}'.") from None

    def get_safe_radius(self, body: str) -> float:
        """Minimum flyby radius [km]."""
        return SAFE_RADIUS_FACTOR * self.get_radius(body)
