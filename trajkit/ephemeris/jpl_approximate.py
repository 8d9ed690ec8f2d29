"""
Approximate planetary ephemeris from JPL's "Keplerian Elements for
Approximate Positions of the Major Planets" (E M Standish), table 2a/2b,
valid from 3000 BC to 3000 AD. States are heliocentric, ecliptic J2000.
"""
from dataclasses import dataclass

import numpy as np

from trajkit.core.constants import ASTRO_AU_TO_KM, ASTRO_MU_SUN, JD_J2000
from trajkit.core.conversion import elements_to_cartesian
from trajkit.core.epoch import Epoch
from trajkit.core.state import CartesianState, OrbitalElements
from trajkit.dynamics.kepler import mean_to_true_anomaly
from trajkit.ephemeris.base import Ephemeris

# a [AU], e, I [deg], L [deg], long.peri [deg], long.node [deg],
# their rates per Julian century, then the b, c, s, f correction terms.
JPL_APPROXIMATE_ELEMENTS = {
    'MERCURY': [0.38709843, 0.20563661, 7.00559432, 252.25166724, 77.45771895, 48.33961819,
                0.00000000, 0.00002123, -0.00590158, 149472.67486623, 0.15940013, -0.12214182,
                0.0, 0.0, 0.0, 0.0],
    'VENUS': [0.72332102, 0.00676399, 3.39777545, 181.97970850, 131.76755713, 76.67261496,
              -0.00000026, -0.00005107, 0.00043494, 58517.81560260, 0.05679648, -0.27274174,
              0.0, 0.0, 0.0, 0.0],
    'EARTH': [1.00000018, 0.01673163, -0.00054346, 100.46691572, 102.93005885, -5.11260389,
              -0.00000003, -0.00003661, -0.01337178, 35999.37306329, 0.31795260, -0.24123856,
              0.0, 0.0, 0.0, 0.0],
    'MARS': [1.52371243, 0.09336511, 1.85181869, -4.56813164, -23.91744784, 49.71320984,
             0.00000097, 0.00009149, -0.00724757, 19140.29934243, 0.45223625, -0.26852431,
             0.0, 0.0, 0.0, 0.0],
    'JUPITER': [5.20248019, 0.04853590, 1.29861416, 34.33479152, 14.27495244, 100.29282654,
                -0.00002864, 0.00018026, -0.00322699, 3034.90371757, 0.18199196, 0.13024619,
                -0.00012452, 0.06064060, -0.35635438, 38.35125000],
    'SATURN': [9.54149883, 0.05550825, 2.49424102, 50.07571329, 92.86136063, 113.63998702,
               -0.00003065, -0.00032044, 0.00451969, 1222.11494724, 0.54179478, -0.25015002,
               0.00025899, -0.13434469, 0.87320147, 38.35125000],
    'URANUS': [19.18797948, 0.04685740, 0.77298127, 314.20276625, 172.43404441, 73.96250215,
               -0.00020455, -0.00001550, -0.00180155, 428.49512595, 0.09266985, 0.05739699,
               0.00058331, -0.97731848, 0.17689245, 7.67025000],
    'NEPTUNE': [30.06952752, 0.00895439, 1.77005520, 304.22289287, 46.68158724, 131.78635853,
                0.00006447, 0.00000818, 0.00022400, 218.46515314, 0.01009938, -0.00606302,
                -0.00041348, 0.68346318, -0.10162547, 7.67025000],
    'PLUTO': [39.48686035, 0.24885238, 17.14104260, 238.96535011, 224.09702598, 110.30167986,
              0.00449751, 0.00006016, 0.00000501, 145.18042903, -0.00968827, -0.00809981,
              -0.01262724, 0.0, 0.0, 0.0],
}

# Validity window in Julian centuries from J2000 (3000 BC to 3000 AD)
MIN_CENTURIES = -50.0
MAX_CENTURIES = 10.0


@dataclass(frozen=True)
class JplApproximateBody:
    """Mean elements of one body and their linear rates."""
    elements: np.ndarray
    rates: np.ndarray
    b: float
    c: float
    s: float
    f: float

    @classmethod
    def from_row(cls, row: list) -> 'JplApproximateBody':
        return cls(np.array(row[0:6]), np.array(row[6:12]), *row[12:16])

    def orbital_elements(self, centuries: float) -> OrbitalElements:
        """
        Osculating heliocentric elements at T Julian centuries past J2000.

        Args:
            centuries (float): T = (JD - 2451545.0) / 36525.

        Returns:
            OrbitalElements: Elements in km and radians, true anomaly as sixth element.
        """
        a, e, inc, mean_long, long_peri, long_node = self.elements + self.rates * centuries
        f_t = np.radians(self.f * centuries)
        mean_anomaly = (mean_long - long_peri + self.b * centuries**2
                        + self.c * np.cos(f_t) + self.s * np.sin(f_t))
        # Wrap to (-180, 180]
        mean_anomaly = 180.0 - np.mod(180.0 - mean_anomaly, 360.0)

        return OrbitalElements(
            semi_major_axis=a * ASTRO_AU_TO_KM,
            eccentricity=e,
            inclination=np.radians(inc),
            arg_of_pericenter=np.mod(np.radians(long_peri - long_node), 2.0 * np.pi),
            lon_of_ascending_node=np.mod(np.radians(long_node), 2.0 * np.pi),
            true_anomaly=mean_to_true_anomaly(e, np.radians(mean_anomaly)),
        )


class JplApproximateEphemeris(Ephemeris):
    """
    Analytical ephemeris for Mercury through Pluto. Accuracy is of order
    arc-minutes over 1800-2050 AD and degrades outside that span.
    """

    def __init__(self):
        super().__init__()
        self._bodies = {}

    def _load(self):
        self._bodies = {name: JplApproximateBody.from_row(row)
                        for name, row in JPL_APPROXIMATE_ELEMENTS.items()}

    def is_body_valid(self, body: str) -> bool:
        return body.upper() in JPL_APPROXIMATE_ELEMENTS

    def is_epoch_valid(self, epoch: Epoch) -> bool:
        return MIN_CENTURIES <= self._centuries(epoch) <= MAX_CENTURIES

    @staticmethod
    def _centuries(epoch: Epoch) -> float:
        return (epoch.jd() - JD_J2000) / 36525.0

    def _query_state(self, body: str, epoch: Epoch) -> CartesianState:
        elements = self._bodies[body].orbital_elements(self._centuries(epoch))
        return elements_to_cartesian(elements, ASTRO_MU_SUN)
