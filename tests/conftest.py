import numpy as np
import pytest

from trajkit.core.constants import ASTRO_AU_TO_KM, ASTRO_MU_SUN, DAY_TO_SEC
from trajkit.core.epoch import Epoch
from trajkit.core.state import CartesianState
from trajkit.ephemeris.base import Ephemeris


class CircularEphemeris(Ephemeris):
    """Planets on circular coplanar orbits, phase measured at MJD2000 = 0."""

    PLANETS = {
        'EARTH': (1.0, 0.0),
        'VENUS': (0.723, 1.0),
        'MARS': (1.524, 2.0),
    }

    def __init__(self):
        super().__init__()
        self.load_count = 0

    def _load(self):
        self.load_count += 1

    def is_body_valid(self, body):
        return body.upper() in self.PLANETS

    def is_epoch_valid(self, epoch):
        return -36525.0 <= epoch.mjd2000() <= 36525.0

    def _query_state(self, body, epoch):
        radius_au, phase = self.PLANETS[body]
        r = radius_au * ASTRO_AU_TO_KM
        n = np.sqrt(ASTRO_MU_SUN / r**3)
        theta = phase + n * epoch.mjd2000() * DAY_TO_SEC
        position = r * np.array([np.cos(theta), np.sin(theta), 0.0])
        velocity = n * r * np.array([-np.sin(theta), np.cos(theta), 0.0])
        return CartesianState(position, velocity)


@pytest.fixture
def circular_ephemeris():
    return CircularEphemeris()


@pytest.fixture
def mu_earth():
    return 398600.4418
