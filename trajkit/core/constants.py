"""
Physical and numerical constants.
Units are km, s and km^3/s^2 unless stated otherwise.
"""
import numpy as np

# Numerics
MATH_TOLERANCE = 1e-8
# Newton slope below which Kepler iterations are abandoned
KEPLER_MIN_SLOPE = 1e-6
MAX_ITERATIONS = 1000
STUMPFF_SERIES_THRESHOLD = 1e-6
PENALTY_DELTA_V = 1e10  # [km/s]

# Time
DAY_TO_SEC = 86400.0
SEC_TO_DAY = 1.0 / DAY_TO_SEC
YEAR_TO_SEC = 31557600.0  # Julian year
JD_MJD2000_OFFSET = 2451544.5
MJD_MJD2000_OFFSET = 51544.0
JD_J2000 = 2451545.0

# Distances
ASTRO_AU_TO_KM = 149597870.66

# Gravitational parameters [km^3/s^2]
ASTRO_MU_SUN = 132712428000.0
ASTRO_MU_MERCURY = 22032.0
ASTRO_MU_VENUS = 325700.0
ASTRO_MU_EARTH = 398600.4418
ASTRO_MU_MARS = 43050.0
ASTRO_MU_JUPITER = 126800000.0
ASTRO_MU_SATURN = 37940000.0
ASTRO_MU_URANUS = 5794000.0
ASTRO_MU_NEPTUNE = 6809000.0
ASTRO_MU_PLUTO = 900.0

# Equatorial radii [km]
ASTRO_RADIUS_SUN = 696000.0
ASTRO_RADIUS_MERCURY = 2439.0
ASTRO_RADIUS_VENUS = 6052.0
ASTRO_RADIUS_EARTH = 6378.1363
ASTRO_RADIUS_MARS = 3397.2
ASTRO_RADIUS_JUPITER = 71492.0
ASTRO_RADIUS_SATURN = 60268.0
ASTRO_RADIUS_URANUS = 25559.0
ASTRO_RADIUS_NEPTUNE = 24764.0
ASTRO_RADIUS_PLUTO = 1151.0

SAFE_RADIUS_FACTOR = 1.1

PLANET_MU = {
    'SUN': ASTRO_MU_SUN,
    'MERCURY': ASTRO_MU_MERCURY,
    'VENUS': ASTRO_MU_VENUS,
    'EARTH': ASTRO_MU_EARTH,
    'MARS': ASTRO_MU_MARS,
    'JUPITER': ASTRO_MU_JUPITER,
    'SATURN': ASTRO_MU_SATURN,
    'URANUS': ASTRO_MU_URANUS,
    'NEPTUNE': ASTRO_MU_NEPTUNE,
    'PLUTO': ASTRO_MU_PLUTO,
}

PLANET_RADIUS = {
    'SUN': ASTRO_RADIUS_SUN,
    'MERCURY': ASTRO_RADIUS_MERCURY,
    'VENUS': ASTRO_RADIUS_VENUS,
    'EARTH': ASTRO_RADIUS_EARTH,
    'MARS': ASTRO_RADIUS_MARS,
    'JUPITER': ASTRO_RADIUS_JUPITER,
    'SATURN': ASTRO_RADIUS_SATURN,
    'URANUS': ASTRO_RADIUS_URANUS,
    'NEPTUNE': ASTRO_RADIUS_NEPTUNE,
    'PLUTO': ASTRO_RADIUS_PLUTO,
}

K_HAT = np.array([0.0, 0.0, 1.0])
