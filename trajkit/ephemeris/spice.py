import glob
import logging
import os

import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from trajkit.core.constants import DAY_TO_SEC, JD_J2000
from trajkit.core.epoch import Epoch
from trajkit.core.exceptions import EphemerisError
from trajkit.core.state import CartesianState
from trajkit.ephemeris.base import Ephemeris

logger = logging.getLogger(__name__)

KERNEL_PATTERNS = ('*.bsp', '*.tpc', '*.tls', '*.tf')


def epoch_to_et(epoch: Epoch) -> float:
    """Ephemeris time (TDB seconds past J2000) of an epoch, treating its JD as TDB."""
    return (epoch.jd() - JD_J2000) * DAY_TO_SEC


class SpiceEphemeris(Ephemeris):
    """
    Ephemeris backed by SPICE kernels.

    Kernels (.bsp, .tpc, .tls, .tf) are furnished from kernel_dir on the
    first query. Planet names map to their barycenters unless a segment
    for the planet itself is loaded.

    Args:
        kernel_dir (str): Directory holding the kernels.
        observer (str): Center of the returned states.
        frame (str): Reference frame of the returned states.
    """

    def __init__(self, kernel_dir: str = 'data', observer: str = 'SUN', frame: str = 'ECLIPJ2000'):
        super().__init__()
        self.kernel_dir = kernel_dir
        self.observer = observer
        self.frame = frame
        self.loaded_kernels = []

    def _load(self):
        logger.info("Loading SPICE kernels from %s", os.path.abspath(self.kernel_dir))
        for pattern in KERNEL_PATTERNS:
            for kernel in sorted(glob.glob(os.path.join(self.kernel_dir, pattern))):
                spice.furnsh(kernel)
                self.loaded_kernels.append(kernel)
                logger.debug("Loaded %s", os.path.basename(kernel))
        if not self.loaded_kernels:
            logger.warning("No SPICE kernels were loaded from %s", self.kernel_dir)

    def unload(self):
        """Unloads the kernels furnished by this instance."""
        for kernel in self.loaded_kernels:
            spice.unload(kernel)
        self.loaded_kernels = []
        self._initialized = False

    def is_body_valid(self, body: str) -> bool:
        try:
            spice.bodn2c(body)
        except SpiceyError:
            return False
        return True

    def is_epoch_valid(self, epoch: Epoch) -> bool:
        return bool(np.isfinite(epoch.jd()))

    def _query_state(self, body: str, epoch: Epoch) -> CartesianState:
        try:
            state, _ = spice.spkezr(body, epoch_to_et(epoch), self.frame, 'NONE', self.observer)
        except SpiceyError as e:
            raise EphemerisError(f"SPICE error getting state for {body} wrt {self.observer}: {e}") from e
        return CartesianState.from_array(state)


class SpiceProperties:
    """
    Physical properties read from the SPICE kernel pool (GM and RADII keywords).

    Args:
        ephemeris (SpiceEphemeris): Ephemeris whose kernels hold the constants.
    """

    def __init__(self, ephemeris: SpiceEphemeris):
        self.ephemeris = ephemeris

    def get_gravitational_parameter(self, body: str) -> float:
        self.ephemeris.initialize()
        try:
            _, values = spice.bodvrd(body, 'GM', 1)
        except SpiceyError as e:
            raise EphemerisError(f"Could not determine GM for body '{body}': {e}") from e
        return float(values[0])

    def get_radius(self, body: str) -> float:
        """Mean of the three triaxial radii [km]."""
        self.ephemeris.initialize()
        try:
            _, values = spice.bodvrd(body, 'RADII', 3)
        except SpiceyError as e:
            raise EphemerisError(f"Could not find RADII for body '{body}': {e}") from e
        return float(np.mean(values))
