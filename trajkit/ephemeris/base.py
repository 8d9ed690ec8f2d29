import threading
from abc import ABC, abstractmethod

from trajkit.core.constants import ASTRO_MU_SUN
from trajkit.core.conversion import cartesian_to_elements
from trajkit.core.epoch import Epoch
from trajkit.core.exceptions import EphemerisError
from trajkit.core.state import CartesianState, OrbitalElements


class Ephemeris(ABC):
    """
    Source of body states at a given epoch.

    Subclasses implement _load, _query_state and the validity checks.
    Loading happens lazily on the first query and at most once, even when
    several threads query concurrently.
    """

    def __init__(self):
        self._initialized = False
        self._init_lock = threading.Lock()

    def initialize(self):
        """Loads the underlying data if that has not happened yet."""
        if self._initialized:
            return
        with self._init_lock:
            if not self._initialized:
                self._load()
                self._initialized = True

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def get_state(self, body: str, epoch: Epoch) -> CartesianState:
        """
        Heliocentric state of a body.

        Args:
            body (str): Body name (case insensitive), e.g. 'EARTH'.
            epoch (Epoch): Query epoch.

        Returns:
            CartesianState: Position [km] and velocity [km/s].

        Raises:
            EphemerisError: If the body is unknown or the epoch is out of range.
        """
        self.initialize()
        name = body.upper()
        if not self.is_body_valid(name):
            raise EphemerisError(f"Unknown body '{body}' for {type(self).__name__}.")
        if not self.is_epoch_valid(epoch):
            raise EphemerisError(f"Epoch {epoch} outside the validity range of {type(self).__name__}.")
        return self._query_state(name, epoch)

    def get_orbital_elements(self, body: str, epoch: Epoch, mu: float = ASTRO_MU_SUN) -> OrbitalElements:
        """Osculating elements of the body about the central body with parameter mu."""
        return cartesian_to_elements(self.get_state(body, epoch), mu)

    def _load(self):
        """Loads data on first use. No-op by default."""

    @abstractmethod
    def is_body_valid(self, body: str) -> bool:
        ...

    @abstractmethod
    def is_epoch_valid(self, epoch: Epoch) -> bool:
        ...

    @abstractmethod
    def _query_state(self, body: str, epoch: Epoch) -> CartesianState:
        ...
