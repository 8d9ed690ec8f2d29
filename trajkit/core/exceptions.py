"""
Error taxonomy.

Fatal conditions are exceptions; recoverable numerical trouble is a
ConvergenceWarning issued through the warnings module while the
best-effort value is returned to the caller.
"""


class TrajkitError(Exception):
    """Base class for all errors raised by the toolkit."""


class TrajectoryDefinitionError(TrajkitError, ValueError):
    """Malformed leg sequence or parameter vector. Indicates a caller bug."""


class EphemerisError(TrajkitError, ValueError):
    """Unknown body name or epoch outside the validity range of an ephemeris."""


class LambertError(TrajkitError, RuntimeError):
    """No valid Lambert solution exists for the requested geometry."""


class FlybyError(TrajkitError, RuntimeError):
    """The flyby geometry is infeasible."""


class ConvergenceWarning(RuntimeWarning):
    """An iterative solver stopped before meeting its tolerance."""
