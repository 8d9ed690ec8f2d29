"""
Time handling.

Epoch is an absolute instant stored as a continuous day count (MJD2000,
days since 2000-01-01 00:00). Time is a signed duration stored in seconds.
Both are immutable; arithmetic returns new objects.
"""
import math
from dataclasses import dataclass
from functools import total_ordering

from trajkit.core.constants import (
    DAY_TO_SEC,
    JD_MJD2000_OFFSET,
    MJD_MJD2000_OFFSET,
    YEAR_TO_SEC,
)

_EPOCH_TOLERANCE_DAYS = 1e-9
_DAYS_PER_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


@total_ordering
class Time:
    """Signed duration. Negative values represent backward propagation."""

    __slots__ = ('_seconds',)

    def __init__(self, seconds: float = 0.0):
        self._seconds = float(seconds)

    @classmethod
    def from_seconds(cls, value: float) -> 'Time':
        return cls(value)

    @classmethod
    def from_minutes(cls, value: float) -> 'Time':
        return cls(value * 60.0)

    @classmethod
    def from_hours(cls, value: float) -> 'Time':
        return cls(value * 3600.0)

    @classmethod
    def from_days(cls, value: float) -> 'Time':
        return cls(value * DAY_TO_SEC)

    @classmethod
    def from_years(cls, value: float) -> 'Time':
        return cls(value * YEAR_TO_SEC)

    def seconds(self) -> float:
        return self._seconds

    def minutes(self) -> float:
        return self._seconds / 60.0

    def hours(self) -> float:
        return self._seconds / 3600.0

    def days(self) -> float:
        return self._seconds / DAY_TO_SEC

    def years(self) -> float:
        return self._seconds / YEAR_TO_SEC

    def __add__(self, other):
        if isinstance(other, Time):
            return Time(self._seconds + other._seconds)
        return NotImplemented

    def __sub__(self, other):
        if isinstance(other, Time):
            return Time(self._seconds - other._seconds)
        return NotImplemented

    def __neg__(self):
        return Time(-self._seconds)

    def __mul__(self, factor):
        if isinstance(factor, (int, float)):
            return Time(self._seconds * factor)
        return NotImplemented

    __rmul__ = __mul__

    def __abs__(self):
        return Time(abs(self._seconds))

    def __eq__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return math.isclose(self._seconds, other._seconds, rel_tol=1e-12, abs_tol=1e-9)

    def __lt__(self, other):
        if not isinstance(other, Time):
            return NotImplemented
        return self._seconds < other._seconds and self != other

    def __hash__(self):
        return hash(round(self._seconds, 6))

    def __repr__(self):
        return f"Time({self._seconds!r} s)"


@dataclass(frozen=True)
class GregorianDateTime:
    """Calendar representation of an epoch."""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: float = 0.0


def gregorian_to_julian_date(date: GregorianDateTime) -> float:
    """
    Converts a Gregorian calendar date to a Julian date.
    Valid for years 1900 to 2100.

    Args:
        date (GregorianDateTime): Calendar date and time of day.

    Returns:
        float: Julian date [days].
    """
    y, m = date.year, date.month
    return (367 * y
            - math.floor(7 * (y + math.floor((m + 9) / 12)) / 4)
            + math.floor(275 * m / 9)
            + date.day
            + 1721013.5
            + date.hour / 24.0
            + date.minute / 1440.0
            + date.second / 86400.0)


def julian_date_to_gregorian(jd: float) -> GregorianDateTime:
    """
    Converts a Julian date to a Gregorian calendar date using the
    days-since-1900 algorithm (Vallado, Algorithm 22).

    Args:
        jd (float): Julian date [days].

    Returns:
        GregorianDateTime: Calendar date and time of day.
    """
    days_since_1900 = jd - 2415019.5
    year = 1900 + math.floor(days_since_1900 / 365.25)
    leap_years = math.floor((year - 1900 - 1) * 0.25)
    days = days_since_1900 - ((year - 1900) * 365.0 + leap_years)
    if days < 1.0:
        year -= 1
        leap_years = math.floor((year - 1900 - 1) * 0.25)
        days = days_since_1900 - ((year - 1900) * 365.0 + leap_years)

    month_lengths = list(_DAYS_PER_MONTH)
    if year % 4 == 0:
        month_lengths[1] = 29

    day_of_year = math.floor(days)
    month = 1
    elapsed = 0
    while month < 12 and elapsed + month_lengths[month - 1] < day_of_year:
        elapsed += month_lengths[month - 1]
        month += 1
    day = day_of_year - elapsed

    hours = (days - day_of_year) * 24.0
    hour = math.floor(hours)
    minutes = (hours - hour) * 60.0
    minute = math.floor(minutes)
    second = (minutes - minute) * 60.0
    return GregorianDateTime(year, month, day, hour, minute, second)


@total_ordering
class Epoch:
    """Absolute instant, stored internally as MJD2000 days."""

    __slots__ = ('_mjd2000',)

    def __init__(self, mjd2000: float = 0.0):
        self._mjd2000 = float(mjd2000)

    @classmethod
    def from_mjd2000(cls, value: float) -> 'Epoch':
        return cls(value)

    @classmethod
    def from_jd(cls, value: float) -> 'Epoch':
        return cls(value - JD_MJD2000_OFFSET)

    @classmethod
    def from_mjd(cls, value: float) -> 'Epoch':
        return cls(value - MJD_MJD2000_OFFSET)

    @classmethod
    def from_gregorian(cls, date: GregorianDateTime) -> 'Epoch':
        return cls.from_jd(gregorian_to_julian_date(date))

    def mjd2000(self) -> float:
        return self._mjd2000

    def jd(self) -> float:
        return self._mjd2000 + JD_MJD2000_OFFSET

    def mjd(self) -> float:
        return self._mjd2000 + MJD_MJD2000_OFFSET

    def to_gregorian(self) -> GregorianDateTime:
        return julian_date_to_gregorian(self.jd())

    def __add__(self, other):
        if isinstance(other, Time):
            return Epoch(self._mjd2000 + other.days())
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Time):
            return Epoch(self._mjd2000 - other.days())
        if isinstance(other, Epoch):
            return Time.from_days(self._mjd2000 - other._mjd2000)
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return abs(self._mjd2000 - other._mjd2000) <= _EPOCH_TOLERANCE_DAYS

    def __lt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self._mjd2000 < other._mjd2000 and self != other

    def __hash__(self):
        return hash(round(self._mjd2000, 6))

    def __repr__(self):
        return f"Epoch(mjd2000={self._mjd2000!r})"
