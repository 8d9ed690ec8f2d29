import numpy as np
import pytest

from trajkit.core.epoch import Epoch, GregorianDateTime, Time, gregorian_to_julian_date


def test_time_unit_conversions():
    t = Time.from_days(1.5)
    assert t.seconds() == 129600.0
    assert t.hours() == 36.0
    assert t.minutes() == 2160.0
    assert np.isclose(Time.from_years(1.0).days(), 365.25)
    assert Time.from_minutes(40).seconds() == 2400.0


def test_time_arithmetic():
    a = Time.from_hours(2)
    b = Time.from_minutes(30)
    assert (a + b).minutes() == 150.0
    assert (a - b).minutes() == 90.0
    assert (-a).hours() == -2.0
    assert (2 * b) == Time.from_hours(1)
    assert b < a


def test_j2000_reference_dates():
    # 2000-01-01 00:00 is MJD2000 = 0
    epoch = Epoch.from_gregorian(GregorianDateTime(2000, 1, 1))
    assert np.isclose(epoch.mjd2000(), 0.0)
    assert np.isclose(epoch.jd(), 2451544.5)
    assert np.isclose(epoch.mjd(), 51544.0)

    noon = Epoch.from_gregorian(GregorianDateTime(2000, 1, 1, 12))
    assert np.isclose(noon.jd(), 2451545.0)


def test_vallado_julian_date():
    """Vallado Example 3-4: 1996-10-26 14:20:00 UT -> JD 2450383.09722222."""
    jd = gregorian_to_julian_date(GregorianDateTime(1996, 10, 26, 14, 20, 0.0))
    assert np.isclose(jd, 2450383.09722222, atol=1e-7)


@pytest.mark.parametrize("date", [
    GregorianDateTime(2010, 8, 3, 12, 14, 24.0),
    GregorianDateTime(1999, 12, 31, 23, 30, 0.0),
    GregorianDateTime(2024, 2, 29, 6, 0, 0.0),
    GregorianDateTime(2031, 3, 1, 18, 45, 30.0),
])
def test_gregorian_round_trip(date):
    back = Epoch.from_gregorian(date).to_gregorian()
    assert (back.year, back.month, back.day) == (date.year, date.month, date.day)
    seconds_in = date.hour * 3600 + date.minute * 60 + date.second
    seconds_out = back.hour * 3600 + back.minute * 60 + back.second
    assert np.isclose(seconds_in, seconds_out, atol=1e-3)


def test_epoch_arithmetic_and_ordering():
    departure = Epoch.from_mjd2000(3867.51)
    arrival = departure + Time.from_days(117.17)
    assert np.isclose(arrival.mjd2000(), 3984.68)
    assert np.isclose((arrival - departure).days(), 117.17)
    assert arrival - Time.from_days(117.17) == departure
    assert departure < arrival
    assert Epoch.from_jd(departure.jd()) == departure
    assert Epoch.from_mjd(departure.mjd()) == departure
