"""
Sun event times for a date and location.

Rise, set, noon and twilight instants come from astral's NOAA solar
equations; this module picks the ones belonging to the local calendar date
and expresses them in the location's pytz zone.

Altitude thresholds:
- Sunrise/sunset: -0.833° (upper limb plus refraction)
- Nautical dawn/dusk: -12°

High latitudes:
- Sun never sinks below a threshold (midnight sun, white nights): the
  crossings collapse onto the nadirs either side of noon, so the whole solar
  day counts as above it.
- Sun never climbs above a threshold (polar night): both crossings collapse
  onto solar noon, so the whole day counts as below it.
"""

from datetime import date, datetime, timedelta
from typing import Callable

import pytz
from astral import Observer
from astral.sun import dawn, dusk, elevation, noon, sunrise, sunset

from ..errors import SolarEventError
from ..types import Location, SolarTimes

SUNRISE_DEPRESSION = 0.833
NAUTICAL_DEPRESSION = 12.0

HALF_DAY = timedelta(hours=12)
ONE_DAY = timedelta(days=1)


def _observer(location: Location) -> Observer:
    if not -90 <= location.latitude <= 90 or not -180 <= location.longitude <= 180:
        raise SolarEventError(
            f"Coordinates out of range: ({location.latitude}, {location.longitude})"
        )
    return Observer(latitude=location.latitude, longitude=location.longitude)


def _crossings(
    rising: Callable[[date], datetime],
    setting: Callable[[date], datetime],
    day: date,
    depression: float,
    observer: Observer,
    solar_noon: datetime,
    tz,
) -> tuple[datetime, datetime]:
    """
    Morning and evening crossings of -depression degrees around solar_noon.

    astral keeps each event on the requested local date, so an evening event
    that falls after local midnight comes back from the previous night; take
    the next day's instead. Mornings before midnight are handled the same way.
    """
    try:
        morning = rising(day)
        evening = setting(day)
        if evening < solar_noon:
            evening = setting(day + ONE_DAY)
        if morning > solar_noon:
            morning = rising(day - ONE_DAY)
    except ValueError:
        nadir = tz.normalize(solar_noon - HALF_DAY)
        if elevation(observer, solar_noon) > -depression:
            return nadir, tz.normalize(nadir + ONE_DAY)
        return solar_noon, solar_noon

    return tz.normalize(morning), tz.normalize(evening)


def get_solar_times(day: date, location: Location) -> SolarTimes:
    """
    Compute sunrise, sunset, solar noon and nautical twilight for a date.

    Args:
        day: Calendar date in the location's timezone
        location: Observer position and IANA timezone

    Returns:
        SolarTimes with aware datetimes in the location's timezone

    Raises:
        SolarEventError: if the coordinates are outside the valid range
    """
    tz = pytz.timezone(location.timezone)
    observer = _observer(location)

    solar_noon = tz.normalize(noon(observer, day, tzinfo=tz))

    sunrise_at, sunset_at = _crossings(
        lambda d: sunrise(observer, d, tzinfo=tz),
        lambda d: sunset(observer, d, tzinfo=tz),
        day,
        SUNRISE_DEPRESSION,
        observer,
        solar_noon,
        tz,
    )
    dawn_at, dusk_at = _crossings(
        lambda d: dawn(observer, d, depression=NAUTICAL_DEPRESSION, tzinfo=tz),
        lambda d: dusk(observer, d, depression=NAUTICAL_DEPRESSION, tzinfo=tz),
        day,
        NAUTICAL_DEPRESSION,
        observer,
        solar_noon,
        tz,
    )

    return SolarTimes(
        sunrise=sunrise_at,
        sunset=sunset_at,
        solar_noon=solar_noon,
        nautical_dawn=dawn_at,
        nautical_dusk=dusk_at,
        nadir=tz.normalize(solar_noon - HALF_DAY),
    )
