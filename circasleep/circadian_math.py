"""
Clock-time helpers shared by the planners.

Parsing and formatting here define the rounding and roll-over behavior the
rest of the package relies on: HH:MM parsing rolls to tomorrow once the time
has passed, durations round minutes, remaining-time strings floor them.
"""

import math
import re
from datetime import datetime, time, timedelta

import pytz

from .errors import TimeParseError

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(time_str: str) -> time:
    """Parse "HH:MM" string to time object."""
    match = _HHMM.match(time_str.strip()) if isinstance(time_str, str) else None
    if match is None:
        raise TimeParseError(time_str)
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise TimeParseError(time_str)
    return time(hour, minute)


def minutes_of_day(moment: datetime) -> int:
    """Minutes since local midnight of an aware or naive datetime."""
    return moment.hour * 60 + moment.minute


def format_time(t: time | datetime) -> str:
    """Format time as "HH:MM" (24-hour format for data fields)."""
    return f"{t.hour:02d}:{t.minute:02d}"


def get_current_datetime_in_tz(tz_name: str) -> datetime:
    """
    Get current datetime in the specified timezone.

    Args:
        tz_name: IANA timezone name (e.g., "America/Los_Angeles")

    Returns:
        Current aware datetime in the specified timezone
    """
    tz = pytz.timezone(tz_name)
    return datetime.now(pytz.UTC).astimezone(tz)


def local_now() -> datetime:
    """Aware "now" in the host's local zone."""
    return datetime.now().astimezone()


def parse_wake_time(time_str: str, now: datetime | None = None) -> datetime:
    """
    Resolve "HH:MM" to the next occurrence of that clock time.

    The result is today at HH:MM in `now`'s timezone, or tomorrow if that
    moment is already in the past.

    Raises:
        TimeParseError: if time_str is not a valid HH:MM string
    """
    if now is None:
        now = local_now()

    t = parse_time(time_str)
    candidate = now.replace(hour=t.hour, minute=t.minute, second=0, microsecond=0)
    if candidate < now:
        candidate += timedelta(days=1)
    return relocalize(candidate)


def minutes_until(target: datetime, now: datetime) -> int:
    """Whole minutes from now until target (floored, may be negative)."""
    return math.floor((target - now).total_seconds() / 60)


def format_duration(hours: float) -> str:
    """Format a sleep duration like "7h 30m" (minutes rounded, zero omitted)."""
    h = math.floor(hours)
    m = round((hours - h) * 60)
    return f"{h}h {m}m" if m > 0 else f"{h}h"


def format_awake_duration(hours: float) -> str:
    """Format an awake duration like "14h 30m" or "16h"."""
    h = math.floor(hours)
    m = round((hours - h) * 60)
    if m == 0:
        return f"{h}h"
    return f"{h}h {m}m"


def get_time_remaining(target: datetime, now: datetime | None = None) -> str:
    """Human-readable time left until target, floored to whole minutes."""
    if now is None:
        now = local_now()

    diff_seconds = (target - now).total_seconds()
    if diff_seconds <= 0:
        return "0 minutes"

    hours = math.floor(diff_seconds / 3600)
    minutes = math.floor((diff_seconds % 3600) / 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def get_time_difference(time1: datetime, time2: datetime) -> str:
    """Absolute difference between two datetimes as "Xh Ym", "Xh" or "Ym"."""
    diff_minutes = math.floor(abs((time2 - time1).total_seconds()) / 60)
    hours = diff_minutes // 60
    minutes = diff_minutes % 60

    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def is_in_sleep_window(
    bedtime: datetime, wake_time: datetime, now: datetime | None = None
) -> bool:
    """
    Check if now falls between bedtime and wake time on the clock.

    Compares minutes-of-day in now's timezone, so a bedtime of 23:00 with a
    wake time of 07:00 covers both 23:30 and 06:00.
    """
    if now is None:
        now = local_now()

    if now.tzinfo is not None:
        bedtime = bedtime.astimezone(now.tzinfo) if bedtime.tzinfo else bedtime
        wake_time = wake_time.astimezone(now.tzinfo) if wake_time.tzinfo else wake_time

    bed_minutes = minutes_of_day(bedtime)
    wake_minutes = minutes_of_day(wake_time)
    now_minutes = minutes_of_day(now)

    # Window crosses midnight
    if bed_minutes > wake_minutes:
        return now_minutes >= bed_minutes or now_minutes <= wake_minutes

    return bed_minutes <= now_minutes <= wake_minutes


def relocalize(moment: datetime) -> datetime:
    """Re-localize wall-clock time so a pytz zone picks the right DST offset."""
    tz = moment.tzinfo
    if tz is not None and hasattr(tz, "localize"):
        return tz.localize(moment.replace(tzinfo=None))
    return moment


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (2.25 -> 2.3), unlike the banker's rounding of round()."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def now_like(reference: datetime) -> datetime:
    """Current time in the same timezone as reference."""
    if reference.tzinfo is None:
        return datetime.now()
    return datetime.now(reference.tzinfo)


def add_hours(moment: datetime, hours: float) -> datetime:
    """Absolute-time addition that keeps a pytz zone's offset correct across DST."""
    shifted = moment + timedelta(hours=hours)
    tz = shifted.tzinfo
    if tz is not None and hasattr(tz, "normalize"):
        return tz.normalize(shifted)
    return shifted
