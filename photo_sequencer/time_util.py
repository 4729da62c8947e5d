"""
Utility functions for comparing and reconciling capture timestamps.

All instants are timezone-aware datetimes. Every comparison against a period
allows a margin of TOLERANCE_RATIO x period either side of it, so
"within an hour" really means "within roughly 1h06m".
"""
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from . import config


def _as_utc(time: datetime) -> datetime:
    # Naive datetimes are treated as UTC
    if time.tzinfo is None:
        return time.replace(tzinfo=timezone.utc)
    return time.astimezone(timezone.utc)


def compare_to_period(time1: datetime, time2: datetime, period: float) -> int:
    """
    Compares the gap between two times to a period (in seconds).

    Returns:
        0 if the gap equals the period (+/- margin),
        -1 if it is shorter, 1 if it is longer.
    """
    margin = period * config.TOLERANCE_RATIO
    delta = abs((_as_utc(time1) - _as_utc(time2)).total_seconds())
    if delta > period + margin:
        return 1
    if delta < period - margin:
        return -1
    return 0


def within(time1: datetime, time2: datetime, period: float) -> bool:
    return compare_to_period(time1, time2, period) <= 0


def within_a_second(time1: datetime, time2: datetime) -> bool:
    return within(time1, time2, config.SECOND)


def within_a_minute(time1: datetime, time2: datetime) -> bool:
    return within(time1, time2, config.MINUTE)


def within_an_hour(time1: datetime, time2: datetime) -> bool:
    return within(time1, time2, config.HOUR)


def within_a_day(time1: datetime, time2: datetime) -> bool:
    return within(time1, time2, config.DAY)


def earliest(time1: Optional[datetime], time2: Optional[datetime]) -> Optional[datetime]:
    """Null-safe minimum of two times."""
    if time1 is None:
        return time2
    if time2 is None:
        return time1
    return time1 if _as_utc(time1) <= _as_utc(time2) else time2


def correct_if_alternative_materially_earlier(assumed: Optional[datetime],
                                              alternative: Optional[datetime],
                                              context: str = "") -> Optional[datetime]:
    """
    Picks between two capture times read from different metadata fields.

    The assumed time wins unless the alternative is earlier by more than
    about a day. Disagreements of a few seconds or a DST hour are ignored;
    a camera clock that was reset, or a date written on export, is not.
    """
    if assumed is None:
        return alternative
    if alternative is None or within_an_hour(assumed, alternative):
        return assumed

    if _as_utc(alternative) < _as_utc(assumed) and not within_a_day(assumed, alternative):
        logging.info(f"{context} Assumed [{assumed.isoformat()}] != Alternative "
                     f"[{alternative.isoformat()}], using alternative")
        return alternative
    return assumed


def correct_zone_offset(time: datetime, zone: tzinfo) -> datetime:
    """
    Handles a local wall-clock time that was recorded as UTC.

    For example, 17:00 BST saved as 17:00Z becomes 16:00Z once the wall clock
    is reinterpreted in Europe/London.
    """
    wall_clock = _as_utc(time).replace(tzinfo=None)
    return wall_clock.replace(tzinfo=zone).astimezone(timezone.utc)


def offset_between(camera_time: datetime, actual_time: datetime) -> float:
    """Seconds to add to a camera's recorded time to get the actual time."""
    return (_as_utc(actual_time) - _as_utc(camera_time)).total_seconds()


def apply_offset(time: Optional[datetime], seconds: float) -> Optional[datetime]:
    if time is None or not seconds:
        return time
    return time + timedelta(seconds=seconds)


def to_local(time: datetime, zone: Optional[tzinfo] = None) -> datetime:
    # astimezone(None) converts to the system local zone
    return _as_utc(time).astimezone(zone)


def local_date_text(time: Optional[datetime], zone: Optional[tzinfo] = None) -> str:
    if time is None:
        return ""
    return to_local(time, zone).strftime(config.LOCAL_DATE_FORMAT)


def local_time_text(time: Optional[datetime], zone: Optional[tzinfo] = None) -> str:
    if time is None:
        return ""
    return to_local(time, zone).strftime(config.LOCAL_TIME_FORMAT)


def from_timestamp(ts: float) -> datetime:
    """POSIX timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(ts, tz=timezone.utc)
