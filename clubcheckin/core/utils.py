"""General utility functions."""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_timezone(dt: datetime, tz: ZoneInfo) -> datetime:
    """Convert datetime to specified timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def compute_expires_at(
    now: datetime,
    tz: ZoneInfo,
    default_minutes: int,
    start_time: Optional[time] = None,
    expire_time: Optional[time] = None,
) -> datetime:
    """
    Work out when a check-in session closes.

    Wall-clock times are interpreted in ``tz`` on the local date of ``now``.

    Args:
        now: Creation instant (aware)
        tz: Zone the leader's clock times refer to
        default_minutes: Lifetime used when no expire time is supplied
        start_time: Optional wall-clock time the window opens
        expire_time: Optional wall-clock time the window closes

    Returns:
        Expiry as an aware UTC datetime. May lie in the past; the caller
        decides whether that is acceptable.

    Rules:
        - neither time: now + default_minutes
        - start only: start + default_minutes
        - expire at or before the anchor (start, or now when no start is
          given): expire is taken to be on the following day
    """
    local_now = to_timezone(now, tz)

    if expire_time is None:
        if start_time is None:
            return to_utc(now) + timedelta(minutes=default_minutes)
        anchor = _combine(local_now.date(), start_time, tz)
        return to_utc(anchor + timedelta(minutes=default_minutes))

    if start_time is not None:
        anchor = _combine(local_now.date(), start_time, tz)
    else:
        anchor = local_now

    expires = _combine(anchor.date(), expire_time, tz)
    if expires <= anchor:
        expires = _combine(anchor.date() + timedelta(days=1), expire_time, tz)
    return to_utc(expires)


def _combine(day: date, clock: time, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, clock.replace(tzinfo=None), tzinfo=tz)
