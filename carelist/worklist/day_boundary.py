"""
Day boundary rules for the worklist.

"Today" is evaluated in the facility's timezone, not the machine's local
timezone. Instants are converted to a civil (year, month, day) in that
zone and compared exactly.
"""

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from carelist.core.models import ensure_aware, parse_datetime

TimeZoneLike = Union[str, tzinfo]

_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?([+-])(\d{1,2}):?(\d{2})?$")


def resolve_timezone(tz: TimeZoneLike) -> tzinfo:
    """
    Resolve a timezone identifier.

    Accepts a tzinfo, an IANA name ("Asia/Ho_Chi_Minh"), "UTC", or a fixed
    offset such as "+07:00" / "UTC+7".

    Raises:
        ValueError: If the identifier is not recognised
    """
    if isinstance(tz, tzinfo):
        return tz

    name = tz.strip()
    if name.upper() in ("UTC", "Z", "GMT"):
        return timezone.utc

    match = _OFFSET_RE.match(name)
    if match:
        sign, hours, minutes = match.groups()
        delta = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if delta >= timedelta(hours=24):
            raise ValueError(f"Invalid UTC offset: {tz}")
        return timezone(-delta if sign == "-" else delta)

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz}") from e


def local_date(instant: datetime, tz: TimeZoneLike) -> date:
    """Civil date of an instant in the given zone."""
    return ensure_aware(instant).astimezone(resolve_timezone(tz)).date()


def same_local_day(reference: datetime, candidate: Any, tz: TimeZoneLike) -> bool:
    """
    Check whether two instants fall on the same calendar day in tz.

    Args:
        reference: Instant that defines "today" (usually now)
        candidate: Instant to classify; a datetime or ISO string. None or
            an unparseable value counts as "not today".
        tz: Facility timezone

    Returns:
        True when both instants share (year, month, day) in tz
    """
    parsed = parse_datetime(candidate)
    if parsed is None:
        return False
    return local_date(reference, tz) == local_date(parsed, tz)


def end_of_local_day(now: datetime, tz: TimeZoneLike) -> datetime:
    """23:59:59.999 of the local day containing now."""
    zone = resolve_timezone(tz)
    local = ensure_aware(now).astimezone(zone)
    return datetime(local.year, local.month, local.day,
                    23, 59, 59, 999000, tzinfo=zone)


def has_record_today(records, now: datetime, tz: TimeZoneLike) -> bool:
    """True if any record's occurred_at falls on today's local date."""
    return any(same_local_day(now, r.occurred_at, tz) for r in records)


def is_valid_timezone(tz: Optional[TimeZoneLike]) -> bool:
    if tz is None:
        return False
    try:
        resolve_timezone(tz)
    except ValueError:
        return False
    return True
