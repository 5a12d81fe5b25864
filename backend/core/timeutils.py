"""Timezone-safe datetime utilities.

Timestamps are stored as **naive** UTC datetimes (SQLite drops offsets).
Calendar-day questions (streaks, buckets, "end of today") are answered in
the user's reference timezone, so conversion helpers live here.
"""
from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise any datetime to naive UTC. Naive input is assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def get_zone(name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, raising ValueError for unknown names."""
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


def is_valid_zone(name: str) -> bool:
    try:
        get_zone(name)
    except ValueError:
        return False
    return True


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of a timestamp in the given zone. Naive input is UTC."""
    return to_naive_utc(value).replace(tzinfo=UTC).astimezone(tz).date()


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    """First instant of ``day`` in ``tz`` as naive UTC."""
    return to_naive_utc(datetime.combine(day, time.min, tzinfo=tz))


def end_of_day(moment: datetime, tz: ZoneInfo) -> datetime:
    """Last representable instant of the local day containing ``moment``, as naive UTC."""
    day = local_date(moment, tz)
    return start_of_day(day + timedelta(days=1), tz) - timedelta(microseconds=1)


def start_of_week(moment: datetime, tz: ZoneInfo) -> datetime:
    """Monday 00:00 of the local ISO week containing ``moment``, as naive UTC."""
    day = local_date(moment, tz)
    return start_of_day(day - timedelta(days=day.weekday()), tz)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) to naive UTC.

    Raises ValueError when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a timestamp: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))
