"""Minute-key helpers for aligning collection runs to wall-clock minutes.

A minute key is an ISO 8601 UTC timestamp with the seconds and milliseconds
zeroed, e.g. ``2024-01-01T12:34:00.000Z``. The format is fixed-width, so
lexicographic order matches chronological order and keys can be compared
as plain strings.
"""

from datetime import UTC, datetime

_MINUTE_KEY_FORMAT = "%Y-%m-%dT%H:%M:00.000Z"
_PARSE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_MS_PER_SECOND = 1000
_MICROS_PER_MS = 1000
_SECONDS_PER_MINUTE = 60


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def minute_floor(moment: datetime) -> datetime:
    """Truncate a datetime to the start of its minute in UTC.

    Naive datetimes are assumed to already be in UTC.

    Args:
        moment: Datetime to truncate.

    Returns:
        A UTC datetime with ``second`` and ``microsecond`` set to zero.

    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).replace(second=0, microsecond=0)


def format_minute_key(moment: datetime) -> str:
    """Format the minute containing ``moment`` as a minute key.

    Args:
        moment: Any datetime; seconds and sub-seconds are discarded.

    Returns:
        Minute key string such as ``2024-01-01T12:34:00.000Z``.

    """
    return minute_floor(moment).strftime(_MINUTE_KEY_FORMAT)


def current_minute_key(now: datetime | None = None) -> str:
    """Return the minute key for ``now`` (defaults to the wall clock)."""
    return format_minute_key(now if now is not None else utc_now())


def parse_minute_key(key: str) -> datetime:
    """Parse a minute key back into a UTC datetime.

    Args:
        key: Minute key produced by ``format_minute_key``.

    Returns:
        Timezone-aware UTC datetime at the start of the minute.

    Raises:
        ValueError: If the key is malformed or not minute-aligned.

    """
    try:
        parsed = datetime.strptime(key, _PARSE_FORMAT).replace(tzinfo=UTC)
    except ValueError as exc:
        msg = f"Cannot parse minute key: {key!r}"
        raise ValueError(msg) from exc
    if parsed.second or parsed.microsecond:
        msg = f"Minute key is not minute-aligned: {key!r}"
        raise ValueError(msg)
    return parsed


def ms_until_next_minute(now: datetime | None = None) -> int:
    """Compute milliseconds remaining until the next minute boundary.

    Called exactly at a boundary this returns a full minute, so the result
    is always in ``(0, 60000]``.

    Args:
        now: Reference time; defaults to the wall clock.

    Returns:
        Milliseconds to wait before the next minute starts.

    """
    moment = now if now is not None else utc_now()
    elapsed_ms = moment.second * _MS_PER_SECOND + moment.microsecond // _MICROS_PER_MS
    return _SECONDS_PER_MINUTE * _MS_PER_SECOND - elapsed_ms
