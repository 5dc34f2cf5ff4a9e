"""Parsing of user supplied CRL timestamps."""

from datetime import datetime, timezone
from typing import Optional

from .errors import InvalidTimeFormatError

# Tried in order, first match wins
TIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp against the accepted formats.

    Accepted, in order: RFC 3339 with an offset (``Z`` allowed, optional
    fractional seconds), ``YYYY-MM-DD HH:MM:SS``, ``YYYY-MM-DD HH:MM`` and
    ``YYYY-MM-DD``. Values without an offset are taken as UTC.

    Args:
        value: Time string; None or blank means "not supplied"

    Returns:
        Timezone-aware datetime, or None if nothing was supplied

    Raises:
        InvalidTimeFormatError: If no format matches
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise InvalidTimeFormatError(f"unable to parse time: {value}")


def as_utc(value: datetime) -> datetime:
    """Normalise a datetime to an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
