"""
Date parsing helpers shared by validation and the derived views.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

DAY_SECONDS = 24 * 60 * 60

# Accepted when the value is not ISO 8601 (spreadsheet exports)
_FALLBACK_FORMATS = ("%Y/%m/%d", "%Y/%m/%d %H:%M:%S")


def parse_date(value: Union[str, date, datetime]) -> datetime:
    """
    Parse a calendar date or timestamp into an aware datetime.

    Args:
        value: ISO 8601 date/datetime string, or a date/datetime object

    Returns:
        Timezone-aware datetime. Naive values are interpreted as UTC.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty date")
        parsed = _parse_text(text)
    else:
        raise ValueError(f"unsupported date value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_text(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"invalid date: {text!r}")


def try_parse_date(value) -> Optional[datetime]:
    """Like parse_date but returns None instead of raising."""
    try:
        return parse_date(value)
    except ValueError:
        return None


def is_valid_date(value) -> bool:
    """Check whether a value parses as a date."""
    return try_parse_date(value) is not None


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return now as an aware datetime, defaulting to the current UTC time."""
    if now is None:
        return utc_now()
    return parse_date(now)
