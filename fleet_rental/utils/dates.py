"""Date parsing and formatting helpers. All stored timestamps are aware UTC."""
import math
from datetime import datetime, date, timedelta

import pytz

UTC = pytz.utc


def utcnow() -> datetime:
    """Wrapper for easier testing/mocking."""
    return datetime.now(UTC)


def parse_when(value) -> datetime:
    """
    Parse a date or timestamp into an aware UTC datetime.
    Supports:
      - 'YYYY-MM-DD'  (midnight UTC)
      - 'YYYY-MM-DDTHH:MM[:SS]' and the same with a space separator
      - Above with 'Z' or offsets like '+02:00'
      - date / datetime objects
    Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("empty date")
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    else:
        raise ValueError(f"Unsupported date: {value!r}")

    # naive values are taken as UTC
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def iso(value) -> str | None:
    """Render a stored timestamp for JSON output."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
    return str(value)


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days billed for a rental; partial days round up, minimum one."""
    return max(1, math.ceil((end - start) / timedelta(days=1)))
