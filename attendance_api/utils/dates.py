import re
from datetime import date, datetime, timezone
from typing import Optional, Tuple

_CALENDAR_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def utc_now_iso() -> str:
    """Current UTC time as ``2024-01-10T08:30:00.000Z``"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_calendar_date(value: str) -> Optional[date]:
    """
    Parse ``YYYY-MM-DD`` (month and day may omit the zero padding).

    Returns None when the value is not a valid calendar date.
    """
    match = _CALENDAR_DATE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def date_sort_key(value: str) -> Tuple[int, date, str]:
    """
    Chronological sort key for sheet dates.

    Unparseable dates sort before every real date, among themselves by text.
    """
    parsed = parse_calendar_date(value)
    if parsed is None:
        return 0, date.min, value
    return 1, parsed, value
