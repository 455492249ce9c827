"""Date parsing and calendar-string rendering.

Dates are handled as naive local datetimes. Rendering and month-name
parsing use fixed English names so behaviour does not depend on the
process locale.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
FULL_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# "Mon Jan 01 2024", "Jan 1 2024", "January 15, 2024", "Monday, Jan. 15 2024"
CALENDAR_RE = re.compile(r"^(?:[A-Za-z]+,?\s+)?([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")
# "15 January 2024", "15 Jan 2024"
DAY_FIRST_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?,?\s+(\d{4})$")
# numeric forms without a locale component
NUMERIC_FORMATS = ("%Y/%m/%d", "%Y/%m/%d %H:%M", "%Y/%m/%d %H:%M:%S", "%m/%d/%Y", "%m/%d/%Y %H:%M", "%m/%d/%Y %H:%M:%S")


def format_calendar_date(value: datetime) -> str:
    """Render `value` like "Mon Jan 01 2024"."""
    return f"{DAY_NAMES[value.weekday()]} {MONTH_NAMES[value.month - 1]} {value.day:02d} {value.year:04d}"


def parse_date(raw: str) -> datetime:
    """Parse a client-supplied date string.

    Accepts ISO dates ("2024-01-01"), ISO date-times with or without an
    offset, slash-separated dates ("2024/01/15", "01/15/2024") and
    English month-name forms ("Mon Jan 01 2024", "January 15, 2024",
    "15 Jan 2024"). Raises ValueError when nothing matches.
    """
    if not isinstance(raw, str):
        raise ValueError(f"invalid date: {raw!r}")
    text = raw.strip()
    if not text:
        raise ValueError("empty date")
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        parsed = _parse_loose(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_optional_date(raw: Optional[str]) -> Optional[datetime]:
    """Like `parse_date`, but `None` and blank strings mean "not supplied"."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return parse_date(raw)


def _parse_loose(text: str) -> datetime:
    for fmt in NUMERIC_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    m = CALENDAR_RE.match(text)
    if m:
        month_name, day, year = m.groups()
    else:
        m = DAY_FIRST_RE.match(text)
        if not m:
            raise ValueError(f"invalid date: {text!r}")
        day, month_name, year = m.groups()
    return datetime(int(year), _month_number(month_name), int(day))


def _month_number(name: str) -> int:
    name = name.capitalize()
    if name in MONTH_NAMES:
        return MONTH_NAMES.index(name) + 1
    if name in FULL_MONTH_NAMES:
        return FULL_MONTH_NAMES.index(name) + 1
    if name == "Sept":
        return 9
    raise ValueError(f"invalid month: {name!r}")
