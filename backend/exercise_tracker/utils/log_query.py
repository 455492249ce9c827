"""Filter and truncate a user's exercise records into a log."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from ..models import ExerciseRecord
from .dates import format_calendar_date

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class LogResult:
    """Filtered log entries; `count` always equals `len(log)`."""
    log: List[dict] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.log)


def parse_limit(raw) -> Optional[int]:
    """Read a `limit` query value.

    Leading digits are honoured ("2abc" -> 2). Anything without a numeric
    prefix, and negative numbers, mean no limit.
    """
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    else:
        m = _INT_PREFIX_RE.match(str(raw))
        if not m:
            return None
        value = int(m.group(1))
    return value if value >= 0 else None


def log_entry(record: ExerciseRecord) -> dict:
    return {
        "description": record.description,
        "duration": record.duration,
        "date": format_calendar_date(record.date),
    }


def query_log(
    records: Iterable[ExerciseRecord],
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> LogResult:
    """Apply the date bounds (inclusive) then the limit, keeping input order."""
    selected = list(records)
    if date_from is not None:
        selected = [r for r in selected if r.date >= date_from]
    if date_to is not None:
        selected = [r for r in selected if r.date <= date_to]
    if limit is not None:
        selected = selected[:limit]
    return LogResult(log=[log_entry(r) for r in selected])
