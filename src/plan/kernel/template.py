from __future__ import annotations

from datetime import date
from pathlib import Path

from ..util.fs import atomic_write_text
from .dates import MONTH_ABBRS, WEEKDAY_NAMES
from .errors import PlanNotFoundError
from .inbox import make_inbox_line


def format_header(day: date) -> str:
    """`2026, Feb 19 - Thursday`"""
    return f"{day.year:04d}, {MONTH_ABBRS[day.month - 1]} {day.day:02d} - {WEEKDAY_NAMES[day.weekday()]}"


def generate(day: date) -> str:
    header = format_header(day)
    width = len(header)
    return f"{header}\n{make_inbox_line(width)}\n{'~' * width}\n\n---\n"


def ensure_plan_file(path: Path, day: date, *, is_past: bool) -> bool:
    """Create `path` from the template unless it exists.

    The caller holds the exclusive lock on `path`. Returns True when the
    file was created. A missing file for a past date is not created.
    """
    path = Path(path)
    if path.exists():
        return False
    if is_past:
        raise PlanNotFoundError(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(path, generate(day))
    return True
