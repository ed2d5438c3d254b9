from __future__ import annotations

import os
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from .errors import DateRangeError, UsageError

PLAN_SUFFIX = ".plan"
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Fixed English names keep headers (and therefore inbox widths) and `ls`
# output stable regardless of the process locale.
MONTH_ABBRS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_FORMAT_HELP = "Invalid date format. Use @, @~N, today, yesterday, or 'N days ago'."


def today() -> date:
    """Local date, or PLAN_MOCK_TIME (YYYY-MM-DD) when set."""
    mock = os.environ.get("PLAN_MOCK_TIME", "").strip()
    if mock:
        try:
            return datetime.strptime(mock, "%Y-%m-%d").date()
        except ValueError:
            pass
    return date.today()


def _parse_count(s: str) -> Optional[int]:
    # Unsigned decimal only: no sign, no whitespace inside.
    if not s or not s.isascii() or not s.isdigit():
        return None
    return int(s)


def parse_relative_date(arg: Optional[str]) -> int:
    """Translate a relative date argument into a number of days ago.

    Accepted forms (case-insensitive, surrounding whitespace ignored):
    `@` / `today`, `yesterday`, `@~N`, `N days ago`, `N day ago`.
    """
    if arg is None:
        return 0
    s = arg.strip().lower()
    if s.startswith("@~"):
        rest = s[len("@~"):]
        n = _parse_count(rest)
        if n is None:
            raise UsageError(f"Invalid relative date '@~{rest}'. Expected unsigned integer.")
        return n
    if s in ("@", "today"):
        return 0
    if s == "yesterday":
        return 1
    for suffix in (" days ago", " day ago"):
        if s.endswith(suffix):
            n = _parse_count(s[: -len(suffix)].strip())
            if n is None:
                raise UsageError(
                    f"Invalid date format '{arg}'. Expected unsigned integer before 'days ago'."
                )
            return n
    raise UsageError(_FORMAT_HELP)


def get_date(days_ago: int, *, base: Optional[date] = None) -> date:
    start = base or today()
    try:
        return start - timedelta(days=days_ago)
    except OverflowError as e:
        raise DateRangeError("Date calculation is out of bounds (too far in the past).") from e


def short_weekday(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()][:3]


def format_filename(day: date) -> str:
    return f"{day.isoformat()}{PLAN_SUFFIX}"


def plan_path(plan_dir: Path, day: date) -> Path:
    return Path(plan_dir) / format_filename(day)


def parse_plan_filename(name: str) -> Optional[date]:
    """The date encoded in a plan file name, or None."""
    if not name.endswith(PLAN_SUFFIX):
        return None
    stem = name[: -len(PLAN_SUFFIX)]
    if not _ISO_DATE.match(stem):
        return None
    try:
        return datetime.strptime(stem, "%Y-%m-%d").date()
    except ValueError:
        return None
