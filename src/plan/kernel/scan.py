from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO

from .dates import PLAN_SUFFIX, parse_plan_filename

logger = logging.getLogger("plan.scan")

SYNC_CONFLICT_PREFIX = ".sync-conflict"

IGNORED_NAMES = (".DS_Store", "Thumbs.db")
IGNORED_EXTENSIONS = (".lock", ".swp", ".tmp")
IGNORED_SUFFIXES = ("~",)
TEMP_EXTENSION_PREFIX = ".tmp-"


@dataclass
class ScanResult:
    plan_files: List[Path] = field(default_factory=list)
    unexpected: List[str] = field(default_factory=list)


def is_plan_file(name: str) -> bool:
    return name.endswith(PLAN_SUFFIX) and not name.startswith(SYNC_CONFLICT_PREFIX)


def should_ignore(name: str, user_patterns: Sequence[str] = ()) -> bool:
    """Whether a non-plan file is expected clutter.

    User patterns are either `*suffix` or an exact file name.
    """
    if name in IGNORED_NAMES:
        return True
    if any(name.endswith(s) for s in IGNORED_SUFFIXES):
        return True
    dot = name.rfind(".")
    if dot >= 0:
        ext = name[dot:]
        # In-flight atomic writes: `<stem>.tmp-<token>`.
        if ext in IGNORED_EXTENSIONS or ext.startswith(TEMP_EXTENSION_PREFIX):
            return True
    for pattern in user_patterns:
        if pattern.startswith("*"):
            if name.endswith(pattern[1:]):
                return True
        elif name == pattern:
            return True
    return False


def scan_plan_dir(plan_dir: Path, user_ignores: Sequence[str] = ()) -> ScanResult:
    """Split the regular files of `plan_dir` into plan files and unexpected names."""
    result = ScanResult()
    for entry in Path(plan_dir).iterdir():
        try:
            if not entry.is_file():
                continue
        except OSError as e:
            logger.debug("skip unreadable entry %s: %s", entry, e)
            continue
        name = entry.name
        if is_plan_file(name):
            result.plan_files.append(entry)
        elif not should_ignore(name, user_ignores):
            result.unexpected.append(name)
    return result


def warn_unexpected_files(unexpected: Iterable[str], stream: Optional[TextIO] = None) -> None:
    names = sorted(unexpected)
    if not names:
        return
    out = stream or sys.stderr
    out.write(
        "plan: warning: unexpected files in plan directory: "
        f"{', '.join(names)} (suppress with warn_unexpected: false)\n"
    )


def dated_plans(paths: Iterable[Path]) -> List[Path]:
    """Plan files whose name carries a valid date, newest first."""
    dated = [p for p in paths if parse_plan_filename(p.name) is not None]
    return sorted(dated, key=lambda p: p.name, reverse=True)


def find_latest(paths: Iterable[Path]) -> Optional[Path]:
    plans = dated_plans(paths)
    return plans[0] if plans else None
