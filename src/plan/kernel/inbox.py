"""Inbox region of a plan file.

A plan file carries an inbox block delimited by two marker lines:

    2026, Feb 19 - Thursday
    ~~~~~~~~~inbox~~~~~~~~~
    * something captured earlier
    ~~~~~~~~~~~~~~~~~~~~~~~

The open marker is a line of `~` around the word `inbox`; the close marker
is the first all-`~` line after it. Files are hand-edited, so matching is
loose (surrounding whitespace is ignored, pad lengths are free) and a
missing or broken block is rebuilt at the end of the file instead of
refusing the insert.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

from ..util.file_lock import LockHandle, lock_path_for
from ..util.fs import atomic_write_text, read_text
from .errors import LockNotHeldError

INBOX_LABEL = "inbox"
MIN_INBOX_WIDTH = 21


def make_inbox_line(width: int) -> str:
    """Center `inbox` in `~` padding; an odd remainder goes to the right."""
    remaining = max(width - len(INBOX_LABEL), 0)
    left = remaining // 2
    right = remaining - left
    return "~" * left + INBOX_LABEL + "~" * right


def is_inbox_open(line: str) -> bool:
    t = line.strip()
    return (
        t.startswith("~")
        and t.endswith("~")
        and INBOX_LABEL in t
        and t.replace("~", "") == INBOX_LABEL
    )


def is_tilde_line(line: str) -> bool:
    t = line.strip()
    return bool(t) and all(c == "~" for c in t)


def split_lines(content: str) -> List[str]:
    lines = content.split("\n")
    # A final newline terminates the last line; it does not start a new one.
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def find_inbox(lines: List[str]) -> Tuple[Optional[int], Optional[int]]:
    """Return (open_index, close_index); a close is only looked for after an open."""
    start: Optional[int] = None
    for i, line in enumerate(lines):
        if start is None:
            if is_inbox_open(line):
                start = i
        elif is_tilde_line(line):
            return start, i
    return start, None


def _with_new_inbox(lines: List[str], new_line: str) -> List[str]:
    width = max(len(lines[0]), MIN_INBOX_WIDTH) if lines else MIN_INBOX_WIDTH
    out = list(lines)
    if out and out[-1] != "":
        out.append("")
    out.append(make_inbox_line(width))
    out.append(new_line)
    out.append("~" * width)
    return out


def insert_into_lines(lines: List[str], new_line: str) -> List[str]:
    """Pure form of `insert_line`: the resulting line list."""
    start, end = find_inbox(lines)
    if start is None or end is None:
        return _with_new_inbox(lines, new_line)
    out = list(lines)
    out.insert(end, new_line)
    return out


def _check_lock(path: Path, lock: LockHandle) -> None:
    if not isinstance(lock, LockHandle) or not lock.held:
        raise LockNotHeldError(f"no lock held for {path}")
    if not lock.exclusive:
        raise LockNotHeldError(f"shared lock cannot guard a write to {path}")
    want = os.path.abspath(lock_path_for(path))
    if os.path.abspath(lock.lock_path) != want:
        raise LockNotHeldError(f"lock {lock.lock_path} does not guard {path}")


def insert_line(path: Path, new_line: str, lock: LockHandle) -> None:
    """Insert `new_line` at the end of the inbox of `path`.

    `lock` is the caller's exclusive lock on `path`; it is checked, not
    acquired. The whole new file is built in memory and written with an
    atomic replace, so a failure leaves the previous content in place.
    """
    path = Path(path)
    _check_lock(path, lock)
    lines = split_lines(read_text(path))
    atomic_write_text(path, "\n".join(insert_into_lines(lines, new_line)) + "\n")
