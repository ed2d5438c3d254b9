from __future__ import annotations

import os
import secrets
from pathlib import Path

# Plan files are text, but a hand-edited file may carry stray bytes.
# Surrogate escapes let those bytes survive a read/modify/write unchanged.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def temp_path_for(target: Path) -> Path:
    """A sibling path unique to this write attempt: `<stem>.tmp-<pid>-<hex>`."""
    token = f"{os.getpid()}-{secrets.token_hex(4)}"
    return target.with_suffix(f".tmp-{token}")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace `path` with `data` so readers see either the old or the new file.

    The temp file lives in the same directory (same filesystem) so the
    final rename is atomic. It is removed on any failure before the rename.
    """
    tmp = temp_path_for(path)
    persisted = False
    try:
        with open(tmp, "xb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        persisted = True
    finally:
        if not persisted:
            try:
                os.unlink(tmp)
            except OSError:
                pass


def atomic_write_text(path: Path, text: str) -> None:
    atomic_write_bytes(path, text.encode(_ENCODING, _ERRORS))


def read_text(path: Path) -> str:
    """Read a whole file without newline translation."""
    return Path(path).read_bytes().decode(_ENCODING, _ERRORS)
