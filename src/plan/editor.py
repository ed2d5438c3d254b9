from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import List

from .kernel.errors import PlanError, SilentExit

DEFAULT_EDITOR = "nano"


def editor_command() -> List[str]:
    """$VISUAL, else $EDITOR, else nano; split like a shell would."""
    raw = os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR
    try:
        args = shlex.split(raw)
    except ValueError:
        args = [raw]
    if not args:
        raise PlanError(f"Invalid editor specified: {raw}")
    return args


def open_editor(path: Path) -> None:
    args = editor_command()
    try:
        proc = subprocess.run([*args, str(path)], check=False)
    except OSError as e:
        raise PlanError(f"Failed to launch editor '{args[0]}': {e}") from e
    if proc.returncode < 0:
        raise PlanError("Editor terminated by signal")
    if proc.returncode != 0:
        raise SilentExit(proc.returncode)
