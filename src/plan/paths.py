from __future__ import annotations

import os
from pathlib import Path


def expand_tilde(path: str) -> Path:
    """Expand a leading `~` / `~/` using HOME; other forms are left alone."""
    if path == "~" or path.startswith("~/"):
        home = os.environ.get("HOME", "")
        if home:
            return Path(home) / path[2:] if len(path) > 2 else Path(home)
    return Path(path)


def config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg:
        return Path(xdg) / "plan"
    return expand_tilde("~/.config") / "plan"


def config_path() -> Path:
    return config_dir() / "config.yaml"
