from __future__ import annotations

from typing import Any, List

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def coerce_bool(value: Any, *, default: bool = False) -> bool:
    """Coerce a hand-written config value into a boolean.

    `warn_unexpected: "false"` must mean False, not bool("false") == True.
    Unknown strings fall back to `default`.
    """
    if value is None:
        return bool(default)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        return bool(default)
    return bool(value)


def coerce_str_list(value: Any) -> List[str]:
    """A scalar or a list of scalars as a list of non-empty stripped strings."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    out: List[str] = []
    for item in items:
        if item is None:
            continue
        s = str(item).strip()
        if s:
            out.append(s)
    return out
