from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

HANDLER_NAME = "plan.jsonl"

# Correlation keys a caller may pass via `logger.*(..., extra={...})`.
_EXTRA_KEYS = ("op", "path", "date")


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, for grepping `plan` runs after the fact."""

    def __init__(self, *, component: str):
        super().__init__()
        self._component = str(component or "").strip() or "plan"

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "component": self._component,
            "msg": record.getMessage(),
        }
        for k in _EXTRA_KEYS:
            v = getattr(record, k, None)
            if v is not None and str(v).strip():
                payload[k] = str(v).strip()
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class _StderrHandler(logging.StreamHandler):
    """Write to whatever `sys.stderr` is when the record is emitted."""

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, _value) -> None:
        pass


def parse_level(level: str, default: int = logging.WARNING) -> int:
    s = str(level or "").strip().upper()
    if not s:
        return default
    value = getattr(logging, s, None)
    return value if isinstance(value, int) else default


def setup_root_json_logging(*, component: str, level: str = "WARNING") -> logging.Handler:
    """Attach the JSONL stderr handler to the root logger.

    Stdout stays clean for `show`, `ls`, `search` and `--path`. Calling
    again (main() runs more than once in a process) only updates the level.
    """
    lvl = parse_level(level)
    root = logging.getLogger()
    root.setLevel(lvl)
    for h in root.handlers:
        if h.get_name() == HANDLER_NAME:
            h.setLevel(lvl)
            return h

    handler = _StderrHandler()
    handler.set_name(HANDLER_NAME)
    handler.setLevel(lvl)
    handler.setFormatter(JsonlFormatter(component=component))
    root.addHandler(handler)
    return handler
