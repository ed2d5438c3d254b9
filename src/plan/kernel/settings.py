"""User configuration for plan.

Stored in $XDG_CONFIG_HOME/plan/config.yaml (default ~/.config/plan/config.yaml):

    dir: ~/plan
    warn_unexpected: true
    ignore:
      - "*.bak"
      - notes.txt

PLAN_DIR in the environment overrides `dir`.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any, Callable, Dict, Optional, TextIO

import yaml  # type: ignore

from ..contracts.v1 import PlanConfig, ScanConfig
from ..paths import config_path, expand_tilde
from ..util.fs import atomic_write_text

logger = logging.getLogger("plan.settings")

DEFAULT_DIR = "~/plan"


def load_settings() -> Dict[str, Any]:
    """Load the config file; a missing or unparsable file reads as empty."""
    p = config_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", p, e)
        return {}
    if not isinstance(doc, dict):
        logger.warning("ignoring config %s: top level is not a mapping", p)
        return {}
    return doc


def save_settings(settings: Dict[str, Any]) -> None:
    p = config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_text(p, yaml.safe_dump(settings, allow_unicode=True, sort_keys=False))


def scan_config(settings: Dict[str, Any]) -> ScanConfig:
    return ScanConfig(
        warn_unexpected=settings.get("warn_unexpected"),
        ignored_patterns=settings.get("ignore"),
    )


def _prompt_for_dir(prompt: Callable[[str], str], out: TextIO) -> str:
    out.write("No plan directory configured.\n")
    out.flush()
    try:
        answer = prompt(f"Enter path [{DEFAULT_DIR}]: ")
    except EOFError:
        answer = ""
    return answer.strip() or DEFAULT_DIR


def load_config(
    *,
    prompt: Callable[[str], str] = input,
    out: Optional[TextIO] = None,
) -> PlanConfig:
    """Resolve the plan directory and scan settings.

    Order: PLAN_DIR, then `dir` in the config file, then ask once and save
    the answer to the config file.
    """
    settings = load_settings()
    scan = scan_config(settings)

    env_dir = os.environ.get("PLAN_DIR", "")
    if env_dir:
        return PlanConfig(dir=expand_tilde(env_dir), scan=scan)

    dir_value = settings.get("dir")
    if isinstance(dir_value, str) and dir_value.strip():
        return PlanConfig(dir=expand_tilde(dir_value.strip()), scan=scan)

    dir_str = _prompt_for_dir(prompt, out or sys.stdout)
    settings["dir"] = dir_str
    save_settings(settings)
    return PlanConfig(dir=expand_tilde(dir_str), scan=scan)


def init_config(dir_str: str) -> PlanConfig:
    """Point the config file at `dir_str`, keeping other keys."""
    settings = load_settings()
    settings["dir"] = dir_str
    save_settings(settings)
    return PlanConfig(dir=expand_tilde(dir_str), scan=scan_config(settings))
