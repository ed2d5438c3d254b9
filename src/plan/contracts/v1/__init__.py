from __future__ import annotations

from .config import PlanConfig, ScanConfig

__all__ = [
    "PlanConfig",
    "ScanConfig",
]
