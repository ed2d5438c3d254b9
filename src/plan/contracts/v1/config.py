from __future__ import annotations

from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...util.conv import coerce_bool, coerce_str_list


class ScanConfig(BaseModel):
    """How the plan directory scan reports files it does not recognize."""

    warn_unexpected: bool = True
    # `*suffix` or an exact file name.
    ignored_patterns: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("warn_unexpected", mode="before")
    @classmethod
    def _loose_bool(cls, v: Any) -> bool:
        return coerce_bool(v, default=True)

    @field_validator("ignored_patterns", mode="before")
    @classmethod
    def _patterns(cls, v: Any) -> List[str]:
        return coerce_str_list(v)


class PlanConfig(BaseModel):
    dir: Path
    scan: ScanConfig = Field(default_factory=ScanConfig)

    model_config = ConfigDict(extra="forbid")
