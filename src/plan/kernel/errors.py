"""Expected failure conditions.

I/O problems (lock file, read, temp write, rename) are not wrapped: they
surface as the OSError raised by the failing call. The classes here cover
conditions a caller is expected to present to the user rather than crash on.
"""
from __future__ import annotations

from pathlib import Path


class PlanError(Exception):
    """Base class for expected, user-facing conditions."""


class UsageError(PlanError):
    """Bad arguments or input."""


class DateRangeError(UsageError):
    """A relative date falls outside the representable calendar."""


class PlanNotFoundError(PlanError):
    """A plan file for a past date does not exist and will not be created."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Plan file for past date does not exist: {self.path}")


class LockNotHeldError(PlanError):
    """A mutation was attempted without a held exclusive lock on the target."""


class SilentExit(PlanError):
    """Exit with `code` without printing anything."""

    def __init__(self, code: int):
        self.code = int(code)
        super().__init__(f"exit {self.code}")
