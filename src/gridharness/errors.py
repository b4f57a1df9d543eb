from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ClosestMatchResult


class GridHarnessError(Exception):
    """Base class for every error raised by the grid harness."""


class ConfigurationError(GridHarnessError, ValueError):
    pass


class GridActionError(GridHarnessError, RuntimeError):
    pass


class ExpandLimitError(GridHarnessError, RuntimeError):
    """An expand/collapse-all loop stopped at its safety cap with work left."""

    def __init__(self, message: str, iterations: int) -> None:
        super().__init__(message)
        self.iterations = iterations


class GridTimeoutError(GridHarnessError, TimeoutError):
    def __init__(
        self,
        message: str,
        *,
        timeout_ms: int,
        condition: str,
        closest_match: ClosestMatchResult | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms
        self.condition = condition
        self.closest_match = closest_match

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.condition


class GridAssertionError(GridHarnessError, AssertionError):
    pass


class AssertionTimeoutError(GridTimeoutError, GridAssertionError):
    """A polling assertion did not hold before its timeout elapsed."""
