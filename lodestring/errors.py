"""Error definitions and policy helpers for lodestring."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises unit-scoped errors to apply policy thresholds."""

    ARGUMENT = auto()
    FILE_IO = auto()
    FORMAT = auto()
    MALFORMED_ROW = auto()
    PLACEHOLDER_MISMATCH = auto()
    GRAMMAR = auto()
    OTHER = auto()


class LodestringError(Exception):
    """Base exception for all custom errors."""


class AbortRequested(LodestringError):
    """Raised when fail-fast mode stops processing at the first error."""


class ErrorThresholdExceeded(LodestringError):
    """Raised when too many errors were handled in one run."""


class MarkupSyntaxError(LodestringError):
    """Raised when a markup string cannot be tokenized."""


class UnsupportedFileTypeError(LodestringError):
    """Raised when a given file extension is not supported."""


class OverwriteRefusedError(LodestringError):
    """Raised when attempting to overwrite an output without consent."""


class ConfigurationError(LodestringError):
    """Raised when the configuration sources are unreadable or invalid."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None


class ErrorTracker:
    """Tracks consecutive and aggregate errors to satisfy policy rules.

    Without a ``total_limit`` every error is counted but none stops the run.
    """

    CONSECUTIVE_LIMIT = 25

    def __init__(self, total_limit: Optional[int] = None) -> None:
        self.last_category: Optional[ErrorCategory] = None
        self.consecutive: int = 0
        self.total: int = 0
        self.total_limit = total_limit

    @property
    def limited(self) -> bool:
        return self.total_limit is not None

    def register(self, category: ErrorCategory) -> tuple[int, int, bool]:
        """Register a new error and return counters."""

        if self.last_category == category:
            self.consecutive += 1
        else:
            self.last_category = category
            self.consecutive = 1

        self.total += 1

        threshold_reached = self.limited and (
            self.consecutive >= self.CONSECUTIVE_LIMIT
            or self.total >= self.total_limit
        )

        return self.consecutive, self.total, threshold_reached

    def reset_consecutive(self) -> None:
        """Reset the consecutive counter after successful work."""

        self.consecutive = 0
        self.last_category = None
