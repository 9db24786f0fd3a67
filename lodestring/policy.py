"""Error handling policy implementation."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import (
    AbortRequested,
    ErrorCategory,
    ErrorRecord,
    ErrorThresholdExceeded,
    ErrorTracker,
)

logger = logging.getLogger(__name__)


class ErrorPolicy:
    """Records unit-scoped errors and decides whether a run may continue.

    Every handled error is logged and kept as an :class:`ErrorRecord`. The
    caller skips the offending unit and moves on, unless the policy runs in
    fail-fast mode or, when ``max_errors`` is set, the error counters cross
    the tracker thresholds.
    """

    def __init__(self, *, fail_fast: bool = False, max_errors: Optional[int] = None) -> None:
        self.fail_fast = fail_fast
        self.records: List[ErrorRecord] = []
        self.tracker = ErrorTracker(total_limit=max_errors)

    def record_success(self) -> None:
        """Reset consecutive counters after successful work."""

        self.tracker.reset_consecutive()

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> None:
        """Record an error, then raise if the policy says to stop."""

        self.records.append(ErrorRecord(category=category, message=message, details=details))
        consecutive, total, threshold = self.tracker.register(category)

        if details:
            logger.warning("%s (%s)", message, details)
        else:
            logger.warning("%s", message)

        if self.fail_fast:
            raise AbortRequested(f"Stopping at the first error: {message}")

        if not threshold:
            return

        if consecutive >= self.tracker.CONSECUTIVE_LIMIT:
            raise ErrorThresholdExceeded(
                f"Repeated {category.name.lower()} errors detected "
                f"({consecutive} in a row). Stopping safely."
            )
        raise ErrorThresholdExceeded(
            f"{total} errors encountered (limit {self.tracker.total_limit}). Stopping safely."
        )

    def messages(self, category: Optional[ErrorCategory] = None) -> List[str]:
        return [
            record.message
            for record in self.records
            if category is None or record.category == category
        ]
