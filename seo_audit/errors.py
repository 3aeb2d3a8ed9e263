"""Exception types raised by the audit engine."""
from __future__ import annotations

from typing import Sequence


class AuditError(RuntimeError):
    """Base class for audit failures surfaced to the caller."""


class BaselineValidationError(AuditError):
    """Raised when the baseline table is malformed or lacks required headers."""

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = list(missing)


class BaselineSourceError(AuditError):
    """Raised when the default baseline file cannot be read."""


class FetchError(AuditError):
    """Raised when a page cannot be fetched or parsed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Error fetching or parsing {url}: {reason}")
        self.url = url
        self.reason = reason


class AuditRunError(AuditError):
    """Aggregate of every per-URL failure in a fail-fast run."""

    def __init__(self, failures: Sequence[FetchError]) -> None:
        self.failures = list(failures)
        details = "; ".join(str(failure) for failure in self.failures)
        super().__init__(f"{len(self.failures)} URL(s) failed: {details}")

    @property
    def urls(self) -> list[str]:
        return [failure.url for failure in self.failures]


class AuditCancelledError(AuditError):
    """Raised when a run is cancelled or exceeds its deadline."""


class NotificationError(RuntimeError):
    """Raised when a notification cannot be delivered."""
