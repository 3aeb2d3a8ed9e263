"""Shared data structures used across modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

STATUS_OK = "ok"
STATUS_ERROR = "error"


@dataclass(frozen=True, slots=True)
class AuditRecord:
    url: str
    expected_title: str = ""
    expected_canonical: str = ""
    expected_robots: str = ""
    expected_h1: str | None = None
    row_number: int = 0


@dataclass(frozen=True, slots=True)
class FetchedPage:
    url: str
    html: str
    fetched_at: datetime
    final_url: str = ""
    status_code: int = 200


@dataclass(frozen=True, slots=True)
class ExtractedTags:
    """Observed tag values; ``None`` means the tag is not on the page."""

    robots: str | None
    canonical: str | None
    title: str | None
    h1s: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RobotsDiff:
    missing: Tuple[str, ...] = ()
    extra: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return not self.missing and not self.extra


@dataclass(frozen=True, slots=True)
class TagDiff:
    missing: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return not self.missing


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    url: str
    robots: RobotsDiff = field(default_factory=RobotsDiff)
    canonical: TagDiff = field(default_factory=TagDiff)
    h1: TagDiff = field(default_factory=TagDiff)
    timestamp: str = ""
    status: str = STATUS_OK
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


@dataclass(frozen=True, slots=True)
class ReportSummary:
    total: int
    succeeded: int
    failed: int


@dataclass(frozen=True, slots=True)
class AuditReport:
    results: Tuple[ComparisonResult, ...] = ()

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def summary(self) -> ReportSummary:
        failed = sum(1 for result in self.results if not result.ok)
        return ReportSummary(
            total=len(self.results),
            succeeded=len(self.results) - failed,
            failed=failed,
        )
