"""Plain-text rendering of audit reports for chat notifications."""
from __future__ import annotations

from typing import Sequence

from .schemas import AuditReport, ComparisonResult

REPORT_HEADER = "*SEO check results*"
MATCH = "✅ Match"
MISMATCH = "❌ Mismatch"


def _join(values: Sequence[str]) -> str:
    return ", ".join(values) or "none"


def _robots_status(result: ComparisonResult) -> str:
    if result.robots.matched:
        return MATCH
    return f"{MISMATCH} (Missing: {_join(result.robots.missing)}, Extra: {_join(result.robots.extra)})"


def _canonical_status(result: ComparisonResult) -> str:
    if result.canonical.matched:
        return MATCH
    return f"{MISMATCH} (Found: {_join(result.canonical.missing)})"


def _h1_status(result: ComparisonResult) -> str:
    if result.h1.matched:
        return MATCH
    return f"{MISMATCH} (Missing: {_join(result.h1.missing)})"


def format_result(result: ComparisonResult) -> str:
    lines = [f"*URL*: {result.url}"]
    if not result.ok:
        lines.append(f"- *Status*: ❌ Fetch failed ({result.error})")
        return "\n".join(lines)
    lines.extend(
        [
            f"- *Robots*: {_robots_status(result)}",
            f"- *Canonical*: {_canonical_status(result)}",
            f"- *H1*: {_h1_status(result)}",
            f"- *Time*: {result.timestamp}",
        ]
    )
    return "\n".join(lines)


def format_report(report: AuditReport) -> str:
    """Render every result in report order followed by a totals line."""
    blocks = [REPORT_HEADER]
    blocks.extend(format_result(result) for result in report.results)
    summary = report.summary
    blocks.append(
        f"Checked {summary.total} URL(s): {summary.succeeded} fetched, {summary.failed} failed"
    )
    return "\n\n".join(blocks) + "\n"


def format_error(exc: BaseException) -> str:
    return f"Failed to process CSV file: {exc}"
