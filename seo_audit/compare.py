"""Comparison of expected baseline values against observed page tags."""
from __future__ import annotations

import datetime as dt
import re
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from .schemas import AuditRecord, ComparisonResult, ExtractedTags, RobotsDiff, TagDiff

# Absent tags are compared as this literal string.
MISSING_TAG_SENTINEL = "undefined"

_WHITESPACE = re.compile(r"\s+")
_COMMA_SPACE = re.compile(r",\s*")
_SEPARATORS = re.compile(r"[\s,]+")


def _observed(value: str | None) -> str:
    return MISSING_TAG_SENTINEL if value is None else value


def tokenize_robots(value: str) -> list[str]:
    """Split a robots directive into unique lower-case tokens, keeping first-seen order."""

    text = value.lower().strip()
    text = _WHITESPACE.sub(" ", text)
    text = _COMMA_SPACE.sub(",", text)
    tokens = (token for token in _SEPARATORS.split(text) if token)
    return list(dict.fromkeys(tokens))


def _difference(left: Iterable[str], right: Sequence[str]) -> tuple[str, ...]:
    exclude = set(right)
    return tuple(token for token in left if token not in exclude)


def compare_robots(expected: str, observed: str | None) -> RobotsDiff:
    """Diff two robots directives as token sets.

    Directive order, spacing and duplicates are ignored. ``missing`` lists
    expected tokens not on the page; ``extra`` lists page tokens the baseline
    does not expect.
    """

    expected_tokens = tokenize_robots(expected)
    observed_tokens = tokenize_robots(_observed(observed))
    return RobotsDiff(
        missing=_difference(expected_tokens, observed_tokens),
        extra=_difference(observed_tokens, expected_tokens),
    )


def compare_canonical(expected: str, observed: str | None) -> TagDiff:
    """On mismatch, report the canonical actually found on the page."""
    found = _observed(observed)
    if expected.strip() == found.strip():
        return TagDiff()
    return TagDiff(missing=(found,))


def compare_h1(expected: str | None, h1s: Sequence[str]) -> TagDiff:
    """Flag ``expected`` when it appears inside any page H1 (case-insensitive).

    The flag is raised on a *match*, not on absence. That polarity is kept
    until product confirms whether a found heading should count as missing.
    """

    if not expected:
        return TagDiff()
    needle = expected.lower()
    if any(needle in text.lower() for text in h1s):
        return TagDiff(missing=(expected,))
    return TagDiff()


def format_timestamp(moment: dt.datetime, zone: ZoneInfo) -> str:
    """Render ``moment`` like ``10/19/2026, 3:04:05 PM`` in ``zone``."""
    local = moment.astimezone(zone)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def compare_tags(
    record: AuditRecord,
    tags: ExtractedTags,
    fetched_at: dt.datetime,
    zone: ZoneInfo,
) -> ComparisonResult:
    return ComparisonResult(
        url=record.url.strip(),
        robots=compare_robots(record.expected_robots, tags.robots),
        canonical=compare_canonical(record.expected_canonical, tags.canonical),
        h1=compare_h1(record.expected_h1, tags.h1s),
        timestamp=format_timestamp(fetched_at, zone),
    )
