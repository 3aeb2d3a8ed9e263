"""Baseline CSV ingestion and header validation."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Sequence

from .errors import BaselineSourceError, BaselineValidationError
from .schemas import AuditRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("URL", "Title", "Canonical", "robots", "h1")


def find_missing_headers(headers: Sequence[str]) -> list[str]:
    """Return required columns absent from ``headers``, compared case-insensitively."""

    present = {header.strip().lower() for header in headers}
    return [column for column in REQUIRED_COLUMNS if column.lower() not in present]


def _column_index(headers: Sequence[str]) -> Dict[str, int]:
    """Map each required column to the position of its first matching header."""

    positions: Dict[str, int] = {}
    for index, header in enumerate(headers):
        positions.setdefault(header.strip().lower(), index)
    return {column: positions[column.lower()] for column in REQUIRED_COLUMNS}


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise BaselineValidationError(f"Baseline file is not valid UTF-8: {exc}") from exc


def parse_baseline(raw: bytes) -> List[AuditRecord]:
    """Parse a baseline CSV table into audit records.

    The first non-blank row is the header. Required columns may appear in any
    order and any letter case; extra columns are ignored. Cell values are kept
    exactly as written so that trimming happens only when values are compared.
    """

    reader = csv.reader(io.StringIO(_decode(raw), newline=""))
    rows = (row for row in reader if any(cell.strip() for cell in row))

    headers = next(rows, [])
    missing = find_missing_headers(headers)
    if missing:
        raise BaselineValidationError(
            f"CSV file is missing required columns: {', '.join(missing)}",
            missing=missing,
        )

    columns = _column_index(headers)
    records: List[AuditRecord] = []
    for row_number, row in enumerate(rows, start=1):
        values = {
            column: row[index] if index < len(row) else ""
            for column, index in columns.items()
        }
        records.append(
            AuditRecord(
                url=values["URL"],
                expected_title=values["Title"],
                expected_canonical=values["Canonical"],
                expected_robots=values["robots"],
                expected_h1=values["h1"] or None,
                row_number=row_number,
            )
        )

    logger.info("Parsed %d baseline rows", len(records))
    return records


def load_default_baseline(path: str | Path) -> bytes:
    """Read the pre-configured baseline file used by scheduled scans."""

    baseline_path = Path(path)
    try:
        data = baseline_path.read_bytes()
    except OSError as exc:
        raise BaselineSourceError(f"Cannot read default baseline {baseline_path}: {exc}") from exc
    logger.info("Loaded default baseline from %s (%d bytes)", baseline_path, len(data))
    return data
