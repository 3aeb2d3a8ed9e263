"""Audit orchestration: baseline in, ordered comparison report out."""
from __future__ import annotations

import datetime as dt
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from functools import partial
from typing import Callable, Dict, List, Sequence

import urllib3

from .baseline import load_default_baseline, parse_baseline
from .compare import compare_tags, format_timestamp
from .config import AuditSettings
from .errors import (
    AuditCancelledError,
    AuditRunError,
    BaselineSourceError,
    FetchError,
    NotificationError,
)
from .notify import SlackNotifier
from .report import format_error, format_report
from .schemas import STATUS_ERROR, AuditRecord, AuditReport, ComparisonResult, FetchedPage
from .scrape import extract_page_tags, fetch_page

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], FetchedPage]
Outcome = ComparisonResult | FetchError

# How often a cancellable run re-checks its token while tasks are in flight.
_CANCEL_POLL_INTERVAL = 0.1


class AuditEngine:
    """Runs one audit per call; holds no state between runs."""

    def __init__(
        self,
        settings: AuditSettings,
        notifier: SlackNotifier | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.settings = settings
        self.notifier = notifier or SlackNotifier(
            settings.slack_webhook_url, timeout=settings.http_timeout
        )
        self._fetch = fetcher or partial(fetch_page, settings=settings)

    def run(
        self,
        raw: bytes,
        cancel_event: threading.Event | None = None,
        timeout: float | None = None,
    ) -> AuditReport:
        """Audit every row of a baseline table and notify the outcome.

        Raises :class:`BaselineValidationError` before any fetch when headers
        are missing, :class:`AuditRunError` when any URL fails in fail-fast
        mode and :class:`AuditCancelledError` when ``cancel_event`` is set or
        ``timeout`` (default ``settings.run_timeout``) elapses.
        """

        try:
            report = self._run(raw, cancel_event, timeout)
        except Exception as exc:
            logger.error("Audit run failed: %s", exc)
            self._notify(format_error(exc))
            raise
        self._notify(format_report(report))
        return report

    def run_default(
        self,
        cancel_event: threading.Event | None = None,
        timeout: float | None = None,
    ) -> AuditReport:
        """Audit the pre-configured baseline file."""
        try:
            raw = load_default_baseline(self.settings.default_baseline_path)
        except BaselineSourceError as exc:
            logger.error("Default baseline unavailable: %s", exc)
            self._notify(format_error(exc))
            raise
        return self.run(raw, cancel_event=cancel_event, timeout=timeout)

    def audit_record(self, record: AuditRecord) -> ComparisonResult:
        """Fetch one record's page and compare it against the baseline."""
        url = record.url.strip()
        try:
            page = self._fetch(url)
        except (urllib3.exceptions.HTTPError, ValueError) as exc:
            raise FetchError(url, str(exc)) from exc
        tags = extract_page_tags(page)
        return compare_tags(record, tags, page.fetched_at, self.settings.zone)

    def _run(
        self,
        raw: bytes,
        cancel_event: threading.Event | None,
        timeout: float | None,
    ) -> AuditReport:
        start = time.perf_counter()
        records = [record for record in parse_baseline(raw) if record.url.strip()]
        if not records:
            logger.info("Baseline has no URLs to audit")
            return AuditReport()

        if timeout is None:
            timeout = self.settings.run_timeout
        deadline = time.monotonic() + timeout if timeout is not None else None

        outcomes = self._execute(records, cancel_event, deadline)
        failures = [outcome for outcome in outcomes if isinstance(outcome, FetchError)]
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, FetchError):
                logger.warning(
                    "Baseline row %d (%s) failed: %s", record.row_number, outcome.url, outcome.reason
                )
        if failures and self.settings.fail_fast:
            raise AuditRunError(failures)

        results: List[ComparisonResult] = []
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, FetchError):
                results.append(self._error_result(record, outcome))
            else:
                results.append(outcome)

        report = AuditReport(results=tuple(results))
        logger.info(
            "Audited %d URLs (%d failed) in %.2fs",
            len(results),
            report.summary.failed,
            time.perf_counter() - start,
        )
        return report

    def _execute(
        self,
        records: Sequence[AuditRecord],
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> List[Outcome]:
        """Run every record concurrently and return outcomes in input order."""

        worker_count = min(self.settings.max_workers, len(records))
        logger.info("Auditing %d URLs with %d workers", len(records), worker_count)
        outcomes: Dict[int, Outcome] = {}

        executor = ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="seo-audit")
        try:
            future_map: Dict[Future[ComparisonResult], int] = {
                executor.submit(self.audit_record, record): index
                for index, record in enumerate(records)
            }
            pending = set(future_map)
            while pending:
                wait_timeout = self._next_wait(cancel_event, deadline)
                done, pending = wait(pending, timeout=wait_timeout, return_when=FIRST_COMPLETED)
                for future in done:
                    index = future_map[future]
                    try:
                        outcomes[index] = future.result()
                    except FetchError as exc:
                        outcomes[index] = exc
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return [outcomes[index] for index in range(len(records))]

    @staticmethod
    def _next_wait(cancel_event: threading.Event | None, deadline: float | None) -> float | None:
        if cancel_event is not None and cancel_event.is_set():
            raise AuditCancelledError("Audit run was cancelled")
        wait_timeout = _CANCEL_POLL_INTERVAL if cancel_event is not None else None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise AuditCancelledError("Audit run exceeded its deadline")
            wait_timeout = remaining if wait_timeout is None else min(wait_timeout, remaining)
        return wait_timeout

    def _error_result(self, record: AuditRecord, error: FetchError) -> ComparisonResult:
        now = dt.datetime.now(dt.timezone.utc)
        return ComparisonResult(
            url=record.url.strip(),
            timestamp=format_timestamp(now, self.settings.zone),
            status=STATUS_ERROR,
            error=f"row {record.row_number}: {error.reason}",
        )

    def _notify(self, message: str) -> None:
        try:
            self.notifier.send(message)
        except NotificationError as exc:
            logger.error("Could not send notification: %s", exc)
