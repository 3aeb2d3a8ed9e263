"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict
from functools import lru_cache

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile, status

from .config import AuditSettings
from .engine import AuditEngine
from .errors import (
    AuditCancelledError,
    AuditError,
    AuditRunError,
    BaselineSourceError,
    BaselineValidationError,
)
from .logging_setup import configure_logging
from .schemas import AuditReport

LOG_FILE_PATH = configure_logging(os.getenv("LOG_LEVEL"))
logger = logging.getLogger(__name__)
logger.info("Logging configured. File output: %s", LOG_FILE_PATH)

app = FastAPI(title="SEO Baseline Auditor")

_ERROR_STATUS = {
    BaselineValidationError: status.HTTP_400_BAD_REQUEST,
    BaselineSourceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AuditRunError: status.HTTP_502_BAD_GATEWAY,
    AuditCancelledError: status.HTTP_504_GATEWAY_TIMEOUT,
}


@lru_cache(maxsize=1)
def get_engine() -> AuditEngine:
    settings = AuditSettings.from_env()
    logger.info(
        "Audit engine configured (workers=%d, timeout=%.1fs, fail_fast=%s, notifications=%s)",
        settings.max_workers,
        settings.http_timeout,
        settings.fail_fast,
        settings.notifications_enabled,
    )
    return AuditEngine(settings)


def _serialise(report: AuditReport) -> list[dict]:
    return [asdict(result) for result in report.results]


def _http_error(exc: AuditError) -> HTTPException:
    code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=code, detail=str(exc))


@app.post("/scraper/upload")
def upload_baseline(
    file: UploadFile = File(...),
    engine: AuditEngine = Depends(get_engine),
) -> list[dict]:
    start = time.perf_counter()
    raw = file.file.read()
    logger.info("Received baseline upload %s (%d bytes)", file.filename, len(raw))
    try:
        report = engine.run(raw)
    except AuditError as exc:
        raise _http_error(exc) from exc
    logger.info("Upload audit finished in %.2fs", time.perf_counter() - start)
    return _serialise(report)


@app.get("/scraper/scan")
def scan_default_baseline(engine: AuditEngine = Depends(get_engine)) -> list[dict]:
    start = time.perf_counter()
    logger.info("Starting scan of default baseline %s", engine.settings.default_baseline_path)
    try:
        report = engine.run_default()
    except AuditError as exc:
        raise _http_error(exc) from exc
    logger.info("Default scan finished in %.2fs", time.perf_counter() - start)
    return _serialise(report)
