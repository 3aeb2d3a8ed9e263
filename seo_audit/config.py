"""Runtime configuration for audit runs."""
from __future__ import annotations

import logging
import os
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_MAX_WORKERS = 10
DEFAULT_TIMEZONE = "Asia/Bangkok"
DEFAULT_USER_AGENT = "SeoBaselineAuditor/1.0"
DEFAULT_BASELINE_PATH = "data/baseline.csv"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class AuditSettings(BaseModel):
    """Settings shared read-only by every fetch task in a run."""

    model_config = {"frozen": True}

    slack_webhook_url: str | None = None
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    timezone: str = DEFAULT_TIMEZONE
    user_agent: str = DEFAULT_USER_AGENT
    default_baseline_path: str = DEFAULT_BASELINE_PATH
    fail_fast: bool = True
    run_timeout: float | None = Field(default=None, gt=0)

    @field_validator("slack_webhook_url", "run_timeout", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("timezone")
    @classmethod
    def timezone_exists(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.slack_webhook_url)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AuditSettings":
        env = os.environ if environ is None else environ
        return cls(
            slack_webhook_url=env.get("SLACK_WEBHOOK_URL"),
            http_timeout=_env_float(env, "AUDIT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            max_redirects=_env_int(env, "AUDIT_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS),
            max_workers=max(1, _env_int(env, "AUDIT_MAX_WORKERS", DEFAULT_MAX_WORKERS)),
            timezone=env.get("AUDIT_TIMEZONE") or DEFAULT_TIMEZONE,
            user_agent=env.get("AUDIT_USER_AGENT") or DEFAULT_USER_AGENT,
            default_baseline_path=env.get("AUDIT_DEFAULT_BASELINE") or DEFAULT_BASELINE_PATH,
            fail_fast=_env_bool(env, "AUDIT_FAIL_FAST", True),
            run_timeout=_env_float(env, "AUDIT_RUN_TIMEOUT", None),
        )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s value %s; falling back to %s", name, raw, default)
        return default
    return value


def _env_float(env: Mapping[str, str], name: str, default: float | None) -> float | None:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s value %s; falling back to %s", name, raw, default)
        return default
    return value


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid %s value %s; falling back to %s", name, raw, default)
    return default
