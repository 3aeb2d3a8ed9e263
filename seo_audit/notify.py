"""Slack webhook delivery for audit reports."""
from __future__ import annotations

import logging

import requests

from .errors import NotificationError

logger = logging.getLogger(__name__)

DEFAULT_NOTIFY_TIMEOUT = 10.0


class SlackNotifier:
    """Posts plain-text messages to a Slack incoming webhook."""

    def __init__(self, webhook_url: str | None, timeout: float = DEFAULT_NOTIFY_TIMEOUT) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def send(self, message: str) -> bool:
        """Deliver ``message``; returns ``False`` when no webhook is configured."""
        if not self.webhook_url:
            logger.warning("SLACK_WEBHOOK_URL is not configured; skipping notification")
            return False
        try:
            response = requests.post(
                self.webhook_url,
                json={"text": message},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Unable to send Slack notification: {exc}") from exc
        logger.info("Sent Slack notification (%d chars)", len(message))
        return True
