from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import httpx

from homepage.errors import NotificationFailure


logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class Notifier(Protocol):
    def send(self, text: str) -> None:
        """Deliver `text` or raise NotificationFailure."""


class SlackNotifier:
    """Posts plain-text messages to a channel via the Slack Web API."""

    def __init__(
        self,
        *,
        bot_token: str,
        channel: str,
        client: httpx.Client | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._bot_token = bot_token
        self._channel = channel
        self._client = client
        self._timeout = timeout

    def send(self, text: str) -> None:
        payload = {"channel": self._channel, "text": text}
        headers = {"Authorization": f"Bearer {self._bot_token}"}
        try:
            if self._client is not None:
                resp = self._client.post(SLACK_POST_MESSAGE_URL, json=payload, headers=headers)
            else:
                resp = httpx.post(SLACK_POST_MESSAGE_URL, json=payload, headers=headers, timeout=self._timeout)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationFailure(f"Slack request failed: {e}") from e

        if not isinstance(body, dict):
            raise NotificationFailure("Slack returned an unexpected response body")

        # Slack reports most failures as 200 + {"ok": false}.
        if not body.get("ok", False):
            raise NotificationFailure(f"Slack rejected message: {body.get('error', 'unknown_error')}")


class LogNotifier:
    """Fallback when no Slack bot token is configured."""

    def send(self, text: str) -> None:
        logger.info("notification (not delivered, no Slack token): %s", text)


def post_webhook_blocks(
    *,
    webhook_url: str,
    blocks: Sequence[Mapping[str, Any]],
    client: httpx.Client | None = None,
    timeout: float = 5.0,
) -> None:
    """Send a Block Kit message through an incoming webhook."""

    payload = {"blocks": list(blocks)}
    try:
        if client is not None:
            resp = client.post(webhook_url, json=payload)
        else:
            resp = httpx.post(webhook_url, json=payload, timeout=timeout)
    except httpx.HTTPError as e:
        raise NotificationFailure(f"Slack webhook request failed: {e}") from e

    if resp.is_error:
        raise NotificationFailure(f"Slack API responded with {resp.status_code}")
