"""Slack incoming-webhook transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from vela_slack.errors import TransportError

if TYPE_CHECKING:
    from vela_slack.models import Message

logger = logging.getLogger(__name__)


class SlackWebhook:
    """Posts messages to a Slack incoming webhook.

    Each call makes exactly one attempt; failures are raised to the caller.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout: float = 10.0,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the webhook transport.

        Args:
            webhook_url: Slack incoming webhook URL.
            timeout: HTTP request timeout in seconds.
            log: Logger to report through.
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.name = "slack"
        self._log = log or logger

    def send(self, message: Message) -> None:
        """Post ``message`` to the webhook.

        Raises:
            TransportError: On a network error or a non-2xx response.
        """
        payload = message.to_payload()

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"unable to post webhook message: timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"unable to post webhook message: {e}") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"unable to post webhook message: invalid url: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"unable to post webhook message: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

        self._log.info("Slack message delivered successfully")
