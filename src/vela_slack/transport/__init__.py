"""Message transports."""

from vela_slack.transport.slack import SlackWebhook

__all__ = [
    "SlackWebhook",
]
