"""Vela Slack plugin - templated build notifications for Slack webhooks."""

__version__ = "0.1.0"
