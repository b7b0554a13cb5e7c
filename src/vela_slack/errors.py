"""Error types raised by the plugin.

Every failure that ends a run derives from PluginError. Identity lookups
never raise; they degrade to empty values instead.
"""

from __future__ import annotations


class PluginError(Exception):
    """Base exception for all terminal plugin failures."""


class ConfigurationError(PluginError):
    """Raised when the plugin configuration cannot produce a message."""


class ResolutionError(PluginError):
    """Raised when an attachment document cannot be loaded or parsed."""


class TemplateError(PluginError):
    """Raised when the message template fails to parse or render."""


class IntegrityError(PluginError):
    """Raised when the rendered payload is no longer a valid message."""


class TransportError(PluginError):
    """Raised when the webhook delivery attempt fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
