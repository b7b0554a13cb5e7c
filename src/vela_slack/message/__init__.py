"""Message composition - attachment loading, templating and assembly."""

from vela_slack.message.assembler import MessageAssembler
from vela_slack.message.attachments import (
    AttachmentResolver,
    parse_attachments,
    substitute_numeric_placeholders,
)
from vela_slack.message.escaping import normalize_escaped_quotes
from vela_slack.message.templating import TemplateRenderer, create_environment

__all__ = [
    "AttachmentResolver",
    "MessageAssembler",
    "TemplateRenderer",
    "create_environment",
    "normalize_escaped_quotes",
    "parse_attachments",
    "substitute_numeric_placeholders",
]
