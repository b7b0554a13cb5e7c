"""Message assembly: attachments, serialization, templating, re-parse."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from vela_slack.errors import IntegrityError
from vela_slack.message.escaping import normalize_escaped_quotes
from vela_slack.message.templating import TemplateRenderer
from vela_slack.models import Message

if TYPE_CHECKING:
    from vela_slack.message.attachments import AttachmentResolver
    from vela_slack.models import AttachmentSource, BuildContext

logger = logging.getLogger(__name__)


class MessageAssembler:
    """Builds the final webhook message from configuration and templates.

    The message, attachments included, is serialized to JSON and that
    text is rendered as a single template. This lets directives appear
    in any field, at the cost of having to undo the JSON escaping of
    quoted literals inside directives before rendering.
    """

    def __init__(
        self,
        resolver: AttachmentResolver,
        renderer: TemplateRenderer | None = None,
        *,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            resolver: Loads attachment documents.
            renderer: Renders the serialized message; a default one is created if omitted.
            log: Logger to report through.
        """
        self.resolver = resolver
        self._log = log or logger
        self.renderer = renderer or TemplateRenderer(log=self._log)

    def assemble(
        self,
        base: Message,
        source: AttachmentSource,
        context: BuildContext,
    ) -> Message:
        """Produce the rendered message.

        Args:
            base: Message fields from configuration. Not modified.
            source: Attachment document location, if any.
            context: Build metadata for template references.

        Returns:
            A new, fully rendered Message.

        Raises:
            ResolutionError: If the attachment document cannot be loaded.
            TemplateError: If rendering fails.
            IntegrityError: If the rendered text is not a valid message.
        """
        context = context.with_escaped_message()
        msg = base.model_copy(deep=True)

        if source.is_set:
            msg.attachments.extend(self.resolver.resolve(source, context))

        self._log.info("Marshal webhook message to bytes...")
        document = normalize_escaped_quotes(msg.to_json())

        self._log.info("Execute template conversion on webhook message...")
        rendered = self.renderer.render(document, context)

        self._log.info("Unmarshal bytes to webhook message...")
        try:
            return Message.model_validate_json(rendered)
        except ValidationError as e:
            raise IntegrityError(f"unable to unmarshal webhook message: {e}") from e
