"""Attachment document loading.

An attachment document is a JSON webhook message, read from a local file
or fetched from the template registry, whose ``attachments`` array is
appended to the outgoing message.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from vela_slack.errors import ResolutionError
from vela_slack.models import Message
from vela_slack.registry.github import RegistryError

if TYPE_CHECKING:
    from vela_slack.models import AttachmentSource, BuildContext
    from vela_slack.registry.github import GitHubRegistry

logger = logging.getLogger(__name__)

# Integer fields that sit in numeric JSON positions (e.g. "ts": {{ .BuildCreated }})
# and so must be replaced before the document can be parsed at all.
NUMERIC_PLACEHOLDERS: dict[str, str] = {
    "BuildCreated": "build_created",
    "BuildEnqueued": "build_enqueued",
    "BuildFinished": "build_finished",
    "BuildNumber": "build_number",
    "BuildParent": "build_parent",
    "BuildStarted": "build_started",
    "RepositoryTimeout": "repository_timeout",
}


def placeholder(name: str) -> bytes:
    """Return the literal template reference for a field name."""
    return f"{{{{ .{name} }}}}".encode()


def substitute_numeric_placeholders(document: bytes, context: BuildContext) -> bytes:
    """Replace numeric field references with their decimal values.

    Only the exact ``{{ .Name }}`` spelling is replaced; every other
    directive is left for the template renderer.
    """
    for name, attr in NUMERIC_PLACEHOLDERS.items():
        value = str(getattr(context, attr)).encode()
        document = document.replace(placeholder(name), value)
    return document


def parse_attachments(document: bytes) -> list[dict[str, Any]]:
    """Parse a message document and return only its attachments.

    Raises:
        ResolutionError: If the document is not a valid message.
    """
    try:
        msg = Message.model_validate_json(document)
    except ValidationError as e:
        raise ResolutionError(f"unable to unmarshal json file: {e}") from e
    return msg.attachments


class AttachmentResolver:
    """Loads attachments from disk or from the template registry."""

    def __init__(
        self,
        registry: GitHubRegistry | None = None,
        *,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            registry: Registry used for remote sources.
            log: Logger to report through.
        """
        self.registry = registry
        self._log = log or logger

    def load(self, source: AttachmentSource) -> bytes:
        """Read the raw attachment document.

        Raises:
            ResolutionError: If the file or reference cannot be read.
        """
        if source.remote:
            return self._load_remote(source.path)
        return self._load_file(source.path)

    def resolve(
        self, source: AttachmentSource, context: BuildContext
    ) -> list[dict[str, Any]]:
        """Load a document, substitute numeric fields and parse it.

        Args:
            source: Where to load the document from.
            context: Values for the numeric placeholders.

        Returns:
            The document's attachments.

        Raises:
            ResolutionError: If loading or parsing fails.
        """
        self._log.info(f"Parsing provided template file, {source.path}")
        document = substitute_numeric_placeholders(self.load(source), context)
        self._log.debug(f"Attachment document after substitution: {document!r}")
        return parse_attachments(document)

    def _load_file(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise ResolutionError(f"unable to open json file: {e}") from e

    def _load_remote(self, reference: str) -> bytes:
        if self.registry is None:
            raise ResolutionError("no template registry configured for remote attachment")

        try:
            src = self.registry.parse(reference)
        except RegistryError as e:
            raise ResolutionError(f"invalid slack attachment source provided: {e}") from e

        self._log.debug(
            f"Pulling template org={src.org} repo={src.repo} path={src.name} host={src.host}"
        )

        try:
            return self.registry.template(src)
        except RegistryError as e:
            raise ResolutionError(str(e)) from e
