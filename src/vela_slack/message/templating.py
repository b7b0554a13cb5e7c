"""Template rendering of serialized webhook messages.

The whole JSON-encoded message is rendered as one Jinja2 template, so
directives may appear in any field, attachments included. Field
references are written Go-style (``{{ .BuildNumber }}``) and are
rewritten to attribute lookups on the BuildContext before parsing.
"""

from __future__ import annotations

import logging
import re

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from vela_slack.errors import TemplateError
from vela_slack.message.functions import FILTERS, FUNCTIONS
from vela_slack.models import BuildContext

logger = logging.getLogger(__name__)

# Name the BuildContext is bound to inside the template
CONTEXT_NAME = "build"

DIRECTIVE_SPAN = re.compile(r"\{\{.*?\}\}|\{%.*?%\}", re.DOTALL)
STRING_LITERAL = re.compile(r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')""", re.DOTALL)
# A leading dot not preceded by anything that could own it as an attribute
FIELD_REFERENCE = re.compile(r"(?<![\w)\]}.])\.(?=[A-Za-z_])")


def _rewrite_span(match: re.Match[str]) -> str:
    # Odd indices are string literals and must not be touched
    parts = STRING_LITERAL.split(match.group(0))
    for i in range(0, len(parts), 2):
        # A dot directly after a literal is a method call on that literal
        owned = 1 if i and parts[i].startswith(".") else 0
        rest = FIELD_REFERENCE.sub(f"{CONTEXT_NAME}.", parts[i][owned:])
        parts[i] = parts[i][:owned] + rest
    return "".join(parts)


def rewrite_field_references(source: str) -> str:
    """Rewrite ``.Field`` references inside directives to context lookups.

    Example:
        ``{{ .BuildAuthor | upper }}`` becomes ``{{ build.BuildAuthor | upper }}``.
    """
    return DIRECTIVE_SPAN.sub(_rewrite_span, source)


def create_environment() -> SandboxedEnvironment:
    """Create the template environment with the helper function library.

    Comments use the Go template form ``{{/* ... */}}`` so that ``{#``
    in message text is not mistaken for a comment.
    """
    env = SandboxedEnvironment(
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        comment_start_string="{{/*",
        comment_end_string="*/}}",
    )
    env.globals.update(FUNCTIONS)
    env.filters.update(FILTERS)
    return env


class TemplateRenderer:
    """Renders a serialized message against a BuildContext."""

    def __init__(
        self,
        *,
        environment: jinja2.Environment | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            environment: Template environment; defaults to create_environment().
            log: Logger to report through.
        """
        self._env = environment or create_environment()
        self._log = log or logger

    def render(self, document: bytes, context: BuildContext) -> bytes:
        """Render ``document`` as a template.

        Args:
            document: UTF-8 template text, normally a JSON-encoded message.
            context: Values for field references.

        Returns:
            The rendered bytes.

        Raises:
            TemplateError: If the template cannot be parsed, references an
                unknown field or function, or a function fails.
        """
        try:
            source = rewrite_field_references(document.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise TemplateError(f"unable to decode webhook message template: {e}") from e

        try:
            template = self._env.from_string(source)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(f"unable to parse webhook message template: {e}") from e

        self._log.debug("Executing template conversion on webhook message")

        try:
            rendered = template.render({CONTEXT_NAME: context})
        except jinja2.TemplateError as e:
            raise TemplateError(
                f"unable to execute template on webhook message: {e}"
            ) from e
        except (TypeError, ValueError, LookupError, ArithmeticError) as e:
            raise TemplateError(
                f"unable to execute template on webhook message: {e}"
            ) from e

        return rendered.encode("utf-8")
