"""Repair of escaped quotes inside template directives.

The message is serialized to JSON before it is rendered as a template,
so a quoted string literal written inside a directive, such as

    {{ trimAll("@company.com", .BuildAuthorEmail) }}

reaches the template engine as ``trimAll(\\"@company.com\\", ...)``, which
it cannot parse. This module strips the JSON escaping back off those
literals while leaving escaped quotes in ordinary message content alone.
"""

from __future__ import annotations

import re

ESCAPED_QUOTE = b'\\"'
PLAIN_QUOTE = b'"'

# Minimum escaped quotes in a span before it is treated as holding a string literal
MIN_ESCAPED_QUOTES = 2

# Expression and statement spans; never cross a line or a closing delimiter
DIRECTIVE_SPAN = re.compile(rb"\{\{.*?\}\}|\{%.*?%\}")


def _collapse(match: re.Match[bytes]) -> bytes:
    span = match.group(0)
    if count_escaped_quotes(span) < MIN_ESCAPED_QUOTES:
        return span
    return span.replace(ESCAPED_QUOTE, PLAIN_QUOTE)


def normalize_escaped_quotes(document: bytes) -> bytes:
    """Unescape quotes inside directive spans that hold a quoted literal.

    A span is only rewritten when it contains at least two escaped quotes:
    a matched pair is taken to open and close a string argument, while a
    lone escaped quote is indistinguishable from real message content.
    Text outside directive spans is returned unchanged.

    Args:
        document: JSON-serialized message.

    Returns:
        The document with qualifying spans repaired.
    """
    return DIRECTIVE_SPAN.sub(_collapse, document)


def count_escaped_quotes(span: bytes) -> int:
    """Count escaped quotes in a single directive span."""
    return span.count(ESCAPED_QUOTE)
