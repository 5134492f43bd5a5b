"""Placeholder parser for outbound URL and body templates."""

from __future__ import annotations

import re
from collections.abc import Callable

from core.templates.models import Placeholder

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")


def parse_placeholders(template: str) -> list[Placeholder]:
    """Parse ``{{ token }}`` placeholders in template order.

    Rules:
    - Whitespace around the token is ignored.
    - Tokens cannot contain braces; an empty token still counts as a placeholder.
    """

    return [
        Placeholder(
            token=match.group(1),
            start=match.start(),
            end=match.end(),
            text=match.group(0),
        )
        for match in _PLACEHOLDER_RE.finditer(template)
    ]


def has_placeholders(template: str) -> bool:
    return _PLACEHOLDER_RE.search(template) is not None


def substitute_placeholders(template: str, replacement_for: Callable[[Placeholder], str]) -> str:
    """Replace each placeholder with ``replacement_for(placeholder)``."""

    pieces: list[str] = []
    cursor = 0
    for placeholder in parse_placeholders(template):
        pieces.append(template[cursor : placeholder.start])
        pieces.append(replacement_for(placeholder))
        cursor = placeholder.end
    pieces.append(template[cursor:])
    return "".join(pieces)
