"""Glob-style URL patterns used to pick a data source for a page."""

from __future__ import annotations

import re
from collections.abc import Iterable

from core.labels.models import DataSource


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a ``*`` glob into an anchored regex; other characters are literal."""

    fragments = [re.escape(segment) for segment in pattern.split("*")]
    return re.compile(f"^{'.*'.join(fragments)}$")


def matches_url_pattern(url: str, pattern: str) -> bool:
    # fullmatch: "$" alone would accept a trailing newline
    return pattern_to_regex(pattern).fullmatch(url) is not None


def find_matching_data_source(
    url: str | None, data_sources: Iterable[DataSource]
) -> DataSource | None:
    """Return the first data source whose URL pattern matches ``url``."""

    if not url:
        return None
    for data_source in data_sources:
        if matches_url_pattern(url, data_source.url_pattern):
            return data_source
    return None
