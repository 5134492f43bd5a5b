from __future__ import annotations

from core.labels.models import DataSource
from core.mapping.url_pattern import (
    find_matching_data_source,
    matches_url_pattern,
    pattern_to_regex,
)

_ASSETS = "https://example.com/assets/*"


def test_wildcard_matches_any_suffix() -> None:
    assert matches_url_pattern("https://example.com/assets/123", _ASSETS) is True
    assert matches_url_pattern("https://example.com/assets/", _ASSETS) is True


def test_wildcard_pattern_rejects_other_paths() -> None:
    assert matches_url_pattern("https://example.com/other", _ASSETS) is False


def test_pattern_is_anchored_at_both_ends() -> None:
    assert matches_url_pattern("prefix https://example.com/assets/1", _ASSETS) is False
    assert matches_url_pattern("https://example.com/a", "https://example.com/a") is True
    assert matches_url_pattern("https://example.com/ab", "https://example.com/a") is False
    assert matches_url_pattern("https://example.com/a\n", "https://example.com/a") is False


def test_regex_metacharacters_are_literal() -> None:
    pattern = "https://example.com/item?id=(1)"

    assert matches_url_pattern("https://example.com/item?id=(1)", pattern) is True
    assert matches_url_pattern("https://example.com/itemXid=(1)", pattern) is False


def test_multiple_wildcards() -> None:
    pattern = "https://*.example.com/*/detail"

    assert matches_url_pattern("https://jira.example.com/asset/42/detail", pattern) is True
    assert matches_url_pattern("https://jira.example.com/asset/42", pattern) is False


def test_pattern_to_regex_builds_anchored_expression() -> None:
    assert pattern_to_regex("a*b").pattern == "^a.*b$"


def test_find_matching_data_source_returns_first_match() -> None:
    sources = [
        DataSource(id=1, name="List", url_pattern="https://jira.example.com/assets/*"),
        DataSource(id=2, name="Detail", url_pattern="https://jira.example.com/asset/*"),
        DataSource(id=3, name="Any", url_pattern="https://jira.example.com/*"),
    ]

    match = find_matching_data_source("https://jira.example.com/asset/7", sources)

    assert match is not None
    assert match.id == 2


def test_find_matching_data_source_handles_empty_url_and_no_match() -> None:
    sources = [DataSource(id=1, name="List", url_pattern="https://jira.example.com/assets/*")]

    assert find_matching_data_source("", sources) is None
    assert find_matching_data_source(None, sources) is None
    assert find_matching_data_source("https://elsewhere.example.org/", sources) is None
