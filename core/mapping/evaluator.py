"""Mapping evaluator: raw page captures to one resolved value per variable."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from core.labels.models import ResolutionStatus, ResolvedVariable, VariableMapping

logger = logging.getLogger("labelsorcerer.mapping")

MULTI_VALUE_SEPARATOR = " | "


@dataclass(frozen=True)
class MappingEvaluation:
    """Outcome of evaluating one mapping; the caller carries the key."""

    value: str
    selector_matches: list[str] = field(default_factory=list)
    status: ResolutionStatus = "missing"


class CaptureSource(Protocol):
    """Page-side capture agent returning raw strings for a mapping's selector."""

    def capture(self, mapping: VariableMapping) -> Sequence[str | None]:
        """Return one raw string per matched node, in document order."""


class StaticCaptureSource:
    """Serve pre-materialized captures keyed by mapping key."""

    def __init__(self, captures: Mapping[str, Sequence[str | None]]) -> None:
        self._captures = captures

    def capture(self, mapping: VariableMapping) -> Sequence[str | None]:
        return list(self._captures.get(mapping.key, []))


def evaluate_mapping(
    raw_captures: Sequence[str | None], mapping: VariableMapping
) -> MappingEvaluation:
    """Resolve raw captures into a single formatted value.

    Rules:
    - Empty and ``None`` captures are dropped; the rest are ``selector_matches``.
    - Base is the first match, or all matches joined with ``" | "`` when
      ``multiple`` is set and more than one match exists.
    - A regex that does not match empties the base; an invalid regex is skipped.
    - Prefix and suffix are applied only when at least one capture existed.
    """

    selector_matches = [value for value in raw_captures if value]
    has_matches = bool(selector_matches)
    base = selector_matches[0] if has_matches else ""

    if mapping.multiple and len(selector_matches) > 1:
        base = MULTI_VALUE_SEPARATOR.join(selector_matches)

    if mapping.regex_pattern and base:
        base = _apply_regex(base, mapping)

    if mapping.trim_whitespace:
        base = base.strip()

    if not has_matches:
        return MappingEvaluation(value="", selector_matches=[], status="missing")

    value = f"{mapping.prefix or ''}{base}{mapping.suffix or ''}"
    return MappingEvaluation(value=value, selector_matches=selector_matches, status="mapped")


def evaluate_mappings(
    mappings: Sequence[VariableMapping], capture_source: CaptureSource
) -> list[ResolvedVariable]:
    """Evaluate every mapping of a data source in declaration order."""

    resolved: list[ResolvedVariable] = []
    for mapping in mappings:
        raw_captures: Sequence[str | None] = []
        if mapping.css_selector:
            raw_captures = capture_source.capture(mapping)
        result = evaluate_mapping(raw_captures, mapping)
        resolved.append(
            ResolvedVariable(
                key=mapping.key,
                value=result.value,
                selector_matches=result.selector_matches,
                status=result.status,
            )
        )
    return resolved


def resolved_value_map(resolved: Sequence[ResolvedVariable]) -> dict[str, str]:
    """Build the variable key -> value map consumed by element resolution."""

    return {item.key: item.value for item in resolved}


def _apply_regex(base: str, mapping: VariableMapping) -> str:
    try:
        pattern = re.compile(mapping.regex_pattern or "")
    except re.error as exc:
        logger.debug("skipping invalid regex for %s: %s", mapping.key, exc)
        return base

    matched = pattern.search(base)
    if matched is None:
        return ""

    index = mapping.regex_match_index if mapping.regex_match_index is not None else 0
    try:
        group = matched.group(index)
    except IndexError:
        group = None
    if group is None:
        group = matched.group(0)
    return group or ""
