"""Element binding resolver: what one layout element displays."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from core.labels.models import ELEMENT_TYPES, LayoutElement

ElementResolver = Callable[[LayoutElement, Mapping[str, str]], str]


def _resolve_text_value(element: LayoutElement, resolved_map: Mapping[str, str]) -> str:
    if element.mode != "dynamic":
        return element.static_content if element.static_content is not None else element.name

    binding = element.dynamic_binding
    if binding is None:
        return ""

    base_value = resolved_map.get(binding.variable_key, "")
    if binding.override_trim_whitespace:
        base_value = base_value.strip()
    return f"{binding.override_prefix or ''}{base_value}{binding.override_suffix or ''}"


# QR codes encode the same string a text element shows; images and shapes
# carry their source/label through the same path.
_ELEMENT_RESOLVERS: dict[str, ElementResolver] = {
    element_type: _resolve_text_value for element_type in ELEMENT_TYPES
}


def register_element_resolver(element_type: str, resolver: ElementResolver) -> None:
    """Install or replace the resolver used for one element type tag."""

    _ELEMENT_RESOLVERS[element_type] = resolver


def resolve_element_display_value(element: LayoutElement, resolved_map: Mapping[str, str]) -> str:
    """Return the string an element should display for the given variable values.

    Static elements show ``static_content`` or fall back to their name.
    Dynamic elements look up their variable (empty when absent), optionally
    trim it and wrap it with the override prefix/suffix.
    """

    resolver = _ELEMENT_RESOLVERS.get(element.type, _resolve_text_value)
    return resolver(element, resolved_map)


def effective_font_size(element: LayoutElement) -> float | None:
    binding = element.dynamic_binding
    if binding is not None and binding.override_font_size is not None:
        return binding.override_font_size
    return element.font_size
