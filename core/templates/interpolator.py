"""Outbound template interpolation for post-print notifications."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import quote

from core.labels.models import WebhookConfig
from core.render.models import LabelPayload
from core.render.payload_builder import payload_to_dict, payload_to_json
from core.templates.models import NotificationRequest, Placeholder
from core.templates.placeholder_parser import has_placeholders, substitute_placeholders

JSON_CONTENT_TYPE = "application/json"


def interpolate(
    template: str,
    payload: LabelPayload | Mapping[str, Any],
    payload_json: str,
    *,
    encode: Callable[[str], str] | None = None,
) -> str:
    """Substitute ``{{ token }}`` placeholders from the payload.

    ``{{payload}}`` yields ``payload_json``. Other tokens are dot paths into
    the payload's JSON form; ``payload.`` in front of a path is optional.
    Unresolvable paths become empty strings. ``encode`` is applied to every
    substituted value.
    """

    document = payload_to_dict(payload) if isinstance(payload, LabelPayload) else payload

    def _replacement(placeholder: Placeholder) -> str:
        if placeholder.is_whole_payload:
            value = payload_json
        else:
            value = _render_value(_resolve_path(document, placeholder.path))
        return encode(value) if encode is not None else value

    return substitute_placeholders(template, _replacement)


def build_target_url(config: WebhookConfig, payload: LabelPayload, payload_json: str) -> str:
    """GET URLs carry substituted values percent-encoded; POST URLs are interpolated as-is."""

    url = config.url.strip()
    if config.method == "GET":
        return interpolate(url, payload, payload_json, encode=_percent_encode)
    return interpolate(url, payload, payload_json)


def build_request_body(
    config: WebhookConfig, payload: LabelPayload, payload_json: str
) -> str | None:
    """POST body: the interpolated template, else the JSON payload.

    A blank template or one without placeholders sends the JSON payload unchanged.
    """

    if config.method == "GET":
        return None
    if config.body is None or not has_placeholders(config.body):
        return payload_json
    return interpolate(config.body, payload, payload_json)


def build_notification_request(
    config: WebhookConfig | None, payload: LabelPayload
) -> NotificationRequest | None:
    """Build the outbound request, or ``None`` when no notification is configured."""

    if config is None or not config.is_enabled:
        return None

    payload_json = payload_to_json(payload)
    body = build_request_body(config, payload, payload_json)
    headers = {"Content-Type": JSON_CONTENT_TYPE} if body is not None else {}
    return NotificationRequest(
        method=config.method,
        url=build_target_url(config, payload, payload_json),
        body=body,
        headers=headers,
    )


def _resolve_path(document: object, path: Sequence[str]) -> object:
    current = document
    for segment in path:
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def _render_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _percent_encode(value: str) -> str:
    return quote(value, safe="")
