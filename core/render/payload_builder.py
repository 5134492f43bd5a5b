"""Label payload builder."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from core.labels.models import LabelFormat, LabelLayout
from core.render.element_resolver import effective_font_size, resolve_element_display_value
from core.render.models import LabelPayload, LayoutSummary, PayloadElement


def build_label_payload(
    layout: LabelLayout,
    label_format: LabelFormat | None,
    resolved_map: Mapping[str, str],
    data_source_id: int | None,
    data_source_name: str,
    *,
    printed_at: datetime | None = None,
) -> LabelPayload:
    """Build the payload snapshot for one print action.

    Elements keep the layout's authored order. Apart from ``printedAt`` the
    result depends only on the arguments, which are never mutated.
    """

    elements = tuple(
        PayloadElement(
            id=element.id,
            name=element.name,
            type=element.type,
            mode=element.mode,
            position_x=element.position_x,
            position_y=element.position_y,
            width=element.width,
            height=element.height,
            rotation=element.rotation,
            font_size=effective_font_size(element),
            value=resolve_element_display_value(element, resolved_map),
        )
        for element in layout.elements
    )

    return LabelPayload(
        data_source_id=data_source_id,
        data_source_name=data_source_name,
        layout=LayoutSummary(
            id=layout.id, name=layout.name, label_format_id=layout.label_format_id
        ),
        format=label_format.model_copy(deep=True) if label_format is not None else None,
        elements=elements,
        resolved_variables=dict(resolved_map),
        printed_at=format_timestamp(printed_at or datetime.now(timezone.utc)),
    )


def format_timestamp(moment: datetime) -> str:
    """Render an instant as ISO-8601 UTC with milliseconds, e.g. ``2026-01-02T03:04:05.678Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def payload_to_dict(payload: LabelPayload) -> dict[str, Any]:
    return payload.model_dump(mode="json", by_alias=True)


def payload_to_json(payload: LabelPayload) -> str:
    return json.dumps(payload_to_dict(payload), ensure_ascii=False, separators=(",", ":"))
