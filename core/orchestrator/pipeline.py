"""Orchestration pipeline: captures -> resolved variables -> payload -> notification."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from core.labels.models import (
    Catalog,
    DataSource,
    LabelFormat,
    LabelLayout,
    ResolvedVariable,
    WebhookConfig,
)
from core.mapping.evaluator import CaptureSource, evaluate_mappings, resolved_value_map
from core.mapping.url_pattern import find_matching_data_source
from core.notify.webhook import send_print_webhook
from core.render.models import LabelPayload
from core.render.payload_builder import build_label_payload
from core.utils.errors import CatalogLookupError

WebhookSender = Callable[[WebhookConfig | None, LabelPayload], int | None]


@dataclass(frozen=True)
class PrintContext:
    """Records selected for one print action."""

    data_source: DataSource
    layout: LabelLayout
    label_format: LabelFormat | None


@dataclass(frozen=True)
class PrintResult:
    resolved: list[ResolvedVariable]
    payload: LabelPayload
    notification_status: int | None = None


def resolve_data_source(
    catalog: Catalog, *, data_source_id: int | None = None, url: str | None = None
) -> DataSource:
    """Pick a data source by id, else by the first URL pattern matching ``url``."""

    if data_source_id is not None:
        data_source = next((ds for ds in catalog.data_sources if ds.id == data_source_id), None)
        if data_source is None:
            raise CatalogLookupError(
                f"Data source {data_source_id} not found",
                kind="data_source",
                identifier=data_source_id,
            )
        return data_source

    data_source = find_matching_data_source(url, catalog.data_sources)
    if data_source is None:
        raise CatalogLookupError(
            f"No data source matches URL: {url}", kind="data_source", identifier=url
        )
    return data_source


def resolve_print_context(
    catalog: Catalog,
    *,
    data_source_id: int | None = None,
    url: str | None = None,
    layout_id: int | None = None,
) -> PrintContext:
    """Pick the data source (by id, else by URL), its layout and the layout's format."""

    data_source = resolve_data_source(catalog, data_source_id=data_source_id, url=url)

    selected_layout_id = layout_id if layout_id is not None else data_source.default_layout_id
    if selected_layout_id is None:
        raise CatalogLookupError(
            f"Data source {data_source.id} has no default layout",
            kind="layout",
            identifier=None,
        )
    layout = next((item for item in catalog.layouts if item.id == selected_layout_id), None)
    if layout is None:
        raise CatalogLookupError(
            f"Layout {selected_layout_id} not found", kind="layout", identifier=selected_layout_id
        )

    label_format = None
    if layout.label_format_id is not None:
        label_format = next(
            (item for item in catalog.label_formats if item.id == layout.label_format_id), None
        )

    return PrintContext(data_source=data_source, layout=layout, label_format=label_format)


def run_print(
    context: PrintContext,
    capture_source: CaptureSource,
    *,
    webhook: WebhookConfig | None = None,
    printed_at: datetime | None = None,
    sender: WebhookSender | None = send_print_webhook,
) -> PrintResult:
    """Execute evaluate -> build payload -> notify for one print action.

    Pass ``sender=None`` to build the payload without delivering it.
    """

    resolved = evaluate_mappings(context.data_source.variable_mappings, capture_source)
    payload = build_label_payload(
        layout=context.layout,
        label_format=context.label_format,
        resolved_map=resolved_value_map(resolved),
        data_source_id=context.data_source.id,
        data_source_name=context.data_source.name,
        printed_at=printed_at,
    )

    notification_status = None
    if sender is not None and webhook is not None and webhook.is_enabled:
        notification_status = sender(webhook, payload)

    return PrintResult(resolved=resolved, payload=payload, notification_status=notification_status)
