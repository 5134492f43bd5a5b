"""Local JSON store for layouts, label formats, data sources and webhook settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TypeVar

from pydantic import ValidationError

from core.catalog.loader import load_catalog
from core.labels.models import (
    Catalog,
    DataSource,
    LabelFormat,
    LabelLayout,
    LayoutElement,
    LayoutVariable,
    WebhookConfig,
)
from core.utils.errors import CatalogLookupError

RecordT = TypeVar("RecordT", LabelLayout, LabelFormat, DataSource)


class CatalogStore:
    """Persist the catalog as one JSON document with auto-incrementing record ids.

    A missing file reads as the bundled sample catalog; the first save writes it out.
    """

    def __init__(self, store_path: Path, seed_path: Path | None = None) -> None:
        self._store_path = store_path
        self._seed_path = seed_path

    def load(self) -> Catalog:
        return self._read_data()

    def list_layouts(self) -> list[LabelLayout]:
        return self._read_data().layouts

    def list_label_formats(self) -> list[LabelFormat]:
        return self._read_data().label_formats

    def list_data_sources(self) -> list[DataSource]:
        return self._read_data().data_sources

    def get_layout(self, layout_id: int) -> LabelLayout | None:
        return _find_by_id(self._read_data().layouts, layout_id)

    def get_label_format(self, label_format_id: int) -> LabelFormat | None:
        return _find_by_id(self._read_data().label_formats, label_format_id)

    def get_data_source(self, data_source_id: int) -> DataSource | None:
        return _find_by_id(self._read_data().data_sources, data_source_id)

    def save_layout(self, layout: LabelLayout) -> LabelLayout:
        return self._save_record(layout, "layouts", "next_layout_id")

    def save_label_format(self, label_format: LabelFormat) -> LabelFormat:
        return self._save_record(label_format, "label_formats", "next_label_format_id")

    def save_data_source(self, data_source: DataSource) -> DataSource:
        return self._save_record(data_source, "data_sources", "next_data_source_id")

    def delete_layout(self, layout_id: int) -> bool:
        return self._delete_record("layouts", layout_id)

    def delete_label_format(self, label_format_id: int) -> bool:
        return self._delete_record("label_formats", label_format_id)

    def delete_data_source(self, data_source_id: int) -> bool:
        return self._delete_record("data_sources", data_source_id)

    def update_layout_variables(
        self, layout_id: int, variables: list[LayoutVariable]
    ) -> LabelLayout:
        data = self._read_data()
        layout = _find_by_id(data.layouts, layout_id)
        if layout is None:
            raise CatalogLookupError(
                f"Layout {layout_id} not found", kind="layout", identifier=layout_id
            )
        layout.variables = [variable.model_copy(deep=True) for variable in variables]
        self._write_data(data)
        return layout.model_copy(deep=True)

    def update_layout_elements(
        self, layout_id: int, elements: list[LayoutElement]
    ) -> LabelLayout:
        data = self._read_data()
        layout = _find_by_id(data.layouts, layout_id)
        if layout is None:
            raise CatalogLookupError(
                f"Layout {layout_id} not found", kind="layout", identifier=layout_id
            )
        layout.elements = [element.model_copy(deep=True) for element in elements]
        self._write_data(data)
        return layout.model_copy(deep=True)

    def get_webhook_config(self) -> WebhookConfig | None:
        return self._read_data().post_print_webhook

    def save_webhook_config(self, config: WebhookConfig | None) -> None:
        data = self._read_data()
        data.post_print_webhook = config.model_copy(deep=True) if config is not None else None
        self._write_data(data)

    def _save_record(self, record: RecordT, collection: str, counter: str) -> RecordT:
        data = self._read_data()
        items: list[RecordT] = getattr(data, collection)
        next_id: int = getattr(data, counter)

        normalized = record.model_copy(deep=True)
        if normalized.id <= 0:
            normalized = normalized.model_copy(update={"id": next_id})
            next_id += 1

        for index, existing in enumerate(items):
            if existing.id == normalized.id:
                items[index] = normalized
                break
        else:
            items.append(normalized)

        setattr(data, counter, max(next_id, normalized.id + 1))
        self._write_data(data)
        return normalized.model_copy(deep=True)

    def _delete_record(self, collection: str, record_id: int) -> bool:
        data = self._read_data()
        items = getattr(data, collection)
        remaining = [item for item in items if item.id != record_id]
        if len(remaining) == len(items):
            return False
        setattr(data, collection, remaining)
        self._write_data(data)
        return True

    def _read_data(self) -> Catalog:
        if not self._store_path.exists():
            return load_catalog(self._seed_path)

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid catalog store JSON: {self._store_path}") from exc

        if not isinstance(raw, dict):
            raise ValueError(f"Catalog store must contain an object: {self._store_path}")

        try:
            return Catalog.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid catalog store schema: {self._store_path}") from exc

    def _write_data(self, data: Catalog) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")

        temp_path.write_text(
            json.dumps(
                data.model_dump(mode="json", by_alias=True),
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)


def _find_by_id(items: list[RecordT], record_id: int) -> RecordT | None:
    for item in items:
        if item.id == record_id:
            return item
    return None
