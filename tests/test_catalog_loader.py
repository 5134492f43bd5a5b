from __future__ import annotations

from pathlib import Path

import pytest

from core.catalog.loader import load_catalog


def test_load_default_catalog() -> None:
    catalog = load_catalog()

    assert [layout.name for layout in catalog.layouts] == ["Asset Snapshot"]
    assert [source.id for source in catalog.data_sources] == [1, 2]
    assert catalog.data_sources[1].variable_mappings[1].attribute_name == "data-asset-key"
    assert catalog.post_print_webhook is None
    assert catalog.next_layout_id == 2
    assert catalog.next_data_source_id == 3


def test_load_catalog_accepts_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text("", encoding="utf-8")

    catalog = load_catalog(path)

    assert catalog.layouts == []
    assert catalog.next_label_format_id == 1


def test_load_catalog_reads_webhook(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        """
postPrintWebhook:
  url: https://hooks.example.com/print?sku={{payload.resolvedVariables.sku}}
  method: get
""",
        encoding="utf-8",
    )

    catalog = load_catalog(path)

    assert catalog.post_print_webhook is not None
    assert catalog.post_print_webhook.method == "GET"


def test_load_catalog_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Catalog file not found"):
        load_catalog(tmp_path / "absent.yaml")


def test_load_catalog_raises_for_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text("layouts: [unclosed", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML in catalog file"):
        load_catalog(path)


def test_load_catalog_raises_for_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Catalog file must contain a mapping"):
        load_catalog(path)


def test_load_catalog_raises_for_invalid_element_binding(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        """
layouts:
  - id: 1
    name: Broken
    elements:
      - id: 1
        name: Value
        mode: dynamic
""",
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="Invalid catalog schema"):
        load_catalog(path)


def test_load_catalog_raises_for_unknown_field(tmp_path: Path) -> None:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        """
dataSources:
  - id: 1
    name: S
    urlPattern: "*"
    colour: red
""",
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="Invalid catalog schema"):
        load_catalog(path)
