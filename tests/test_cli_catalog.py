from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from apps.cli.main import app
from core.catalog.store import CatalogStore

runner = CliRunner()


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_list_shows_seeded_records(tmp_path: Path) -> None:
    result = runner.invoke(app, ["catalog", "list", "--store", str(tmp_path / "catalog.json")])

    assert result.exit_code == 0
    document = json.loads(result.stdout)
    assert document["layouts"] == [{"id": 1, "name": "Asset Snapshot"}]
    assert [item["id"] for item in document["dataSources"]] == [1, 2]
    assert document["postPrintWebhook"] is None


def test_save_assigns_next_id_and_persists(tmp_path: Path) -> None:
    store = tmp_path / "catalog.json"
    record = _write_json(
        tmp_path / "source.json",
        {
            "name": "Inventory",
            "urlPattern": "https://inventory.example.com/*",
            "variableMappings": [{"key": "sku", "cssSelector": ".sku"}],
        },
    )

    result = runner.invoke(
        app, ["catalog", "save", "data-source", "--file", str(record), "--store", str(store)]
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout)["id"] == 3
    saved = CatalogStore(store).get_data_source(3)
    assert saved is not None
    assert saved.variable_mappings[0].css_selector == ".sku"


def test_save_rejects_invalid_record(tmp_path: Path) -> None:
    record = _write_json(tmp_path / "format.json", {"name": "No size"})

    result = runner.invoke(
        app,
        [
            "catalog",
            "save",
            "label-format",
            "--file",
            str(record),
            "--store",
            str(tmp_path / "catalog.json"),
        ],
    )

    assert result.exit_code == 1
    assert "ERROR:" in result.stdout
    assert not (tmp_path / "catalog.json").exists()


def test_unknown_kind_is_rejected(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["catalog", "delete", "printer", "1", "--store", str(tmp_path / "catalog.json")]
    )

    assert result.exit_code == 1
    assert "invalid kind 'printer'" in result.stdout


def test_delete_reports_missing_records(tmp_path: Path) -> None:
    store = str(tmp_path / "catalog.json")

    deleted = runner.invoke(app, ["catalog", "delete", "label-format", "2", "--store", store])
    missing = runner.invoke(app, ["catalog", "delete", "label-format", "2", "--store", store])

    assert deleted.exit_code == 0
    assert "INFO: deleted label-format 2" in deleted.stdout
    assert missing.exit_code == 2
    assert [item.id for item in CatalogStore(Path(store)).list_label_formats()] == [1]


def test_set_variables_and_elements(tmp_path: Path) -> None:
    store = str(tmp_path / "catalog.json")
    variables = _write_json(tmp_path / "variables.json", [{"key": "sku", "label": "SKU"}])
    elements = _write_json(
        tmp_path / "elements.json",
        [{"id": 1, "name": "SKU", "mode": "dynamic", "dynamicBinding": {"variableKey": "sku"}}],
    )

    first = runner.invoke(
        app, ["catalog", "set-variables", "1", "--file", str(variables), "--store", store]
    )
    second = runner.invoke(
        app, ["catalog", "set-elements", "1", "--file", str(elements), "--store", store]
    )
    unknown = runner.invoke(
        app, ["catalog", "set-elements", "9", "--file", str(elements), "--store", store]
    )

    assert first.exit_code == 0
    assert second.exit_code == 0
    layout = CatalogStore(Path(store)).get_layout(1)
    assert layout is not None
    assert [variable.key for variable in layout.variables] == ["sku"]
    assert [element.name for element in layout.elements] == ["SKU"]
    assert unknown.exit_code == 2


def test_set_and_clear_webhook(tmp_path: Path) -> None:
    store = tmp_path / "catalog.json"

    configured = runner.invoke(
        app,
        [
            "catalog",
            "set-webhook",
            "--store",
            str(store),
            "--url",
            "https://hooks.example.com/print?sku={{payload.resolvedVariables.asset_key}}",
            "--method",
            "get",
        ],
    )
    webhook = CatalogStore(store).get_webhook_config()
    invalid = runner.invoke(
        app,
        ["catalog", "set-webhook", "--store", str(store), "--url", "https://x", "--method", "PUT"],
    )
    cleared = runner.invoke(app, ["catalog", "clear-webhook", "--store", str(store)])

    assert configured.exit_code == 0
    assert webhook is not None
    assert webhook.method == "GET"
    assert invalid.exit_code == 1
    assert cleared.exit_code == 0
    assert CatalogStore(store).get_webhook_config() is None
