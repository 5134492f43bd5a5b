from __future__ import annotations

import json
from pathlib import Path

from apps.cli.io import (
    build_output_paths,
    existing_output_files,
    write_error_json_atomic,
    write_print_output_atomic,
)
from core.labels.models import LabelLayout, ResolvedVariable
from core.orchestrator.pipeline import PrintResult
from core.render.payload_builder import build_label_payload


def _result() -> PrintResult:
    payload = build_label_payload(LabelLayout(id=1, name="A"), None, {"sku": "S"}, 1, "Jira")
    resolved = [ResolvedVariable(key="sku", value="S", selector_matches=["S"], status="mapped")]
    return PrintResult(resolved=resolved, payload=payload)


def test_write_print_output_replaces_previous_error(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path / "out")
    write_error_json_atomic(paths, error_type="ValueError", error_message="bad", stage="x")
    assert paths.error.exists()

    write_print_output_atomic(paths, _result())

    assert not paths.error.exists()
    assert existing_output_files(paths) == [paths.payload, paths.resolved]
    assert json.loads(paths.payload.read_text(encoding="utf-8"))["dataSourceName"] == "Jira"
    assert list((tmp_path / "out").glob("*.tmp")) == []


def test_write_error_json_records_stage(tmp_path: Path) -> None:
    paths = build_output_paths(tmp_path)

    write_error_json_atomic(
        paths, error_type="CatalogLookupError", error_message="missing", stage="resolve_context"
    )

    assert json.loads(paths.error.read_text(encoding="utf-8")) == {
        "error": {
            "error_message": "missing",
            "error_type": "CatalogLookupError",
            "stage": "resolve_context",
        }
    }
    assert existing_output_files(paths) == []
