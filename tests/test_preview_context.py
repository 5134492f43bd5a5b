from __future__ import annotations

from core.labels.models import DataSource, LabelLayout, ResolvedVariable
from core.mapping.preview import NOT_MAPPED_VALUE, build_preview_context


def _layout() -> LabelLayout:
    return LabelLayout.model_validate(
        {
            "id": 1,
            "name": "Asset Snapshot",
            "variables": [
                {"key": "asset_name", "label": "Asset Name"},
                {"key": "asset_key", "label": "Asset Key"},
                {"key": "owner", "label": "Owner", "multiple": True},
            ],
        }
    )


def _data_source() -> DataSource:
    return DataSource.model_validate(
        {
            "id": 1,
            "name": "Jira Asset List",
            "urlPattern": "https://jira.example.com/assets/*",
            "variableMappings": [
                {"key": "asset_name", "cssSelector": ".asset-name", "prefix": "Name: "},
                {
                    "key": "asset_key",
                    "cssSelector": "KEY-7 [data-key]",
                    "regexPattern": r"KEY-(\d+)",
                    "regexMatchIndex": 1,
                    "multiple": True,
                },
            ],
        }
    )


def test_preview_lists_every_layout_variable_in_order() -> None:
    preview = build_preview_context(_layout(), _data_source())

    assert [item.key for item in preview] == ["asset_name", "asset_key", "owner"]
    assert [item.label for item in preview] == ["Asset Name", "Asset Key", "Owner"]


def test_unmapped_variable_is_reported_as_missing() -> None:
    owner = build_preview_context(_layout(), _data_source())[2]

    assert owner.value == NOT_MAPPED_VALUE
    assert owner.status == "missing"
    assert owner.selector is None
    assert owner.multiple is True


def test_mapping_is_evaluated_against_its_selector_text() -> None:
    preview = build_preview_context(_layout(), _data_source())

    assert preview[0].value == "Name: .asset-name"
    assert preview[0].selector == ".asset-name"
    assert preview[0].status == "mapped"
    assert preview[1].value == "7"
    assert preview[1].multiple is True


def test_live_resolution_takes_precedence() -> None:
    resolved = {
        "asset_name": ResolvedVariable(
            key="asset_name",
            value="Name: Printer",
            selector_matches=["Printer"],
            status="mapped",
        ),
        "asset_key": ResolvedVariable(key="asset_key", value="", status="missing"),
    }

    preview = build_preview_context(_layout(), _data_source(), resolved)

    assert preview[0].value == "Name: Printer"
    assert preview[0].status == "mapped"
    assert preview[0].selector_matches == ["Printer"]
    assert preview[1].value == ""
    assert preview[1].status == "missing"
    assert preview[2].value == NOT_MAPPED_VALUE


def test_preview_serializes_with_camel_case_keys() -> None:
    dumped = build_preview_context(_layout(), _data_source())[0].model_dump(by_alias=True)

    assert "selectorMatches" in dumped
    assert dumped["key"] == "asset_name"
