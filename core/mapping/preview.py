"""Preview context shown next to the layout editor."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import Field

from core.labels.models import (
    CatalogModel,
    DataSource,
    LabelLayout,
    ResolutionStatus,
    ResolvedVariable,
)
from core.mapping.evaluator import evaluate_mapping

NOT_MAPPED_VALUE = "Not mapped"


class PreviewVariable(CatalogModel):
    key: str
    label: str
    value: str
    selector: str | None = None
    multiple: bool = False
    status: ResolutionStatus
    selector_matches: list[str] = Field(default_factory=list)


def build_preview_context(
    layout: LabelLayout,
    data_source: DataSource,
    resolved: Mapping[str, ResolvedVariable] | None = None,
) -> list[PreviewVariable]:
    """Describe every layout variable as the given data source would fill it.

    Without a live resolution, a mapping is evaluated against a sample
    capture (its selector text) so regex and prefix/suffix effects are visible.
    """

    mapping_by_key = {mapping.key: mapping for mapping in data_source.variable_mappings}
    preview: list[PreviewVariable] = []

    for variable in layout.variables:
        mapping = mapping_by_key.get(variable.key)
        live = resolved.get(variable.key) if resolved is not None else None

        if live is not None:
            preview.append(
                PreviewVariable(
                    key=variable.key,
                    label=variable.label,
                    value=live.value,
                    selector=mapping.css_selector if mapping is not None else None,
                    multiple=mapping.multiple if mapping is not None else variable.multiple,
                    status="mapped" if live.selector_matches else "missing",
                    selector_matches=list(live.selector_matches),
                )
            )
            continue

        if mapping is None:
            preview.append(
                PreviewVariable(
                    key=variable.key,
                    label=variable.label,
                    value=NOT_MAPPED_VALUE,
                    multiple=variable.multiple,
                    status="missing",
                )
            )
            continue

        sample = mapping.css_selector or variable.key
        result = evaluate_mapping([sample], mapping)
        preview.append(
            PreviewVariable(
                key=variable.key,
                label=variable.label,
                value=result.value,
                selector=mapping.css_selector,
                multiple=mapping.multiple,
                status=result.status,
            )
        )

    return preview
