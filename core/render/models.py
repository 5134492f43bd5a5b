"""Label payload models: the serializable snapshot of a printed label."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from core.labels.models import CatalogModel, ElementMode, LabelFormat


class PayloadModel(CatalogModel):
    """Immutable payload record."""

    model_config = ConfigDict(
        extra="forbid", populate_by_name=True, alias_generator=to_camel, frozen=True
    )


class LayoutSummary(PayloadModel):
    id: int
    name: str
    label_format_id: int | None = None


class PayloadElement(PayloadModel):
    """One layout element with its computed display value."""

    id: int
    name: str
    type: str
    mode: ElementMode
    position_x: float
    position_y: float
    width: float
    height: float
    rotation: float | None = None
    font_size: float | None = None
    value: str


class LabelPayload(PayloadModel):
    """What was printed, built once per print action.

    ``resolved_variables`` is a read-only view; it serializes as a plain object.
    """

    data_source_id: int | None = None
    data_source_name: str
    layout: LayoutSummary
    format: LabelFormat | None = None
    elements: tuple[PayloadElement, ...] = ()
    resolved_variables: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    printed_at: str

    @field_validator("resolved_variables", mode="after")
    @classmethod
    def _freeze_resolved_variables(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("resolved_variables")
    def _dump_resolved_variables(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)
