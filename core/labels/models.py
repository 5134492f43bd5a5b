"""Label layout, data source and resolution models.

Catalog and wire documents use camelCase keys (``cssSelector``,
``dynamicBinding``); Python code uses the snake_case attribute names.
Both spellings validate.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ElementType = Literal["text", "qrcode", "image", "shape"]
ElementMode = Literal["static", "dynamic"]
ResolutionStatus = Literal["mapped", "missing"]
WebhookMethod = Literal["GET", "POST"]

ELEMENT_TYPES: tuple[str, ...] = ("text", "qrcode", "image", "shape")
WEBHOOK_METHODS: tuple[str, ...] = ("GET", "POST")


class CatalogModel(BaseModel):
    """Base model for catalog records and wire documents."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, alias_generator=to_camel)


class VariableMapping(CatalogModel):
    """How to derive one variable's value from raw page captures."""

    key: str
    css_selector: str = ""
    attribute_name: str | None = None
    multiple: bool = False
    regex_pattern: str | None = None
    regex_match_index: int | None = None
    prefix: str | None = None
    suffix: str | None = None
    trim_whitespace: bool = False


class ResolvedVariable(CatalogModel):
    """Final value and status for one variable after evaluation."""

    key: str
    value: str
    selector_matches: list[str] = Field(default_factory=list)
    status: ResolutionStatus


class LayoutVariable(CatalogModel):
    key: str
    label: str
    description: str | None = None
    multiple: bool = False


class DynamicBinding(CatalogModel):
    """Element reference to a variable plus presentation-only overrides."""

    variable_key: str
    override_prefix: str | None = None
    override_suffix: str | None = None
    override_trim_whitespace: bool = False
    override_font_size: float | None = None


class LayoutElement(CatalogModel):
    """Single visual element of a layout."""

    id: int
    name: str
    # Unknown tags are kept so they can fall through to the text resolver.
    type: str = "text"
    position_x: float = 0
    position_y: float = 0
    width: float = 0
    height: float = 0
    rotation: float | None = None
    font_size: float | None = None
    mode: ElementMode = "static"
    static_content: str | None = None
    dynamic_binding: DynamicBinding | None = None

    @model_validator(mode="after")
    def _check_binding_matches_mode(self) -> LayoutElement:
        if self.mode == "dynamic" and self.dynamic_binding is None:
            raise ValueError(f"dynamic element {self.id} requires dynamicBinding")
        if self.mode != "dynamic" and self.dynamic_binding is not None:
            raise ValueError(f"static element {self.id} must not carry dynamicBinding")
        return self


class LabelLayout(CatalogModel):
    id: int = 0
    name: str
    variables: list[LayoutVariable] = Field(default_factory=list)
    label_format_id: int | None = None
    elements: list[LayoutElement] = Field(default_factory=list)


class LabelFormat(CatalogModel):
    """Label size and margins in canvas pixels."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    name: str
    width_px: float
    height_px: float
    margin_top_px: float = 0
    margin_bottom_px: float = 0
    margin_left_px: float = 0
    margin_right_px: float = 0
    description: str | None = None


class DataSource(CatalogModel):
    """Named bundle of mappings associated with a URL pattern."""

    id: int = 0
    name: str
    url_pattern: str
    default_layout_id: int | None = None
    variable_mappings: list[VariableMapping] = Field(default_factory=list)

    @field_validator("variable_mappings")
    @classmethod
    def _check_unique_keys(cls, value: list[VariableMapping]) -> list[VariableMapping]:
        seen: set[str] = set()
        for mapping in value:
            if mapping.key in seen:
                raise ValueError(f"duplicate mapping key: {mapping.key}")
            seen.add(mapping.key)
        return value


class WebhookConfig(CatalogModel):
    """Outbound notification sent after a label is printed."""

    url: str = ""
    method: WebhookMethod = "POST"
    body: str | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_enabled(self) -> bool:
        return bool(self.url.strip())


class Catalog(CatalogModel):
    """Every durable record owned by the storage layer."""

    layouts: list[LabelLayout] = Field(default_factory=list)
    label_formats: list[LabelFormat] = Field(default_factory=list)
    data_sources: list[DataSource] = Field(default_factory=list)
    next_layout_id: int | None = None
    next_label_format_id: int | None = None
    next_data_source_id: int | None = None
    post_print_webhook: WebhookConfig | None = None

    @model_validator(mode="after")
    def _default_id_counters(self) -> Catalog:
        # Counters never point at an id already in use.
        self.next_layout_id = max(self.next_layout_id or 0, _next_free_id(self.layouts))
        self.next_label_format_id = max(
            self.next_label_format_id or 0, _next_free_id(self.label_formats)
        )
        self.next_data_source_id = max(
            self.next_data_source_id or 0, _next_free_id(self.data_sources)
        )
        return self


def _next_free_id(records: list[LabelLayout] | list[LabelFormat] | list[DataSource]) -> int:
    return max((record.id for record in records), default=0) + 1
