"""Catalog loading utilities for YAML seed files."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.labels.models import Catalog

DEFAULT_CATALOG_PATH = Path(__file__).with_name("sample_catalog.yaml")


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and validate a catalog of layouts, formats and data sources from YAML."""

    catalog_path = path or DEFAULT_CATALOG_PATH

    try:
        raw = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Catalog file not found: {catalog_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in catalog file: {catalog_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Catalog file must contain a mapping: {catalog_path}")

    try:
        return Catalog.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid catalog schema: {catalog_path}: {exc}") from exc
