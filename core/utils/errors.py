"""Custom exceptions for core logic."""

from __future__ import annotations


class CatalogLookupError(LookupError):
    """Raised when a layout, label format or data source cannot be resolved."""

    def __init__(self, message: str, *, kind: str, identifier: object = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.identifier = identifier
