"""Failure taxonomy shared by the collection stores and the accessor."""
from __future__ import annotations


class StoreError(Exception):
    """Base class for failures reported by a collection store."""

    def __init__(self, collection: str, detail: str | None = None) -> None:
        self.collection = collection
        self.detail = detail
        message = f"{collection}: {detail}" if detail else collection
        super().__init__(message)


class TransportError(StoreError):
    """Raised when the backing store cannot be reached."""


class ValidationError(StoreError):
    """Raised when the backing store rejects a payload."""


class NotFoundError(StoreError):
    """Raised when a mutation targets a record that does not exist."""

    def __init__(self, collection: str, record_id: str, detail: str | None = None) -> None:
        self.record_id = record_id
        super().__init__(collection, detail or f"record {record_id!r} not found")


__all__ = ["StoreError", "TransportError", "ValidationError", "NotFoundError"]
