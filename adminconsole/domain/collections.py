"""Domain entities for remote collection access."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field


class OrderBy(BaseModel):
    column: str
    ascending: bool = False


class ListOptions(BaseModel):
    """Read options understood by every collection store."""

    select: str = "*"
    filters: dict[str, Any] = Field(default_factory=dict)
    order_by: OrderBy | None = None
    limit: int | None = Field(default=None, ge=1)

    def active_filters(self) -> dict[str, Any]:
        return {key: value for key, value in self.filters.items() if value is not None and value != ""}

    def cache_key(self) -> str:
        return self.model_dump_json()


@dataclass(slots=True)
class FetchState:
    """Loading/data/error triple describing the current view of a collection."""

    data: list[dict[str, Any]] = field(default_factory=list)
    is_loading: bool = False
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class MutationRequest:
    operation: Literal["insert", "update", "delete"]
    payload: dict[str, Any]
    record_id: str | None = None
