"""Domain types for the entity list engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping

ACTIONS_COLUMN = "actions"
EMPTY_FILTER_LABEL = "(empty)"
ALL_VALUES = "all"

SortDirection = Literal["asc", "desc"]
RenderFn = Callable[[Any, Mapping[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """Describes how one record field is labelled, sorted and rendered."""

    key: str
    label: str
    sortable: bool = False
    render: RenderFn | None = None


@dataclass(frozen=True, slots=True)
class SortConfig:
    key: str
    direction: SortDirection = "asc"


@dataclass(slots=True)
class ListState:
    """Per-screen search, filter, sort and paging state."""

    search_query: str = ""
    filter_column: str = ""
    filter_value: str = ALL_VALUES
    sort_config: SortConfig | None = None
    page: int = 1


@dataclass(frozen=True, slots=True)
class RowCapabilities:
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False

    @property
    def any(self) -> bool:
        return self.can_view or self.can_edit or self.can_delete

    def actions(self) -> list[str]:
        enabled = [("view", self.can_view), ("edit", self.can_edit), ("delete", self.can_delete)]
        return [name for name, flag in enabled if flag]


@dataclass(frozen=True, slots=True)
class NoPendingDelete:
    pass


@dataclass(frozen=True, slots=True)
class ConfirmPending:
    record: Mapping[str, Any]


DeleteState = NoPendingDelete | ConfirmPending


@dataclass(frozen=True, slots=True)
class FilterOption:
    value: str
    label: str


@dataclass(slots=True)
class HeaderCell:
    key: str
    label: str
    sortable: bool
    sort_direction: SortDirection | None = None


@dataclass(slots=True)
class TableRow:
    """One rendered row.

    ``kind`` is ``"record"`` for data rows, ``"skeleton"`` for loading
    placeholders and ``"empty"`` for the no-records row.
    """

    kind: Literal["record", "skeleton", "empty"]
    cells: list[Any] = field(default_factory=list)
    record_id: str | None = None
    actions: list[str] = field(default_factory=list)
    colspan: int = 1


@dataclass(slots=True)
class TableView:
    title: str
    headers: list[HeaderCell]
    rows: list[TableRow]
    show_actions: bool
    searchable: bool
    exportable: bool
    total: int
    visible: int
    page: int
    page_count: int
    summary: str
    pending_delete: str | None = None
