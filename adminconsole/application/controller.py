"""Generic entity list controller.

One controller drives one department screen: it owns the search, column
filter, sort, paging and delete-confirmation state over an already-fetched
record collection and turns it into a rendered table view.  Persistence is
not its concern; row actions are handed to the screen's callbacks.

Rows are always filtered (search, then column filter) before they are
sorted, so sort ties and page boundaries refer to the filtered view.
"""
from __future__ import annotations

import asyncio
import inspect
import math
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Awaitable, Callable, Iterable, Mapping, Sequence

import structlog

from adminconsole.core.records import compare_values, leaf_values, record_id, resolve_field, to_text
from adminconsole.domain import (
    ACTIONS_COLUMN,
    ALL_VALUES,
    EMPTY_FILTER_LABEL,
    ColumnDescriptor,
    ConfirmPending,
    DeleteState,
    FilterOption,
    HeaderCell,
    ListState,
    NoPendingDelete,
    RowCapabilities,
    SortConfig,
    TableRow,
    TableView,
)
from adminconsole.exporters import ExportArtifact, ExportFormat, serialize
from adminconsole.exporters.projection import display_value
from adminconsole.infrastructure import ExportSink

logger = structlog.get_logger()

Record = Mapping[str, Any]
RowCallback = Callable[[Record], Any]

SKELETON_ROWS = 5
DEFAULT_PAGE_SIZE = 25
EMPTY_MESSAGE = "No records found"


# ----------------------------------------------------------------------
# pure list operations
# ----------------------------------------------------------------------
def search_records(records: Iterable[Record], query: str) -> list[Record]:
    """Keep records where any field's string form contains ``query``, ignoring case.

    Nested mappings and lists are searched by their leaf values only.
    """

    needle = query.lower()
    if not needle:
        return list(records)
    return [
        record for record in records
        if any(needle in to_text(value).lower() for value in leaf_values(record))
    ]


def filter_records(records: Iterable[Record], column: str, value: str) -> list[Record]:
    if not column or value == ALL_VALUES:
        return list(records)
    wanted = value.lower()
    return [record for record in records if to_text(resolve_field(record, column)).lower() == wanted]


def sort_records(records: Iterable[Record], sort_config: SortConfig | None) -> list[Record]:
    rows = list(records)
    if sort_config is None:
        return rows
    sign = 1 if sort_config.direction == "asc" else -1

    def compare(left: Record, right: Record) -> int:
        return sign * compare_values(resolve_field(left, sort_config.key), resolve_field(right, sort_config.key))

    return sorted(rows, key=cmp_to_key(compare))


def filter_options(records: Iterable[Record], column: str) -> list[FilterOption]:
    values = sorted({to_text(resolve_field(record, column)) for record in records})
    return [FilterOption(value=value, label=value or EMPTY_FILTER_LABEL) for value in values]


def next_sort(current: SortConfig | None, key: str) -> SortConfig | None:
    """Same column cycles asc -> desc -> unsorted; another column starts at asc."""

    if current is not None and current.key == key:
        return SortConfig(key, "desc") if current.direction == "asc" else None
    return SortConfig(key, "asc")


# ----------------------------------------------------------------------
# controller
# ----------------------------------------------------------------------
class EntityListController:
    def __init__(
        self,
        title: str,
        columns: Sequence[ColumnDescriptor],
        *,
        capabilities: RowCapabilities | None = None,
        on_view: RowCallback | None = None,
        on_edit: RowCallback | None = None,
        on_delete: Callable[[Record], Awaitable[Any] | Any] | None = None,
        export_sink: ExportSink | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        searchable: bool = True,
        exportable: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.title = title
        self.columns = list(columns)
        self.capabilities = capabilities or RowCapabilities(
            can_view=on_view is not None,
            can_edit=on_edit is not None,
            can_delete=on_delete is not None,
        )
        self.page_size = page_size
        self.searchable = searchable
        self.exportable = exportable
        self.state = ListState()
        self.delete_state: DeleteState = NoPendingDelete()
        self.records: list[Record] = []
        self.is_loading = False
        self._on_view = on_view
        self._on_edit = on_edit
        self._on_delete = on_delete
        self._export_sink = export_sink
        self._clock = clock
        self._pending_saves: set[asyncio.Task[Any]] = set()
        self._sortable = {column.key for column in self.data_columns() if column.sortable}

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def set_records(self, records: Iterable[Record], *, is_loading: bool = False) -> None:
        self.records = list(records)
        self.is_loading = is_loading
        self._clamp_page()

    # ------------------------------------------------------------------
    # search / filter / sort / paging
    # ------------------------------------------------------------------
    def set_search(self, query: str) -> None:
        if not self.searchable:
            return
        self.state.search_query = query
        self.state.page = 1

    def set_filter_column(self, key: str) -> None:
        self.state.filter_column = key
        self.state.filter_value = ALL_VALUES
        self.state.page = 1

    def set_filter_value(self, value: str) -> None:
        self.state.filter_value = value or ALL_VALUES
        self.state.page = 1

    def clear_filters(self) -> None:
        self.state.search_query = ""
        self.state.filter_column = ""
        self.state.filter_value = ALL_VALUES
        self.state.page = 1

    def toggle_sort(self, key: str) -> SortConfig | None:
        if key not in self._sortable:
            return self.state.sort_config
        self.state.sort_config = next_sort(self.state.sort_config, key)
        return self.state.sort_config

    def set_sort(self, key: str | None, direction: str = "asc") -> SortConfig | None:
        """Apply a sort directly (used when state arrives from a request)."""

        if not key:
            self.state.sort_config = None
        elif key in self._sortable:
            self.state.sort_config = SortConfig(key, "desc" if direction == "desc" else "asc")
        return self.state.sort_config

    def filter_options(self) -> list[FilterOption]:
        """Choices for the active filter column, taken from the unfiltered records."""

        if not self.state.filter_column:
            return []
        return filter_options(self.records, self.state.filter_column)

    def visible_rows(self) -> list[Record]:
        rows = search_records(self.records, self.state.search_query)
        rows = filter_records(rows, self.state.filter_column, self.state.filter_value)
        return sort_records(rows, self.state.sort_config)

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.visible_rows()) / self.page_size))

    def set_page(self, page: int) -> None:
        self.state.page = page
        self._clamp_page()

    def _clamp_page(self) -> None:
        self.state.page = min(max(1, self.state.page), self.page_count)

    def page_rows(self) -> list[Record]:
        rows = self.visible_rows()
        start = (self.state.page - 1) * self.page_size
        return rows[start:start + self.page_size]

    # ------------------------------------------------------------------
    # row actions
    # ------------------------------------------------------------------
    def request_view(self, record: Record) -> None:
        if self.capabilities.can_view and self._on_view is not None:
            self._on_view(record)

    def request_edit(self, record: Record) -> None:
        if self.capabilities.can_edit and self._on_edit is not None:
            self._on_edit(record)

    def request_delete(self, record: Record) -> DeleteState:
        if self.capabilities.can_delete:
            self.delete_state = ConfirmPending(record)
        return self.delete_state

    def cancel_delete(self) -> None:
        self.delete_state = NoPendingDelete()

    async def confirm_delete(self) -> None:
        """Run the screen's delete callback for the pending record.

        The controller returns to ``NoPendingDelete`` whether or not the
        callback succeeds; failures propagate to the screen.
        """

        pending = self.delete_state
        if not isinstance(pending, ConfirmPending):
            return
        try:
            if self._on_delete is not None:
                result = self._on_delete(pending.record)
                if inspect.isawaitable(result):
                    await result
        finally:
            self.delete_state = NoPendingDelete()

    # ------------------------------------------------------------------
    # export
    # ------------------------------------------------------------------
    def data_columns(self) -> list[ColumnDescriptor]:
        """Columns without the reserved action column."""

        return [column for column in self.columns if column.key != ACTIONS_COLUMN]

    def export(self, fmt: ExportFormat) -> ExportArtifact:
        """Serialize the visible rows and hand the artifact to the export sink.

        The sink's save runs in the background; ``flush_exports`` waits for it.
        """

        if not self.exportable:
            raise PermissionError(f"export is disabled for {self.title!r}")
        rows = self.visible_rows()
        artifact = serialize(fmt, rows, self.data_columns(), self.title, generated_at=self._clock())
        logger.info("export_generated", title=self.title, format=fmt, rows=len(rows), filename=artifact.filename)
        if self._export_sink is not None:
            result = self._export_sink.save(artifact)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending_saves.add(task)
                task.add_done_callback(self._pending_saves.discard)
        return artifact

    async def flush_exports(self) -> None:
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves)

    # ------------------------------------------------------------------
    # rendering
    # ------------------------------------------------------------------
    def render(self) -> TableView:
        show_actions = self.capabilities.any
        columns = self.data_columns()
        sort_config = self.state.sort_config
        headers = [
            HeaderCell(
                key=column.key,
                label=column.label,
                sortable=column.sortable,
                sort_direction=sort_config.direction if sort_config and sort_config.key == column.key else None,
            )
            for column in columns
        ]
        span = len(columns) + (1 if show_actions else 0)
        visible = self.visible_rows()

        if self.is_loading:
            rows = [TableRow(kind="skeleton", cells=[None] * span) for _ in range(SKELETON_ROWS)]
        elif not visible:
            rows = [TableRow(kind="empty", cells=[EMPTY_MESSAGE], colspan=span)]
        else:
            actions = self.capabilities.actions()
            rows = [
                TableRow(
                    kind="record",
                    cells=[display_value(column, record) for column in columns],
                    record_id=record_id(record),
                    actions=list(actions),
                )
                for record in self.page_rows()
            ]

        pending = self.delete_state
        return TableView(
            title=self.title,
            headers=headers,
            rows=rows,
            show_actions=show_actions,
            searchable=self.searchable,
            exportable=self.exportable,
            total=len(self.records),
            visible=len(visible),
            page=self.state.page,
            page_count=self.page_count,
            summary=f"Showing {len(visible)} of {len(self.records)} records",
            pending_delete=record_id(pending.record) if isinstance(pending, ConfirmPending) else None,
        )
