from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from adminconsole.application.controller import (
    EMPTY_MESSAGE,
    SKELETON_ROWS,
    EntityListController,
    filter_records,
    search_records,
    sort_records,
)
from adminconsole.domain import (
    ACTIONS_COLUMN,
    ColumnDescriptor,
    ConfirmPending,
    NoPendingDelete,
    RowCapabilities,
    SortConfig,
)


RECORDS = [
    {"id": "1", "name": "Acme", "region": "North"},
    {"id": "2", "name": "Zenith", "region": "South"},
]

COLUMNS = [
    ColumnDescriptor(key="name", label="Name", sortable=True),
    ColumnDescriptor(key="region", label="Region"),
]


class RecordingSink:
    def __init__(self) -> None:
        self.saved = []

    def save(self, artifact) -> None:
        self.saved.append(artifact)


@pytest.fixture()
def controller():
    ctrl = EntityListController(
        "Dealers",
        COLUMNS,
        capabilities=RowCapabilities(can_edit=True, can_delete=True),
        clock=lambda: datetime(2024, 3, 5, 10, 30),
    )
    ctrl.set_records(RECORDS)
    return ctrl


def _ids(rows) -> list[str]:
    return [row["id"] for row in rows]


def test_search_matches_any_field_ignoring_case(controller):
    controller.set_search("ac")
    assert _ids(controller.visible_rows()) == ["1"]

    controller.set_search("SOUTH")
    assert _ids(controller.visible_rows()) == ["2"]

    controller.set_search("")
    assert _ids(controller.visible_rows()) == ["1", "2"]


def test_search_treats_missing_values_as_empty_text():
    records = [{"id": "1", "name": None}, {"id": "2", "name": "None"}]
    assert _ids(search_records(records, "none")) == ["2"]


def test_filter_by_column_value(controller):
    controller.set_filter_column("region")
    controller.set_filter_value("south")
    assert _ids(controller.visible_rows()) == ["2"]

    controller.set_filter_value("all")
    assert _ids(controller.visible_rows()) == ["1", "2"]


def test_changing_filter_column_resets_value(controller):
    controller.set_filter_column("region")
    controller.set_filter_value("north")
    controller.set_filter_column("name")
    assert controller.state.filter_value == "all"
    assert _ids(controller.visible_rows()) == ["1", "2"]


def test_filter_on_absent_field_matches_nothing_but_empty():
    records = [{"id": "1", "city": "Pune"}, {"id": "2"}]
    assert _ids(filter_records(records, "city", "pune")) == ["1"]
    assert filter_records(records, "missing", "pune") == []


def test_sort_cycles_ascending_descending_unsorted():
    ctrl = EntityListController("Dealers", COLUMNS)
    ctrl.set_records([RECORDS[1], RECORDS[0]])

    ctrl.toggle_sort("name")
    assert [row["name"] for row in ctrl.visible_rows()] == ["Acme", "Zenith"]

    ctrl.toggle_sort("name")
    assert [row["name"] for row in ctrl.visible_rows()] == ["Zenith", "Acme"]

    ctrl.toggle_sort("name")
    assert ctrl.state.sort_config is None
    assert [row["name"] for row in ctrl.visible_rows()] == ["Zenith", "Acme"]


def test_toggling_unsortable_column_is_ignored(controller):
    controller.toggle_sort("name")
    assert controller.toggle_sort("region") == SortConfig("name", "asc")


def test_sort_is_stable_and_numeric_aware():
    records = [
        {"id": "a", "amount": 10, "group": "x"},
        {"id": "b", "amount": 9, "group": "y"},
        {"id": "c", "amount": 10, "group": "z"},
        {"id": "d", "amount": None, "group": "w"},
    ]
    ascending = sort_records(records, SortConfig("amount", "asc"))
    assert _ids(ascending) == ["d", "b", "a", "c"]

    descending = sort_records(records, SortConfig("amount", "desc"))
    assert _ids(descending) == ["a", "c", "b", "d"]
    assert sort_records(ascending, SortConfig("amount", "asc")) == ascending


def test_filter_options_come_from_unfiltered_records():
    ctrl = EntityListController("Dealers", COLUMNS)
    ctrl.set_records(RECORDS + [{"id": "3", "name": "Blank", "region": ""}])
    ctrl.set_search("zen")
    ctrl.set_filter_column("region")

    options = ctrl.filter_options()
    assert [option.value for option in options] == ["", "North", "South"]
    assert options[0].label == "(empty)"


def test_render_loading_shows_skeleton_rows(controller):
    controller.set_records([], is_loading=True)
    view = controller.render()
    assert len(view.rows) == SKELETON_ROWS
    assert all(row.kind == "skeleton" for row in view.rows)
    # data columns plus the action column
    assert all(len(row.cells) == 3 for row in view.rows)


def test_render_empty_spans_all_columns(controller):
    controller.set_search("nothing matches this")
    view = controller.render()
    assert len(view.rows) == 1
    assert view.rows[0].kind == "empty"
    assert view.rows[0].cells == [EMPTY_MESSAGE]
    assert view.rows[0].colspan == 3
    assert view.summary == "Showing 0 of 2 records"


def test_render_without_capabilities_hides_action_column():
    ctrl = EntityListController("Dealers", COLUMNS)
    ctrl.set_records(RECORDS)
    view = ctrl.render()
    assert view.show_actions is False
    assert all(row.actions == [] for row in view.rows)


def test_render_marks_sorted_header_and_actions(controller):
    controller.toggle_sort("name")
    view = controller.render()
    assert [header.sort_direction for header in view.headers] == ["asc", None]
    assert view.rows[0].record_id == "1"
    assert view.rows[0].actions == ["edit", "delete"]
    assert view.rows[0].cells == ["Acme", "North"]


def test_paging_clamps_to_available_pages():
    ctrl = EntityListController("Dealers", COLUMNS, page_size=1)
    ctrl.set_records(RECORDS)
    ctrl.set_page(5)
    assert ctrl.state.page == 2
    assert _ids(ctrl.page_rows()) == ["2"]
    assert ctrl.render().page_count == 2


def test_delete_confirmation_flow(controller):
    deleted = []

    async def on_delete(record):
        deleted.append(record["id"])

    controller._on_delete = on_delete
    assert isinstance(controller.request_delete(RECORDS[1]), ConfirmPending)
    assert controller.render().pending_delete == "2"

    controller.cancel_delete()
    assert controller.delete_state == NoPendingDelete()

    controller.request_delete(RECORDS[1])
    asyncio.run(controller.confirm_delete())
    assert deleted == ["2"]
    assert controller.delete_state == NoPendingDelete()


def test_confirm_delete_resets_state_when_callback_fails():
    def on_delete(record):
        raise RuntimeError("store unavailable")

    ctrl = EntityListController("Dealers", COLUMNS, on_delete=on_delete)
    ctrl.set_records(RECORDS)
    ctrl.request_delete(RECORDS[0])

    with pytest.raises(RuntimeError):
        asyncio.run(ctrl.confirm_delete())
    assert ctrl.delete_state == NoPendingDelete()


def test_request_delete_without_capability_is_ignored():
    ctrl = EntityListController("Dealers", COLUMNS)
    assert ctrl.request_delete(RECORDS[0]) == NoPendingDelete()


def test_view_and_edit_callbacks_receive_record():
    seen = []
    ctrl = EntityListController(
        "Dealers",
        COLUMNS,
        on_view=lambda record: seen.append(("view", record["id"])),
        on_edit=lambda record: seen.append(("edit", record["id"])),
    )
    ctrl.request_view(RECORDS[0])
    ctrl.request_edit(RECORDS[1])
    assert seen == [("view", "1"), ("edit", "2")]


def test_export_uses_visible_rows_and_skips_action_column():
    sink = RecordingSink()
    columns = COLUMNS + [ColumnDescriptor(key=ACTIONS_COLUMN, label="Actions")]
    ctrl = EntityListController(
        "Dealer List",
        columns,
        export_sink=sink,
        clock=lambda: datetime(2024, 3, 5, 10, 30),
    )
    ctrl.set_records(RECORDS)
    ctrl.set_search("zen")

    artifact = ctrl.export("csv")

    assert artifact.filename == "Dealer_List_2024-03-05.csv"
    assert artifact.content.decode("utf-8") == "Name,Region\nZenith,South"
    assert sink.saved == [artifact]


def test_export_of_empty_view_writes_header_only(controller):
    controller.set_search("nothing")
    artifact = controller.export("csv")
    assert artifact.content.decode("utf-8") == "Name,Region"


def test_search_ignores_keys_of_nested_records():
    records = [
        {"id": "o-1", "order_number": "SO-1", "dealer": {"name": "Acme"}},
        {"id": "o-2", "order_number": "SO-2", "dealer": {"name": "Zenith"}, "tags": ["urgent"]},
    ]
    assert search_records(records, "name") == []
    assert _ids(search_records(records, "acme")) == ["o-1"]
    assert _ids(search_records(records, "URGENT")) == ["o-2"]


def test_search_is_ignored_when_not_searchable():
    ctrl = EntityListController("Dealers", COLUMNS, searchable=False)
    ctrl.set_records(RECORDS)
    ctrl.set_search("ac")
    assert _ids(ctrl.visible_rows()) == ["1", "2"]
    assert ctrl.render().searchable is False


def test_export_is_refused_when_not_exportable():
    sink = RecordingSink()
    ctrl = EntityListController("Dealers", COLUMNS, export_sink=sink, exportable=False)
    ctrl.set_records(RECORDS)

    with pytest.raises(PermissionError):
        ctrl.export("csv")
    assert sink.saved == []
    assert ctrl.render().exportable is False


def test_render_exposes_search_and_export_flags(controller):
    view = controller.render()
    assert view.searchable is True
    assert view.exportable is True


def test_async_sink_save_runs_in_background_until_flushed():
    saved = []

    class SlowSink:
        async def save(self, artifact) -> None:
            await asyncio.sleep(0)
            saved.append(artifact.filename)

    ctrl = EntityListController("Dealers", COLUMNS, export_sink=SlowSink(), clock=lambda: datetime(2024, 3, 5))
    ctrl.set_records(RECORDS)

    async def scenario():
        artifact = ctrl.export("csv")
        before = list(saved)
        await ctrl.flush_exports()
        return artifact, before

    artifact, before = asyncio.run(scenario())
    assert before == []
    assert saved == [artifact.filename]
