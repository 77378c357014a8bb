"""Department screen composition.

A screen pairs one collection (read and written through the shared
accessor) with an entity list controller configured from
``config/screens.yaml``.
"""
from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Literal

import structlog
import yaml
from pydantic import BaseModel, Field

from adminconsole.application.accessor import RemoteCollectionAccessor
from adminconsole.application.controller import DEFAULT_PAGE_SIZE, EntityListController
from adminconsole.core.formatters import get_formatter
from adminconsole.core.records import record_id
from adminconsole.domain import ColumnDescriptor, FetchState, ListOptions, OrderBy, RowCapabilities
from adminconsole.exporters import ExportArtifact, ExportFormat
from adminconsole.infrastructure import (
    CollectionStore,
    DirectoryExportSink,
    ExportSink,
    InMemoryCollectionStore,
    QueryCache,
)

logger = structlog.get_logger()

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class UnknownScreenError(KeyError):
    """Raised when a screen or collection is not configured."""


class ColumnSpec(BaseModel):
    key: str
    label: str
    sortable: bool = False
    format: str | None = None

    def to_descriptor(self) -> ColumnDescriptor:
        return ColumnDescriptor(
            key=self.key,
            label=self.label,
            sortable=self.sortable,
            render=get_formatter(self.format),
        )


class CapabilitySpec(BaseModel):
    view: bool = False
    edit: bool = False
    delete: bool = False


class ScreenDefinition(BaseModel):
    name: str
    department: str
    collection: str
    title: str
    description: str | None = None
    order_by: OrderBy | None = None
    capabilities: CapabilitySpec = Field(default_factory=CapabilitySpec)
    required: list[str] = Field(default_factory=list)
    searchable: bool = True
    exportable: bool = True
    columns: list[ColumnSpec]

    def descriptors(self) -> list[ColumnDescriptor]:
        return [column.to_descriptor() for column in self.columns]

    def row_capabilities(self) -> RowCapabilities:
        return RowCapabilities(
            can_view=self.capabilities.view,
            can_edit=self.capabilities.edit,
            can_delete=self.capabilities.delete,
        )

    def list_options(self) -> ListOptions:
        return ListOptions(order_by=self.order_by)


def load_screens(path: Path | None = None) -> dict[str, ScreenDefinition]:
    path = path or CONFIG_DIR / "screens.yaml"
    with path.open("r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}
    screens: dict[str, ScreenDefinition] = {}
    for name, definition in raw.items():
        screens[name] = ScreenDefinition(name=name, **definition)
        for column in screens[name].columns:
            get_formatter(column.format)
    logger.info("screens_loaded", path=str(path), count=len(screens))
    return screens


class ListQuery(BaseModel):
    """List state as it arrives from a request."""

    q: str = ""
    filter_column: str = ""
    filter_value: str = "all"
    sort: str | None = None
    direction: Literal["asc", "desc"] = "asc"
    page: int = Field(default=1, ge=1)


class ConsoleService:
    """Coordinates department screens over one accessor and cache."""

    def __init__(
        self,
        store: CollectionStore,
        *,
        cache: QueryCache | None = None,
        screens: dict[str, ScreenDefinition] | None = None,
        owner_id: str | None = None,
        export_sink_factory: Callable[[str], ExportSink] = DirectoryExportSink,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._store = store
        self._cache = cache or QueryCache()
        self._screens = screens if screens is not None else load_screens()
        self._accessor = RemoteCollectionAccessor(store, self._cache, owner_id=owner_id)
        self._export_sink_factory = export_sink_factory
        self._page_size = page_size

    # ------------------------------------------------------------------
    # screen lookup
    # ------------------------------------------------------------------
    @property
    def accessor(self) -> RemoteCollectionAccessor:
        return self._accessor

    def get_screen(self, name: str) -> ScreenDefinition:
        try:
            return self._screens[name]
        except KeyError as exc:
            raise UnknownScreenError(name) from exc

    def ensure_collection(self, collection: str) -> str:
        if not any(screen.collection == collection for screen in self._screens.values()):
            raise UnknownScreenError(collection)
        return collection

    def list_screens(self) -> list[dict[str, Any]]:
        items = [
            {
                "name": screen.name,
                "department": screen.department,
                "collection": screen.collection,
                "title": screen.title,
                "description": screen.description,
            }
            for screen in self._screens.values()
        ]
        items.sort(key=lambda item: (item["department"], item["title"]))
        return items

    # ------------------------------------------------------------------
    # list screens
    # ------------------------------------------------------------------
    def build_controller(self, screen: ScreenDefinition, *, archive: bool = False) -> EntityListController:
        """Build a controller for ``screen``; ``archive`` also keeps a copy of each export on disk."""

        async def delete_record(record: dict[str, Any]) -> None:
            await self._accessor.delete(screen.collection, record_id(record))

        return EntityListController(
            screen.title,
            screen.descriptors(),
            capabilities=screen.row_capabilities(),
            on_delete=delete_record,
            export_sink=self._export_sink_factory(screen.department) if archive else None,
            page_size=self._page_size,
            searchable=screen.searchable,
            exportable=screen.exportable,
        )

    async def open_screen(
        self,
        name: str,
        query: ListQuery | None = None,
        *,
        archive: bool = False,
    ) -> tuple[EntityListController, FetchState]:
        screen = self.get_screen(name)
        query = query or ListQuery()
        state = await self._accessor.list(screen.collection, screen.list_options())

        controller = self.build_controller(screen, archive=archive)
        controller.set_records(state.data, is_loading=state.is_loading)
        controller.set_search(query.q)
        if query.filter_column:
            controller.set_filter_column(query.filter_column)
            controller.set_filter_value(query.filter_value)
        controller.set_sort(query.sort, query.direction)
        controller.set_page(query.page)
        return controller, state

    async def list_view(self, name: str, query: ListQuery | None = None) -> dict[str, Any]:
        controller, state = await self.open_screen(name, query)
        view = asdict(controller.render())
        view["is_loading"] = state.is_loading
        view["error"] = str(state.error) if state.error else None
        view["filter_options"] = [asdict(option) for option in controller.filter_options()]
        return view

    async def filter_options(self, name: str, column: str) -> list[dict[str, str]]:
        controller, _ = await self.open_screen(name)
        controller.set_filter_column(column)
        return [asdict(option) for option in controller.filter_options()]

    async def export(
        self,
        name: str,
        fmt: ExportFormat,
        query: ListQuery | None = None,
        *,
        archive: bool = False,
    ) -> ExportArtifact:
        controller, _ = await self.open_screen(name, query, archive=archive)
        artifact = controller.export(fmt)
        if archive:
            await controller.flush_exports()
        return artifact

    async def delete_from_screen(self, name: str, target_id: str) -> None:
        """Delete through the screen's confirm flow; absent ids still succeed."""

        screen = self.get_screen(name)
        if not screen.capabilities.delete:
            raise PermissionError(f"screen {name!r} does not allow deleting records")
        controller, state = await self.open_screen(name)
        record = next((row for row in state.data if str(row.get("id")) == target_id), None)
        if record is None:
            await self._accessor.delete(screen.collection, target_id)
            return
        controller.request_delete(record)
        await controller.confirm_delete()

    # ------------------------------------------------------------------
    # collection mutations
    # ------------------------------------------------------------------
    async def list_collection(self, collection: str, options: ListOptions | None = None) -> FetchState:
        return await self._accessor.list(self.ensure_collection(collection), options)

    async def create_record(self, collection: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._accessor.insert(self.ensure_collection(collection), payload)

    async def update_record(self, collection: str, target_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._accessor.update(self.ensure_collection(collection), target_id, data)

    async def delete_record(self, collection: str, target_id: str) -> None:
        await self._accessor.delete(self.ensure_collection(collection), target_id)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._cache.clear()
        reset = getattr(self._store, "reset", None)
        if callable(reset):
            reset()


def required_fields(screens: dict[str, ScreenDefinition]) -> dict[str, list[str]]:
    return {screen.collection: list(screen.required) for screen in screens.values() if screen.required}


_service: ConsoleService | None = None


def configure_console_service(service: ConsoleService) -> None:
    """Install the service used by the HTTP routes."""

    global _service
    _service = service


def get_console_service() -> ConsoleService:
    """Return the process-wide console service, creating an in-memory one if needed."""

    global _service
    if _service is None:
        screens = load_screens()
        store = InMemoryCollectionStore(required_fields=required_fields(screens))
        _service = ConsoleService(store, screens=screens)
    return _service


def reset_console_state() -> None:
    """Reset the in-memory store and cache (used in tests)."""

    get_console_service().reset()
