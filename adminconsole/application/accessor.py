"""Remote collection accessor.

Every screen reads and mutates its backing collection through an accessor.
Reads go through the shared :class:`QueryCache`; every successful write
invalidates the cache entry of the collection it touched, so the next
``list`` issued after the write resolves reflects it on every screen.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

import structlog

from adminconsole.core.errors import NotFoundError, StoreError
from adminconsole.domain import FetchState, ListOptions, MutationRequest
from adminconsole.infrastructure import CollectionStore, QueryCache

logger = structlog.get_logger()


class RemoteCollectionAccessor:
    """Typed list/insert/update/delete over named collections."""

    OWNER_FIELDS: tuple[str, ...] = ("created_by", "user_id")

    def __init__(
        self,
        store: CollectionStore,
        cache: QueryCache,
        *,
        owner_id: str | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._owner_id = owner_id
        self._states: dict[tuple[str, str], FetchState] = {}
        self._in_flight: dict[tuple[str, str], tuple[asyncio.Task[None], int]] = {}
        self._applied: dict[tuple[str, str], int] = {}
        self._disposed = False

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _state_for(self, collection: str, key: str) -> FetchState:
        return self._states.setdefault((collection, key), FetchState())

    async def _call(self, fn: Callable[..., Any], collection: str, *args: Any) -> Any:
        return await asyncio.to_thread(fn, collection, *args)

    async def _fetch(self, collection: str, options: ListOptions, state: FetchState, generation: int) -> None:
        slot = (collection, options.cache_key())
        if not self._disposed:
            state.is_loading = True
        try:
            rows = await self._call(self._store.select, collection, options)
        except Exception as exc:
            if isinstance(exc, StoreError):
                logger.warning("collection_list_failed", collection=collection, error=str(exc))
            else:
                logger.exception("collection_list_crashed", collection=collection)
            if not self._disposed and generation >= self._applied.get(slot, -1):
                state.error = exc
            return
        finally:
            if not self._disposed:
                state.is_loading = self._newer_fetch_running(slot)

        fresh = self._cache.put(collection, slot[1], rows, generation=generation)
        if self._disposed:
            logger.debug("collection_list_discarded", collection=collection, reason="disposed")
            return
        # An older read may still fill an empty view, but never replaces rows
        # from a read started after a later write.
        if generation < self._applied.get(slot, -1):
            logger.debug("collection_list_discarded", collection=collection, reason="superseded")
            return
        self._applied[slot] = generation
        state.data = rows
        state.error = None
        logger.debug("collection_listed", collection=collection, rows=len(rows), fresh=fresh)

    def _newer_fetch_running(self, slot: tuple[str, str]) -> bool:
        entry = self._in_flight.get(slot)
        if entry is None:
            return False
        task, _ = entry
        return task is not asyncio.current_task() and not task.done()

    def _forget(self, slot: tuple[str, str], task: asyncio.Task[None]) -> None:
        entry = self._in_flight.get(slot)
        if entry is not None and entry[0] is task:
            del self._in_flight[slot]

    def _with_owner(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        record = dict(payload)
        if self._owner_id:
            for field in self.OWNER_FIELDS:
                if record.get(field) in (None, ""):
                    record[field] = self._owner_id
        return record

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def state(self, collection: str, options: ListOptions | None = None) -> FetchState:
        options = options or ListOptions()
        return self._state_for(collection, options.cache_key())

    @property
    def is_loading(self) -> bool:
        return any(state.is_loading for state in self._states.values())

    async def list(self, collection: str, options: ListOptions | None = None) -> FetchState:
        """Return the collection's fetch state, reading from the store on a cache miss.

        A failed read keeps the previously fetched data and records the error.
        Concurrent calls for the same collection and options share one read,
        unless the collection was written to after that read started.
        """

        options = options or ListOptions()
        key = options.cache_key()
        state = self._state_for(collection, key)

        slot = (collection, key)
        generation = self._cache.generation(collection)
        cached = self._cache.get(collection, key)
        if cached is not None:
            if not self._disposed:
                self._applied[slot] = generation
                state.data = cached
                state.error = None
            return state

        # A read started before the latest write cannot be shared.
        entry = self._in_flight.get(slot)
        if entry is None or entry[1] != generation:
            task = asyncio.ensure_future(self._fetch(collection, options, state, generation))
            self._in_flight[slot] = (task, generation)
            task.add_done_callback(lambda done: self._forget(slot, done))
        else:
            task = entry[0]
        await task
        return state

    async def refresh(self, collection: str, options: ListOptions | None = None) -> FetchState:
        self._cache.invalidate(collection)
        return await self.list(collection, options)

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    async def insert(self, collection: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        try:
            created = await self._call(self._store.insert_one, collection, self._with_owner(payload))
        except StoreError as exc:
            logger.warning("record_insert_failed", collection=collection, error=str(exc))
            raise
        self._cache.invalidate(collection)
        logger.info("record_inserted", collection=collection, record_id=created.get("id"))
        return created

    async def update(self, collection: str, record_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """Apply ``data`` to the record ``record_id`` and return the stored record.

        The id is passed separately from the changes; an ``id`` key inside
        ``data`` is not used to pick the target.
        """

        try:
            updated = await self._call(self._store.update_by_id, collection, str(record_id), dict(data))
        except StoreError as exc:
            logger.warning("record_update_failed", collection=collection, record_id=record_id, error=str(exc))
            raise
        self._cache.invalidate(collection)
        logger.info("record_updated", collection=collection, record_id=record_id)
        return updated

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete ``record_id``; an id that is already gone counts as deleted."""

        try:
            removed = await self._call(self._store.delete_by_id, collection, str(record_id))
        except NotFoundError:
            removed = False
        except StoreError as exc:
            logger.warning("record_delete_failed", collection=collection, record_id=record_id, error=str(exc))
            raise
        self._cache.invalidate(collection)
        if removed:
            logger.info("record_deleted", collection=collection, record_id=record_id)
        else:
            logger.info("record_already_absent", collection=collection, record_id=record_id)

    async def submit(self, collection: str, request: MutationRequest) -> dict[str, Any] | None:
        if request.operation == "insert":
            return await self.insert(collection, request.payload)
        if request.record_id is None:
            raise ValueError(f"{request.operation} requires a record id")
        if request.operation == "update":
            return await self.update(collection, request.record_id, request.payload)
        await self.delete(collection, request.record_id)
        return None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def dispose(self) -> None:
        """Stop applying late responses to this accessor's fetch states."""

        self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed
