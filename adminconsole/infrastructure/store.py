"""Collection store contract and the in-memory implementation."""
from __future__ import annotations

import copy
import json
import threading
import uuid
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from adminconsole.core.errors import NotFoundError, ValidationError
from adminconsole.core.records import compare_values, resolve_field, to_text
from adminconsole.domain import ListOptions


class CollectionStore(Protocol):
    """Transport contract for the backing relational store."""

    def select(self, collection: str, options: ListOptions) -> list[dict[str, Any]]: ...

    def insert_one(self, collection: str, payload: Mapping[str, Any]) -> dict[str, Any]: ...

    def update_by_id(self, collection: str, record_id: str, data: Mapping[str, Any]) -> dict[str, Any]: ...

    def delete_by_id(self, collection: str, record_id: str) -> bool: ...


def _project(record: dict[str, Any], select: str) -> dict[str, Any]:
    if select.strip() in {"", "*"}:
        return record
    wanted = [part.strip() for part in select.split(",") if part.strip()]
    return {key: record[key] for key in wanted if key in record}


class InMemoryCollectionStore:
    """Dict-backed store for local runs and tests."""

    def __init__(
        self,
        seed: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        *,
        required_fields: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = {}
        self._required: dict[str, tuple[str, ...]] = {
            name: tuple(fields) for name, fields in (required_fields or {}).items()
        }
        self._lock = threading.Lock()
        for name, rows in (seed or {}).items():
            for row in rows:
                self.insert_one(name, row)

    @classmethod
    def from_json_file(cls, path: str | Path, **kwargs: Any) -> "InMemoryCollectionStore":
        with Path(path).open("r", encoding="utf-8") as fp:
            seed = json.load(fp)
        if not isinstance(seed, dict):
            raise ValueError("seed file must map collection names to record lists")
        return cls(seed, **kwargs)

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _rows(self, collection: str) -> list[dict[str, Any]]:
        return self._collections.setdefault(collection, [])

    def _find(self, collection: str, record_id: str) -> dict[str, Any] | None:
        for row in self._rows(collection):
            if str(row.get("id")) == record_id:
                return row
        return None

    def _validate(self, collection: str, record: Mapping[str, Any]) -> None:
        missing = [
            field for field in self._required.get(collection, ())
            if record.get(field) is None or record.get(field) == ""
        ]
        if missing:
            raise ValidationError(collection, f"missing required fields: {', '.join(missing)}")

    # ------------------------------------------------------------------
    # store contract
    # ------------------------------------------------------------------
    def select(self, collection: str, options: ListOptions) -> list[dict[str, Any]]:
        with self._lock:
            rows = list(self._rows(collection))

        filters = options.active_filters()
        if filters:
            rows = [
                row for row in rows
                if all(to_text(resolve_field(row, key)) == to_text(value) for key, value in filters.items())
            ]

        if options.order_by is not None:
            column = options.order_by.column
            rows.sort(
                key=cmp_to_key(lambda a, b: compare_values(resolve_field(a, column), resolve_field(b, column))),
                reverse=not options.order_by.ascending,
            )

        if options.limit is not None:
            rows = rows[: options.limit]

        return [_project(copy.deepcopy(row), options.select) for row in rows]

    def insert_one(self, collection: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        record = copy.deepcopy(dict(payload))
        if record.get("id") in (None, ""):
            record["id"] = str(uuid.uuid4())
        record["id"] = str(record["id"])
        self._validate(collection, record)
        with self._lock:
            if self._find(collection, record["id"]) is not None:
                raise ValidationError(collection, f"duplicate id {record['id']!r}")
            self._rows(collection).append(record)
        return copy.deepcopy(record)

    def update_by_id(self, collection: str, record_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        changes = {key: value for key, value in copy.deepcopy(dict(data)).items() if key != "id"}
        with self._lock:
            existing = self._find(collection, record_id)
            if existing is None:
                raise NotFoundError(collection, record_id)
            candidate = {**existing, **changes}
            self._validate(collection, candidate)
            existing.update(changes)
            return copy.deepcopy(existing)

    def delete_by_id(self, collection: str, record_id: str) -> bool:
        with self._lock:
            rows = self._rows(collection)
            before = len(rows)
            rows[:] = [row for row in rows if str(row.get("id")) != record_id]
            return len(rows) != before

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._rows(collection))

    def reset(self) -> None:
        with self._lock:
            self._collections.clear()
