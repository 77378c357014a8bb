"""Helpers for working with untyped collection records.

A record is any mapping with a stable string ``id``.  Column keys are either
plain field names or dotted paths into nested mappings (``"dealer.name"``).
"""
from __future__ import annotations

import json
from decimal import Decimal
from numbers import Number
from typing import Any, Iterator, Mapping

Record = Mapping[str, Any]

_MISSING = object()


def record_id(record: Record) -> str:
    """Return the identity of ``record`` as a string."""

    value = record.get("id")
    if value is None:
        raise KeyError("record has no id")
    return str(value)


def resolve_field(record: Record, key: str) -> Any:
    """Look up ``key`` on ``record``; dotted keys walk nested mappings."""

    if key in record:
        return record[key]
    if "." not in key:
        return None

    node: Any = record
    for part in key.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(part, _MISSING)
        if node is _MISSING:
            return None
    return node


def to_text(value: Any) -> str:
    """String form used for searching, filtering and lexical sorting."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def leaf_values(value: Any) -> Iterator[Any]:
    """Yield the scalar values inside nested mappings and lists, skipping keys."""

    if isinstance(value, Mapping):
        for item in value.values():
            yield from leaf_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from leaf_values(item)
    else:
        yield value


def is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def compare_values(left: Any, right: Any) -> int:
    """Natural ordering: numeric when both sides are numbers, lexical otherwise."""

    if is_number(left) and is_number(right):
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    left_text = to_text(left)
    right_text = to_text(right)
    if left_text < right_text:
        return -1
    if left_text > right_text:
        return 1
    return 0


__all__ = ["Record", "record_id", "resolve_field", "to_text", "leaf_values", "is_number", "compare_values"]
