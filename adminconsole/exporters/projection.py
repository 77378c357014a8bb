"""Shared row/column projection used by every export format."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Literal, Mapping, Sequence

from adminconsole.core.records import resolve_field, to_text
from adminconsole.domain import ColumnDescriptor

ExportFormat = Literal["csv", "excel", "pdf"]

MISSING_VALUE = "-"

EXTENSIONS: dict[str, tuple[str, str]] = {
    "csv": ("csv", "text/csv; charset=utf-8"),
    "excel": ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    "pdf": ("html", "text/html; charset=utf-8"),
}


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    """Named blob handed to the file-save mechanism."""

    filename: str
    media_type: str
    content: bytes


def display_value(column: ColumnDescriptor, row: Mapping[str, Any]) -> str:
    value = resolve_field(row, column.key)
    if column.render is not None:
        return to_text(column.render(value, row))
    if value is None:
        return MISSING_VALUE
    return to_text(value)


def project(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[ColumnDescriptor],
) -> tuple[list[str], list[list[str]]]:
    """Return the header labels and one list of display strings per row."""

    labels = [column.label for column in columns]
    body = [[display_value(column, row) for column in columns] for row in rows]
    return labels, body


def build_filename(title: str, fmt: ExportFormat, generated_at: datetime | None = None) -> str:
    stem = re.sub(r"\s+", "_", title.strip()) or "export"
    if generated_at is not None:
        stem = f"{stem}_{generated_at:%Y-%m-%d}"
    extension, _ = EXTENSIONS[fmt]
    return f"{stem}.{extension}"


def media_type_for(fmt: ExportFormat) -> str:
    return EXTENSIONS[fmt][1]
