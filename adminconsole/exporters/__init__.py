"""Export serializers for visible list rows."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from adminconsole.domain import ColumnDescriptor

from .delimited_text import render_delimited_text
from .print_document import render_print_document
from .projection import ExportArtifact, ExportFormat, build_filename, media_type_for, project
from .spreadsheet import render_spreadsheet


def serialize(
    fmt: ExportFormat,
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[ColumnDescriptor],
    title: str,
    *,
    generated_at: datetime | None = None,
) -> ExportArtifact:
    """Render ``rows`` in the requested format and wrap the bytes for saving."""

    if fmt == "csv":
        content = render_delimited_text(rows, columns)
    elif fmt == "excel":
        content = render_spreadsheet(rows, columns, title, generated_at=generated_at)
    elif fmt == "pdf":
        content = render_print_document(rows, columns, title, generated_at=generated_at)
    else:
        raise ValueError(f"unsupported export format: {fmt!r}")
    return ExportArtifact(
        filename=build_filename(title, fmt, generated_at),
        media_type=media_type_for(fmt),
        content=content,
    )


__all__ = [
    "ExportArtifact",
    "ExportFormat",
    "build_filename",
    "project",
    "render_delimited_text",
    "render_print_document",
    "render_spreadsheet",
    "serialize",
]
