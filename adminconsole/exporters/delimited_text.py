"""Delimited-text export.

Field values are written as-is.  A value containing the delimiter or a line
break is not quoted or escaped, so such exports do not round-trip through a
CSV reader; screens that hold free text should prefer the spreadsheet export.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from adminconsole.domain import ColumnDescriptor
from adminconsole.exporters.projection import project

DEFAULT_DELIMITER = ","


def render_delimited_text(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[ColumnDescriptor],
    *,
    delimiter: str = DEFAULT_DELIMITER,
) -> bytes:
    labels, body = project(rows, columns)
    lines = [delimiter.join(labels)]
    lines.extend(delimiter.join(values) for values in body)
    return "\n".join(lines).encode("utf-8")
