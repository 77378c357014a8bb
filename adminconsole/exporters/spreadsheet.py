from __future__ import annotations

import io
import re
import zipfile
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from adminconsole.domain import ColumnDescriptor
from adminconsole.exporters.projection import project

# Excel rejects these characters in sheet titles and caps titles at 31 chars.
_SHEET_TITLE_FORBIDDEN = re.compile(r"[\[\]:*?/\\]")
_SHEET_TITLE_LIMIT = 31
_ARCHIVE_DATE = (1980, 1, 1, 0, 0, 0)
_DOCUMENT_EPOCH = datetime(2000, 1, 1)
_MAX_COLUMN_WIDTH = 60
_CORE_PROPERTIES = "docProps/core.xml"
_MODIFIED_ELEMENT = re.compile(rb"(<dcterms:modified[^>]*>)[^<]*(</dcterms:modified>)")


def sheet_title(title: str) -> str:
    cleaned = _SHEET_TITLE_FORBIDDEN.sub("", title).strip()
    return cleaned[:_SHEET_TITLE_LIMIT] or "Export"


def _pin_archive_dates(payload: bytes, stamp: datetime) -> bytes:
    """Rewrite the xlsx archive with fixed entry dates so output is byte-stable.

    openpyxl stamps the save time into the core properties, so that value is
    replaced with ``stamp`` as well.
    """

    modified = stamp.strftime("%Y-%m-%dT%H:%M:%SZ").encode("ascii")

    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(payload)) as source, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            pinned = zipfile.ZipInfo(info.filename, date_time=_ARCHIVE_DATE)
            pinned.compress_type = zipfile.ZIP_DEFLATED
            pinned.external_attr = info.external_attr
            data = source.read(info.filename)
            if info.filename == _CORE_PROPERTIES:
                data = _MODIFIED_ELEMENT.sub(lambda match: match.group(1) + modified + match.group(2), data)
            target.writestr(pinned, data)
    return out.getvalue()


def render_spreadsheet(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[ColumnDescriptor],
    title: str,
    *,
    generated_at: datetime | None = None,
) -> bytes:
    labels, body = project(rows, columns)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title(title)
    sheet.append(labels)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for values in body:
        sheet.append(values)
    sheet.freeze_panes = "A2"

    for index, label in enumerate(labels, start=1):
        width = max([len(label)] + [len(values[index - 1]) for values in body])
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, _MAX_COLUMN_WIDTH)

    stamp = (generated_at or _DOCUMENT_EPOCH).replace(tzinfo=None, microsecond=0)
    workbook.properties.title = title
    workbook.properties.creator = "adminconsole"
    workbook.properties.created = stamp
    workbook.properties.modified = stamp

    buffer = io.BytesIO()
    workbook.save(buffer)
    return _pin_archive_dates(buffer.getvalue(), stamp)
