"""Printable HTML document export.

The document carries the export title as a heading and splits the rows into
fixed-size pages, each repeating the header row, separated by CSS page breaks
so the browser's print dialog produces one sheet per page.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from jinja2 import Environment, select_autoescape

from adminconsole.domain import ColumnDescriptor
from adminconsole.exporters.projection import project

DEFAULT_ROWS_PER_PAGE = 40

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>{{ title }}</title>
<style>
body { font-family: Arial, sans-serif; padding: 20px; }
h1 { color: #333; margin-bottom: 10px; }
p.generated { color: #666; margin-bottom: 20px; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #000; padding: 8px; text-align: left; }
th { background: #f0f0f0; }
section.page { page-break-after: always; }
section.page:last-of-type { page-break-after: auto; }
p.page-number { color: #666; font-size: 12px; text-align: right; }
@media print { body { -webkit-print-color-adjust: exact; } }
</style>
</head>
<body>
<h1>{{ title }}</h1>
{% if generated_at %}<p class="generated">Generated on {{ generated_at }}</p>
{% endif %}
{% for page in pages %}<section class="page">
<table>
<thead><tr>{% for label in labels %}<th>{{ label }}</th>{% endfor %}</tr></thead>
<tbody>
{% for row in page %}<tr>{% for value in row %}<td>{{ value }}</td>{% endfor %}</tr>
{% endfor %}</tbody>
</table>
<p class="page-number">Page {{ loop.index }} of {{ loop.length }}</p>
</section>
{% endfor %}</body>
</html>
"""

_environment = Environment(autoescape=select_autoescape(default_for_string=True, default=True))
_template = _environment.from_string(_TEMPLATE)


def paginate(body: list[list[str]], rows_per_page: int) -> list[list[list[str]]]:
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be positive")
    if not body:
        return [[]]
    return [body[start:start + rows_per_page] for start in range(0, len(body), rows_per_page)]


def render_print_document(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[ColumnDescriptor],
    title: str,
    *,
    generated_at: datetime | None = None,
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE,
) -> bytes:
    labels, body = project(rows, columns)
    html = _template.render(
        title=title,
        labels=labels,
        pages=paginate(body, rows_per_page),
        generated_at=f"{generated_at:%Y-%m-%d %H:%M}" if generated_at else None,
    )
    return html.encode("utf-8")
