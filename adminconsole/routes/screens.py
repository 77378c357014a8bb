from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query
from fastapi.responses import Response

from adminconsole.application import ListQuery, UnknownScreenError, get_console_service
from adminconsole.core.errors import StoreError
from adminconsole.routes.collections import http_error

router = APIRouter(prefix="/screens", tags=["screens"])


def _list_query(
    q: str = "",
    filter_column: str = "",
    filter_value: str = "all",
    sort: str | None = None,
    direction: Literal["asc", "desc"] = "asc",
    page: int = 1,
) -> ListQuery:
    return ListQuery(
        q=q,
        filter_column=filter_column,
        filter_value=filter_value,
        sort=sort,
        direction=direction,
        page=page,
    )


@router.get("")
async def list_screens() -> dict:
    service = get_console_service()
    return {"items": service.list_screens()}


@router.get("/{screen}")
async def get_screen_view(
    screen: str,
    q: str = Query(default=""),
    filter_column: str = Query(default=""),
    filter_value: str = Query(default="all"),
    sort: str | None = Query(default=None),
    direction: Literal["asc", "desc"] = Query(default="asc"),
    page: int = Query(default=1, ge=1),
) -> dict:
    service = get_console_service()
    query = _list_query(q, filter_column, filter_value, sort, direction, page)
    try:
        return await service.list_view(screen, query)
    except UnknownScreenError as exc:
        raise http_error(exc) from exc


@router.get("/{screen}/filters/{column}")
async def get_filter_options(screen: str, column: str) -> dict:
    service = get_console_service()
    try:
        options = await service.filter_options(screen, column)
    except UnknownScreenError as exc:
        raise http_error(exc) from exc
    return {"column": column, "items": options}


@router.get("/{screen}/export")
async def export_screen(
    screen: str,
    format: Literal["csv", "excel", "pdf"] = Query(default="csv"),
    q: str = Query(default=""),
    filter_column: str = Query(default=""),
    filter_value: str = Query(default="all"),
    sort: str | None = Query(default=None),
    direction: Literal["asc", "desc"] = Query(default="asc"),
    archive: bool = Query(default=False),
) -> Response:
    service = get_console_service()
    query = _list_query(q, filter_column, filter_value, sort, direction)
    try:
        artifact = await service.export(screen, format, query, archive=archive)
    except (UnknownScreenError, PermissionError) as exc:
        raise http_error(exc) from exc
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.delete("/{screen}/records/{record_id}")
async def delete_screen_record(screen: str, record_id: str) -> dict:
    service = get_console_service()
    try:
        await service.delete_from_screen(screen, record_id)
    except (UnknownScreenError, StoreError, PermissionError) as exc:
        raise http_error(exc) from exc
    return {"id": record_id, "deleted": True}
