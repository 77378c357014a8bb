from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from adminconsole.application import UnknownScreenError, get_console_service
from adminconsole.core.errors import NotFoundError, StoreError, TransportError, ValidationError
from adminconsole.domain import ListOptions, OrderBy

router = APIRouter(prefix="/collections", tags=["collections"])


def http_error(exc: Exception) -> HTTPException:
    """Translate store and screen errors into HTTP responses."""

    if isinstance(exc, UnknownScreenError):
        return HTTPException(status_code=404, detail=f"unknown screen or collection: {exc.args[0]}")
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TransportError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=403, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.get("/{collection}")
async def list_collection(
    collection: str,
    order_by: str | None = Query(default=None),
    ascending: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1),
) -> dict:
    service = get_console_service()
    options = ListOptions(
        order_by=OrderBy(column=order_by, ascending=ascending) if order_by else None,
        limit=limit,
    )
    try:
        state = await service.list_collection(collection, options)
    except (UnknownScreenError, StoreError) as exc:
        raise http_error(exc) from exc
    if state.error is not None and not state.data:
        raise http_error(state.error)
    return {
        "items": state.data,
        "error": str(state.error) if state.error else None,
    }


@router.post("/{collection}")
async def create_record(collection: str, payload: dict[str, Any]) -> dict:
    service = get_console_service()
    try:
        record = await service.create_record(collection, payload)
    except (UnknownScreenError, StoreError) as exc:
        raise http_error(exc) from exc
    return {"item": record}


@router.put("/{collection}/{record_id}")
async def update_record(collection: str, record_id: str, payload: dict[str, Any]) -> dict:
    if not payload:
        raise HTTPException(status_code=400, detail="no updates provided")
    service = get_console_service()
    try:
        record = await service.update_record(collection, record_id, payload)
    except (UnknownScreenError, StoreError) as exc:
        raise http_error(exc) from exc
    return {"item": record}


@router.delete("/{collection}/{record_id}")
async def delete_record(collection: str, record_id: str) -> dict:
    service = get_console_service()
    try:
        await service.delete_record(collection, record_id)
    except (UnknownScreenError, StoreError) as exc:
        raise http_error(exc) from exc
    return {"id": record_id, "deleted": True}
