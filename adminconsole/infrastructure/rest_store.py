"""PostgREST-style HTTP transport for the backing store."""
from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlparse

import httpx
import structlog

from adminconsole.core.errors import NotFoundError, TransportError, ValidationError
from adminconsole.core.records import to_text
from adminconsole.domain import ListOptions

logger = structlog.get_logger()

_REJECTED_STATUSES = {400, 401, 403, 409, 422}


class RestCollectionStore:
    """Collection store speaking the PostgREST query dialect over ``httpx``."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 15.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("base_url must include scheme and host")

        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _url(self, collection: str) -> str:
        return f"{self._base_url}/{collection}"

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            parts = [str(body[key]) for key in ("message", "details", "hint") if body.get(key)]
            if parts:
                return "; ".join(parts)
        return response.text or response.reason_phrase

    def _request(
        self,
        method: str,
        collection: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = self._client.request(method, self._url(collection), params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("store_request_failed", method=method, collection=collection, error=str(exc))
            raise TransportError(collection, str(exc)) from exc

        if response.status_code in _REJECTED_STATUSES:
            raise ValidationError(collection, self._error_detail(response))
        if response.status_code >= 400:
            raise TransportError(collection, f"HTTP {response.status_code}: {self._error_detail(response)}")
        if response.status_code == 204 or not response.content:
            return []
        return response.json()

    @staticmethod
    def build_select_params(options: ListOptions) -> dict[str, str]:
        params: dict[str, str] = {"select": options.select or "*"}
        for key, value in options.active_filters().items():
            params[key] = f"eq.{to_text(value)}"
        if options.order_by is not None:
            direction = "asc" if options.order_by.ascending else "desc"
            params["order"] = f"{options.order_by.column}.{direction}"
        if options.limit is not None:
            params["limit"] = str(options.limit)
        return params

    # ------------------------------------------------------------------
    # store contract
    # ------------------------------------------------------------------
    def select(self, collection: str, options: ListOptions) -> list[dict[str, Any]]:
        rows = self._request("GET", collection, params=self.build_select_params(options))
        if not isinstance(rows, list):
            raise TransportError(collection, "unexpected response shape")
        return rows

    def insert_one(self, collection: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        rows = self._request("POST", collection, json=[dict(payload)], prefer="return=representation")
        if not rows:
            raise ValidationError(collection, "insert returned no row")
        return rows[0]

    def update_by_id(self, collection: str, record_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        rows = self._request(
            "PATCH",
            collection,
            params={"id": f"eq.{record_id}"},
            json=dict(data),
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError(collection, record_id)
        return rows[0]

    def delete_by_id(self, collection: str, record_id: str) -> bool:
        rows = self._request(
            "DELETE",
            collection,
            params={"id": f"eq.{record_id}"},
            prefer="return=representation",
        )
        return bool(rows)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["RestCollectionStore"]
