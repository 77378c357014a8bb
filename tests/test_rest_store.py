from __future__ import annotations

import json
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from adminconsole.core.errors import NotFoundError, TransportError, ValidationError
from adminconsole.domain import ListOptions, OrderBy
from adminconsole.infrastructure.rest_store import RestCollectionStore


def _store(handler) -> RestCollectionStore:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RestCollectionStore("https://store.example.com/rest/v1/", api_key="secret", http_client=client)


def test_select_sends_query_parameters_and_auth_headers():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = request.url
        captured["headers"] = request.headers
        return httpx.Response(200, json=[{"id": "1", "name": "Acme"}])

    store = _store(handler)
    options = ListOptions(
        filters={"status": "active", "region": None},
        order_by=OrderBy(column="created_at"),
        limit=50,
    )
    rows = store.select("dealers", options)

    assert rows == [{"id": "1", "name": "Acme"}]
    url = captured["url"]
    assert url.path == "/rest/v1/dealers"
    assert url.params["select"] == "*"
    assert url.params["status"] == "eq.active"
    assert "region" not in url.params
    assert url.params["order"] == "created_at.desc"
    assert url.params["limit"] == "50"
    headers = captured["headers"]
    assert headers["apikey"] == "secret"
    assert headers["authorization"] == "Bearer secret"


def test_insert_posts_row_and_asks_for_representation():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["body"] = json.loads(request.content.decode("utf-8"))
        captured["prefer"] = request.headers.get("prefer")
        return httpx.Response(201, json=[{"id": "9", "name": "Kisan Mart"}])

    created = _store(handler).insert_one("dealers", {"name": "Kisan Mart"})

    assert created == {"id": "9", "name": "Kisan Mart"}
    assert captured["method"] == "POST"
    assert captured["body"] == [{"name": "Kisan Mart"}]
    assert captured["prefer"] == "return=representation"


def test_update_targets_id_and_reports_missing_rows():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.404"
        return httpx.Response(200, json=[])

    with pytest.raises(NotFoundError) as excinfo:
        _store(handler).update_by_id("dealers", "404", {"name": "Ghost"})
    assert excinfo.value.record_id == "404"


def test_delete_reports_whether_a_row_was_removed():
    responses = iter([
        httpx.Response(200, json=[{"id": "1"}]),
        httpx.Response(200, json=[]),
        httpx.Response(204),
    ])

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        return next(responses)

    store = _store(handler)
    assert store.delete_by_id("dealers", "1") is True
    assert store.delete_by_id("dealers", "1") is False
    assert store.delete_by_id("dealers", "1") is False


def test_rejected_payload_maps_to_validation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={"message": "duplicate key value", "details": "Key (sku)=(SKU-1) already exists."},
        )

    with pytest.raises(ValidationError) as excinfo:
        _store(handler).insert_one("products", {"sku": "SKU-1"})
    assert "duplicate key value" in str(excinfo.value)
    assert excinfo.value.collection == "products"


def test_server_failure_maps_to_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream unavailable")

    with pytest.raises(TransportError) as excinfo:
        _store(handler).select("dealers", ListOptions())
    assert "HTTP 503" in str(excinfo.value)


def test_network_failure_maps_to_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _store(handler).select("dealers", ListOptions())


def test_base_url_requires_scheme_and_host():
    with pytest.raises(ValueError):
        RestCollectionStore("store.example.com")
