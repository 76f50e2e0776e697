"""Tests for the hosted PostgREST shelf store."""

import json
from unittest.mock import patch

import httpx
import pytest

from bookshelf.app import create_app
from bookshelf.errors import StoreError
from bookshelf.registry import Shelf
from bookshelf.services.postgrest import PostgrestShelfStore, _array_literal
from bookshelf.services.shelf_service import ShelfOutcome, ShelfService
from bookshelf.services.store import contains, eq, lte


def _store(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://db.test/rest/v1")
    return PostgrestShelfStore(http)


def test_array_literal_quotes_values():
    assert _array_literal(["Frank Herbert"]) == '{"Frank Herbert"}'
    assert _array_literal(['Say "Hi"', "a,b"]) == '{"Say \\"Hi\\"","a,b"}'
    assert _array_literal([]) == "{}"


@pytest.mark.asyncio
async def test_select_encodes_filters():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = list(request.url.params.multi_items())
        return httpx.Response(200, json=[{"to_read_id": 3, "title": "Dune"}])

    store = _store(handler)
    rows = await store.select(
        "books_to_read",
        [eq("title", "Dune"), contains("authors", ["Frank Herbert"]), eq("user_id", "u1")],
    )

    assert rows == [{"to_read_id": 3, "title": "Dune"}]
    assert seen["method"] == "GET"
    assert seen["path"] == "/rest/v1/books_to_read"
    assert seen["params"] == [
        ("select", "*"),
        ("title", "eq.Dune"),
        ("authors", 'cs.{"Frank Herbert"}'),
        ("user_id", "eq.u1"),
    ]


@pytest.mark.asyncio
async def test_insert_asks_for_representation():
    seen = {}

    def handler(request):
        seen["prefer"] = request.headers.get("Prefer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json=[{"read_id": 7, **seen["body"][0]}])

    store = _store(handler)
    rows = await store.insert("books_read", {"title": "Emma", "authors": ["Jane Austen"], "user_id": "u1"})

    assert seen["prefer"] == "return=representation"
    assert seen["body"] == [{"title": "Emma", "authors": ["Jane Austen"], "user_id": "u1"}]
    assert rows[0]["read_id"] == 7


@pytest.mark.asyncio
async def test_empty_response_body_is_no_rows():
    store = _store(lambda request: httpx.Response(201))
    assert await store.insert("books_read", {"title": "Emma"}) == []


@pytest.mark.asyncio
async def test_error_status_raises_store_error():
    store = _store(lambda request: httpx.Response(409, json={"message": "duplicate key"}))
    with pytest.raises(StoreError) as exc:
        await store.insert("books_read", {"title": "Emma"})
    assert exc.value.collection == "books_read"
    assert "409" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_error_raises_store_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    store = _store(handler)
    with pytest.raises(StoreError):
        await store.select("books_read", [eq("user_id", "u1")])


@pytest.mark.asyncio
async def test_unfiltered_delete_refused():
    store = _store(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(StoreError):
        await store.delete("books_read", [])


@pytest.mark.asyncio
async def test_move_with_failed_delete_reports_partial_failure():
    """Insert succeeds on the hosted store but the delete is rejected."""
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.method == "GET" and request.url.path.endswith("books_being_read"):
            return httpx.Response(200, json=[])
        if request.method == "GET":
            return httpx.Response(200, json=[
                {"to_read_id": 1, "title": "Dune", "authors": ["Frank Herbert"], "user_id": "u1"},
            ])
        if request.method == "POST":
            return httpx.Response(201, json=[
                {"being_read_id": 4, "title": "Dune", "authors": ["Frank Herbert"], "user_id": "u1"},
            ])
        return httpx.Response(503, text="unavailable")

    service = ShelfService(_store(handler), timeout=5.0)
    result = await service.move_book(Shelf.TO_READ, Shelf.READING, "u1", book_id=1)

    assert result.outcome == ShelfOutcome.PARTIAL_FAILURE
    assert result.entry_id == 4
    assert [m for m, _ in calls] == ["GET", "GET", "POST", "DELETE"]
    assert calls[-1][1] == "/rest/v1/books_to_read"


@pytest.mark.asyncio
async def test_page_limit_encoded_as_lte():
    seen = {}

    def handler(request):
        seen["params"] = list(request.url.params.multi_items())
        return httpx.Response(200, json=[])

    await _store(handler).select("books", [lte("page_count", 300)])
    assert seen["params"] == [("select", "*"), ("page_count", "lte.300")]


@pytest.mark.asyncio
async def test_hosted_store_requests_skip_local_database():
    """With a hosted store configured, requests never open a local session."""
    def handler(request):
        return httpx.Response(200, json=[
            {"read_id": 2, "title": "Emma", "authors": ["Jane Austen"], "user_id": "u1"},
        ])

    app = create_app()
    app.state.shelf_store = _store(handler)
    transport = httpx.ASGITransport(app=app)
    with patch("bookshelf.deps.SessionLocal") as session_factory:
        async with httpx.AsyncClient(
            transport=transport, base_url="http://test", headers={"X-User-Id": "u1"}
        ) as c:
            resp = await c.get("/shelves/read")

    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()] == ["Emma"]
    session_factory.assert_not_called()
