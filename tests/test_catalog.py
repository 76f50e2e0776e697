from unittest.mock import AsyncMock, patch

import pytest

from bookshelf.errors import StoreError
from bookshelf.services.catalog_service import CatalogService
from bookshelf.services.sql_store import SqlShelfStore

BOOKS = [
    {"title": "Dune", "authors": ["Frank Herbert"], "genres": ["Science Fiction"], "page_count": 688},
    {"title": "Emma", "authors": ["Jane Austen"], "genres": ["Romance", "Classics"], "page_count": 474},
    {"title": "Good Omens", "authors": ["Terry Pratchett", "Neil Gaiman"], "genres": ["Fantasy"], "page_count": 412},
    {"title": "Persuasion", "authors": ["Jane Austen"], "genres": ["Romance"], "page_count": 249},
]


@pytest.fixture
async def catalog(store):
    for book in BOOKS:
        await store.insert("books", book)
    return store


# --- service ---

@pytest.mark.asyncio
async def test_authors_distinct_and_sorted(catalog):
    service = CatalogService(catalog)
    assert await service.authors() == ["Frank Herbert", "Jane Austen", "Neil Gaiman", "Terry Pratchett"]


@pytest.mark.asyncio
async def test_max_page_count_empty_catalog(store):
    assert await CatalogService(store).max_page_count() is None


@pytest.mark.asyncio
async def test_filter_blank_criteria_return_everything(catalog):
    books = await CatalogService(catalog).filter_books("  ", "", -1)
    assert [b["title"] for b in books] == [b["title"] for b in BOOKS]


@pytest.mark.asyncio
async def test_catalog_store_error_propagates(catalog):
    with patch.object(catalog, "select", AsyncMock(side_effect=StoreError("books", "down"))):
        with pytest.raises(StoreError):
            await CatalogService(catalog).recommended()


# --- routes ---

@pytest.mark.asyncio
async def test_recommended(client, catalog):
    resp = await client.get("/recommended")
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert [b["title"] for b in body["data"]] == ["Dune", "Emma", "Good Omens", "Persuasion"]
    assert body["data"][0]["genres"] == ["Science Fiction"]


@pytest.mark.asyncio
async def test_authors_route(client, catalog):
    resp = await client.get("/authors")
    assert resp.status_code == 201
    assert "Jane Austen" in resp.json()["data"]
    assert len(resp.json()["data"]) == 4


@pytest.mark.asyncio
async def test_genres_route(client, catalog):
    resp = await client.get("/genres")
    assert resp.status_code == 201
    assert resp.json()["data"] == ["Classics", "Fantasy", "Romance", "Science Fiction"]


@pytest.mark.asyncio
async def test_pages_route(client, catalog):
    resp = await client.get("/pages")
    assert resp.status_code == 201
    assert resp.json()["data"] == 688


@pytest.mark.asyncio
async def test_filter_by_author(client, catalog):
    resp = await client.get("/filter", params={"author": "Jane Austen"})
    assert resp.status_code == 201
    assert [b["title"] for b in resp.json()["data"]] == ["Emma", "Persuasion"]


@pytest.mark.asyncio
async def test_filter_by_genre_and_pages(client, catalog):
    resp = await client.get("/filter", params={"genre": "Romance", "page_count": 300})
    assert resp.status_code == 201
    assert [b["title"] for b in resp.json()["data"]] == ["Persuasion"]


@pytest.mark.asyncio
async def test_filter_page_limit_is_inclusive(client, catalog):
    resp = await client.get("/filter", params={"page_count": 412})
    assert [b["title"] for b in resp.json()["data"]] == ["Good Omens", "Persuasion"]


@pytest.mark.asyncio
async def test_filter_without_criteria(client, catalog):
    resp = await client.get("/filter", params={"author": "", "genre": "", "page_count": -1})
    assert resp.status_code == 201
    assert len(resp.json()["data"]) == 4


@pytest.mark.asyncio
async def test_filter_rejects_other_negative_page_counts(client):
    resp = await client.get("/filter", params={"page_count": -5})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_catalog_store_error_is_500(client):
    with patch.object(SqlShelfStore, "select", AsyncMock(side_effect=StoreError("books", "down"))):
        for path in ("/recommended", "/authors", "/genres", "/pages", "/filter"):
            resp = await client.get(path)
            assert resp.status_code == 500
