"""Browse the shared book catalog behind the trending/recommended list."""

import logging

from bookshelf.config import STORE_TIMEOUT
from bookshelf.models import Book
from bookshelf.services.store import Filter, ShelfStore, call_with_timeout, contains, lte

logger = logging.getLogger(__name__)

CATALOG = Book.__tablename__

# page_count value meaning "any length"
NO_PAGE_LIMIT = -1


def _book(row: dict) -> dict:
    return {
        "id": row.get("id"),
        "title": row.get("title"),
        "authors": list(row.get("authors") or []),
        "genres": list(row.get("genres") or []),
        "page_count": row.get("page_count"),
        "cover_url": row.get("cover_url"),
    }


def _distinct(rows: list[dict], column: str) -> list[str]:
    values = set()
    for row in rows:
        values.update(row.get(column) or [])
    return sorted(values)


class CatalogService:
    """Read-only views of the catalog. Store failures propagate as StoreError."""

    def __init__(self, store: ShelfStore, timeout: float = STORE_TIMEOUT):
        self.store = store
        self.timeout = timeout

    async def _select(self, filters: list[Filter]) -> list[dict]:
        rows = await call_with_timeout(CATALOG, self.store.select(CATALOG, filters), self.timeout)
        return sorted(rows, key=lambda r: r.get("id") or 0)

    async def recommended(self) -> list[dict]:
        books = [_book(r) for r in await self._select([])]
        logger.info("Recommended list has %d book(s)", len(books))
        return books

    async def authors(self) -> list[str]:
        return _distinct(await self._select([]), "authors")

    async def genres(self) -> list[str]:
        return _distinct(await self._select([]), "genres")

    async def max_page_count(self) -> int | None:
        counts = [r["page_count"] for r in await self._select([]) if r.get("page_count") is not None]
        return max(counts, default=None)

    async def filter_books(self, author: str = "", genre: str = "", page_count: int = NO_PAGE_LIMIT) -> list[dict]:
        """Books by author, genre, and at most page_count pages.

        A blank author or genre and a page_count of -1 leave that criterion out.
        """
        filters = []
        if author.strip():
            filters.append(contains("authors", [author.strip()]))
        if genre.strip():
            filters.append(contains("genres", [genre.strip()]))
        if page_count != NO_PAGE_LIMIT:
            filters.append(lte("page_count", page_count))
        books = [_book(r) for r in await self._select(filters)]
        logger.info("Filtered list has %d book(s)", len(books))
        return books
