"""Add, move, remove, and clear books on a user's shelves.

Each shelf is its own collection in the store, so moving a book means
inserting it on the destination and then deleting it from the origin. The
store offers no transaction across collections: when the insert succeeds and
the delete fails, the book is left on both shelves and the move reports
PARTIAL_FAILURE so the caller can warn the user.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum

from bookshelf.config import DEDUP_MODE, STORE_TIMEOUT
from bookshelf.errors import SameShelfError, StoreError
from bookshelf.registry import Shelf
from bookshelf.services.store import Filter, ShelfStore, call_with_timeout, contains, eq

logger = logging.getLogger(__name__)


class ShelfOutcome(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    MOVED = "moved"
    NOT_FOUND = "not_found"
    INSERT_FAILED = "insert_failed"
    PARTIAL_FAILURE = "partial_failure"
    REMOVED = "removed"
    CLEARED = "cleared"
    LISTED = "listed"
    FAILURE = "failure"


@dataclass
class ShelfResult:
    outcome: ShelfOutcome
    entry_id: int | None = None
    entries: list[dict] = field(default_factory=list)
    detail: str | None = None


# Moves out of the same (user, shelf) run one at a time within this process.
_move_locks: "weakref.WeakValueDictionary[tuple[str, Shelf], asyncio.Lock]" = weakref.WeakValueDictionary()


def _move_lock(user_id: str, shelf: Shelf) -> asyncio.Lock:
    key = (user_id, shelf)
    lock = _move_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _move_locks[key] = lock
    return lock


def _entry(shelf: Shelf, row: dict) -> dict:
    return {
        "id": row.get(shelf.id_field),
        "title": row.get("title"),
        "authors": list(row.get("authors") or []),
        "user_id": row.get("user_id"),
        "shelf": shelf.value,
    }


def _book_filters(title: str, authors: list[str], user_id: str) -> list[Filter]:
    return [eq("title", title), contains("authors", authors), eq("user_id", user_id)]


class ShelfService:
    def __init__(
        self,
        store: ShelfStore,
        timeout: float = STORE_TIMEOUT,
        dedup_mode: str = DEDUP_MODE,
    ):
        if dedup_mode not in ("contains", "exact"):
            raise ValueError(f"Unknown dedup mode: {dedup_mode!r}")
        self.store = store
        self.timeout = timeout
        self.dedup_mode = dedup_mode

    async def _call(self, collection: str, op):
        return await call_with_timeout(collection, op, self.timeout)

    async def _select(self, shelf: Shelf, filters: list[Filter]) -> list[dict]:
        rows = await self._call(shelf.collection, self.store.select(shelf.collection, filters))
        return sorted(rows, key=lambda r: r.get(shelf.id_field) or 0)

    async def _find_book(self, shelf: Shelf, title: str, authors: list[str], user_id: str) -> list[dict]:
        rows = await self._select(shelf, _book_filters(title, authors, user_id))
        if self.dedup_mode == "exact":
            wanted = set(authors)
            rows = [r for r in rows if set(r.get("authors") or []) == wanted]
        return rows

    async def add_book(self, title: str, authors: list[str], shelf: Shelf, user_id: str) -> ShelfResult:
        try:
            existing = await self._find_book(shelf, title, authors, user_id)
        except StoreError as e:
            logger.error("Duplicate check on %s failed: %s", shelf.collection, e)
            return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
        if existing:
            logger.warning("'%s' is already on %s for user %s", title, shelf.value, user_id)
            return ShelfResult(ShelfOutcome.DUPLICATE, entry_id=existing[0].get(shelf.id_field))

        row = {"title": title, "authors": list(authors), "user_id": user_id}
        try:
            await self._call(shelf.collection, self.store.insert(shelf.collection, row))
            # Some stores do not return the inserted row, read the id back
            added = await self._find_book(shelf, title, authors, user_id)
        except StoreError as e:
            logger.error("Adding '%s' to %s failed: %s", title, shelf.collection, e)
            return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
        if not added:
            logger.error("'%s' was inserted into %s but cannot be read back", title, shelf.collection)
            return ShelfResult(ShelfOutcome.FAILURE, detail="Inserted row could not be read back")

        entry = _entry(shelf, added[0])
        logger.info("Added '%s' to %s (id=%s) for user %s", title, shelf.value, entry["id"], user_id)
        return ShelfResult(ShelfOutcome.ADDED, entry_id=entry["id"], entries=[entry])

    async def move_book(
        self,
        origin: Shelf,
        destination: Shelf,
        user_id: str,
        *,
        book_id: int | None = None,
        title: str | None = None,
    ) -> ShelfResult:
        """Move one book from origin to destination, by row id or by exact title.

        The book is inserted on the destination before it is deleted from the
        origin, so a failure part way through duplicates the book rather than
        losing it. The moved book gets a new id. When the destination already
        holds the same book, the origin copy is removed and the existing
        destination row is kept.
        """
        if (book_id is None) == (title is None):
            raise ValueError("Pass exactly one of book_id or title")
        if origin == destination:
            raise SameShelfError(origin.value)

        if book_id is not None:
            key, lookup = book_id, [eq(origin.id_field, book_id), eq("user_id", user_id)]
        else:
            key, lookup = title, [eq("title", title), eq("user_id", user_id)]

        async with _move_lock(user_id, origin):
            try:
                rows = await self._select(origin, lookup)
            except StoreError as e:
                logger.error("Looking up book on %s failed: %s", origin.collection, e)
                return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
            if not rows:
                logger.warning("No book matching %s on %s for user %s", key, origin.value, user_id)
                return ShelfResult(ShelfOutcome.NOT_FOUND)
            if len(rows) > 1:
                logger.warning(
                    "%d books match %s on %s for user %s, moving the lowest id",
                    len(rows), key, origin.value, user_id,
                )
            source = rows[0]
            origin_id = source[origin.id_field]
            authors = list(source.get("authors") or [])
            row = {"title": source["title"], "authors": authors, "user_id": user_id}

            try:
                existing = await self._find_book(destination, source["title"], authors, user_id)
            except StoreError as e:
                logger.error("Duplicate check on %s failed: %s", destination.collection, e)
                return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))

            inserted_id = None
            if existing:
                new_id = existing[0].get(destination.id_field)
                logger.info(
                    "'%s' is already on %s (id=%s), only removing it from %s",
                    source["title"], destination.value, new_id, origin.value,
                )
            else:
                try:
                    inserted = await self._call(
                        destination.collection, self.store.insert(destination.collection, row)
                    )
                except StoreError as e:
                    logger.error(
                        "Inserting into %s failed, %s left untouched: %s", destination.collection, origin.value, e
                    )
                    return ShelfResult(ShelfOutcome.INSERT_FAILED, detail=str(e))
                new_id = inserted_id = await self._new_id(destination, inserted, source["title"], authors, user_id)

            try:
                deleted = await self._call(
                    origin.collection,
                    self.store.delete(origin.collection, [eq(origin.id_field, origin_id), eq("user_id", user_id)]),
                )
            except StoreError as e:
                logger.error(
                    "Moved '%s' to %s (id=%s) but could not delete it from %s (id=%s), book is on both shelves: %s",
                    source["title"], destination.value, new_id, origin.value, origin_id, e,
                )
                return ShelfResult(
                    ShelfOutcome.PARTIAL_FAILURE,
                    entry_id=new_id,
                    detail=f"Book is now on both {origin.value} and {destination.value}",
                )
            if not deleted:
                return await self._undo_insert(origin, origin_id, destination, inserted_id, existing, user_id)

        logger.info(
            "Moved '%s' from %s to %s (id %s -> %s) for user %s",
            source["title"], origin.value, destination.value, origin_id, new_id, user_id,
        )
        entry = _entry(destination, {**row, destination.id_field: new_id})
        return ShelfResult(ShelfOutcome.MOVED, entry_id=new_id, entries=[entry])

    async def _undo_insert(
        self,
        origin: Shelf,
        origin_id: int,
        destination: Shelf,
        inserted_id: int | None,
        existing: list[dict],
        user_id: str,
    ) -> ShelfResult:
        """The origin row vanished between SELECT and DELETE, another request moved or removed it."""
        logger.warning("Origin row %s on %s was already gone when the move finished", origin_id, origin.value)
        if existing:
            return ShelfResult(ShelfOutcome.NOT_FOUND, detail="Book was moved or removed by another request")
        if inserted_id is None:
            logger.error("Cannot undo the insert into %s, its id is unknown", destination.collection)
            return ShelfResult(
                ShelfOutcome.PARTIAL_FAILURE,
                detail=f"Book may now be duplicated on {destination.value}",
            )
        try:
            await self._call(
                destination.collection,
                self.store.delete(
                    destination.collection, [eq(destination.id_field, inserted_id), eq("user_id", user_id)]
                ),
            )
        except StoreError as e:
            logger.error("Undoing insert %s on %s failed: %s", inserted_id, destination.collection, e)
            return ShelfResult(
                ShelfOutcome.PARTIAL_FAILURE,
                entry_id=inserted_id,
                detail=f"Book may now be duplicated on {destination.value}",
            )
        logger.info("Removed row %s from %s after the origin row disappeared", inserted_id, destination.collection)
        return ShelfResult(ShelfOutcome.NOT_FOUND, detail="Book was moved or removed by another request")

    async def _new_id(
        self, shelf: Shelf, inserted: list[dict], title: str, authors: list[str], user_id: str
    ) -> int | None:
        for r in inserted or []:
            if r.get(shelf.id_field) is not None:
                return r[shelf.id_field]
        try:
            rows = await self._select(shelf, _book_filters(title, authors, user_id))
        except StoreError as e:
            logger.warning("Could not read back new id on %s: %s", shelf.collection, e)
            return None
        return rows[-1].get(shelf.id_field) if rows else None

    async def remove_book(self, book_id: int, shelf: Shelf, user_id: str) -> ShelfResult:
        try:
            deleted = await self._call(
                shelf.collection,
                self.store.delete(shelf.collection, [eq(shelf.id_field, book_id), eq("user_id", user_id)]),
            )
        except StoreError as e:
            logger.error("Removing book %s from %s failed: %s", book_id, shelf.collection, e)
            return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
        if not deleted:
            logger.warning("Book %s was not on %s for user %s", book_id, shelf.value, user_id)
        else:
            logger.info("Removed book %s from %s for user %s", book_id, shelf.value, user_id)
        return ShelfResult(ShelfOutcome.REMOVED, entry_id=book_id)

    async def clear_shelf(self, shelf: Shelf, user_id: str) -> ShelfResult:
        try:
            deleted = await self._call(shelf.collection, self.store.delete(shelf.collection, [eq("user_id", user_id)]))
        except StoreError as e:
            logger.error("Clearing %s failed: %s", shelf.collection, e)
            return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
        logger.info("Cleared %d book(s) from %s for user %s", len(deleted or []), shelf.value, user_id)
        return ShelfResult(ShelfOutcome.CLEARED)

    async def list_shelf(self, shelf: Shelf, user_id: str) -> ShelfResult:
        try:
            rows = await self._select(shelf, [eq("user_id", user_id)])
        except StoreError as e:
            logger.error("Listing %s failed: %s", shelf.collection, e)
            return ShelfResult(ShelfOutcome.FAILURE, detail=str(e))
        return ShelfResult(ShelfOutcome.LISTED, entries=[_entry(shelf, r) for r in rows])
