"""The row-oriented store that holds shelf collections and the book catalog.

A store exposes select/insert/delete per collection. Rows are plain dicts
keyed by column name, filters are equality, array-contains, or
less-than-or-equal tests. Implementations raise StoreError for any failure.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from bookshelf.errors import StoreError

FilterOp = Literal["eq", "contains", "lte"]


@dataclass(frozen=True)
class Filter:
    column: str
    op: FilterOp
    value: Any

    def matches(self, row: dict) -> bool:
        current = row.get(self.column)
        if self.op == "eq":
            return current == self.value
        if self.op == "contains":
            return current is not None and all(v in current for v in self.value)
        if self.op == "lte":
            return current is not None and current <= self.value
        raise ValueError(f"Unsupported filter op: {self.op}")


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def contains(column: str, values: list) -> Filter:
    return Filter(column, "contains", list(values))


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


class ShelfStore(Protocol):
    async def select(self, collection: str, filters: list[Filter]) -> list[dict]: ...

    async def insert(self, collection: str, row: dict) -> list[dict]: ...

    async def delete(self, collection: str, filters: list[Filter]) -> list[dict]: ...


async def call_with_timeout(collection: str, op, timeout: float):
    """Await one store call, turning a timeout into StoreError."""
    try:
        return await asyncio.wait_for(op, timeout=timeout)
    except TimeoutError as e:
        raise StoreError(collection, f"timed out after {timeout}s") from e
