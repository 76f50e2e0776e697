"""Shelf store client for a hosted PostgREST backend."""

import logging

import httpx

from bookshelf.config import POSTGREST_KEY, POSTGREST_URL, STORE_TIMEOUT
from bookshelf.errors import StoreError
from bookshelf.services.store import Filter

logger = logging.getLogger(__name__)

_RETURN_ROWS = {"Prefer": "return=representation"}


def _array_literal(values: list) -> str:
    """Format values as a Postgres array literal, e.g. {"Frank Herbert"}."""
    quoted = []
    for v in values:
        s = str(v).replace("\\", "\\\\").replace('"', '\\"')
        quoted.append(f'"{s}"')
    return "{" + ",".join(quoted) + "}"


def _encode_filters(filters: list[Filter]) -> list[tuple[str, str]]:
    params = []
    for f in filters:
        if f.op == "eq":
            params.append((f.column, f"eq.{f.value}"))
        elif f.op == "contains":
            params.append((f.column, f"cs.{_array_literal(f.value)}"))
        elif f.op == "lte":
            params.append((f.column, f"lte.{f.value}"))
        else:
            raise ValueError(f"Unsupported filter op: {f.op}")
    return params


class PostgrestShelfStore:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @classmethod
    def from_config(cls) -> "PostgrestShelfStore":
        headers = {}
        if POSTGREST_KEY:
            headers = {"apikey": POSTGREST_KEY, "Authorization": f"Bearer {POSTGREST_KEY}"}
        http = httpx.AsyncClient(base_url=POSTGREST_URL, headers=headers, timeout=STORE_TIMEOUT)
        return cls(http)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _send(self, method: str, collection: str, **kwargs) -> list[dict]:
        try:
            resp = await self.http.request(method, f"/{collection}", **kwargs)
        except httpx.HTTPError as e:
            logger.error("Shelf store %s %s failed: %s", method, collection, e)
            raise StoreError(collection, str(e)) from e

        if resp.status_code >= 400:
            logger.error("Shelf store %s %s -> %d: %s", method, collection, resp.status_code, resp.text)
            raise StoreError(collection, f"{resp.status_code} {resp.text}")
        if resp.status_code == 204 or not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    async def select(self, collection: str, filters: list[Filter]) -> list[dict]:
        params = [("select", "*"), *_encode_filters(filters)]
        return await self._send("GET", collection, params=params)

    async def insert(self, collection: str, row: dict) -> list[dict]:
        return await self._send("POST", collection, json=[row], headers=_RETURN_ROWS)

    async def delete(self, collection: str, filters: list[Filter]) -> list[dict]:
        if not filters:
            # PostgREST rejects unfiltered deletes
            raise StoreError(collection, "refusing to delete without filters")
        return await self._send("DELETE", collection, params=_encode_filters(filters), headers=_RETURN_ROWS)
