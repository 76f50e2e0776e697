"""Shelf store backed by the local SQLAlchemy database."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.errors import StoreError
from bookshelf.models import COLLECTION_MODELS
from bookshelf.services.store import Filter

logger = logging.getLogger(__name__)


def _model_for(collection: str):
    model = COLLECTION_MODELS.get(collection)
    if model is None:
        raise StoreError(collection, "no such collection")
    return model


def _pk_name(model) -> str:
    return model.__mapper__.primary_key[0].name


def _columns(model) -> list[str]:
    return [attr.key for attr in model.__mapper__.column_attrs]


def _to_row(model, obj) -> dict:
    row = {key: getattr(obj, key) for key in _columns(model)}
    for key, value in row.items():
        if isinstance(value, list):
            row[key] = list(value)
    return row


def _split(model, filters: list[Filter]):
    """Equality and lte filters become SQL clauses, contains filters run in Python over JSON arrays."""
    clauses, remaining = [], []
    for f in filters:
        if f.op in ("eq", "lte"):
            column = getattr(model, f.column, None)
            if column is None:
                raise StoreError(model.__tablename__, f"unknown column {f.column!r}")
            clauses.append(column == f.value if f.op == "eq" else column <= f.value)
        else:
            remaining.append(f)
    return clauses, remaining


class SqlShelfStore:
    """Each call runs and commits on its own, like one round trip to a remote store."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _matching(self, model, filters: list[Filter]) -> list:
        clauses, remaining = _split(model, filters)
        result = await self.session.execute(
            select(model).where(*clauses).order_by(getattr(model, _pk_name(model)))
        )
        objs = result.scalars().all()
        return [o for o in objs if all(f.matches(_to_row(model, o)) for f in remaining)]

    async def select(self, collection: str, filters: list[Filter]) -> list[dict]:
        model = _model_for(collection)
        try:
            return [_to_row(model, o) for o in await self._matching(model, filters)]
        except SQLAlchemyError as e:
            raise StoreError(collection, str(e)) from e

    async def insert(self, collection: str, row: dict) -> list[dict]:
        model = _model_for(collection)
        pk = _pk_name(model)
        obj = model(**{k: v for k, v in row.items() if k in _columns(model) and k != pk})
        try:
            self.session.add(obj)
            await self.session.commit()
            await self.session.refresh(obj)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(collection, str(e)) from e
        return [_to_row(model, obj)]

    async def delete(self, collection: str, filters: list[Filter]) -> list[dict]:
        model = _model_for(collection)
        pk = _pk_name(model)
        try:
            doomed = await self._matching(model, filters)
            rows = [_to_row(model, o) for o in doomed]
            if rows:
                await self.session.execute(
                    delete(model).where(getattr(model, pk).in_([r[pk] for r in rows]))
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(collection, str(e)) from e
        logger.debug("Deleted %d row(s) from %s", len(rows), collection)
        return rows
