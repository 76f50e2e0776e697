from fastapi import Depends, Header, HTTPException, Request

from bookshelf.database import SessionLocal
from bookshelf.services.catalog_service import CatalogService
from bookshelf.services.shelf_service import ShelfService
from bookshelf.services.sql_store import SqlShelfStore
from bookshelf.services.store import ShelfStore


async def get_user_id(x_user_id: str | None = Header(None)) -> str:
    """The auth layer in front of this app resolves the user and passes its id along."""
    if not x_user_id:
        raise HTTPException(status_code=403, detail="User not logged in")
    return x_user_id


async def get_store(request: Request):
    """The hosted store set up at startup, or a store on a fresh database session."""
    store = getattr(request.app.state, "shelf_store", None)
    if store is not None:
        yield store
        return
    async with SessionLocal() as session:
        yield SqlShelfStore(session)


async def get_shelf_service(store: ShelfStore = Depends(get_store)) -> ShelfService:
    return ShelfService(store)


async def get_catalog_service(store: ShelfStore = Depends(get_store)) -> CatalogService:
    return CatalogService(store)
