import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bookshelf import config
from bookshelf.database import create_tables
from bookshelf.errors import SameShelfError, UnknownShelfError
from bookshelf.routers import catalog, shelves
from bookshelf.services.postgrest import PostgrestShelfStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = None
    if config.STORE_BACKEND == "postgrest":
        store = PostgrestShelfStore.from_config()
        app.state.shelf_store = store
    else:
        await create_tables()
    yield
    if store is not None:
        await store.aclose()


async def _bad_shelf_request(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    logging.getLogger("bookshelf").setLevel(config.LOG_LEVEL)

    app = FastAPI(title="Bookshelf", version="0.1.0", lifespan=lifespan)
    app.include_router(shelves.router)
    app.include_router(catalog.router)
    app.add_exception_handler(UnknownShelfError, _bad_shelf_request)
    app.add_exception_handler(SameShelfError, _bad_shelf_request)
    return app


app = create_app()
