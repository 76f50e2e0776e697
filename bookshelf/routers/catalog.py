import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from bookshelf.deps import get_catalog_service
from bookshelf.errors import StoreError
from bookshelf.schemas.shelf import ShelfActionResponse
from bookshelf.services.catalog_service import NO_PAGE_LIMIT, CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])


def _store_failed(e: StoreError) -> HTTPException:
    logger.error("Catalog lookup failed: %s", e)
    return HTTPException(status_code=500, detail="Shelf store error")


@router.get("/recommended", response_model=ShelfActionResponse, status_code=201)
async def recommended(service: CatalogService = Depends(get_catalog_service)):
    try:
        return ShelfActionResponse(data=await service.recommended())
    except StoreError as e:
        raise _store_failed(e) from e


@router.get("/authors", response_model=ShelfActionResponse, status_code=201)
async def authors(service: CatalogService = Depends(get_catalog_service)):
    try:
        return ShelfActionResponse(data=await service.authors())
    except StoreError as e:
        raise _store_failed(e) from e


@router.get("/genres", response_model=ShelfActionResponse, status_code=201)
async def genres(service: CatalogService = Depends(get_catalog_service)):
    try:
        return ShelfActionResponse(data=await service.genres())
    except StoreError as e:
        raise _store_failed(e) from e


@router.get("/pages", response_model=ShelfActionResponse, status_code=201)
async def max_pages(service: CatalogService = Depends(get_catalog_service)):
    try:
        return ShelfActionResponse(data=await service.max_page_count())
    except StoreError as e:
        raise _store_failed(e) from e


@router.get("/filter", response_model=ShelfActionResponse, status_code=201)
async def filter_books(
    author: str = "",
    genre: str = "",
    page_count: int = Query(NO_PAGE_LIMIT, ge=NO_PAGE_LIMIT, description="Maximum pages, -1 for any"),
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return ShelfActionResponse(data=await service.filter_books(author, genre, page_count))
    except StoreError as e:
        raise _store_failed(e) from e
