from fastapi import APIRouter, Depends, HTTPException

from bookshelf.deps import get_shelf_service, get_user_id
from bookshelf.registry import resolve_shelf
from bookshelf.schemas.shelf import (
    AddBookRequest,
    ClearShelfRequest,
    MoveBookByTitleRequest,
    MoveBookRequest,
    RemoveBookRequest,
    ShelfActionResponse,
    ShelfEntryResponse,
)
from bookshelf.services.shelf_service import ShelfOutcome, ShelfResult, ShelfService

router = APIRouter(tags=["shelves"])

PARTIAL_MOVE_DETAIL = (
    "Book was added to the destination shelf but could not be removed from the origin shelf; "
    "it is now on both shelves"
)

_ADD_ERRORS = {
    ShelfOutcome.DUPLICATE: (409, "Book is already on this shelf"),
}

_MOVE_ERRORS = {
    ShelfOutcome.NOT_FOUND: (404, "Book not found on the origin shelf"),
    ShelfOutcome.INSERT_FAILED: (404, "Book could not be added to the destination shelf"),
    ShelfOutcome.PARTIAL_FAILURE: (409, PARTIAL_MOVE_DETAIL),
}

_MOVE_BY_TITLE_ERRORS = {
    ShelfOutcome.NOT_FOUND: (404, "Book not found on the origin shelf"),
    ShelfOutcome.PARTIAL_FAILURE: (409, PARTIAL_MOVE_DETAIL),
}


def _raise_for(result: ShelfResult, errors: dict) -> None:
    status_code, detail = errors.get(result.outcome, (500, "Shelf store error"))
    raise HTTPException(status_code=status_code, detail=detail)


@router.get("/shelves/{shelf_name}", response_model=list[ShelfEntryResponse])
async def list_shelf(
    shelf_name: str,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    result = await service.list_shelf(resolve_shelf(shelf_name), user_id)
    if result.outcome != ShelfOutcome.LISTED:
        _raise_for(result, {})
    return result.entries


@router.post("/addbooktoshelf", response_model=ShelfActionResponse, status_code=201)
async def add_book_to_shelf(
    data: AddBookRequest,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    result = await service.add_book(data.title, data.authors, resolve_shelf(data.table), user_id)
    if result.outcome != ShelfOutcome.ADDED:
        _raise_for(result, _ADD_ERRORS)
    return ShelfActionResponse(data={"id": result.entry_id})


@router.delete("/move", response_model=ShelfActionResponse, status_code=201)
async def move_book(
    data: MoveBookRequest,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    result = await service.move_book(
        resolve_shelf(data.start), resolve_shelf(data.end), user_id, book_id=data.book_id
    )
    if result.outcome != ShelfOutcome.MOVED:
        _raise_for(result, _MOVE_ERRORS)
    return ShelfActionResponse(data={"id": result.entry_id})


@router.delete("/move-btn", response_model=ShelfActionResponse, status_code=201)
async def move_book_by_title(
    data: MoveBookByTitleRequest,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    if not (data.title.strip() and data.start and data.end):
        raise HTTPException(status_code=400, detail="Missing title/start/end")
    result = await service.move_book(
        resolve_shelf(data.start), resolve_shelf(data.end), user_id, title=data.title.strip()
    )
    if result.outcome != ShelfOutcome.MOVED:
        _raise_for(result, _MOVE_BY_TITLE_ERRORS)
    return ShelfActionResponse(data={"id": result.entry_id})


@router.delete("/delete", response_model=ShelfActionResponse, status_code=201)
async def remove_book(
    data: RemoveBookRequest,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    result = await service.remove_book(data.book_id, resolve_shelf(data.bookshelf), user_id)
    if result.outcome != ShelfOutcome.REMOVED:
        _raise_for(result, {})
    return ShelfActionResponse()


@router.delete("/clear", response_model=ShelfActionResponse)
async def clear_shelf(
    data: ClearShelfRequest,
    user_id: str = Depends(get_user_id),
    service: ShelfService = Depends(get_shelf_service),
):
    result = await service.clear_shelf(resolve_shelf(data.bookshelf), user_id)
    if result.outcome != ShelfOutcome.CLEARED:
        _raise_for(result, {})
    return ShelfActionResponse()
