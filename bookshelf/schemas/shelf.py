from typing import Any

from pydantic import BaseModel, Field


class AddBookRequest(BaseModel):
    title: str = Field(min_length=1)
    authors: list[str] = []
    table: str


class MoveBookRequest(BaseModel):
    book_id: int
    start: str
    end: str


class MoveBookByTitleRequest(BaseModel):
    title: str = ""
    start: str = ""
    end: str = ""


class RemoveBookRequest(BaseModel):
    book_id: int
    bookshelf: str


class ClearShelfRequest(BaseModel):
    bookshelf: str


class ShelfEntryResponse(BaseModel):
    id: int | None
    title: str
    authors: list[str]
    user_id: str
    shelf: str


class ShelfActionResponse(BaseModel):
    success: bool = True
    data: Any = None
