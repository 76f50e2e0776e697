"""Maps shelf names to the collection that stores them."""

from enum import Enum

from bookshelf import config
from bookshelf.errors import UnknownShelfError


class Shelf(str, Enum):
    TO_READ = "to-read"
    READING = "reading"
    READ = "read"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self][0]

    @property
    def id_field(self) -> str:
        return _COLLECTIONS[self][1]


_COLLECTIONS = {
    Shelf.TO_READ: ("books_to_read", "to_read_id"),
    Shelf.READING: ("books_being_read", "being_read_id"),
    Shelf.READ: ("books_read", "read_id"),
}

# Every spelling the web client and older routes have used for a shelf.
_ALIASES = {
    "to-read": Shelf.TO_READ,
    "to-read-books": Shelf.TO_READ,
    "will-read": Shelf.TO_READ,
    "want-to-read": Shelf.TO_READ,
    "books-to-read": Shelf.TO_READ,
    "reading": Shelf.READING,
    "reading-books": Shelf.READING,
    "currently-reading": Shelf.READING,
    "being-read": Shelf.READING,
    "books-being-read": Shelf.READING,
    "read": Shelf.READ,
    "read-books": Shelf.READ,
    "have-read": Shelf.READ,
    "books-read": Shelf.READ,
}


def _normalize(value: str) -> str:
    return value.strip().lower().replace("_", "-")


def resolve_shelf(shelf: str | Shelf, fallback: str | None = None) -> Shelf:
    """Resolve a shelf name or alias to a Shelf.

    Unknown names raise UnknownShelfError unless a fallback shelf is given,
    either here or through BOOKSHELF_UNKNOWN_SHELF_FALLBACK.
    """
    if isinstance(shelf, Shelf):
        return shelf
    found = _ALIASES.get(_normalize(str(shelf)))
    if found is not None:
        return found

    fallback = fallback or config.UNKNOWN_SHELF_FALLBACK
    if fallback:
        default = _ALIASES.get(_normalize(fallback))
        if default is not None:
            return default
    raise UnknownShelfError(str(shelf))
