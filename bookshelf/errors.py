"""Exceptions raised by the shelf registry, stores, and service."""


class BookshelfError(Exception):
    """Base class for all bookshelf errors."""


class UnknownShelfError(BookshelfError, ValueError):
    def __init__(self, shelf: str):
        super().__init__(f"Unknown shelf: {shelf!r}")
        self.shelf = shelf


class SameShelfError(BookshelfError, ValueError):
    def __init__(self, shelf: str):
        super().__init__(f"Start and end shelves must be different (both {shelf!r})")
        self.shelf = shelf


class StoreError(BookshelfError):
    """A shelf store call failed: transport error, timeout, or rejected write."""

    def __init__(self, collection: str, message: str):
        super().__init__(f"{collection}: {message}")
        self.collection = collection
        self.message = message
