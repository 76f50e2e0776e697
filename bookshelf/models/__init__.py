from bookshelf.models.book import Book
from bookshelf.models.shelf import BookBeingRead, BookRead, BookToRead

COLLECTION_MODELS = {
    Book.__tablename__: Book,
    BookToRead.__tablename__: BookToRead,
    BookBeingRead.__tablename__: BookBeingRead,
    BookRead.__tablename__: BookRead,
}

__all__ = ["Book", "BookBeingRead", "BookRead", "BookToRead", "COLLECTION_MODELS"]
