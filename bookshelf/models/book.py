from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bookshelf.database import Base


class Book(Base):
    """A book in the shared catalog that the trending/recommended list is built from."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    genres: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    page_count: Mapped[int | None] = mapped_column(Integer)
    cover_url: Mapped[str | None] = mapped_column(String(500))
