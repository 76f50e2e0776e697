from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from bookshelf.database import Base


class ShelfEntryMixin:
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))


class BookToRead(ShelfEntryMixin, Base):
    __tablename__ = "books_to_read"

    to_read_id: Mapped[int] = mapped_column(primary_key=True)


class BookBeingRead(ShelfEntryMixin, Base):
    __tablename__ = "books_being_read"

    being_read_id: Mapped[int] = mapped_column(primary_key=True)


class BookRead(ShelfEntryMixin, Base):
    __tablename__ = "books_read"

    read_id: Mapped[int] = mapped_column(primary_key=True)
