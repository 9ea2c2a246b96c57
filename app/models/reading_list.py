"""
Modelos de listas de lectura
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field


class ReadingStatus(str, Enum):
    READING = "reading"
    FINISHED = "finished"


class ReadingListBase(SQLModel):
    name: str = Field(max_length=255)
    description: str = Field(max_length=500)
    status: str = Field(default=ReadingStatus.READING.value, max_length=20)


class ReadingList(ReadingListBase, table=True):
    """Lista de lectura; su dueño es siempre quien la creó"""
    __tablename__ = "reading_lists"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        sa_type=DateTime(timezone=True),
    )
    version: int = Field(default=1)


class ReadingListRead(ReadingListBase):
    id: int
    user_id: int
    created_at: datetime
    version: int


class ReadingListBook(SQLModel, table=True):
    """Libro agregado a una lista"""
    __tablename__ = "reading_list_books"
    __table_args__ = (UniqueConstraint("list_id", "book_id", name="uq_reading_list_books_list_book"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(foreign_key="reading_lists.id", index=True, ondelete="CASCADE")
    book_id: int = Field(foreign_key="books.id", index=True, ondelete="CASCADE")
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )


class ReadingListBookRead(SQLModel):
    id: int
    list_id: int
    book_id: int
    added_at: datetime
