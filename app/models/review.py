"""
Modelos de reseñas
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class ReviewBase(SQLModel):
    rating: int
    description: str = Field(max_length=500)


class Review(ReviewBase, table=True):
    """Reseña de un libro escrita por un usuario"""
    __tablename__ = "reviews"

    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="books.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        sa_type=DateTime(timezone=True),
    )
    version: int = Field(default=1)


class ReviewRead(ReviewBase):
    id: int
    book_id: int
    user_id: int
    created_at: datetime
    version: int
