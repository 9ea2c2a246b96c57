"""
Modelos de libros
"""
from datetime import date
from typing import Optional

from sqlmodel import SQLModel, Field


class BookBase(SQLModel):
    """Campos editables de un libro"""
    title: str = Field(max_length=255)
    author: str = Field(max_length=255)
    isbn: str = Field(max_length=32, index=True)
    pub_date: date
    genre: str = Field(max_length=100, index=True)
    description: str = Field(max_length=500)
    avg_rating: float = Field(default=0)


class Book(BookBase, table=True):
    """Libro del catálogo"""
    __tablename__ = "books"

    id: Optional[int] = Field(default=None, primary_key=True)
    version: int = Field(default=1)


class BookRead(BookBase):
    id: int
    version: int
