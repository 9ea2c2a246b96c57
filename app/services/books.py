"""
Servicios de negocio para libros
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from app.core.database import update_with_version
from app.core.errors import RecordNotFoundError
from app.core.pagination import Filters, Metadata, apply_filters, calculate_metadata, count_records, sortable
from app.core.validator import Validator, byte_length
from app.models.book import Book

BOOK_SORT_SAFE_LIST = sortable("id", "title", "author", "genre", "pub_date", "avg_rating")


def contains_pattern(term: str) -> str:
    """Patrón LIKE de subcadena; los comodines del usuario se buscan literalmente"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def validate_book(v: Validator, book: Book) -> None:
    v.check(book.title != "", "title", "must be provided")
    v.check(byte_length(book.title) <= 100, "title", "must not be more than 100 bytes long")
    v.check(book.author != "", "author", "must be provided")
    v.check(byte_length(book.author) <= 100, "author", "must not be more than 100 bytes long")
    v.check(book.isbn != "", "isbn", "must be provided")
    v.check(book.pub_date is not None, "pub_date", "must be provided")
    if book.pub_date is not None:
        v.check(book.pub_date <= date.today(), "pub_date", "must not be in the future")
    v.check(book.genre != "", "genre", "must be provided")
    v.check(book.description != "", "description", "must be provided")
    v.check(byte_length(book.description) <= 225, "description", "must not be more than 225 bytes long")
    v.check(1 <= book.avg_rating <= 5, "avg_rating", "must be between 1 and 5")


class BookService:
    """Servicio de negocio para libros"""

    @staticmethod
    def insert(session: Session, book: Book) -> Book:
        session.add(book)
        session.commit()
        session.refresh(book)
        return book

    @staticmethod
    def get(session: Session, book_id: int) -> Book:
        if book_id < 1:
            raise RecordNotFoundError("book")
        book = session.get(Book, book_id)
        if book is None:
            raise RecordNotFoundError("book")
        return book

    @staticmethod
    def _paginate(session: Session, statement, filters: Filters) -> Tuple[List[Book], Metadata]:
        total = count_records(session, statement)
        books = session.exec(apply_filters(statement, Book, filters)).all()
        return list(books), calculate_metadata(total, filters.page, filters.page_size)

    @staticmethod
    def get_all(session: Session, filters: Filters) -> Tuple[List[Book], Metadata]:
        return BookService._paginate(session, select(Book), filters)

    @staticmethod
    def search(
        session: Session,
        filters: Filters,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> Tuple[List[Book], Metadata]:
        """Búsqueda por subcadena sin distinguir mayúsculas; un campo vacío no filtra"""
        statement = select(Book)
        if title:
            statement = statement.where(Book.title.ilike(contains_pattern(title), escape="\\"))
        if author:
            statement = statement.where(Book.author.ilike(contains_pattern(author), escape="\\"))
        if genre:
            statement = statement.where(Book.genre.ilike(contains_pattern(genre), escape="\\"))
        return BookService._paginate(session, statement, filters)

    @staticmethod
    def update(session: Session, book: Book, changes: dict) -> Book:
        return update_with_version(session, book, changes)

    @staticmethod
    def delete(session: Session, book_id: int) -> None:
        if book_id < 1:
            raise RecordNotFoundError("book")
        result = session.exec(delete(Book).where(Book.id == book_id))
        if result.rowcount == 0:
            session.rollback()
            raise RecordNotFoundError("book")
        session.commit()
