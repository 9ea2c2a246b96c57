"""
Servicios de negocio para listas de lectura
"""
from typing import List, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.database import update_with_version
from app.core.errors import DuplicateEntryError, RecordNotFoundError
from app.core.pagination import Filters, Metadata, apply_filters, calculate_metadata, count_records, sortable
from app.core.validator import Validator, byte_length, permitted_value
from app.models.book import Book
from app.models.reading_list import ReadingList, ReadingListBook, ReadingStatus

LIST_SORT_SAFE_LIST = sortable("id", "name", "status", "created_at")


def validate_list(v: Validator, reading_list: ReadingList) -> None:
    v.check(reading_list.name != "", "name", "must be provided")
    v.check(byte_length(reading_list.name) <= 100, "name", "must not be more than 100 bytes long")
    v.check(reading_list.description != "", "description", "must be provided")
    v.check(byte_length(reading_list.description) <= 225, "description", "must not be more than 225 bytes long")
    v.check(
        permitted_value(reading_list.status, *(status.value for status in ReadingStatus)),
        "status",
        "must be reading or finished",
    )


class ReadingListService:
    """Servicio de negocio para listas de lectura"""

    @staticmethod
    def insert(session: Session, reading_list: ReadingList) -> ReadingList:
        session.add(reading_list)
        session.commit()
        session.refresh(reading_list)
        return reading_list

    @staticmethod
    def get(session: Session, list_id: int) -> ReadingList:
        if list_id < 1:
            raise RecordNotFoundError("list")
        reading_list = session.get(ReadingList, list_id)
        if reading_list is None:
            raise RecordNotFoundError("list")
        return reading_list

    @staticmethod
    def _paginate(session: Session, statement, filters: Filters) -> Tuple[List[ReadingList], Metadata]:
        total = count_records(session, statement)
        lists = session.exec(apply_filters(statement, ReadingList, filters)).all()
        return list(lists), calculate_metadata(total, filters.page, filters.page_size)

    @staticmethod
    def get_all(session: Session, filters: Filters) -> Tuple[List[ReadingList], Metadata]:
        return ReadingListService._paginate(session, select(ReadingList), filters)

    @staticmethod
    def get_for_user(session: Session, user_id: int, filters: Filters) -> Tuple[List[ReadingList], Metadata]:
        statement = select(ReadingList).where(ReadingList.user_id == user_id)
        return ReadingListService._paginate(session, statement, filters)

    @staticmethod
    def update(session: Session, reading_list: ReadingList, changes: dict) -> ReadingList:
        return update_with_version(session, reading_list, changes)

    @staticmethod
    def delete(session: Session, list_id: int) -> None:
        if list_id < 1:
            raise RecordNotFoundError("list")
        result = session.exec(delete(ReadingList).where(ReadingList.id == list_id))
        if result.rowcount == 0:
            session.rollback()
            raise RecordNotFoundError("list")
        session.commit()

    @staticmethod
    def add_book(session: Session, list_id: int, book_id: int) -> ReadingListBook:
        """Agregar un libro existente a una lista existente"""
        ReadingListService.get(session, list_id)
        if book_id < 1 or session.get(Book, book_id) is None:
            raise RecordNotFoundError("book")

        existing = session.exec(
            select(ReadingListBook)
            .where(ReadingListBook.list_id == list_id)
            .where(ReadingListBook.book_id == book_id)
        ).first()
        if existing is not None:
            raise DuplicateEntryError(book_id)

        entry = ReadingListBook(list_id=list_id, book_id=book_id)
        session.add(entry)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateEntryError(book_id) from exc
        session.refresh(entry)
        return entry

    @staticmethod
    def get_books(session: Session, list_id: int, filters: Filters) -> Tuple[List[Book], Metadata]:
        ReadingListService.get(session, list_id)
        statement = (
            select(Book)
            .join(ReadingListBook, ReadingListBook.book_id == Book.id)
            .where(ReadingListBook.list_id == list_id)
        )
        total = count_records(session, statement)
        books = session.exec(apply_filters(statement, Book, filters)).all()
        return list(books), calculate_metadata(total, filters.page, filters.page_size)

    @staticmethod
    def remove_book(session: Session, list_id: int, book_id: int) -> None:
        if list_id < 1 or book_id < 1:
            raise RecordNotFoundError("list book")
        result = session.exec(
            delete(ReadingListBook)
            .where(ReadingListBook.list_id == list_id)
            .where(ReadingListBook.book_id == book_id)
        )
        if result.rowcount == 0:
            session.rollback()
            raise RecordNotFoundError("list book")
        session.commit()
