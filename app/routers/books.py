"""
Router para endpoints de libros
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from ..core.auth import require_activated_user
from ..core.database import get_session
from ..core.errors import FailedValidationError
from ..core.pagination import Filters, Metadata, filters_dependency
from ..core.validator import Validator
from ..models.book import Book, BookRead
from ..models.user import User
from ..schemas.books import BookCreate, BookUpdate
from ..services.books import BOOK_SORT_SAFE_LIST, BookService, validate_book


router = APIRouter(prefix="/books", tags=["books"])
logger = logging.getLogger(__name__)

book_filters = filters_dependency(BOOK_SORT_SAFE_LIST)


class BookEnvelope(BaseModel):
    book: BookRead


class BooksEnvelope(BaseModel):
    """Respuesta para lista de libros con paginación"""
    model_config = ConfigDict(populate_by_name=True)

    books: List[BookRead]
    metadata: Metadata = Field(alias="@metadata")


class MessageEnvelope(BaseModel):
    message: str


@router.get("", response_model=BooksEnvelope)
def list_books(
    filters: Filters = Depends(book_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    books, metadata = BookService.get_all(session, filters)
    return BooksEnvelope(books=[BookRead.model_validate(book) for book in books], metadata=metadata)


@router.post("", response_model=BookEnvelope, status_code=201)
def create_book(
    payload: BookCreate,
    response: Response,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    book = Book(**payload.model_dump())
    v = Validator()
    validate_book(v, book)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    book = BookService.insert(session, book)
    logger.info("Libro creado id=%s", book.id)
    response.headers["Location"] = f"/api/v1/books/{book.id}"
    return BookEnvelope(book=BookRead.model_validate(book))


# Debe ir antes de /{book_id}
@router.get("/search", response_model=BooksEnvelope)
def search_books(
    title: Optional[str] = Query(None, description="Subcadena del título"),
    author: Optional[str] = Query(None, description="Subcadena del autor"),
    genre: Optional[str] = Query(None, description="Subcadena del género"),
    filters: Filters = Depends(book_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Buscar libros por título, autor o género con paginación"""
    _ = current_user
    books, metadata = BookService.search(session, filters, title=title, author=author, genre=genre)
    return BooksEnvelope(books=[BookRead.model_validate(book) for book in books], metadata=metadata)


@router.get("/{book_id}", response_model=BookEnvelope)
def get_book(
    book_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    return BookEnvelope(book=BookRead.model_validate(BookService.get(session, book_id)))


@router.put("/{book_id}", response_model=BookEnvelope)
def update_book(
    book_id: int,
    payload: BookUpdate,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Actualización parcial; los campos enviados se validan junto con los guardados"""
    _ = current_user
    book = BookService.get(session, book_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    candidate = Book(**{**book.model_dump(), **changes})
    v = Validator()
    validate_book(v, candidate)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    book = BookService.update(session, book, changes)
    return BookEnvelope(book=BookRead.model_validate(book))


@router.delete("/{book_id}", response_model=MessageEnvelope)
def delete_book(
    book_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    BookService.delete(session, book_id)
    return MessageEnvelope(message="book successfully deleted")
