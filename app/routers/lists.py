"""
Router para listas de lectura y los libros que contienen
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from ..core.auth import require_activated_user
from ..core.database import get_session
from ..core.errors import DuplicateEntryError, FailedValidationError, NotPermittedError
from ..core.pagination import Filters, Metadata, filters_dependency
from ..core.validator import Validator
from ..models.book import BookRead
from ..models.reading_list import ReadingList, ReadingListBookRead, ReadingListRead
from ..models.user import User
from ..schemas.lists import AddBookRequest, ListCreate, ListUpdate
from ..services.books import BOOK_SORT_SAFE_LIST
from ..services.lists import LIST_SORT_SAFE_LIST, ReadingListService, validate_list


router = APIRouter(prefix="/lists", tags=["lists"])
logger = logging.getLogger(__name__)

list_filters = filters_dependency(LIST_SORT_SAFE_LIST)
list_book_filters = filters_dependency(BOOK_SORT_SAFE_LIST)


class ListEnvelope(BaseModel):
    list: ReadingListRead


class ListsEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lists: List[ReadingListRead]
    metadata: Metadata = Field(alias="@metadata")


class ListBooksEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    books: List[BookRead]
    metadata: Metadata = Field(alias="@metadata")


class ListBookEnvelope(BaseModel):
    list_book: ReadingListBookRead


class MessageEnvelope(BaseModel):
    message: str


def _owned_list(session: Session, list_id: int, current_user: User) -> ReadingList:
    """Obtener la lista verificando que pertenezca al usuario actual"""
    reading_list = ReadingListService.get(session, list_id)
    if reading_list.user_id != current_user.id:
        raise NotPermittedError()
    return reading_list


@router.get("", response_model=ListsEnvelope)
def list_reading_lists(
    filters: Filters = Depends(list_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    lists, metadata = ReadingListService.get_all(session, filters)
    return ListsEnvelope(lists=[ReadingListRead.model_validate(item) for item in lists], metadata=metadata)


@router.post("", response_model=ListEnvelope, status_code=201)
def create_reading_list(
    payload: ListCreate,
    response: Response,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Crear una lista; el dueño es siempre el usuario autenticado"""
    reading_list = ReadingList(**payload.model_dump(), user_id=current_user.id)
    v = Validator()
    validate_list(v, reading_list)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    reading_list = ReadingListService.insert(session, reading_list)
    response.headers["Location"] = f"/api/v1/lists/{reading_list.id}"
    return ListEnvelope(list=ReadingListRead.model_validate(reading_list))


@router.get("/{list_id}", response_model=ListEnvelope)
def get_reading_list(
    list_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    return ListEnvelope(list=ReadingListRead.model_validate(ReadingListService.get(session, list_id)))


@router.put("/{list_id}", response_model=ListEnvelope)
def update_reading_list(
    list_id: int,
    payload: ListUpdate,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    reading_list = _owned_list(session, list_id, current_user)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    candidate = ReadingList(**{**reading_list.model_dump(), **changes})
    v = Validator()
    validate_list(v, candidate)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    reading_list = ReadingListService.update(session, reading_list, changes)
    return ListEnvelope(list=ReadingListRead.model_validate(reading_list))


@router.delete("/{list_id}", response_model=MessageEnvelope)
def delete_reading_list(
    list_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _owned_list(session, list_id, current_user)
    ReadingListService.delete(session, list_id)
    return MessageEnvelope(message="list successfully deleted")


@router.get("/{list_id}/books", response_model=ListBooksEnvelope)
def get_reading_list_books(
    list_id: int,
    filters: Filters = Depends(list_book_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    books, metadata = ReadingListService.get_books(session, list_id, filters)
    return ListBooksEnvelope(books=[BookRead.model_validate(book) for book in books], metadata=metadata)


@router.post("/{list_id}/books", response_model=ListBookEnvelope, status_code=201)
def add_book_to_reading_list(
    list_id: int,
    payload: AddBookRequest,
    response: Response,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _owned_list(session, list_id, current_user)
    try:
        entry = ReadingListService.add_book(session, list_id, payload.book_id)
    except DuplicateEntryError:
        raise FailedValidationError({"book_id": "this book is already in the list"})

    response.headers["Location"] = f"/api/v1/lists/{list_id}/books"
    return ListBookEnvelope(list_book=ReadingListBookRead.model_validate(entry))


@router.delete("/{list_id}/books/{book_id}", response_model=MessageEnvelope)
def remove_book_from_reading_list(
    list_id: int,
    book_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _owned_list(session, list_id, current_user)
    ReadingListService.remove_book(session, list_id, book_id)
    return MessageEnvelope(message="book successfully deleted from list")
