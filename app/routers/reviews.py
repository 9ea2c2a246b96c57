"""
Router para reseñas (globales y por libro)
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from ..core.auth import require_activated_user
from ..core.database import get_session
from ..core.errors import FailedValidationError, NotPermittedError
from ..core.pagination import Filters, Metadata, filters_dependency
from ..core.validator import Validator
from ..models.review import Review, ReviewRead
from ..models.user import User
from ..schemas.reviews import ReviewCreate, ReviewUpdate
from ..services.books import BookService
from ..services.reviews import REVIEW_SORT_SAFE_LIST, ReviewService, validate_review


router = APIRouter(tags=["reviews"])
logger = logging.getLogger(__name__)

review_filters = filters_dependency(REVIEW_SORT_SAFE_LIST)


class ReviewEnvelope(BaseModel):
    review: ReviewRead


class ReviewsEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reviews: List[ReviewRead]
    metadata: Metadata = Field(alias="@metadata")


class MessageEnvelope(BaseModel):
    message: str


def _owned_review(session: Session, review_id: int, current_user: User) -> Review:
    review = ReviewService.get(session, review_id)
    if review.user_id != current_user.id:
        raise NotPermittedError()
    return review


@router.get("/reviews", response_model=ReviewsEnvelope)
def list_reviews(
    filters: Filters = Depends(review_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    reviews, metadata = ReviewService.get_all(session, filters)
    return ReviewsEnvelope(reviews=[ReviewRead.model_validate(review) for review in reviews], metadata=metadata)


@router.get("/reviews/{review_id}", response_model=ReviewEnvelope)
def get_review(
    review_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    return ReviewEnvelope(review=ReviewRead.model_validate(ReviewService.get(session, review_id)))


@router.put("/reviews/{review_id}", response_model=ReviewEnvelope)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Actualización parcial de una reseña propia"""
    review = _owned_review(session, review_id, current_user)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    candidate = Review(**{**review.model_dump(), **changes})
    v = Validator()
    validate_review(v, candidate)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    review = ReviewService.update(session, review, changes)
    return ReviewEnvelope(review=ReviewRead.model_validate(review))


@router.delete("/reviews/{review_id}", response_model=MessageEnvelope)
def delete_review(
    review_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _owned_review(session, review_id, current_user)
    ReviewService.delete(session, review_id)
    return MessageEnvelope(message="review successfully deleted")


@router.get("/books/{book_id}/reviews", response_model=ReviewsEnvelope)
def list_book_reviews(
    book_id: int,
    filters: Filters = Depends(review_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    BookService.get(session, book_id)
    reviews, metadata = ReviewService.get_for_book(session, book_id, filters)
    return ReviewsEnvelope(reviews=[ReviewRead.model_validate(review) for review in reviews], metadata=metadata)


@router.post("/books/{book_id}/reviews", response_model=ReviewEnvelope, status_code=201)
def create_book_review(
    book_id: int,
    payload: ReviewCreate,
    response: Response,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Crear una reseña del usuario actual sobre un libro existente"""
    BookService.get(session, book_id)
    review = Review(**payload.model_dump(), book_id=book_id, user_id=current_user.id)
    v = Validator()
    validate_review(v, review)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    review = ReviewService.insert(session, review)
    response.headers["Location"] = f"/api/v1/reviews/{review.id}"
    return ReviewEnvelope(review=ReviewRead.model_validate(review))
