"""
Servicios de negocio para reseñas
"""
from typing import List, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from app.core.database import update_with_version
from app.core.errors import RecordNotFoundError
from app.core.pagination import Filters, Metadata, apply_filters, calculate_metadata, count_records, sortable
from app.core.validator import Validator, byte_length
from app.models.review import Review

REVIEW_SORT_SAFE_LIST = sortable("id", "rating", "created_at")


def validate_review(v: Validator, review: Review) -> None:
    v.check(1 <= review.rating <= 5, "rating", "must be between 1 and 5")
    v.check(review.description != "", "description", "must be provided")
    v.check(byte_length(review.description) <= 225, "description", "must not be more than 225 bytes long")


class ReviewService:
    """Servicio de negocio para reseñas"""

    @staticmethod
    def insert(session: Session, review: Review) -> Review:
        session.add(review)
        session.commit()
        session.refresh(review)
        return review

    @staticmethod
    def get(session: Session, review_id: int) -> Review:
        if review_id < 1:
            raise RecordNotFoundError("review")
        review = session.get(Review, review_id)
        if review is None:
            raise RecordNotFoundError("review")
        return review

    @staticmethod
    def _paginate(session: Session, statement, filters: Filters) -> Tuple[List[Review], Metadata]:
        total = count_records(session, statement)
        reviews = session.exec(apply_filters(statement, Review, filters)).all()
        return list(reviews), calculate_metadata(total, filters.page, filters.page_size)

    @staticmethod
    def get_all(session: Session, filters: Filters) -> Tuple[List[Review], Metadata]:
        return ReviewService._paginate(session, select(Review), filters)

    @staticmethod
    def get_for_book(session: Session, book_id: int, filters: Filters) -> Tuple[List[Review], Metadata]:
        return ReviewService._paginate(session, select(Review).where(Review.book_id == book_id), filters)

    @staticmethod
    def get_for_user(session: Session, user_id: int, filters: Filters) -> Tuple[List[Review], Metadata]:
        return ReviewService._paginate(session, select(Review).where(Review.user_id == user_id), filters)

    @staticmethod
    def update(session: Session, review: Review, changes: dict) -> Review:
        return update_with_version(session, review, changes)

    @staticmethod
    def delete(session: Session, review_id: int) -> None:
        if review_id < 1:
            raise RecordNotFoundError("review")
        result = session.exec(delete(Review).where(Review.id == review_id))
        if result.rowcount == 0:
            session.rollback()
            raise RecordNotFoundError("review")
        session.commit()
