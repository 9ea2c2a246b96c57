"""
Router para registro, activación y consulta de usuarios
"""
import logging
from datetime import timedelta
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from ..core.auth import require_activated_user
from ..core.config import settings
from ..core.database import get_session
from ..core.errors import DuplicateEmailError, FailedValidationError, RecordNotFoundError
from ..core.pagination import Filters, Metadata, filters_dependency
from ..core.security import get_password_hash
from ..core.validator import Validator
from ..models.reading_list import ReadingListRead
from ..models.review import ReviewRead
from ..models.token import TokenScope
from ..models.user import User, UserRead
from ..schemas.users import ActivateRequest, UserRegister
from ..services.email_service import Mailer, get_mailer, send_welcome_email
from ..services.lists import LIST_SORT_SAFE_LIST, ReadingListService
from ..services.reviews import REVIEW_SORT_SAFE_LIST, ReviewService
from ..services.tokens import TokenService, validate_token_plaintext
from ..services.users import UserService, normalize_email, validate_user


router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)

list_filters = filters_dependency(LIST_SORT_SAFE_LIST)
review_filters = filters_dependency(REVIEW_SORT_SAFE_LIST)


class UserEnvelope(BaseModel):
    user: UserRead


class UserListsEnvelope(BaseModel):
    """Listas de un usuario con paginación"""
    model_config = ConfigDict(populate_by_name=True)

    lists: List[ReadingListRead]
    metadata: Metadata = Field(alias="@metadata")


class UserReviewsEnvelope(BaseModel):
    """Reseñas de un usuario con paginación"""
    model_config = ConfigDict(populate_by_name=True)

    reviews: List[ReviewRead]
    metadata: Metadata = Field(alias="@metadata")


@router.post("", response_model=UserEnvelope, status_code=201)
def register_user(
    payload: UserRegister,
    response: Response,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
):
    """Registrar un usuario y enviarle el token de activación por email"""
    user = User(
        username=payload.username,
        email=normalize_email(payload.email),
        password_hash="",
        activated=False,
    )
    v = Validator()
    validate_user(v, user, payload.password)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    user.password_hash = get_password_hash(payload.password)
    try:
        user = UserService.insert(session, user)
    except DuplicateEmailError:
        v.add_error("email", "a user with this email already exists")
        raise FailedValidationError(v.errors)

    plaintext, _ = TokenService.issue(
        session,
        user.id,
        timedelta(hours=settings.activation_token_ttl_hours),
        TokenScope.ACTIVATION,
    )
    background_tasks.add_task(send_welcome_email, mailer, user.email, user.id, plaintext)
    logger.info("Usuario registrado id=%s", user.id)

    response.headers["Location"] = f"/api/v1/users/{user.id}"
    return UserEnvelope(user=UserRead.model_validate(user))


@router.put("/activated", response_model=UserEnvelope)
def activate_user(payload: ActivateRequest, session: Session = Depends(get_session)):
    v = Validator()
    validate_token_plaintext(v, payload.token)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    try:
        user = UserService.get_for_token(session, TokenScope.ACTIVATION, payload.token)
    except RecordNotFoundError:
        v.add_error("token", "invalid or expired activation token")
        raise FailedValidationError(v.errors)

    user = UserService.activate(session, user)
    return UserEnvelope(user=UserRead.model_validate(user))


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: int,
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    _ = current_user
    user = UserService.get(session, user_id)
    return UserEnvelope(user=UserRead.model_validate(user))


@router.get("/{user_id}/lists", response_model=UserListsEnvelope)
def get_user_lists(
    user_id: int,
    filters: Filters = Depends(list_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Listas de lectura creadas por un usuario"""
    _ = current_user
    UserService.get(session, user_id)
    lists, metadata = ReadingListService.get_for_user(session, user_id, filters)
    return UserListsEnvelope(
        lists=[ReadingListRead.model_validate(item) for item in lists],
        metadata=metadata,
    )


@router.get("/{user_id}/reviews", response_model=UserReviewsEnvelope)
def get_user_reviews(
    user_id: int,
    filters: Filters = Depends(review_filters),
    current_user: User = Depends(require_activated_user),
    session: Session = Depends(get_session),
):
    """Reseñas escritas por un usuario"""
    _ = current_user
    UserService.get(session, user_id)
    reviews, metadata = ReviewService.get_for_user(session, user_id, filters)
    return UserReviewsEnvelope(
        reviews=[ReviewRead.model_validate(review) for review in reviews],
        metadata=metadata,
    )
