"""
Router para emisión de tokens de autenticación
"""
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from sqlmodel import Session

from ..core.config import settings
from ..core.database import get_session
from ..core.errors import FailedValidationError, InvalidCredentialsError
from ..core.rate_limit import AUTH_RATE_LIMIT, limiter
from ..core.security import verify_password
from ..core.validator import Validator
from ..models.token import TokenRead, TokenScope
from ..schemas.tokens import LoginRequest
from ..services.tokens import TokenService
from ..services.users import UserService, validate_email, validate_password_plaintext


router = APIRouter(prefix="/tokens", tags=["tokens"])
logger = logging.getLogger(__name__)


class AuthenticationTokenEnvelope(BaseModel):
    authentication_token: TokenRead


@router.post("/authentication", response_model=AuthenticationTokenEnvelope, status_code=201)
@limiter.limit(AUTH_RATE_LIMIT)
def create_authentication_token(
    request: Request,
    response: Response,
    payload: LoginRequest,
    session: Session = Depends(get_session),
):
    """Intercambiar email y contraseña por un token de autenticación"""
    v = Validator()
    validate_email(v, payload.email)
    validate_password_plaintext(v, payload.password)
    if not v.is_empty():
        raise FailedValidationError(v.errors)

    user = UserService.get_by_email(session, payload.email)
    if user is None:
        raise InvalidCredentialsError()
    if not verify_password(payload.password, user.password_hash):
        logger.info("Login fallido para user_id=%s", user.id)
        raise InvalidCredentialsError()

    plaintext, token = TokenService.issue(
        session,
        user.id,
        timedelta(hours=settings.authentication_token_ttl_hours),
        TokenScope.AUTHENTICATION,
    )
    response.headers["Location"] = f"/api/v1/users/{user.id}"
    return AuthenticationTokenEnvelope(authentication_token=TokenRead(token=plaintext, expiry=token.expiry))
