"""
Dependencias de autenticación.

`authenticate` se aplica a todas las rutas y resuelve la identidad de la
petición a partir de `Authorization: Bearer <token>`. Sin cabecera la
identidad es ANONYMOUS_USER; una cabecera o token inválido es un 401.
"""
from fastapi import Depends, Request
from sqlmodel import Session

from app.core.database import get_session
from app.core.errors import (
    AuthenticationRequiredError,
    InactiveAccountError,
    InvalidAuthenticationTokenError,
    RecordNotFoundError,
)
from app.core.validator import Validator
from app.models.token import TokenScope
from app.models.user import ANONYMOUS_USER, User
from app.services.tokens import TokenService, validate_token_plaintext


def authenticate(request: Request, session: Session = Depends(get_session)) -> User:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return ANONYMOUS_USER

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise InvalidAuthenticationTokenError()
    token = parts[1]

    v = Validator()
    validate_token_plaintext(v, token)
    if not v.is_empty():
        raise InvalidAuthenticationTokenError()

    try:
        return TokenService.get_user_for_token(session, TokenScope.AUTHENTICATION, token)
    except RecordNotFoundError:
        raise InvalidAuthenticationTokenError()


def require_authenticated_user(current_user: User = Depends(authenticate)) -> User:
    """Rechazar peticiones anónimas"""
    if current_user.is_anonymous:
        raise AuthenticationRequiredError()
    return current_user


def require_activated_user(current_user: User = Depends(require_authenticated_user)) -> User:
    """Requerir una cuenta autenticada y activada"""
    if not current_user.activated:
        raise InactiveAccountError()
    return current_user
