"""
Servicio CRUD para usuarios
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.database import update_with_version
from app.core.errors import DuplicateEmailError, RecordNotFoundError
from app.core.validator import EMAIL_RX, Validator, byte_length, matches
from app.models.token import TokenScope
from app.models.user import User
from app.services.tokens import TokenService


def validate_email(v: Validator, email: str) -> None:
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")


def validate_password_plaintext(v: Validator, password: str) -> None:
    v.check(password != "", "password", "must be provided")
    v.check(byte_length(password) >= 8, "password", "must be at least 8 bytes long")
    v.check(byte_length(password) <= 72, "password", "must not be more than 72 bytes long")


def validate_user(v: Validator, user: User, password: Optional[str] = None) -> None:
    """Validar un usuario; `password` es el texto plano cuando se está registrando"""
    v.check(user.username != "", "username", "must be provided")
    v.check(byte_length(user.username) <= 200, "username", "must not be more than 200 bytes long")
    validate_email(v, user.email)
    if password is not None:
        validate_password_plaintext(v, password)


def normalize_email(email: str) -> str:
    return email.lower().strip()


class UserService:
    """Servicio para operaciones CRUD de usuarios"""

    @staticmethod
    def insert(session: Session, user: User) -> User:
        if UserService.get_by_email(session, user.email) is not None:
            raise DuplicateEmailError(user.email)

        session.add(user)
        try:
            session.commit()
        except IntegrityError as exc:
            # Dos registros simultáneos con el mismo email
            session.rollback()
            raise DuplicateEmailError(user.email) from exc
        session.refresh(user)
        return user

    @staticmethod
    def get(session: Session, user_id: int) -> User:
        if user_id < 1:
            raise RecordNotFoundError("user")
        user = session.get(User, user_id)
        if user is None:
            raise RecordNotFoundError("user")
        return user

    @staticmethod
    def get_by_email(session: Session, email: str) -> Optional[User]:
        return session.exec(select(User).where(User.email == normalize_email(email))).first()

    @staticmethod
    def update(session: Session, user: User, changes: dict) -> User:
        if "email" in changes:
            changes = {**changes, "email": normalize_email(changes["email"])}
        try:
            return update_with_version(session, user, changes)
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateEmailError(changes.get("email", user.email)) from exc

    @staticmethod
    def get_for_token(session: Session, scope: TokenScope, plaintext: str) -> User:
        return TokenService.get_user_for_token(session, scope, plaintext)

    @staticmethod
    def activate(session: Session, user: User) -> User:
        """Activar la cuenta y revocar los tokens de activación restantes"""
        user = UserService.update(session, user, {"activated": True})
        TokenService.delete_all_for_user(session, TokenScope.ACTIVATION, user.id)
        return user
