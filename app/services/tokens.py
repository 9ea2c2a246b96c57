"""
Servicio de tokens opacos (activación y autenticación)

El texto plano se entrega una sola vez al cliente; en la base solo queda su
hash SHA-256. Un token vencido y uno inexistente son indistinguibles.
"""
import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from app.core.errors import RandomSourceError, RecordNotFoundError
from app.core.validator import Validator
from app.models.token import Token, TokenScope
from app.models.user import User

TOKEN_BYTES = 16
TOKEN_PLAINTEXT_LENGTH = 26


def compute_token_hash(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def validate_token_plaintext(v: Validator, plaintext: str) -> None:
    v.check(plaintext != "", "token", "must be provided")
    v.check(len(plaintext) == TOKEN_PLAINTEXT_LENGTH, "token", f"must be {TOKEN_PLAINTEXT_LENGTH} bytes long")


class TokenService:
    """Emisión, búsqueda y revocación de tokens"""

    @staticmethod
    def generate_token(user_id: int, ttl: timedelta, scope: TokenScope) -> Tuple[str, Token]:
        try:
            random_bytes = secrets.token_bytes(TOKEN_BYTES)
        except (NotImplementedError, OSError) as exc:
            raise RandomSourceError("fuente de aleatoriedad no disponible") from exc

        # 16 bytes -> 26 caracteres base32 sin relleno
        plaintext = base64.b32encode(random_bytes).decode("ascii").rstrip("=")
        token = Token(
            hash=compute_token_hash(plaintext),
            user_id=user_id,
            expiry=datetime.now(timezone.utc) + ttl,
            scope=TokenScope(scope).value,
        )
        return plaintext, token

    @staticmethod
    def issue(session: Session, user_id: int, ttl: timedelta, scope: TokenScope) -> Tuple[str, Token]:
        """Generar y persistir un token; devuelve (texto plano, registro)"""
        plaintext, token = TokenService.generate_token(user_id, ttl, scope)
        session.add(token)
        session.commit()
        session.refresh(token)
        return plaintext, token

    @staticmethod
    def get_user_for_token(session: Session, scope: TokenScope, plaintext: str) -> User:
        statement = (
            select(User)
            .join(Token, Token.user_id == User.id)
            .where(Token.hash == compute_token_hash(plaintext))
            .where(Token.scope == TokenScope(scope).value)
            .where(Token.expiry > datetime.now(timezone.utc))
        )
        user = session.exec(statement).first()
        if user is None:
            raise RecordNotFoundError("token")
        return user

    @staticmethod
    def delete_all_for_user(session: Session, scope: TokenScope, user_id: int) -> None:
        session.exec(
            delete(Token)
            .where(Token.scope == TokenScope(scope).value)
            .where(Token.user_id == user_id)
        )
        session.commit()
