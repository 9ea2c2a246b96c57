from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone

from sqlalchemy import DateTime


class UserBase(SQLModel):
    """Modelo base para Usuario"""
    username: str = Field(max_length=200)
    email: str = Field(unique=True, index=True, max_length=255)
    activated: bool = Field(default=False)


class User(UserBase, table=True):
    """Modelo de Usuario para la base de datos"""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
    password_hash: str = Field(max_length=255)
    version: int = Field(default=1)

    @property
    def is_anonymous(self) -> bool:
        return self is ANONYMOUS_USER


class UserRead(UserBase):
    """Esquema para leer un usuario"""
    id: int
    created_at: datetime


# Identidad de las peticiones sin Authorization; nunca se persiste
ANONYMOUS_USER = User(username="", email="", password_hash="", activated=False)
