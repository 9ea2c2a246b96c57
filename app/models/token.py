from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class TokenScope(str, Enum):
    """Ámbitos de token: cada token solo vale dentro del suyo"""
    ACTIVATION = "activation"
    AUTHENTICATION = "authentication"


class Token(SQLModel, table=True):
    """Token opaco; solo se guarda el hash SHA-256 del texto plano"""
    __tablename__ = "tokens"

    hash: str = Field(primary_key=True, max_length=64)
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    expiry: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    scope: str = Field(index=True, max_length=32)


class TokenRead(SQLModel):
    """Token entregado al cliente (única vez que se ve el texto plano)"""
    token: str
    expiry: datetime
