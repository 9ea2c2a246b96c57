"""
Esquemas de entrada para listas de lectura
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ListCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = ""
    description: str = ""
    status: str = "reading"


class ListUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class AddBookRequest(BaseModel):
    """Cuerpo de POST /lists/{id}/books"""
    model_config = ConfigDict(extra="forbid")

    book_id: int = 0
