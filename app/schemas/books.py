"""
Esquemas de entrada para libros

Los campos ausentes quedan vacíos para que el Validator los reporte como
errores de campo (422) en vez de fallar la decodificación.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BookCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    author: str = ""
    isbn: str = ""
    pub_date: Optional[date] = None
    genre: str = ""
    description: str = ""
    avg_rating: float = 0


class BookUpdate(BaseModel):
    """Actualización parcial: solo se aplican los campos enviados"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    author: Optional[str] = None
    isbn: Optional[str] = None
    pub_date: Optional[date] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    avg_rating: Optional[float] = None
