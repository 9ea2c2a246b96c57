"""
Modelos SQLModel para la API Bookclub
"""

from .user import UserBase, User, UserRead, ANONYMOUS_USER
from .token import TokenScope, Token, TokenRead
from .book import BookBase, Book, BookRead
from .reading_list import (
    ReadingStatus,
    ReadingListBase,
    ReadingList,
    ReadingListRead,
    ReadingListBook,
    ReadingListBookRead,
)
from .review import ReviewBase, Review, ReviewRead

__all__ = [
    # Usuarios
    "UserBase",
    "User",
    "UserRead",
    "ANONYMOUS_USER",
    # Tokens
    "TokenScope",
    "Token",
    "TokenRead",
    # Libros
    "BookBase",
    "Book",
    "BookRead",
    # Listas de lectura
    "ReadingStatus",
    "ReadingListBase",
    "ReadingList",
    "ReadingListRead",
    "ReadingListBook",
    "ReadingListBookRead",
    # Reseñas
    "ReviewBase",
    "Review",
    "ReviewRead",
]
