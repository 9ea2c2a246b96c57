# Schemas
from .users import UserRegister, ActivateRequest
from .tokens import LoginRequest
from .books import BookCreate, BookUpdate
from .lists import ListCreate, ListUpdate, AddBookRequest
from .reviews import ReviewCreate, ReviewUpdate

__all__ = [
    # Users
    "UserRegister",
    "ActivateRequest",
    # Tokens
    "LoginRequest",
    # Books
    "BookCreate",
    "BookUpdate",
    # Lists
    "ListCreate",
    "ListUpdate",
    "AddBookRequest",
    # Reviews
    "ReviewCreate",
    "ReviewUpdate",
]
