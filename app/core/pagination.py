"""
Pagination, sorting and result metadata shared by every list endpoint.

Query values are read raw and checked with the Validator so that every
problem is reported as a 422 field map. Sort values must belong to the
resource's safe list; the column name reaching SQL always comes from that
list, never from the client.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from app.core.errors import FailedValidationError
from app.core.validator import Validator, permitted_value

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MAX_PAGE = 10_000_000

# Plain base-10 integers that fit in 64 bits
_INT_RX = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2 ** 63), 2 ** 63 - 1


@dataclass
class Filters:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = "id"
    sort_safe_list: Sequence[str] = field(default_factory=lambda: ("id", "-id"))

    def sort_column(self) -> str:
        for safe_value in self.sort_safe_list:
            if self.sort == safe_value:
                return self.sort.lstrip("-")
        raise ValueError(f"unsafe sort parameter: {self.sort}")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    """Pagination summary; all zeros when there are no records."""

    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )


def validate_filters(v: Validator, filters: Filters) -> None:
    v.check(filters.page > 0, "page", "must be greater than zero")
    v.check(filters.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
    v.check(filters.page_size > 0, "page_size", "must be greater than zero")
    v.check(filters.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}")
    v.check(permitted_value(filters.sort, *filters.sort_safe_list), "sort", "invalid sort value")


def read_string(value: Optional[str], default: str) -> str:
    if value is None or value == "":
        return default
    return value


def read_int(value: Optional[str], key: str, default: int, v: Validator) -> int:
    if value is None or value == "":
        return default
    if _INT_RX.fullmatch(value) is None:
        v.add_error(key, "must be an integer value")
        return default
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        v.add_error(key, "must be an integer value")
        return default
    return number


def sortable(*columns: str) -> tuple:
    """Safe list with ascending and descending variants of each column."""
    return tuple(columns) + tuple(f"-{column}" for column in columns)


def filters_dependency(safe_list: Sequence[str], default_sort: str = "id") -> Callable[..., Filters]:
    """
    Build a FastAPI dependency returning validated Filters for `safe_list`.

    Usage:
        @router.get("")
        def list_books(filters: Filters = Depends(filters_dependency(BOOK_SORT_SAFE_LIST))):
            ...
    """

    def dependency(
        page: Optional[str] = Query(None, description="Número de página (desde 1)"),
        page_size: Optional[str] = Query(None, description=f"Elementos por página (máximo {MAX_PAGE_SIZE})"),
        sort: Optional[str] = Query(None, description="Columna de orden; prefijo '-' para descendente"),
    ) -> Filters:
        v = Validator()
        filters = Filters(
            page=read_int(page, "page", DEFAULT_PAGE, v),
            page_size=read_int(page_size, "page_size", DEFAULT_PAGE_SIZE, v),
            sort=read_string(sort, default_sort),
            sort_safe_list=tuple(safe_list),
        )
        validate_filters(v, filters)
        if not v.is_empty():
            raise FailedValidationError(v.errors)
        return filters

    return dependency


def apply_filters(statement, model, filters: Filters):
    """Add ORDER BY <sort> plus id ASC as tie-break, then LIMIT/OFFSET."""
    column = getattr(model, filters.sort_column())
    ordering = column.desc() if filters.sort_direction() == "DESC" else column.asc()
    return statement.order_by(ordering, model.id.asc()).limit(filters.limit).offset(filters.offset)


def count_records(session: Session, statement) -> int:
    return session.exec(select(func.count()).select_from(statement.subquery())).one()
