import pytest
from sqlmodel import select

from app.core.pagination import (
    MAX_PAGE,
    Filters,
    Metadata,
    apply_filters,
    calculate_metadata,
    read_int,
    read_string,
    sortable,
    validate_filters,
)
from app.core.validator import Validator
from app.models.book import Book
from app.services.books import BOOK_SORT_SAFE_LIST


def test_metadata_is_zero_without_records():
    assert calculate_metadata(0, 3, 20) == Metadata()


def test_metadata_arithmetic():
    metadata = calculate_metadata(25, 2, 10)
    assert metadata.current_page == 2
    assert metadata.page_size == 10
    assert metadata.first_page == 1
    assert metadata.last_page == 3
    assert metadata.total_records == 25

    assert calculate_metadata(20, 1, 10).last_page == 2
    assert calculate_metadata(1, 1, 100).last_page == 1


def test_limit_and_offset():
    filters = Filters(page=3, page_size=20)
    assert filters.limit == 20
    assert filters.offset == 40


def test_sort_column_and_direction():
    filters = Filters(sort="-title", sort_safe_list=BOOK_SORT_SAFE_LIST)
    assert filters.sort_column() == "title"
    assert filters.sort_direction() == "DESC"

    filters = Filters(sort="author", sort_safe_list=BOOK_SORT_SAFE_LIST)
    assert filters.sort_column() == "author"
    assert filters.sort_direction() == "ASC"


def test_unsafe_sort_raises_before_query_is_built():
    filters = Filters(sort="password_hash", sort_safe_list=BOOK_SORT_SAFE_LIST)
    with pytest.raises(ValueError):
        filters.sort_column()
    with pytest.raises(ValueError):
        apply_filters(select(Book), Book, filters)


def test_sortable_adds_descending_variants():
    assert sortable("id", "name") == ("id", "name", "-id", "-name")


@pytest.mark.parametrize(
    "filters, expected",
    [
        (Filters(page=0), {"page": "must be greater than zero"}),
        (Filters(page_size=0), {"page_size": "must be greater than zero"}),
        (Filters(page=MAX_PAGE + 1), {"page": "must be a maximum of 10 million"}),
        (Filters(page_size=101), {"page_size": "must be a maximum of 100"}),
        (Filters(sort="title"), {"sort": "invalid sort value"}),
    ],
)
def test_validate_filters(filters, expected):
    v = Validator()
    validate_filters(v, filters)
    assert v.errors == expected


def test_valid_filters_have_no_errors():
    v = Validator()
    validate_filters(v, Filters(page=1, page_size=100, sort="-id"))
    assert v.is_empty()


def test_read_helpers():
    v = Validator()
    assert read_string(None, "id") == "id"
    assert read_string("", "id") == "id"
    assert read_string("-title", "id") == "-title"
    assert read_int(None, "page", 1, v) == 1
    assert read_int("7", "page", 1, v) == 7
    assert v.is_empty()

    assert read_int("seven", "page", 1, v) == 1
    assert v.errors == {"page": "must be an integer value"}


@pytest.mark.parametrize(
    "value",
    ["1_0", " 7", "7.0", "0x10", "9223372036854775808", "-9223372036854775809", "١٢"],
)
def test_read_int_rejects_non_plain_or_oversized_values(value):
    v = Validator()
    assert read_int(value, "page", 1, v) == 1
    assert v.errors == {"page": "must be an integer value"}


def test_read_int_accepts_int64_bounds():
    v = Validator()
    assert read_int("9223372036854775807", "page", 1, v) == 2 ** 63 - 1
    assert read_int("-5", "page_size", 20, v) == -5
    assert v.is_empty()
