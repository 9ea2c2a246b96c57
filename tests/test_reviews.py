from datetime import date

import pytest

from app.models.book import Book
from app.services.books import BookService


@pytest.fixture()
def author(create_user):
    return create_user(email="critic@example.com", username="critic")


@pytest.fixture()
def headers(author, auth_headers):
    return auth_headers(author)


@pytest.fixture()
def book(db_session):
    return BookService.insert(
        db_session,
        Book(
            title="Kindred",
            author="Octavia E. Butler",
            isbn="978-0807083697",
            pub_date=date(1979, 6, 1),
            genre="Science Fiction",
            description="A writer is pulled back in time.",
            avg_rating=4.7,
        ),
    )


def _create_review(client, headers, book_id, **overrides):
    payload = {"rating": 5, "description": "Unforgettable."}
    payload.update(overrides)
    response = client.post(f"/api/v1/books/{book_id}/reviews", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["review"]


def test_create_review(client, headers, author, book):
    response = client.post(
        f"/api/v1/books/{book.id}/reviews",
        json={"rating": 4, "description": "Gripping."},
        headers=headers,
    )
    assert response.status_code == 201
    review = response.json()["review"]
    assert review["book_id"] == book.id
    assert review["user_id"] == author.id
    assert response.headers["Location"] == f"/api/v1/reviews/{review['id']}"


def test_review_for_missing_book(client, headers):
    response = client.post("/api/v1/books/9999/reviews", json={"rating": 4, "description": "?"}, headers=headers)
    assert response.status_code == 404


def test_review_validation(client, headers, book):
    response = client.post(f"/api/v1/books/{book.id}/reviews", json={"rating": 6}, headers=headers)
    assert response.status_code == 422
    assert response.json()["error"] == {
        "rating": "must be between 1 and 5",
        "description": "must be provided",
    }


def test_review_listings(client, headers, author, book):
    _create_review(client, headers, book.id, rating=3)
    _create_review(client, headers, book.id, rating=5)

    by_book = client.get(f"/api/v1/books/{book.id}/reviews?sort=-rating", headers=headers).json()
    assert [review["rating"] for review in by_book["reviews"]] == [5, 3]

    by_user = client.get(f"/api/v1/users/{author.id}/reviews", headers=headers).json()
    assert by_user["@metadata"]["total_records"] == 2

    everything = client.get("/api/v1/reviews?page_size=1", headers=headers).json()
    assert len(everything["reviews"]) == 1
    assert everything["@metadata"]["last_page"] == 2

    assert client.get("/api/v1/books/9999/reviews", headers=headers).status_code == 404


def test_update_and_delete_own_review(client, headers, book):
    review = _create_review(client, headers, book.id)

    updated = client.put(f"/api/v1/reviews/{review['id']}", json={"rating": 2}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["review"]["rating"] == 2
    assert updated.json()["review"]["description"] == "Unforgettable."
    assert updated.json()["review"]["version"] == 2

    deleted = client.delete(f"/api/v1/reviews/{review['id']}", headers=headers)
    assert deleted.json() == {"message": "review successfully deleted"}
    assert client.get(f"/api/v1/reviews/{review['id']}", headers=headers).status_code == 404


def test_other_users_cannot_modify_review(client, headers, book, create_user, auth_headers):
    review = _create_review(client, headers, book.id)
    intruder = auth_headers(create_user(email="troll@example.com", username="troll"))

    assert client.put(f"/api/v1/reviews/{review['id']}", json={"rating": 1}, headers=intruder).status_code == 403
    assert client.delete(f"/api/v1/reviews/{review['id']}", headers=intruder).status_code == 403
    assert client.get(f"/api/v1/reviews/{review['id']}", headers=intruder).status_code == 200
