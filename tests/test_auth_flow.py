from sqlmodel import Session

from app.core.auth import authenticate, require_activated_user, require_authenticated_user
from app.core.errors import AuthenticationRequiredError, InactiveAccountError
from app.models.user import ANONYMOUS_USER, User

import pytest


def test_anonymous_user_sentinel():
    assert ANONYMOUS_USER.is_anonymous
    assert not User(username="x", email="x@example.com", password_hash="").is_anonymous


def test_gating_dependencies():
    with pytest.raises(AuthenticationRequiredError):
        require_authenticated_user(ANONYMOUS_USER)

    inactive = User(id=1, username="x", email="x@example.com", password_hash="", activated=False)
    assert require_authenticated_user(inactive) is inactive
    with pytest.raises(InactiveAccountError):
        require_activated_user(inactive)

    active = User(id=2, username="y", email="y@example.com", password_hash="", activated=True)
    assert require_activated_user(active) is active


def test_no_header_is_anonymous(client):
    # el pipeline deja pasar la petición; el bloqueo lo decide la ruta
    assert client.get("/api/v1/healthcheck").status_code == 200

    response = client.get("/api/v1/books")
    assert response.status_code == 401
    assert response.json() == {"error": "you must be authenticated to access this resource"}


@pytest.mark.parametrize(
    "header",
    [
        "Token ABCDEFGHIJKLMNOPQRSTUVWXYZ",
        "Bearer",
        "Bearer  ABCDEFGHIJKLMNOPQRSTUVWXYZ",
        "Bearer short",
        "Bearer ABCDEFGHIJKLMNOPQRSTUVWXYZ",
    ],
)
def test_invalid_authorization_is_rejected(client, header):
    response = client.get("/api/v1/healthcheck", headers={"Authorization": header})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json() == {"error": "invalid or missing authentication token"}


def test_unactivated_user_is_forbidden(client, create_user, auth_headers):
    user = create_user(activated=False)
    response = client.get("/api/v1/books", headers=auth_headers(user))
    assert response.status_code == 403
    assert response.json() == {"error": "your user account must be activated to access this resource"}


def test_activated_user_is_allowed(client, create_user, auth_headers):
    user = create_user()
    response = client.get("/api/v1/books", headers=auth_headers(user))
    assert response.status_code == 200


def test_authenticate_resolves_token_owner(db_session: Session, create_user, auth_headers):
    from starlette.requests import Request

    user = create_user()
    header = auth_headers(user)["Authorization"]
    request = Request({"type": "http", "headers": [(b"authorization", header.encode())]})
    assert authenticate(request, db_session).id == user.id


def test_login_returns_authentication_token(client, create_user):
    user = create_user(email="login@example.com", password="StrongPass1!")

    login = client.post(
        "/api/v1/tokens/authentication",
        json={"email": "LOGIN@example.com", "password": "StrongPass1!"},
    )
    assert login.status_code == 201
    token = login.json()["authentication_token"]
    assert len(token["token"]) == 26
    assert token["expiry"]

    me = client.get(f"/api/v1/users/{user.id}", headers={"Authorization": f"Bearer {token['token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "login@example.com"


def test_login_invalid_password_returns_401(client, create_user):
    create_user(email="user2@example.com", password="StrongPass1!")

    login = client.post(
        "/api/v1/tokens/authentication",
        json={"email": "user2@example.com", "password": "wrong-password"},
    )
    assert login.status_code == 401
    assert login.json() == {"error": "invalid authentication credentials"}


def test_login_unknown_email_returns_401(client):
    login = client.post(
        "/api/v1/tokens/authentication",
        json={"email": "ghost@example.com", "password": "StrongPass1!"},
    )
    assert login.status_code == 401


def test_login_validation(client):
    login = client.post("/api/v1/tokens/authentication", json={"email": "nope", "password": "short"})
    assert login.status_code == 422
    assert login.json() == {
        "error": {
            "email": "must be a valid email address",
            "password": "must be at least 8 bytes long",
        }
    }


def test_empty_authorization_header_is_anonymous(client):
    response = client.get("/api/v1/healthcheck", headers={"Authorization": ""})
    assert response.status_code == 200


def test_login_is_throttled_per_client(client, create_user, slowapi_limiter, monkeypatch):
    monkeypatch.setattr(slowapi_limiter, "enabled", True)
    slowapi_limiter.reset()
    create_user(email="user3@example.com", password="StrongPass1!")
    credentials = {"email": "user3@example.com", "password": "wrong-password"}

    for _ in range(5):
        assert client.post("/api/v1/tokens/authentication", json=credentials).status_code == 401

    throttled = client.post("/api/v1/tokens/authentication", json=credentials)
    assert throttled.status_code == 429
    assert throttled.json() == {"error": "rate limit exceeded"}
