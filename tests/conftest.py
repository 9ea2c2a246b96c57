import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SQL_ECHO", "false")
os.environ.setdefault("AUTO_CREATE_DB", "false")
os.environ.setdefault("LIMITER_ENABLED", "false")
os.environ.setdefault("EMAIL_BACKEND", "disabled")

import sys
from datetime import timedelta
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import app.core.database
from app.core.rate_limit import limiter

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine


@pytest.fixture(autouse=True)
def slowapi_limiter(monkeypatch):
    """Throttling desactivado por defecto; el estado del limiter se restaura tras cada test"""
    monkeypatch.setattr(limiter, "enabled", False)
    yield limiter
    limiter.reset()


class FakeMailer:
    """Mailer en memoria: registra los envíos en lugar de usar SMTP"""

    def __init__(self):
        self.sent = []

    def send(self, recipient, template_name, data):
        self.sent.append((recipient, template_name, dict(data)))
        return True


@pytest.fixture()
def engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture()
def db_session(engine):
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def client(engine, db_session, mailer):
    from app.main import app
    from app.core.database import get_session
    from app.services.email_service import get_mailer

    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def create_user(db_session):
    from app.core.security import get_password_hash
    from app.models.user import User
    from app.services.users import UserService

    def _create_user(
        email: str = "reader@example.com",
        password: str = "pa55word123",
        *,
        activated: bool = True,
        username: str = "reader",
    ):
        user = User(
            username=username,
            email=email,
            password_hash=get_password_hash(password),
            activated=activated,
        )
        return UserService.insert(db_session, user)

    return _create_user


@pytest.fixture()
def auth_headers(db_session):
    from app.models.token import TokenScope
    from app.services.tokens import TokenService

    def _auth_headers(user):
        plaintext, _ = TokenService.issue(db_session, user.id, timedelta(hours=1), TokenScope.AUTHENTICATION)
        return {"Authorization": f"Bearer {plaintext}"}

    return _auth_headers
