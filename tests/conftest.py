import os

# settings are read at import time; point them at throwaway values first
os.environ["ENV"] = "test"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "whsec-test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import bookstore.models  # noqa: F401
from bookstore.database import get_session
from bookstore.main import app
from bookstore.utils.token import create_access_token

from tests.factories import BookFactory, UserFactory, persist


@pytest.fixture
def engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool keeps a single connection so every session sees the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def _get_session_override():
        yield session

    app.dependency_overrides[get_session] = _get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(session):
    return persist(session, UserFactory.create())


@pytest.fixture
def admin(session):
    return persist(session, UserFactory.create(role="admin", first_name="Ada", last_name="Admin"))


@pytest.fixture
def book(session):
    return persist(session, BookFactory.create())


@pytest.fixture
def ebook(session):
    return persist(session, BookFactory.create(
        title="Digital Dreams",
        has_digital=True,
        digital_file_url="https://cdn.bookstore.test/books/digital-dreams.pdf",
        digital_file_size=2_048_000,
        digital_price_all=500.0,
        digital_price_eur=5.0,
    ))


def auth_headers(user) -> dict:
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
