from typing import Generator

import pytest
from fastapi.testclient import TestClient

from viandas.config import Settings
from viandas.main import create_app
from viandas.repositories import FileRepository, OrderRepository, UserRepository
from viandas.services import FileService, OrderService, UserService
from viandas.storage import InMemoryObjectStorage

PASSWORD = "Secret123"


@pytest.fixture(scope="function")
def settings() -> Settings:
    # in-memory SQLite on a single shared connection, cheap hashing
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret="test-secret",
        password_hash_rounds=1000,
        max_file_size=1024,
        allowed_file_types=["image/png", "text/plain"],
        storage_backend="memory",
        public_base_url="http://testserver",
    )


@pytest.fixture(scope="function")
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture(scope="function")
def app(settings, storage):
    return create_app(settings, storage=storage)


@pytest.fixture(scope="function")
def db_session(app) -> Generator:
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def order_service(db_session):
    return OrderService(OrderRepository(db_session))


@pytest.fixture
def user_service(db_session, settings):
    return UserService(UserRepository(db_session), settings)


@pytest.fixture
def file_service(db_session, storage):
    return FileService(FileRepository(db_session), storage, "http://testserver")


def register(client, email, password=PASSWORD, name="Test User"):
    r = client.post("/api/v1/users/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()["data"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register an account and return ``(user, headers)``."""

    def _make(email, password=PASSWORD, name="Test User"):
        data = register(client, email, password, name)
        return data["user"], auth_headers(data["token"])

    return _make


@pytest.fixture
def make_admin(client, make_user, db_session):
    """Register an account, promote it to admin and log in again for a fresh token."""
    from viandas import models

    def _make(email="admin@example.com", password=PASSWORD):
        user, _ = make_user(email, password, name="Admin")
        row = db_session.get(models.User, user["id"])
        row.role = models.ROLE_ADMIN
        db_session.commit()
        r = client.post("/api/v1/users/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return r.json()["data"]["user"], auth_headers(r.json()["data"]["token"])

    return _make
