import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.db import Base, get_db
from taskboard.main import app

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user and return ``(headers, user)``."""

    def _register(name: str, email: str, password: str = "secret123"):
        resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return bearer(body["token"]), body["user"]

    return _register


@pytest.fixture
def board_factory(client):
    def _create(headers: dict, name: str = "Sprint") -> dict:
        resp = client.post("/api/boards", json={"name": name}, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["board"]

    return _create


@pytest.fixture
def list_factory(client):
    def _create(headers: dict, board_id: str, title: str) -> dict:
        resp = client.post(f"/api/boards/{board_id}/lists", json={"title": title}, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["list"]

    return _create


@pytest.fixture
def card_factory(client):
    def _create(headers: dict, board_id: str, list_id: str, title: str, **fields) -> dict:
        payload = {"listId": list_id, "title": title, **fields}
        resp = client.post(f"/api/boards/{board_id}/cards", json=payload, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["card"]

    return _create


@pytest.fixture
def invite(client):
    def _invite(headers: dict, board_id: str, email: str, role: str) -> dict:
        resp = client.post(
            f"/api/boards/{board_id}/members/invite",
            json={"email": email, "role": role},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["member"]

    return _invite
