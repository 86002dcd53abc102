from taskboard import auth
from taskboard.config import settings


def test_register_returns_token_and_user(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "Alice@Example.com", "password": "secret123"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert auth.verify_token(body["token"]) == body["user"]["id"]


def test_register_duplicate_email_is_conflict_case_insensitive(client, register):
    register("Alice", "alice@example.com")
    resp = client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "ALICE@example.com", "password": "secret123"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "email_taken"


def test_register_validation_lists_field_errors(client):
    resp = client.post("/api/auth/register", json={"name": "", "email": "nope", "password": "123"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "validation_failed"
    fields = {item["field"] for item in error["details"]["errors"]}
    assert {"name", "email", "password"} <= fields


def test_login_with_correct_password_returns_token(client, register):
    register("Bob", "bob@example.com", password="strongpass")
    resp = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "strongpass"})
    assert resp.status_code == 200
    assert resp.json()["token"]


def test_login_wrong_password_and_unknown_email_look_the_same(client, register):
    register("Bob", "bob@example.com", password="strongpass")
    wrong = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["error"]["code"] == "invalid_credentials"


def test_me_requires_valid_token(client, register):
    headers, user = register("Carol", "carol@example.com")
    assert client.get("/api/auth/me", headers=headers).json() == {"user": user}

    missing = client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "missing_token"

    invalid = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert invalid.status_code == 401
    assert invalid.json()["error"]["code"] == "invalid_token"


def test_expired_token_is_rejected(monkeypatch):
    monkeypatch.setattr(settings, "TOKEN_EXPIRE_DAYS", -1)
    token = auth.issue_token("user-1", "user@example.com")
    assert auth.verify_token(token) is None


def test_token_signed_with_other_secret_is_rejected(monkeypatch):
    token = auth.issue_token("user-1", "user@example.com")
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", "another-secret")
    assert auth.verify_token(token) is None


def test_password_hash_round_trip():
    hashed = auth.hash_password("secret123")
    assert hashed != "secret123"
    assert auth.verify_password("secret123", hashed)
    assert not auth.verify_password("secret124", hashed)
