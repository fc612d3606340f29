from datetime import datetime, timedelta

import pytest

from app.config import settings
from app.core.security import create_access_token, verify_token, bearer_token, verify_shared_secret


@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", None)


def request_link(client, db, email):
    response = client.post("/api/auth/magic-link", json={"email": email})
    assert response.status_code == 200
    return db.magic_links.docs[-1]["token"]


def test_token_round_trip():
    claims = verify_token(create_access_token("abc", "admin"))
    assert claims["sub"] == "abc"
    assert claims["role"] == "admin"


def test_expired_token_is_invalid():
    assert verify_token(create_access_token("abc", "admin", expires_delta=timedelta(seconds=-1))) is None
    assert verify_token("garbage") is None


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc", "abc"),
    ("Basic abc", None),
    ("Bearer ", None),
    (None, None),
])
def test_bearer_token(header, expected):
    assert bearer_token(header) == expected


def test_shared_secret():
    assert verify_shared_secret("Bearer s3cr3t", "s3cr3t")
    assert not verify_shared_secret("Bearer wrong", "s3cr3t")
    assert not verify_shared_secret(None, "s3cr3t")


def test_magic_link_sign_in(client, db):
    token = request_link(client, db, "Nova@Example.com")

    user = db.users.docs[-1]
    assert user["email"] == "nova@example.com"
    assert user["role"] == "customer"

    response = client.post("/api/auth/verify", json={"token": token})
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "nova@example.com"
    assert data["expires_in"] == settings.jwt_expire_minutes * 60

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["role"] == "customer"


def test_magic_link_is_single_use(client, db):
    token = request_link(client, db, "nova@example.com")

    assert client.post("/api/auth/verify", json={"token": token}).status_code == 200
    response = client.post("/api/auth/verify", json={"token": token})

    assert response.status_code == 400
    assert response.json()["detail"] == "Magic link already used"


def test_expired_magic_link(client, db):
    token = request_link(client, db, "nova@example.com")
    db.magic_links.docs[-1]["expires_at"] = datetime.utcnow() - timedelta(minutes=1)

    response = client.post("/api/auth/verify", json={"token": token})

    assert response.status_code == 400
    assert response.json()["detail"] == "Magic link expired"


def test_inactive_account_gets_no_link(client, db):
    db.users.add({"email": "old@example.com", "role": "customer", "active": False})

    response = client.post("/api/auth/magic-link", json={"email": "old@example.com"})

    assert response.status_code == 200
    assert db.magic_links.docs == []
