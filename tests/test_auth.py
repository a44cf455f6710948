from datetime import timedelta

import pytest

from registry.application.services.auth_service import (
    decode_access_token,
    hash_password,
    parse_expiry,
    verify_password,
)


@pytest.mark.parametrize("path", ["/api/login", "/api/auth/login"])
def test_login_issues_admin_token(client, path):
    response = client.post(path, json={"email": " Admin@NARAP.org ", "password": "admin123"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"] == {"email": "admin@narap.org", "role": "admin"}

    payload = decode_access_token(body["token"])
    assert payload["role"] == "admin"
    assert payload["email"] == "admin@narap.org"


def test_login_rejects_wrong_password(client):
    response = client.post("/api/login", json={"email": "admin@narap.org", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_requires_both_fields(client):
    response = client.post("/api/login", json={"email": "admin@narap.org"})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "password"


def test_token_verification(client, auth_headers):
    response = client.get("/api/auth/verify", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"
    assert client.get("/api/auth/verify").status_code == 401


def test_logout_is_stateless(client):
    assert client.post("/api/auth/logout").json()["success"] is True


def test_non_admin_token_is_refused(client):
    from registry.application.services.auth_service import create_access_token

    token = create_access_token({"sub": "someone", "role": "viewer"})
    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Admin access required"


def test_expired_token_is_refused(client):
    from registry.application.services.auth_service import create_access_token

    token = create_access_token({"role": "admin"}, expires_delta=timedelta(seconds=-5))

    assert client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"}).status_code == 401


@pytest.mark.parametrize(
    "value,expected",
    [
        ("24h", timedelta(hours=24)),
        ("30m", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("90s", timedelta(seconds=90)),
        ("3600", timedelta(seconds=3600)),
    ],
)
def test_parse_expiry(value, expected):
    assert parse_expiry(value) == expected


def test_parse_expiry_rejects_garbage():
    with pytest.raises(ValueError):
        parse_expiry("one day")


def test_password_hashing():
    hashed = hash_password("s3cret")

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
