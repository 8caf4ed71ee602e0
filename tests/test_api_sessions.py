"""API tests for login, second factor and logout."""

import time

import pyotp
import pytest

from helpers import PASSWORD, current_totp, login


def _wrong_code(secret: str) -> str:
    """A well-formed code outside the accepted window."""
    totp = pyotp.TOTP(secret)
    now = int(time.time())
    accepted = {totp.at(now + step * 30) for step in (-1, 0, 1)}
    code = 0
    while f"{code:06d}" in accepted:
        code += 1
    return f"{code:06d}"


@pytest.mark.asyncio
async def test_root_and_health(client):
    assert (await client.get("/")).status_code == 200
    response = await client.get("/health")
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_login_starts_standard_session(client, users):
    response = await client.post(
        "/api/v1/sessions",
        json={"username": "bob", "password": PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "bob"
    assert data["user"]["can_do_totp"] is True
    assert data["user"]["access_level"] == "standard"
    assert data["user"]["is_totp"] is False


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, users):
    response = await client.post(
        "/api/v1/sessions",
        json={"username": "alice", "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["error_code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_current_session_requires_token(client, users):
    response = await client.get("/api/v1/sessions/current")
    assert response.status_code == 401

    response = await client.get(
        "/api/v1/sessions/current",
        headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_totp_elevates_session(client, users):
    headers = await login(client, "bob")

    response = await client.post(
        "/api/v1/sessions/totp",
        json={"code": current_totp(users["bob"])},
        headers=headers
    )

    assert response.status_code == 200
    assert response.json()["access_level"] == "elevated"
    assert response.json()["is_totp"] is True

    current = await client.get("/api/v1/sessions/current", headers=headers)
    assert current.json()["access_level"] == "elevated"


@pytest.mark.asyncio
async def test_wrong_totp_code_is_rejected(client, users):
    headers = await login(client, "bob")

    response = await client.post(
        "/api/v1/sessions/totp",
        json={"code": _wrong_code(users["bob"].otp_secret)},
        headers=headers
    )

    assert response.status_code == 401
    current = await client.get("/api/v1/sessions/current", headers=headers)
    assert current.json()["access_level"] == "standard"


@pytest.mark.asyncio
async def test_totp_without_configured_secret(client, users):
    headers = await login(client, "alice")

    response = await client.post(
        "/api/v1/sessions/totp",
        json={"code": "123456"},
        headers=headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["error_code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_malformed_totp_code(client, users):
    headers = await login(client, "bob")

    response = await client.post("/api/v1/sessions/totp", json={"code": "12ab"}, headers=headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_logout_ends_session_and_relogin_is_standard(client, users):
    headers = await login(client, "bob")
    await client.post(
        "/api/v1/sessions/totp",
        json={"code": current_totp(users["bob"])},
        headers=headers
    )

    response = await client.delete("/api/v1/sessions/current", headers=headers)
    assert response.status_code == 200

    assert (await client.get("/api/v1/sessions/current", headers=headers)).status_code == 401

    new_headers = await login(client, "bob")
    current = await client.get("/api/v1/sessions/current", headers=new_headers)
    assert current.json()["access_level"] == "standard"
