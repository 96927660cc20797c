"""Auth API tests — the HTTP face of the login flow.

Learn: Tests cover:
1. Registration → tokens (201), duplicate email (409), bad passwords (400)
2. Login → tokens, wrong credentials (401), lockout (403)
3. Token refresh with rotation
4. Logout revoking every refresh token
5. Protected /me endpoint and its 401 messages
6. Password change
"""

import pytest

from conftest import STRONG_PASSWORD

WRONG_PASSWORD = "Wr0ngPass!!!"


async def register(client, email="alice@test.com", name="Alice", password=STRONG_PASSWORD):
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "name": name,
            "email": email,
            "password": password,
            "confirm_password": password,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


async def login(client, email="alice@test.com", password=STRONG_PASSWORD):
    return await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_returns_tokens(client):
    """Registering signs the new account in straight away."""
    body = await register(client)
    assert body["access_token"]
    assert body["refresh_token"]
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 900
    assert body["user"]["email"] == "alice@test.com"
    assert body["user"]["name"] == "Alice"
    assert "password_hash" not in body["user"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    await register(client)
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "Impostor",
            "email": "ALICE@test.com",
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD,
        },
    )
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_weak_password(client):
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "Weak",
            "email": "weak@test.com",
            "password": "password",
            "confirm_password": "password",
        },
    )
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail.startswith("Password does not meet requirements: ")
    assert "must contain a digit" in detail


@pytest.mark.asyncio
async def test_register_password_mismatch(client):
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "Typo",
            "email": "typo@test.com",
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD + "x",
        },
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Passwords do not match"


@pytest.mark.asyncio
async def test_register_rejects_malformed_email(client):
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "Bad",
            "email": "not-an-email",
            "password": STRONG_PASSWORD,
            "confirm_password": STRONG_PASSWORD,
        },
    )
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Login + lockout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client):
    await register(client)
    r = await login(client)
    assert r.status_code == 200
    tokens = r.json()
    assert tokens["access_token"]
    assert tokens["refresh_token"]
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_look_identical(client):
    await register(client)
    wrong = await login(client, password=WRONG_PASSWORD)
    unknown = await login(client, email="nobody@test.com")
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Invalid email or password"}


@pytest.mark.asyncio
async def test_lockout_after_ten_failures(client):
    """Ten wrong passwords lock the account; the correct one is then refused."""
    await register(client)

    for _ in range(9):
        r = await login(client, password=WRONG_PASSWORD)
        assert r.status_code == 401

    r = await login(client, password=WRONG_PASSWORD)
    assert r.status_code == 403
    assert r.json()["detail"] == (
        "Account has been locked due to too many failed login attempts"
    )

    r = await login(client)
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is locked"


# ═══════════════════════════════════════════════════════════
# Token Refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_token_rotates(client):
    tokens = await register(client)

    r = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )
    assert r.status_code == 200
    rotated = r.json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    r = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired refresh token"


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_revokes_refresh_tokens(client):
    await register(client)
    tokens = (await login(client)).json()

    r = await client.post("/api/v1/auth/logout", headers=bearer(tokens["access_token"]))
    assert r.status_code == 200
    assert r.json()["revoked_refresh_tokens"] == 2  # registration + login

    r = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_logout_requires_auth(client):
    r = await client.post("/api/v1/auth/logout")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


# ═══════════════════════════════════════════════════════════
# Protected /me endpoint
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(client):
    tokens = await register(client)
    r = await client.get("/api/v1/auth/me", headers=bearer(tokens["access_token"]))
    assert r.status_code == 200
    assert r.json()["email"] == "alice@test.com"
    assert r.json()["id"] == tokens["user"]["id"]


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"


@pytest.mark.asyncio
async def test_me_with_bad_token(client):
    r = await client.get("/api/v1/auth/me", headers=bearer("invalid_token_here"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_me_rejects_refresh_token_as_bearer(client):
    tokens = await register(client)
    r = await client.get("/api/v1/auth/me", headers=bearer(tokens["refresh_token"]))
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Password change
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_change_password(client):
    tokens = await register(client)
    new_password = "N3wSecurePass$"

    r = await client.post(
        "/api/v1/auth/password",
        headers=bearer(tokens["access_token"]),
        json={
            "current_password": STRONG_PASSWORD,
            "new_password": new_password,
            "confirm_password": new_password,
        },
    )
    assert r.status_code == 200
    assert r.json()["revoked_refresh_tokens"] == 1

    assert (await login(client)).status_code == 401
    assert (await login(client, password=new_password)).status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client):
    tokens = await register(client)
    r = await client.post(
        "/api/v1/auth/password",
        headers=bearer(tokens["access_token"]),
        json={
            "current_password": WRONG_PASSWORD,
            "new_password": "N3wSecurePass$",
            "confirm_password": "N3wSecurePass$",
        },
    )
    assert r.status_code == 401
