"""End-to-end tests for login, registration, the session pipeline and logout."""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from taskhub.core.security import decode_session_token
from taskhub.crud import user as crud_user


# ── Registration ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_register_creates_client_and_sets_cookie(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/register", json={"email": "a@x.com", "password": "secret1"}
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "a@x.com"
    assert data["role"] == "client"
    assert data["userId"]
    assert data["message"]
    assert "sesion" in resp.cookies
    assert decode_session_token(data["token"]).user_id == data["userId"]


@pytest.mark.asyncio
async def test_register_accepts_names(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/auth/register",
        json={"firstName": "Ana", "lastName": "Ruiz", "email": "Ana@X.com ", "password": "secret1"},
    )
    assert resp.status_code == 201
    assert resp.json()["email"] == "ana@x.com"

    profile = await async_client.get("/api/auth/user")
    assert profile.status_code == 200
    assert profile.json()["firstName"] == "Ana"
    assert profile.json()["lastName"] == "Ruiz"


@pytest.mark.asyncio
async def test_register_duplicate_email_rejected(async_client: AsyncClient, make_user):
    await make_user(email="dup@x.com")
    resp = await async_client.post(
        "/api/register", json={"email": "dup@x.com", "password": "secret1"}
    )
    assert resp.status_code == 400
    assert "already registered" in resp.json()["message"]


@pytest.mark.asyncio
async def test_register_validates_body(async_client: AsyncClient):
    resp = await async_client.post("/api/register", json={"email": "a@x.com", "password": "123"})
    assert resp.status_code == 400
    assert "password" in resp.json()["message"]

    resp = await async_client.post("/api/register", json={"password": "secret1"})
    assert resp.status_code == 400


# ── Login ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["admin", "tasker", "client", "guest"])
async def test_login_token_role_matches_stored_role(async_client: AsyncClient, make_user, role):
    user = await make_user(email=f"{role}@x.com", role=role)
    resp = await async_client.post(
        "/api/auth/login", json={"email": f"{role}@x.com", "password": "secret1"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["userId"] == user.id
    assert data["role"] == role
    assert decode_session_token(data["token"]).role == role


@pytest.mark.asyncio
async def test_login_alias_route(async_client: AsyncClient, make_user):
    await make_user(email="alias@x.com")
    resp = await async_client.post("/api/login", json={"email": "alias@x.com", "password": "secret1"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password_sets_no_cookie(async_client: AsyncClient, make_user):
    await make_user(email="b@x.com")
    resp = await async_client.post(
        "/api/auth/login", json={"email": "b@x.com", "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["message"]
    assert "set-cookie" not in resp.headers
    assert "sesion" not in async_client.cookies


@pytest.mark.asyncio
async def test_login_unknown_email(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/auth/login", json={"email": "nobody@x.com", "password": "secret1"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_email_still_verifies_a_hash(async_client: AsyncClient, monkeypatch):
    """Unknown emails pay for a bcrypt check, like a wrong password does."""
    calls = []
    monkeypatch.setattr(
        crud_user.pwd_context, "dummy_verify", lambda *a, **kw: calls.append(1) or False
    )
    resp = await async_client.post(
        "/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"}
    )
    assert resp.status_code == 401
    assert calls == [1]


@pytest.mark.asyncio
async def test_session_cookie_attributes(async_client: AsyncClient, make_user):
    await make_user(email="cookie@x.com")
    resp = await async_client.post(
        "/api/auth/login", json={"email": "cookie@x.com", "password": "secret1"}
    )
    set_cookie = resp.headers.get("set-cookie")
    assert set_cookie.startswith("sesion=")
    assert "HttpOnly" in set_cookie
    assert "SameSite=lax" in set_cookie
    assert "Path=/" in set_cookie
    assert "Max-Age=604800" in set_cookie
    assert "Secure" not in set_cookie


# ── Session pipeline ────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_profile_without_credentials_is_401(async_client: AsyncClient):
    resp = await async_client.get("/api/auth/user")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_profile_with_bearer_header(async_client: AsyncClient, make_user, bearer):
    user = await make_user(email="hdr@x.com")
    resp = await async_client.get("/api/auth/user", headers=bearer(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == user.id
    assert "hashedPassword" not in data
    assert "hashed_password" not in data
    assert "password" not in data


@pytest.mark.asyncio
async def test_profile_with_legacy_cookie_name(async_client: AsyncClient, make_user, bearer):
    user = await make_user(email="legacy@x.com")
    token = bearer(user)["Authorization"].split(" ", 1)[1]
    async_client.cookies.set("session", token)
    resp = await async_client.get("/api/auth/user")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_cookie_takes_precedence_over_header(async_client: AsyncClient, make_user, bearer):
    client_user = await make_user(email="c@x.com", role="client")
    admin = await make_user(email="adm@x.com", role="admin")
    cookie_token = bearer(client_user)["Authorization"].split(" ", 1)[1]
    async_client.cookies.set("sesion", cookie_token)

    resp = await async_client.get("/api/admin/users", headers=bearer(admin))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_invalid_token_is_401(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/auth/user", headers={"Authorization": "Bearer not.a.token"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_deleted_user_token_is_401(async_client: AsyncClient, make_user, bearer, db_session):
    user = await make_user(email="gone@x.com", role="admin")
    headers = bearer(user)
    await db_session.delete(user)
    await db_session.commit()

    resp = await async_client.get("/api/admin/users", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_stale_role_in_token_is_ignored(async_client: AsyncClient, make_user, bearer):
    """A token claiming admin for a user now stored as client is not admin."""
    user = await make_user(email="demoted@x.com", role="client")
    resp = await async_client.get("/api/admin/users", headers=bearer(user, role="admin"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_store_failure_is_500(async_client: AsyncClient, make_user, bearer, monkeypatch):
    user = await make_user(email="down@x.com")

    async def _broken(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr("taskhub.api.deps.get_user_by_id", _broken)
    resp = await async_client.get("/api/auth/user", headers=bearer(user))
    assert resp.status_code == 500
    assert resp.json()["message"] == "Internal server error"
    assert "connection refused" not in resp.text


# ── Password change / logout ────────────────────────────────────────
@pytest.mark.asyncio
async def test_change_password(async_client: AsyncClient, make_user, bearer):
    user = await make_user(email="pw@x.com")
    headers = bearer(user)

    wrong = await async_client.post(
        "/api/auth/change-password",
        json={"currentPassword": "nope", "newPassword": "newsecret"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = await async_client.post(
        "/api/auth/change-password",
        json={"currentPassword": "secret1", "newPassword": "newsecret"},
        headers=headers,
    )
    assert ok.status_code == 200

    old = await async_client.post("/api/auth/login", json={"email": "pw@x.com", "password": "secret1"})
    assert old.status_code == 401
    new = await async_client.post("/api/auth/login", json={"email": "pw@x.com", "password": "newsecret"})
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_requires_eight_characters(async_client: AsyncClient, make_user, bearer):
    user = await make_user(email="short@x.com")
    resp = await async_client.post(
        "/api/auth/change-password",
        json={"currentPassword": "secret1", "newPassword": "short12"},
        headers=bearer(user),
    )
    assert resp.status_code == 400
    assert "newPassword" in resp.json()["message"]


@pytest.mark.asyncio
async def test_change_password_users_route(async_client: AsyncClient, make_user, bearer):
    user = await make_user(email="alias-pw@x.com")
    resp = await async_client.post(
        "/api/users/change-password",
        json={"currentPassword": "secret1", "newPassword": "longer-secret"},
        headers=bearer(user),
    )
    assert resp.status_code == 200
    assert resp.json() == {"message": "Password updated"}

    login = await async_client.post(
        "/api/auth/login", json={"email": "alias-pw@x.com", "password": "longer-secret"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_logout_clears_cookie(async_client: AsyncClient, make_user):
    await make_user(email="out@x.com")
    login = await async_client.post(
        "/api/auth/login", json={"email": "out@x.com", "password": "secret1"}
    )
    assert login.status_code == 200
    assert (await async_client.get("/api/auth/user")).status_code == 200

    resp = await async_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert "sesion" not in async_client.cookies

    after = await async_client.get("/api/auth/user")
    assert after.status_code == 401
