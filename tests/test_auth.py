import pytest
from sqlalchemy import update

from db_models.user import User

from conftest import TEST_PASSWORD


@pytest.mark.anyio
async def test_login_with_form_data(async_client):
    """Test OAuth2 compatible login endpoint"""
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": "admin@bikeshop.nl", "password": TEST_PASSWORD},
        headers={"Content-Type": "application/x-www-form-urlencoded"}
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"


@pytest.mark.anyio
async def test_login_with_json(async_client):
    """Test JSON login endpoint"""
    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "admin@bikeshop.nl", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert "access_token" in data
    assert "refresh_token" in data


@pytest.mark.anyio
async def test_login_invalid_credentials(async_client):
    """Test login with wrong password"""
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": "admin@bikeshop.nl", "password": "wrongpassword"},
        headers={"Content-Type": "application/x-www-form-urlencoded"}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"]["message"] == "Incorrect email or password"


@pytest.mark.anyio
async def test_login_inactive_user(async_client, session_factory):
    """Test that a disabled account cannot log in"""
    async with session_factory() as session:
        await session.execute(
            update(User).where(User.email == "readonly@bikeshop.nl").values(is_active=False)
        )
        await session.commit()

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "readonly@bikeshop.nl", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_refresh_token(async_client):
    """Test token refresh endpoint"""
    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "admin@bikeshop.nl", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 200
    tokens = resp.json()

    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": tokens["refresh_token"]}
    )
    assert resp.status_code == 200, resp.text
    assert "access_token" in resp.json()


@pytest.mark.anyio
async def test_access_token_is_not_a_refresh_token(async_client):
    """Test that an access token is refused by the refresh endpoint"""
    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "admin@bikeshop.nl", "password": TEST_PASSWORD}
    )
    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": resp.json()["access_token"]}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_refresh_token_invalid(async_client):
    """Test refresh with invalid token"""
    resp = await async_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": "invalid.token.here"}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_get_current_user(async_client, admin_headers):
    """Test getting current user profile with resolved access"""
    resp = await async_client.get("/api/v1/auth/me", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["email"] == "admin@bikeshop.nl"
    assert data["full_name"] == "Test Admin"
    assert data["roles"] == ["admin"]
    assert "bikes:delete" in data["permissions"]


@pytest.mark.anyio
async def test_get_current_user_unauthorized(async_client):
    """Test getting current user without authentication"""
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "UNAUTHORIZED"
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.anyio
async def test_garbage_token_unauthorized(async_client):
    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_register_grants_default_role(async_client):
    """Test that self-registration yields a medewerker"""
    resp = await async_client.post(
        "/api/v1/auth/register",
        json={
            "email": "newhire@bikeshop.nl",
            "password": "newhirepass",
            "full_name": "New Hire",
        }
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["email"] == "newhire@bikeshop.nl"

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "newhire@bikeshop.nl", "password": "newhirepass"}
    )
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
    resp = await async_client.get("/api/v1/auth/me", headers=headers)
    assert resp.json()["roles"] == ["medewerker"]


@pytest.mark.anyio
async def test_register_duplicate_email(async_client):
    """Test registering with an existing email"""
    resp = await async_client.post(
        "/api/v1/auth/register",
        json={
            "email": "admin@bikeshop.nl",
            "password": "password123",
            "full_name": "Duplicate User",
        }
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_EMAIL"


# Admin role management endpoints

@pytest.mark.anyio
async def test_list_roles_admin(async_client, admin_headers):
    """Test admin listing roles with their permissions"""
    resp = await async_client.get("/api/v1/auth/roles", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    roles = {role["name"]: role["permissions"] for role in resp.json()}
    assert set(roles) == {"admin", "manager", "medewerker", "readonly"}
    assert "bikes:delete" not in roles["manager"]
    assert sorted(roles["readonly"]) == ["bikes:read", "workorders:read"]


@pytest.mark.anyio
async def test_role_endpoints_require_admin(async_client, headers_for, seed):
    """Test that only admins manage roles (role check, not permission check)"""
    resp = await async_client.get("/api/v1/auth/roles", headers=headers_for("manager"))
    assert resp.status_code == 403

    resp = await async_client.post(
        f"/api/v1/auth/users/{seed['users']['manager']}/roles",
        json={"role": "admin"},
        headers=headers_for("manager"),
    )
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_grant_role_takes_effect_immediately(async_client, admin_headers, headers_for, seed, role_cache):
    """Test that granting a role invalidates the cached access of that user"""
    user_id = seed["users"]["norole"]
    headers = headers_for("norole")

    resp = await async_client.get("/api/v1/bikes", headers=headers)
    assert resp.status_code == 403
    assert user_id in role_cache

    resp = await async_client.post(
        f"/api/v1/auth/users/{user_id}/roles",
        json={"role": "readonly"},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["roles"] == ["readonly"]
    assert user_id not in role_cache

    resp = await async_client.get("/api/v1/bikes", headers=headers)
    assert resp.status_code == 200

    # Granting the same role twice is a no-op
    resp = await async_client.post(
        f"/api/v1/auth/users/{user_id}/roles",
        json={"role": "readonly"},
        headers=admin_headers,
    )
    assert resp.json()["roles"] == ["readonly"]


@pytest.mark.anyio
async def test_revoke_role_takes_effect_immediately(async_client, admin_headers, headers_for, seed):
    """Test that revoking a role removes access on the next request"""
    user_id = seed["users"]["readonly"]
    headers = headers_for("readonly")

    resp = await async_client.get("/api/v1/bikes", headers=headers)
    assert resp.status_code == 200

    resp = await async_client.delete(
        f"/api/v1/auth/users/{user_id}/roles/readonly", headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["roles"] == []

    resp = await async_client.get("/api/v1/bikes", headers=headers)
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_grant_unknown_role_or_user(async_client, admin_headers, seed):
    """Test granting to a missing user or a missing role"""
    resp = await async_client.post(
        f"/api/v1/auth/users/{seed['users']['norole']}/roles",
        json={"role": "superuser"},
        headers=admin_headers,
    )
    assert resp.status_code == 404

    resp = await async_client.post(
        "/api/v1/auth/users/99999/roles",
        json={"role": "readonly"},
        headers=admin_headers,
    )
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_role_lookup_failure_is_forbidden(async_client, headers_for, role_cache, monkeypatch):
    """Test that an unresolvable role set denies access"""
    from sqlalchemy.exc import OperationalError

    async def broken_loader(db, user_id):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(role_cache, "_loader", broken_loader)

    resp = await async_client.get("/api/v1/bikes", headers=headers_for("admin"))
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_auth_endpoints_share_one_rate_limit(async_client):
    """Test that the 11th authentication request from one address is refused"""
    for _ in range(5):
        resp = await async_client.post(
            "/api/v1/auth/login/json",
            json={"email": "admin@bikeshop.nl", "password": "wrongpassword"}
        )
        assert resp.status_code == 401
    for _ in range(5):
        resp = await async_client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": "invalid.token.here"}
        )
        assert resp.status_code == 401

    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "admin@bikeshop.nl", "password": TEST_PASSWORD}
    )
    assert resp.status_code == 429
    assert resp.json()["detail"]["code"] == "RATE_LIMITED"

    resp = await async_client.post(
        "/api/v1/auth/register",
        json={"email": "late@bikeshop.nl", "password": "latepass1", "full_name": "Late"}
    )
    assert resp.status_code == 429

    # Another client address has its own budget
    resp = await async_client.post(
        "/api/v1/auth/login/json",
        json={"email": "admin@bikeshop.nl", "password": TEST_PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    assert resp.status_code == 200


@pytest.mark.anyio
async def test_rate_limit_leaves_other_endpoints_alone(async_client, admin_headers):
    """Test that authenticated endpoints are not throttled by the auth budget"""
    for _ in range(12):
        resp = await async_client.get("/api/v1/auth/me", headers=admin_headers)
        assert resp.status_code == 200
