"""Tests for JWT verification and the role dependencies.

Covers:
- JWT token creation / verification
- Expired & invalid token rejection
- get_current_user dependency
- require_admin / require_superadmin
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import JWTError

# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


class TestCreateAccessToken:
    """Test create_access_token function."""

    def test_token_contains_claims(self):
        """The decoded token should carry the claims it was built from."""
        from pawlegal.services.auth_service import create_access_token, verify_token

        token = create_access_token(data={"sub": "alice@example.com", "user_id": 3, "role": "client"})
        payload = verify_token(token)
        assert payload["sub"] == "alice@example.com"
        assert payload["user_id"] == 3
        assert payload["role"] == "client"

    def test_token_type_is_access(self):
        """Access tokens should include type='access' claim."""
        from pawlegal.services.auth_service import create_access_token, verify_token

        payload = verify_token(create_access_token(data={"sub": "user1"}))
        assert payload.get("type") == "access"
        assert "exp" in payload


class TestVerifyToken:
    """Test verify_token function."""

    def test_expired_token_raises(self):
        """An expired token should raise JWTError."""
        from pawlegal.services.auth_service import create_access_token, verify_token

        token = create_access_token(data={"sub": "old"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            verify_token(token)

    def test_tampered_token_raises(self):
        """A modified token should fail signature verification."""
        from pawlegal.services.auth_service import create_access_token, verify_token

        token = create_access_token(data={"sub": "user"})
        with pytest.raises(JWTError):
            verify_token(token[:-4] + "abcd")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class TestGetCurrentUser:
    """Test get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_valid_token(self):
        """A valid token resolves to the user dict."""
        from pawlegal.services.auth_service import create_access_token, get_current_user

        token = create_access_token(data={"sub": "root@pawlegal.fr", "user_id": "1", "role": "superadmin"})
        user = await get_current_user(token)
        assert user == {"email": "root@pawlegal.fr", "user_id": 1, "role": "superadmin"}

    @pytest.mark.asyncio
    async def test_missing_role_defaults_to_client(self):
        """Tokens without a role claim are treated as clients."""
        from pawlegal.services.auth_service import create_access_token, get_current_user

        user = await get_current_user(create_access_token(data={"sub": "a@b.c", "user_id": 9}))
        assert user["role"] == "client"

    @pytest.mark.asyncio
    async def test_missing_user_id_is_rejected(self):
        """Tokens without user_id cannot identify the caller."""
        from pawlegal.services.auth_service import create_access_token, get_current_user

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(create_access_token(data={"sub": "a@b.c"}))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_rejected(self):
        from pawlegal.services.auth_service import get_current_user

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("not-a-jwt")
        assert exc_info.value.status_code == 401


class TestRoleDependencies:
    """Test require_admin and require_superadmin."""

    @pytest.mark.parametrize("role", ["admin", "superadmin"])
    @pytest.mark.asyncio
    async def test_admin_roles_pass(self, role):
        from pawlegal.services.auth_service import require_admin

        user = {"email": "x@y.z", "user_id": 1, "role": role}
        assert await require_admin(user) is user

    @pytest.mark.parametrize("role", ["client", "juriste", "partenaire"])
    @pytest.mark.asyncio
    async def test_other_roles_refused(self, role):
        from pawlegal.services.auth_service import require_admin

        with pytest.raises(HTTPException) as exc_info:
            await require_admin({"email": "x@y.z", "user_id": 1, "role": role})
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_superadmin_only(self):
        from pawlegal.services.auth_service import require_superadmin

        with pytest.raises(HTTPException) as exc_info:
            await require_superadmin({"email": "x@y.z", "user_id": 1, "role": "admin"})
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Accès réservé au super administrateur"
