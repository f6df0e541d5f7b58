"""Unit tests for AuthMiddleware token extraction and user resolution."""

import pytest
from types import SimpleNamespace

from common.utils.exceptions import UnauthorizedException
from lms.middleware import AuthMiddleware


def _request(headers=None, cookies=None):
    return SimpleNamespace(headers=headers or {}, cookies=cookies or {}, state=SimpleNamespace())


@pytest.fixture
def middleware(jwt_auth, user_service):
    return AuthMiddleware(jwt_auth=jwt_auth, user_service=user_service, cookie_name="token")


async def _token_for(jwt_auth, user):
    return await jwt_auth.create_token(str(user["_id"]), role=user["role"])


# ─────────────────────────────────────────────────────────────────
# _extract_token
# ─────────────────────────────────────────────────────────────────


class TestExtractToken:
    def test_bearer_header(self, middleware):
        assert middleware._extract_token(_request({"Authorization": "Bearer abc"})) == "abc"

    def test_scheme_is_case_insensitive(self, middleware):
        assert middleware._extract_token(_request({"Authorization": "bearer abc"})) == "abc"

    def test_malformed_header_ignores_cookie(self, middleware):
        request = _request({"Authorization": "Token abc"}, {"token": "from-cookie"})
        assert middleware._extract_token(request) is None

    def test_cookie_fallback(self, middleware):
        assert middleware._extract_token(_request(cookies={"token": "from-cookie"})) == "from-cookie"

    def test_nothing(self, middleware):
        assert middleware._extract_token(_request()) is None


# ─────────────────────────────────────────────────────────────────
# require_auth
# ─────────────────────────────────────────────────────────────────


class TestRequireAuth:
    @pytest.mark.asyncio
    async def test_resolves_user(self, middleware, jwt_auth, student, fake_db):
        token = await _token_for(jwt_auth, student)
        request = _request({"Authorization": f"Bearer {token}"})

        user = await middleware.require_auth(request)

        assert user["_id"] == student["_id"]
        assert request.state.user["_id"] == student["_id"]
        assert request.state.token == token
        assert fake_db["users"].docs[0]["lastLogin"] is not None

    @pytest.mark.asyncio
    async def test_missing_token(self, middleware):
        with pytest.raises(UnauthorizedException) as exc:
            await middleware.require_auth(_request())
        assert exc.value.code == "AUTH_REQUIRED"

    @pytest.mark.asyncio
    async def test_invalid_token(self, middleware):
        with pytest.raises(UnauthorizedException) as exc:
            await middleware.require_auth(_request({"Authorization": "Bearer junk"}))
        assert exc.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_revoked_token(self, middleware, jwt_auth, student):
        token = await _token_for(jwt_auth, student)
        await jwt_auth.revoke_token(token)

        with pytest.raises(UnauthorizedException) as exc:
            await middleware.require_auth(_request(cookies={"token": token}))
        assert exc.value.code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_unknown_user(self, middleware, jwt_auth):
        token = await jwt_auth.create_token("5f0000000000000000000000")

        with pytest.raises(UnauthorizedException) as exc:
            await middleware.require_auth(_request({"Authorization": f"Bearer {token}"}))
        assert exc.value.code == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_deactivated_user(self, middleware, jwt_auth, user_service, student):
        token = await _token_for(jwt_auth, student)
        await user_service.deactivate_user(str(student["_id"]))

        with pytest.raises(UnauthorizedException) as exc:
            await middleware.require_auth(_request({"Authorization": f"Bearer {token}"}))
        assert exc.value.code == "ACCOUNT_DEACTIVATED"


class TestOptionalAuth:
    @pytest.mark.asyncio
    async def test_anonymous(self, middleware):
        assert await middleware.optional_auth(_request()) is None

    @pytest.mark.asyncio
    async def test_bad_token_is_anonymous(self, middleware):
        assert await middleware.optional_auth(_request({"Authorization": "Bearer junk"})) is None

    @pytest.mark.asyncio
    async def test_valid_token(self, middleware, jwt_auth, educator):
        token = await _token_for(jwt_auth, educator)
        user = await middleware.optional_auth(_request({"Authorization": f"Bearer {token}"}))
        assert user["_id"] == educator["_id"]
