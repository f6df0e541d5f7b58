"""
Authentication middleware for protected routes.

Validates JWT bearer tokens and attaches user context to requests.
"""

import logging
from typing import Optional

from fastapi import Request

from common.auth import JWTAuth
from common.utils.exceptions import UnauthorizedException
from lms.services.user import UserService

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Middleware that validates the token and attaches user to request.
    """

    def __init__(
        self,
        jwt_auth: JWTAuth,
        user_service: UserService,
        cookie_name: str = "token",
    ):
        """
        Initialize AuthMiddleware.

        Args:
            jwt_auth: For token verification
            user_service: For resolving the token subject to a user
            cookie_name: Cookie checked when no Authorization header is sent
        """
        self._jwt_auth = jwt_auth
        self._user_service = user_service
        self._cookie_name = cookie_name

    async def require_auth(self, request: Request) -> dict:
        """
        Validate request is authenticated.

        Args:
            request: HTTP request object

        Returns:
            User dict attached to request

        Raises:
            UnauthorizedException: No token, invalid or revoked token,
                unknown user, or deactivated user

        Side Effects:
            - Updates user.lastLogin
            - Attaches user to request.state.user
            - Attaches the raw token to request.state.token
        """
        token = self._extract_token(request)

        if not token:
            raise UnauthorizedException(
                message="Not authorized to access this route",
                code="AUTH_REQUIRED"
            )

        try:
            claims = await self._jwt_auth.verify_token(token)
        except ValueError as e:
            logger.debug(f"Token rejected: {e}")
            raise UnauthorizedException(
                message="Not authorized to access this route",
                code="INVALID_TOKEN"
            )

        user = await self._user_service.get_user_by_id(claims.get("sub"))

        if not user:
            raise UnauthorizedException(
                message="No user found with this token",
                code="USER_NOT_FOUND"
            )

        if not user.get("isActive", True):
            raise UnauthorizedException(
                message="User account is deactivated",
                code="ACCOUNT_DEACTIVATED"
            )

        await self._user_service.update_last_login(user["_id"])

        request.state.user = user
        request.state.token = token

        return user

    async def optional_auth(self, request: Request) -> Optional[dict]:
        """
        Attach user if authenticated, but don't require it.

        Args:
            request: HTTP request object

        Returns:
            User dict if authenticated, None otherwise

        Does not raise errors for missing/invalid auth.
        """
        if not self._extract_token(request):
            return None

        try:
            return await self.require_auth(request)
        except UnauthorizedException as e:
            logger.debug(f"Optional auth failed: {e.message}")
            return None

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from the Authorization header, else the auth cookie.

        Args:
            request: HTTP request object

        Returns:
            Token string if present and valid format, None otherwise

        Expected header format: "Authorization: Bearer <token>"
        """
        auth_header = request.headers.get("Authorization")

        if auth_header:
            parts = auth_header.split()

            if len(parts) == 2 and parts[0].lower() == "bearer":
                return parts[1]

            return None

        return request.cookies.get(self._cookie_name) or None
