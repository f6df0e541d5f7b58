"""
Signed access tokens (python-jose) and password hashing (bcrypt).

Tokens carry the user id as ``sub``, a unique ``jti`` and any extra claims
such as the role. Logout revokes a token by its ``jti``; revocations are kept
in memory until the token would have expired anyway, so a multi-process
deployment needs a shared store instead.

Example:
    auth = JWTAuth(secret="change-me", access_token_expire_minutes=60)

    password_hash = auth.hash_password("s3cret-pass1")
    token = await auth.create_token(user_id, role="student")

    claims = await auth.verify_token(token)
    claims["sub"]  # user_id
"""

import base64
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class JWTAuth:
    """Issues, verifies and revokes access tokens; hashes and checks passwords."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
    ):
        """
        Args:
            secret: HMAC signing key
            algorithm: JWT algorithm
            access_token_expire_minutes: Token lifetime
        """
        self.secret = secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)

        # jti -> expiry of the revoked token
        self._revoked: Dict[str, datetime] = {}

    # ─────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _prehash(password: str) -> bytes:
        # SHA-256 first so passwords longer than bcrypt's 72 bytes still count in full
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash_password(self, password: str) -> str:
        """bcrypt hash of the password, salted."""
        return bcrypt.hashpw(self._prehash(password), bcrypt.gensalt()).decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        """Check a password against a stored hash. False for empty or malformed hashes."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(self._prehash(password), hashed.encode("utf-8"))
        except ValueError:
            return False

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    async def create_token(self, user_id: str, **claims: Any) -> str:
        """
        Sign an access token for the user.

        Args:
            user_id: Stored as the ``sub`` claim
            **claims: Extra claims, e.g. role
        """
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "sub": user_id,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + self.access_token_expire,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Decode a token and check it has not been revoked.

        Returns:
            The token's claims

        Raises:
            ValueError: Malformed, badly signed, expired or revoked
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}") from e

        if claims.get("jti") in self._revoked:
            raise ValueError("Token has been revoked")

        return claims

    async def revoke_token(self, token: str) -> None:
        """
        Revoke a token until it expires. Invalid tokens are ignored.
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return

        jti = claims.get("jti")
        if not jti:
            return

        self._prune()
        self._revoked[jti] = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        logger.debug(f"Token {jti} revoked for user {claims.get('sub')}")

    def _prune(self) -> None:
        now = datetime.now(timezone.utc)
        for jti in [jti for jti, expires in self._revoked.items() if expires <= now]:
            del self._revoked[jti]
