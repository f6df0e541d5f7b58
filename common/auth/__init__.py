"""
Authentication module - JWT tokens and bcrypt password hashing.
"""

from common.auth.jwt_auth import JWTAuth

__all__ = ["JWTAuth"]
