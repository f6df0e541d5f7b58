"""
Course platform middleware.
"""

from lms.middleware.auth import AuthMiddleware

__all__ = ["AuthMiddleware"]
