"""
Course platform application settings.

Extends the base settings with platform-specific configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Course platform settings."""

    # ==========================================================================
    # Authentication
    # ==========================================================================
    # Cookie that carries the bearer token for browser clients
    AUTH_COOKIE_NAME: str = "token"
    AUTH_COOKIE_SECURE: bool = False

    # Minimum password length at registration / password change
    PASSWORD_MIN_LENGTH: int = 6

    # ==========================================================================
    # Pagination
    # ==========================================================================
    COURSES_DEFAULT_PAGE_SIZE: int = 10
    COURSES_MAX_PAGE_SIZE: int = 50
    USERS_DEFAULT_PAGE_SIZE: int = 10

    # ==========================================================================
    # Consistency
    # ==========================================================================
    # Attempts for read-modify-write saves before reporting a conflict
    OPTIMISTIC_RETRY_LIMIT: int = 3

    # ==========================================================================
    # Statistics
    # ==========================================================================
    RECENT_REGISTRATION_DAYS: int = 30


# Global settings instance
settings = Settings()
