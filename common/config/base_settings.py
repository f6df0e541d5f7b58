"""
Environment-driven settings shared by every service.

Values come from environment variables (or a local .env file) through
pydantic-settings; applications subclass BaseAppSettings for their own knobs.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        AUTH_COOKIE_NAME: str = "token"

    settings = Settings()
    settings.MONGODB_URI
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Signing key used only when ENVIRONMENT=development and nothing is configured
DEV_JWT_SECRET = "dev-only-jwt-secret"


class BaseAppSettings(BaseSettings):
    """Database, token, server and CORS configuration."""

    # ==========================================================================
    # Database
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "lms"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # ==========================================================================
    # Tokens
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # ==========================================================================
    # Server
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Comma-separated origins or "*"
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=True,
    )

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def get_cors_origins(self) -> List[str]:
        """CORS_ORIGINS as a list."""
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_jwt_secret(self) -> str:
        """
        Signing secret for access tokens.

        Development falls back to DEV_JWT_SECRET so the API starts without a
        .env file.

        Raises:
            ValueError: No secret configured outside development
        """
        if self.JWT_SECRET:
            return self.JWT_SECRET
        if self.is_development():
            return DEV_JWT_SECRET
        raise ValueError("JWT_SECRET is required outside development")

    def validate_required(self) -> None:
        """
        Fail startup on configuration that would break at request time.

        Raises:
            ValueError: Listing every problem found
        """
        errors = []

        if not self.JWT_SECRET and not self.is_development():
            errors.append("JWT_SECRET is required outside development")

        if self.JWT_ACCESS_TOKEN_EXPIRE_MINUTES <= 0:
            errors.append("JWT_ACCESS_TOKEN_EXPIRE_MINUTES must be positive")

        if self.MONGODB_SERVER_SELECTION_TIMEOUT_MS <= 0:
            errors.append("MONGODB_SERVER_SELECTION_TIMEOUT_MS must be positive")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
