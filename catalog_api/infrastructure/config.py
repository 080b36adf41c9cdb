"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Authentication tokens
    token_secret: str = "dev-token-secret-change-in-production"
    token_salt: str = "catalog-api-access"
    token_max_age_seconds: int = 86400  # 24 hours

    # Passwords
    password_schemes: list[str] = ["pbkdf2_sha256"]
    password_min_length: int = 6

    # Users
    default_role: str = "auxiliar"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
