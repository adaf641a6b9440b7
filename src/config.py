"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = "INFO"

    # Authentication
    jwt_secret: str = "change-me-in-production"
    jwt_refresh_secret: str = "change-me-too-in-production"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Eco-points ledger
    initial_points: int = 0  # Starting balance for a user's first stats read

    # Optional external image classification endpoint
    inference_api_url: str = ""  # Empty disables the remote call
    inference_api_token: str = ""
    inference_timeout_seconds: int = 10

    # CORS
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
