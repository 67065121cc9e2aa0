"""Application configuration using Pydantic Settings."""

import secrets
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Application
    app_env: str = "dev"
    app_version: str = "1"
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Player tokens (a fresh secret per process unless configured)
    jwt_secret: str = Field(default_factory=lambda: secrets.token_hex(32))
    jwt_algorithm: str = "HS256"
    token_expiry_hours: float = 24.0

    # Password hashing
    bcrypt_rounds: int = 10

    # Storage
    store_backend: Literal["file", "memory"] = "file"
    data_dir: str = "data"

    # Faction catalog (bundled list when unset)
    catalog_path: Optional[str] = None

    # Per-creator game limit (0 disables)
    max_games_per_creator: int = 2
    trust_forwarded_for: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
