"""
Configuration module for the notes backend.
Loads environment variables and provides centralized config access.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# ============================================================
# Centralized Data Paths
# ============================================================
# All persistent data lives under <project>/data/ for easy backup/deletion.
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_JWT_SECRET = "change-me-to-a-random-secret-key"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type coercion.
    """

    # ============================================================
    # Token signing
    # ============================================================
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60

    # ============================================================
    # Session cookie
    # ============================================================
    cookie_name: str = "accessToken"
    # "production" turns on Secure and SameSite=None
    environment: str = "development"

    # ============================================================
    # Password hashing
    # ============================================================
    bcrypt_rounds: int = 12

    # ============================================================
    # Storage
    # ============================================================
    database_path: str = str(DATA_DIR / "app.db")

    # ============================================================
    # Notes
    # ============================================================
    # Unscoped GET /notes listing over every user's notes
    global_listing_enabled: bool = False

    # ============================================================
    # Server Configuration
    # ============================================================
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Comma-separated origins allowed to call the API with credentials
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.is_production else "lax"

    @property
    def cookie_max_age(self) -> int:
        """Cookie lifetime in seconds; matches the token lifetime."""
        return self.access_token_ttl_minutes * 60

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reloading env vars on every call.
    """
    return Settings()
