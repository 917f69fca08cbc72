from pydantic_settings import BaseSettings
from pydantic import model_validator
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    db_path: str = "data/jobs.db"
    db_flush_interval_seconds: float = 1.0

    # Sync
    db_sync_token: str = ""
    sync_min_bytes: int = 4096

    # Auth
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    session_expire_days: int = 30
    verification_token_expiry_hours: int = 24

    # App
    app_url: str = "http://localhost:8000"
    environment: str = "development"

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Ensure secret_key is set properly in non-development environments."""
        weak_keys = {"change-me-in-production", "", "secret", "changeme"}
        if self.environment != "development" and self.secret_key in weak_keys:
            raise ValueError(
                f"SECRET_KEY must be set to a secure value in {self.environment} environment. "
                "Generate one with: openssl rand -hex 32"
            )
        return self

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
