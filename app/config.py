"""
Settings for the API, read from environment variables and ``.env``.

Covers both stores, media serving, JWT signing, and the HTTP service itself.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal
from functools import lru_cache
import os

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "InstaProperty API"
    app_version: str = "1.0.0"
    environment: Literal["development", "testing", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Relational mirror
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/instaproperty"

    # Primary store: one directory per collection below this one
    document_store_dir: str = "./data/documents"

    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7

    # Listing images, served back under media_url_prefix
    upload_dir: str = "./uploads"
    media_url_prefix: str = "/media"
    public_base_url: str = "http://localhost:8000"
    max_file_size: int = 10 * 1024 * 1024
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]

    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v):
        """Rewrite plain driver URLs to their async drivers."""
        for plain, async_driver in (
            ("postgresql://", "postgresql+asyncpg://"),
            ("sqlite:///", "sqlite+aiosqlite:///"),
        ):
            if v and v.startswith(plain):
                return async_driver + v[len(plain):]
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if v != DEFAULT_JWT_SECRET and len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("upload_dir", "document_store_dir", mode="before")
    @classmethod
    def create_storage_directories(cls, v):
        if v:
            os.makedirs(v, exist_ok=True)
        return v

    @field_validator("media_url_prefix", "api_prefix")
    @classmethod
    def normalize_prefix(cls, v):
        """Prefixes start with a slash and never end with one."""
        return "/" + v.strip("/")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def media_base_url(self) -> str:
        """Absolute URL under which stored objects are publicly served."""
        return f"{self.public_base_url.rstrip('/')}{self.media_url_prefix}"


@lru_cache()
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()


settings = get_settings()
