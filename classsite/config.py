"""
Configuration and settings for the content manager.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Persistence: "database" (SQLAlchemy) or "file" (JSON files)
    storage_backend: Literal["database", "file"] = Field(
        default="file", validation_alias="CLASSSITE_STORAGE_BACKEND"
    )
    database_url: str = Field(
        default="sqlite:///data/classsite.db", validation_alias="DATABASE_URL"
    )
    data_dir: str = Field(default="data", validation_alias="DATA_DIR")

    # Uploaded images
    upload_dir: str = Field(
        default="public/assets/images/gallery", validation_alias="UPLOAD_DIR"
    )
    static_url_path: str = Field(default="/assets/images/gallery")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024)
    max_upload_files: int = Field(default=10)

    # Auth
    jwt_secret: str = Field(
        default="dev-secret-change-me", validation_alias="JWT_SECRET"
    )
    jwt_algorithm: str = Field(default="HS256")
    token_expire_hours: int = Field(default=24)
    bcrypt_rounds: int = Field(default=10, validation_alias="BCRYPT_ROUNDS")
    admin_username: Optional[str] = Field(
        default=None, validation_alias="ADMIN_USERNAME"
    )
    admin_password: Optional[str] = Field(
        default=None, validation_alias="ADMIN_PASSWORD"
    )

    confession_max_length: int = Field(default=500)

    # Insert the default roster and settings when the collections are empty
    seed_defaults: bool = Field(default=True, validation_alias="SEED_DEFAULTS")

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3055, validation_alias="PORT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
