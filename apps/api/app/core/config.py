"""Application configuration."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    jwt_secret: str = Field(min_length=1)
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    jwt_expires_in: timedelta = timedelta(days=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    environment: Literal["development", "production"] = "development"
    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True

    # When set, accounts and articles persist in MongoDB; otherwise an in-process store is used.
    mongodb_uri: str | None = None
    mongodb_database: str = "union_news"

    seed_admin_email: str | None = None
    seed_admin_password: str | None = None
    seed_admin_name: str = "Administrador"
    seed_sample_news: bool = False

    host: str = "0.0.0.0"
    port: int = 3001

    model_config = SettingsConfigDict(
        env_prefix="UNION_NEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
