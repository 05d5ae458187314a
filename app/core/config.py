from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(..., env="DATABASE_URL")
    jwt_secret_key: str = Field("CHANGE_ME_SECRET", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        60 * 24 * 7, env="ACCESS_TOKEN_EXPIRE_MINUTES"
    )
    access_token_cookie_name: str = Field(
        "access_token", env="ACCESS_TOKEN_COOKIE_NAME"
    )
    celery_broker_url: str = Field(
        "redis://localhost:6379/0",
        env="CELERY_BROKER_URL",
    )
    # IST (UTC+5:30): single reset boundary shared by every user
    daily_limit_utc_offset_minutes: int = Field(
        330,
        env="DAILY_LIMIT_UTC_OFFSET_MINUTES",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


__all__ = ["settings", "Settings"]
