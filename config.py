"""Application settings loaded from environment variables and an optional .env file."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the finance tracker API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="finance-tracker")
    app_version: str = Field(default="0.1.0")

    database_url: str = Field(
        default="sqlite:///./finance.db",
        description="SQLAlchemy URL of the backing store",
    )
    db_connect_retries: int = Field(default=10, ge=1)
    db_connect_delay: float = Field(default=2.0, ge=0)

    # set SECRET_KEY in the environment for anything but local development
    secret_key: str = Field(default="CHANGE_ME_TO_SOMETHING_RANDOM_AND_SECRET")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_days: int = Field(default=7, ge=1)

    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()
