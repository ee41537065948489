from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration, read from POINTS_* environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="POINTS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    APP_NAME: str = "points-market"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Cookie set at login holding the session user's id
    SESSION_COOKIE_NAME: str = "userId"

    # Reject records where the user is not exactly one of giver/getter
    STRICT_LEDGER: bool = True

    SEED_DEMO_DATA: bool = True

    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])


@lru_cache
def get_settings() -> Settings:
    return Settings()
