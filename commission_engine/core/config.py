from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False
    project_name: str = "Commission Engine"
    environment: str = "development"

    # Local development falls back to a SQLite file; production sets DATABASE_URL
    database_url: str = "sqlite+aiosqlite:///./commission_engine.db"

    # Override chain depth limits
    # Manager chain: Team Lead -> Area Director -> Regional Manager -> VP
    manager_override_max_depth: int = Field(default=4, ge=1)
    # Recruiting overrides stay shallow
    recruiter_override_max_depth: int = Field(default=2, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
