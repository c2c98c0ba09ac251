"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "skillbridge_user"
    postgres_password: str = "password"
    postgres_db: str = "skillbridge_db"

    # MongoDB (activity feed)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "skillbridge_docs"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Signup profile creation
    # Profile rows reference users.user_id; the users row may lag behind
    # on a replica, so the insert is retried on FK violations.
    profile_max_attempts: int = 5
    profile_base_delay: float = 0.5  # seconds

    # Dashboard
    activity_feed_limit: int = 10

    # App
    debug: bool = True
    log_level: str = "INFO"

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
