"""Configuration management for the Todo API."""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 5432
    name: str = "todo_api_db"
    test_name: str = "todo_test"
    user: str = "postgres"
    password: str = ""
    connect_timeout: int = 2

    def get_database(self, environment: str) -> str:
        """Pick the application or test database for the given environment."""
        if environment == "test":
            return self.test_name
        return self.name

    def conninfo_kwargs(self, database: str) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "dbname": database,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }

    def sqlalchemy_url(self, database: str) -> str:
        return (
            f"postgresql+psycopg://{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port}/{database}"
        )


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret: str = "change-me-in-production"
    algorithm: str = "HS256"
    expires_hours: int = 24


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    environment: str = "development"
    cors_origins: list[str] = ["*"]

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def database_name(self) -> str:
        return self.database.get_database(self.environment)


@lru_cache
def get_settings() -> Settings:
    return Settings()
