"""Framework settings loaded from the environment.

Every field can be overridden with a ``SURA_``-prefixed environment variable
(``SURA_DATABASE_URL``, ``SURA_SESSION_BACKEND`` ...). A ``.env`` file in the
working tree is loaded first.
"""

from __future__ import annotations

from enum import Enum
from urllib.parse import quote_plus

from dotenv import find_dotenv, load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(find_dotenv(".env", usecwd=True))


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SURA_", extra="ignore")

    # Application identity
    SERVICE_NAME: str = "sura"
    SERVICE_VERSION: str = "0.1.0"
    ENVIRONMENT: Environment = Environment.DEVELOPMENT
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: SecretStr = Field(
        default=SecretStr("dev-secret-change-me"),
        description="Key used to sign remember-me cookies",
    )

    # Database
    DATABASE_URL: str | None = Field(
        default=None, description="Full SQLAlchemy URL; overrides the DB_* fields"
    )
    DB_DRIVER: str = "mysql+aiomysql"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASS: SecretStr = SecretStr("")
    DB_NAME: str = "test"
    DB_ECHO: bool = False
    SQL_LOG_PATH: str | None = Field(
        default=None, description="Append every executed statement to this file"
    )

    # Sessions and cookies
    SESSION_COOKIE: str = "sura_session"
    SESSION_LIFETIME_SECONDS: int = 7200
    SESSION_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    COOKIE_SECURE: bool = True
    AUTH_COOKIE_DAYS: int = 365

    # HTTP
    HTTP_CACHE_TTL: int = 3600
    CONTROLLER_NAMESPACE: str = ""

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.ENVIRONMENT == Environment.TESTING

    @property
    def database_url(self) -> str:
        """Return the SQLAlchemy URL, building it from DB_* when not given."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = quote_plus(self.DB_PASS.get_secret_value())
        url = (
            f"{self.DB_DRIVER}://{self.DB_USER}:{password}@{self.DB_HOST}:{self.DB_PORT}"
            f"/{self.DB_NAME}"
        )
        if self.DB_DRIVER.startswith("mysql"):
            url += "?charset=utf8mb4"
        return url

    def database_url_masked(self) -> str:
        """Return database URL with masked password for logging."""
        url = self.database_url
        scheme, sep, rest = url.partition("://")
        if not sep or "@" not in rest:
            return url
        credentials, _, location = rest.rpartition("@")
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{location}"

    def __str__(self) -> str:
        """Secure string representation that masks sensitive data."""
        return (
            f"{self.__class__.__name__}("
            f"service={self.SERVICE_NAME}, "
            f"version={self.SERVICE_VERSION}, "
            f"environment={self.ENVIRONMENT.value}, "
            f"secrets=***MASKED***)"
        )

    def __repr__(self) -> str:
        """Secure repr for debugging that masks sensitive data."""
        return self.__str__()
