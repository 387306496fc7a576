"""
Tool server settings, read from the environment (and .env) by pydantic-settings.

The store is PostgreSQL in deployments; DATABASE_URL lets local runs and
tests point the same code at SQLite.
"""
import socket
from urllib.parse import quote_plus
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storekeeper.app.core.constants import DEFAULT_LOW_STOCK_THRESHOLD

ENVIRONMENTS = ("development", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _host_address(host: str) -> str:
    # asyncpg resolves names inside the event loop; hand it an address when we can
    if not host or host in ("localhost", "127.0.0.1"):
        return host
    try:
        return socket.gethostbyname(host)
    except socket.gaierror:
        return host


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store connection
    DB_USER: str = Field(..., description="PostgreSQL user owning the cart and inventory tables")
    DB_PASSWORD: str = Field(..., description="PostgreSQL password")
    DB_NAME: str = Field(..., description="PostgreSQL database")
    DB_HOST: str = Field(default="localhost")
    DB_PORT: str = Field(default="5432")
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Async SQLAlchemy URL used instead of the DB_* fields (e.g. sqlite+aiosqlite:///./store.db)",
    )

    # Pool (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=20, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=40, ge=0)
    DB_POOL_RECYCLE: int = Field(default=3600, description="Seconds before a pooled connection is replaced")

    # HTTP surface
    ALLOWED_ORIGINS: str = Field(default="", description="Comma-separated CORS origins; required in production")
    ENVIRONMENT: str = Field(default="production")
    LOG_LEVEL: str = Field(default="INFO")

    # Inventory tools
    LOW_STOCK_THRESHOLD: int = Field(
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        ge=0,
        description="Threshold used by getLowStockItems when the call does not pass one",
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of {ENVIRONMENTS}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {LOG_LEVELS}")
        return v.upper()

    def missing_production_settings(self) -> list[str]:
        """Settings that may be empty in development but not in production."""
        if self.is_production and not self.allowed_origins_list:
            return ["ALLOWED_ORIGINS is required in production"]
        return []

    @property
    def db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return "postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}".format(
            user=self.DB_USER,
            password=quote_plus(self.DB_PASSWORD),
            host=_host_address(self.DB_HOST),
            port=self.DB_PORT,
            name=self.DB_NAME,
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Load settings once; raises ValueError when the environment is incomplete."""
    global _settings
    if _settings is None:
        settings = Settings()
        missing = settings.missing_production_settings()
        if missing:
            raise ValueError("Configuration errors:\n" + "\n".join(f"  - {m}" for m in missing))
        _settings = settings
    return _settings
