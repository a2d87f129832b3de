# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Env vars (.env supported):
      - DATABASE_URL (any SQLAlchemy URL; SQLite by default)
      - CLEAR_CART_ON_CHECKOUT (drop every line at checkout instead of
        keeping the items that could not be fulfilled)

    Optional:
      - DB_REQUIRE_SSL (append sslmode=require for Postgres poolers)
    """

    PROJECT_NAME: str = "Storefront Cart Service"
    API_PREFIX: str = "/api"

    # DB config
    DATABASE_URL: str = "sqlite:///./storefront.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 0
    DB_REQUIRE_SSL: bool = False

    # Checkout behaviour
    CLEAR_CART_ON_CHECKOUT: bool = False

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
