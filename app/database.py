# app/database.py
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings


class Database:
    """
    Persistence service handle.

    Owns one SQLAlchemy engine and hands out sessions. Services receive a
    Database at construction time instead of importing a module-level
    engine, so tests can plug in an isolated SQLite database.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Open a session; objects stay readable after commit so services can
        build response DTOs from them.
        """
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def create_all(self) -> None:
        """
        Create all tables defined in SQLModel metadata if they do not exist.
        """
        # Import models so SQLModel metadata is populated before create_all()
        from app.models import cart as _cart_models  # noqa: F401
        from app.models import product as _product_models  # noqa: F401
        from app.models import ticket as _ticket_models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        SQLModel.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def _build_url(url: str, require_ssl: bool) -> str:
    # Postgres poolers (e.g. Supabase session mode) need sslmode=require
    if not require_ssl or not url.startswith("postgresql") or "sslmode=" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}sslmode=require"


@lru_cache
def get_database() -> Database:
    """
    Default Database built from settings.

    Also used as a FastAPI dependency; tests override it through
    app.dependency_overrides.

    - pool_pre_ping=True: validate connections before using them
    - pool sizing only applies to server databases, not SQLite
    """
    settings = get_settings()
    url = _build_url(settings.DATABASE_URL, settings.DB_REQUIRE_SSL)

    engine_kwargs: dict[str, Any] = {"echo": settings.DB_ECHO}
    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    return Database(url, **engine_kwargs)

