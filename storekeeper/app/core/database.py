from functools import lru_cache

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storekeeper.app.core.settings import get_settings


def _engine_options(url: str) -> dict:
    """Pool options only apply to server databases; SQLite manages its own pool."""
    if url.startswith("sqlite"):
        return {}
    settings = get_settings()
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_timeout": 30,
    }


# Built on first use so that importing the app does not read settings
@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    url = get_settings().db_url
    return create_async_engine(url=url, echo=False, **_engine_options(url))


@lru_cache(maxsize=1)
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), expire_on_commit=False)


def dialect_name(session: AsyncSession) -> str:
    return session.get_bind().dialect.name


def insert_for(session: AsyncSession, table):
    """
    Dialect-specific INSERT that supports ON CONFLICT clauses.

    Only PostgreSQL (production) and SQLite (tests, local runs) are supported.
    """
    name = dialect_name(session)
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upsert is not supported for dialect {name!r}")


def contains_case_sensitive(session: AsyncSession, column, value: str):
    """Substring predicate that is case-sensitive on every supported dialect (SQLite LIKE is not)."""
    if dialect_name(session) == "sqlite":
        return func.instr(column, value) > 0
    return column.contains(value, autoescape=True)
