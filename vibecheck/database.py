"""Engine, session factory and transaction scope shared by the API and the pipeline."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from vibecheck.config import settings

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def split_ssl_options(url: str) -> tuple[str, dict[str, Any]]:
    """
    asyncpg rejects sslmode/ssl query parameters, so move them to connect_args.

    Any mode other than "disable" becomes ssl="require".
    """
    if "sslmode=" not in url and "ssl=" not in url:
        return url, {}
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    modes = query.pop("sslmode", []) + query.pop("ssl", [])
    url = urlunparse(parsed._replace(query=urlencode(query, doseq=True)))
    if modes and modes[0] != "disable":
        return url, {"ssl": "require"}
    return url, {}


def get_engine_url_and_connect_args() -> tuple[str, dict[str, Any]]:
    return split_ssl_options(settings.database_url)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Tasks and responses are handed to background work after commit
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_db_url, _connect_args = get_engine_url_and_connect_args()

engine = create_async_engine(
    _db_url,
    echo=settings.log_level == "DEBUG",
    connect_args=_connect_args,
)

async_session_maker = create_session_factory(engine)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """One transaction: commit on success, roll back on any error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session dependency."""
    async with session_scope(async_session_maker) as session:
        yield session
