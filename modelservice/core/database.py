"""
Database engine and session factory construction.

The SQL backend never touches a global engine: the application factory
builds one engine and one session factory at startup and hands the
session factory to every SQLAlchemyBackend it registers.
"""

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from modelservice.core.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    For SQLite:
    - Uses StaticPool (single connection shared by the event loop)
    - Sets check_same_thread=False for async compatibility
    - Enables foreign key enforcement and case sensitive LIKE on every
      connection (see configure_sqlite_engine)

    Args:
        settings: Application settings holding ``database_url``

    Returns:
        Configured AsyncEngine instance
    """
    is_sqlite = settings.database_url.startswith("sqlite")

    engine_kwargs = {
        "echo": False,
        "connect_args": {"check_same_thread": False} if is_sqlite else {},
    }
    if is_sqlite:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_async_engine(settings.database_url, **engine_kwargs)

    if is_sqlite:
        configure_sqlite_engine(engine)

    return engine


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """
    Register the per-connection SQLite pragmas on ``engine``.

    SQLite ignores ASCII case in LIKE by default; the SQL backend relies on
    LIKE being case sensitive so that only ``ilike`` folds case.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA case_sensitive_like=ON")
        cursor.close()


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build the session factory used by SQL backends.

    Objects are not expired on commit so documents returned by a backend
    stay readable after their session is closed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine, metadata: MetaData) -> None:
    """
    Create missing tables for the given metadata.

    Meant for local runs and tests; schema migrations are handled outside
    this package.
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
