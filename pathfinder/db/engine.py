"""Database engine and remote store construction.

Nothing here is cached globally: the application builds one store at startup
and hands it to the ``SyncEngine``.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pathfinder.config import Settings
from pathfinder.db.inmemory import InMemoryRemoteStore
from pathfinder.db.models import Base
from pathfinder.db.postgrest import PostgrestRemoteStore
from pathfinder.db.sql_store import SqlRemoteStore
from pathfinder.db.store import RemoteStore


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    database_url = settings.database_url

    if not database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    # Convert postgresql:// to postgresql+asyncpg://
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("sqlite://"):
        database_url = database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return create_async_engine(database_url, pool_pre_ping=True, echo=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create the adventure tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_remote_store(settings: Settings, engine: AsyncEngine | None = None) -> RemoteStore:
    """Construct the store selected by ``remote_store_backend``.

    Args:
        settings: Application settings
        engine: Existing engine to reuse for the ``sql`` backend

    Raises:
        ValueError: If the selected backend is missing its connection settings
    """
    if settings.remote_store_backend == "memory":
        return InMemoryRemoteStore()

    if settings.remote_store_backend == "sql":
        return SqlRemoteStore(engine or create_async_engine_from_settings(settings))

    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set for the postgrest backend.")
    return PostgrestRemoteStore(
        settings.supabase_url,
        settings.supabase_key,
        timeout=settings.remote_timeout_seconds,
    )
