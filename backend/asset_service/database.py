import asyncpg
import httpx
from postgrest import APIError, AsyncPostgrestClient

from asset_service.config import get_settings
from asset_service.store import (
    BackendUnavailableError,
    Filter,
    MemoryStore,
    Store,
    make_cleanup_procedure,
)

# ---------- Supabase PostgREST client ----------

_postgrest_client: AsyncPostgrestClient | None = None


def get_postgrest() -> AsyncPostgrestClient:
    """Get or create the PostgREST client (uses Supabase REST API with service_role key)."""
    global _postgrest_client
    if _postgrest_client is None:
        settings = get_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
            raise BackendUnavailableError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for the supabase backend"
            )
        _postgrest_client = AsyncPostgrestClient(
            f"{settings.SUPABASE_URL}/rest/v1",
            headers={
                "apikey": settings.SUPABASE_SERVICE_KEY,
                "Authorization": f"Bearer {settings.SUPABASE_SERVICE_KEY}",
            },
        )
    return _postgrest_client


async def close_postgrest() -> None:
    global _postgrest_client
    if _postgrest_client is not None:
        await _postgrest_client.aclose()
        _postgrest_client = None


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filter(query, f: Filter):
    if f.op == "eq":
        return query.eq(f.column, f.value)
    if f.op == "is_null":
        return query.is_(f.column, "null")
    if f.op == "contains":
        return query.ilike(f.column, f"%{_escape_like(f.value)}%")
    if f.op == "in":
        return query.in_(f.column, f.value)
    raise ValueError(f"Unsupported filter operator: {f.op}")


class SupabaseStore:
    """Store backed by the Supabase REST API.

    Every PostgREST or transport failure is re-raised as
    BackendUnavailableError carrying the server's message.
    """

    def __init__(self, client: AsyncPostgrestClient):
        self._client = client

    async def _execute(self, builder):
        try:
            response = await builder.execute()
        except APIError as exc:
            raise BackendUnavailableError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailableError(str(exc) or type(exc).__name__) from exc
        return response.data

    async def select(self, table, filters=(), order=None):
        query = self._client.from_(table).select("*")
        for f in filters:
            query = _apply_filter(query, f)
        if order is not None:
            column, desc = order
            query = query.order(column, desc=desc)
        return await self._execute(query) or []

    async def insert(self, table, rows):
        return await self._execute(self._client.from_(table).insert(rows)) or []

    async def upsert(self, table, rows):
        return await self._execute(self._client.from_(table).upsert(rows)) or []

    async def delete(self, table, filters):
        query = self._client.from_(table).delete()
        for f in filters:
            query = _apply_filter(query, f)
        return await self._execute(query) or []

    async def rpc(self, fn, params=None):
        return await self._execute(self._client.rpc(fn, params or {}))

    async def close(self) -> None:
        await close_postgrest()


# ---------- Store selection ----------

_store: Store | None = None


def get_store() -> Store:
    """Return the process-wide store for the configured backend.

    Used as a FastAPI dependency; tests override it.
    """
    global _store
    if _store is None:
        settings = get_settings()
        if settings.STORE_BACKEND == "memory":
            from asset_service.seed import SAMPLE_ASSETS

            _store = MemoryStore(
                tables={"assets": SAMPLE_ASSETS, "snapshots": [], "measurements": []},
                procedures={
                    "cleanup_measurements": make_cleanup_procedure(settings.DATA_RETENTION_HOURS)
                },
            )
        else:
            _store = SupabaseStore(get_postgrest())
    return _store


async def close_store() -> None:
    global _store
    if _store is not None:
        await _store.close()
        _store = None


# ---------- Direct asyncpg connection pool ----------

_pool: asyncpg.Pool | None = None


def _get_raw_pg_url() -> str:
    """Convert SQLAlchemy-style URL to plain postgres:// for asyncpg."""
    settings = get_settings()
    if not settings.SUPABASE_DB_URL:
        raise BackendUnavailableError("SUPABASE_DB_URL is not set")
    # asyncpg needs postgresql:// not postgresql+asyncpg://
    return settings.SUPABASE_DB_URL.replace("postgresql+asyncpg://", "postgresql://")


async def get_pool() -> asyncpg.Pool:
    """Get or create the asyncpg connection pool."""
    global _pool
    if _pool is None:
        _pool = await asyncpg.create_pool(
            _get_raw_pg_url(),
            min_size=1,
            max_size=3,  # Seed-only; stay within Supabase free-tier connection limits
            # Supabase uses PgBouncer in transaction mode, which does not
            # support prepared statements. Disable the statement cache.
            statement_cache_size=0,
        )
    return _pool


async def close_pool() -> None:
    """Close the asyncpg pool (call on app shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
