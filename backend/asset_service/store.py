"""Row store abstraction used by the services.

The services only ever need single-table filters, batched inserts, deletes
and one server-side procedure call, so the store surface is kept to exactly
that: ``select``, ``insert``, ``upsert``, ``delete`` and ``rpc``.

Two implementations exist:
- ``SupabaseStore`` (in ``asset_service.database``) talks to PostgREST.
- ``MemoryStore`` below keeps the tables in process, for local runs and tests.
"""

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple, Protocol, Sequence

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class BackendUnavailableError(Exception):
    """The backing store rejected a call or could not be reached."""


class Filter(NamedTuple):
    column: str
    op: str  # eq | is_null | contains | in
    value: Any = None


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def is_null(column: str) -> Filter:
    return Filter(column, "is_null")


def contains(column: str, text: str) -> Filter:
    """Case-insensitive substring match."""
    return Filter(column, "contains", text)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


class Store(Protocol):
    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: tuple[str, bool] | None = None,
    ) -> list[Row]: ...

    async def insert(self, table: str, rows: list[Row]) -> list[Row]: ...

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]: ...

    async def delete(self, table: str, filters: Sequence[Filter]) -> list[Row]: ...

    async def rpc(self, fn: str, params: dict | None = None) -> Any: ...

    async def close(self) -> None: ...


# ---------- In-memory implementation ----------

Procedure = Callable[["MemoryStore"], Any]


def _matches(row: Row, f: Filter) -> bool:
    value = row.get(f.column)
    if f.op == "eq":
        return value == f.value
    if f.op == "is_null":
        return value is None
    if f.op == "contains":
        return value is not None and f.value.lower() in str(value).lower()
    if f.op == "in":
        return value in f.value
    raise ValueError(f"Unsupported filter operator: {f.op}")


class MemoryStore:
    """Process-local tables. Every call still goes through ``await`` so the
    services behave the same as against the real store."""

    def __init__(
        self,
        tables: dict[str, list[Row]] | None = None,
        procedures: dict[str, Procedure] | None = None,
    ):
        self.tables: dict[str, list[Row]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.procedures: dict[str, Procedure] = dict(procedures or {})

    def _table(self, table: str) -> list[Row]:
        return self.tables.setdefault(table, [])

    async def select(self, table, filters=(), order=None):
        rows = [r for r in self._table(table) if all(_matches(r, f) for f in filters)]
        if order is not None:
            column, desc = order
            rows = sorted(rows, key=lambda r: r.get(column) or "", reverse=desc)
        return copy.deepcopy(rows)

    async def insert(self, table, rows):
        stored = copy.deepcopy(rows)
        self._table(table).extend(stored)
        return copy.deepcopy(stored)

    async def upsert(self, table, rows):
        existing = self._table(table)
        by_id = {r.get("id"): i for i, r in enumerate(existing)}
        for row in copy.deepcopy(rows):
            idx = by_id.get(row.get("id"))
            if idx is None:
                by_id[row.get("id")] = len(existing)
                existing.append(row)
            else:
                existing[idx] = row
        return copy.deepcopy(rows)

    async def delete(self, table, filters):
        kept, removed = [], []
        for row in self._table(table):
            (removed if all(_matches(row, f) for f in filters) else kept).append(row)
        self.tables[table] = kept
        return removed

    async def rpc(self, fn, params=None):
        procedure = self.procedures.get(fn)
        if procedure is None:
            raise BackendUnavailableError(f"Could not find the function public.{fn}")
        return procedure(self, **(params or {}))

    async def close(self) -> None:
        pass


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only learned the "Z" suffix in 3.11
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def make_cleanup_procedure(retention_hours: int = 24) -> Procedure:
    """In-process stand-in for the ``cleanup_measurements()`` SQL function."""

    def cleanup_measurements(store: MemoryStore) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(hours=retention_hours)
        rows = store._table("measurements")
        kept = [r for r in rows if _parse_timestamp(r["timestamp"]) >= cutoff]
        store.tables["measurements"] = kept
        deleted = len(rows) - len(kept)
        logger.debug("cleanup_measurements removed %d rows", deleted)
        return deleted

    return cleanup_measurements
