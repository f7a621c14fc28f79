"""Service layer — asset tree reads.

Every lookup is a single-table filter against ``assets``; rows are returned
as plain dicts exactly as the store hands them back. Nothing found is an
empty list / None, never an error. Store failures propagate as
BackendUnavailableError.
"""

import asyncio
import logging
from typing import NamedTuple, Sequence

from asset_service.store import Row, Store, contains, eq, in_, is_null

logger = logging.getLogger(__name__)

ASSETS = "assets"
DEFAULT_PATH_DEPTH = 5


class AssetPath(NamedTuple):
    assets: list[Row]
    truncated: bool


async def fetch_children(store: Store, parent_id: str | None) -> list[Row]:
    """Children of ``parent_id``; root (Site) assets when it is empty/None."""
    if not parent_id:
        return await store.select(ASSETS, [is_null("parentId")])
    return await store.select(ASSETS, [eq("parentId", parent_id)])


async def search_assets(store: Store, query: str | None) -> list[Row]:
    """Case-insensitive substring match on name. An empty query matches nothing."""
    if not query:
        return []
    return await store.select(ASSETS, [contains("name", query)])


async def fetch_asset(store: Store, asset_id: str) -> Row | None:
    rows = await store.select(ASSETS, [eq("id", asset_id)])
    return rows[0] if rows else None


async def fetch_assets_by_ids(store: Store, asset_ids: Sequence[str]) -> list[Row]:
    ids = list(dict.fromkeys(asset_ids))
    if not ids:
        return []
    return await store.select(ASSETS, [in_("id", ids)])


async def fetch_asset_path(
    store: Store, asset_id: str, max_depth: int = DEFAULT_PATH_DEPTH
) -> AssetPath:
    """
    Walk parent references from ``asset_id`` up to a root, root first.

    At most ``max_depth`` assets are collected. If the walk stops on the
    bound while the last collected asset still has a resolvable parent,
    the result is marked truncated (the topmost ancestors are missing).
    """
    path: list[Row] = []
    current = await fetch_asset(store, asset_id)
    while current is not None and len(path) < max_depth:
        path.insert(0, current)
        parent_id = current.get("parentId")
        current = await fetch_asset(store, parent_id) if parent_id else None

    truncated = current is not None
    if truncated:
        logger.warning(
            "Asset path for %s truncated at %d levels (next ancestor: %s)",
            asset_id, max_depth, current["id"],
        )
    return AssetPath(path, truncated)


class ChildrenLoader:
    """
    Request-scoped batch loader for asset children.

    Every ``load()`` issued during the same event-loop turn is collected and
    resolved with a single ``parentId IN (...)`` query. Results are memoized
    for the lifetime of the loader, so create one per request.
    """

    def __init__(self, store: Store):
        self._store = store
        self._cache: dict[str, asyncio.Future] = {}
        self._pending: list[str] = []
        self._tasks: set[asyncio.Task] = set()
        self.batch_count = 0

    def load(self, asset_id: str) -> asyncio.Future:
        future = self._cache.get(asset_id)
        if future is not None:
            return future

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._cache[asset_id] = future
        self._pending.append(asset_id)
        if len(self._pending) == 1:
            loop.call_soon(self._schedule_dispatch)
        return future

    async def load_many(self, asset_ids: Sequence[str]) -> list[list[Row]]:
        return list(await asyncio.gather(*(self.load(a) for a in asset_ids)))

    def _schedule_dispatch(self) -> None:
        task = asyncio.ensure_future(self._dispatch())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch(self) -> None:
        keys, self._pending = self._pending, []
        self.batch_count += 1
        try:
            rows = await self._store.select(ASSETS, [in_("parentId", keys)])
        except Exception as exc:
            for key in keys:
                future = self._cache.pop(key)
                if not future.done():
                    future.set_exception(exc)
            return

        grouped: dict[str, list[Row]] = {key: [] for key in keys}
        for row in rows:
            grouped.setdefault(row.get("parentId"), []).append(row)
        for key in keys:
            future = self._cache[key]
            if not future.done():
                future.set_result(grouped[key])
