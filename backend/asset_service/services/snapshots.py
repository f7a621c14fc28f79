"""Service layer — saved view snapshots."""

import logging
from datetime import datetime, timezone

from asset_service.store import BackendUnavailableError, Row, Store, eq

logger = logging.getLogger(__name__)

SNAPSHOTS = "snapshots"

_last_stamp_ms = 0


def _issue_stamp(now: datetime | None = None) -> int:
    """Millisecond stamp, strictly increasing within this process."""
    global _last_stamp_ms
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    if stamp <= _last_stamp_ms:
        stamp = _last_stamp_ms + 1
    _last_stamp_ms = stamp
    return stamp


def _iso_from_ms(stamp: int) -> str:
    ts = datetime.fromtimestamp(stamp / 1000, tz=timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def list_snapshots(store: Store) -> list[Row]:
    """All snapshots, newest first."""
    return await store.select(SNAPSHOTS, order=("createdAt", True))


async def save_snapshot(
    store: Store,
    name: str,
    active_signal_ids: list[str],
    hidden_signal_ids: list[str],
    date_range: str,
    custom_colors: str | None = None,
) -> Row:
    """
    Persist a new snapshot and return the stored row.

    The row the store returns is authoritative; the locally built record is
    only used if the store echoes nothing back.
    """
    stamp = _issue_stamp()
    record = {
        "id": f"snap-{stamp}",
        "name": name,
        "createdAt": _iso_from_ms(stamp),
        "activeSignalIds": list(active_signal_ids),
        "hiddenSignalIds": list(hidden_signal_ids),
        "dateRange": date_range,
        "customColors": custom_colors,
    }
    rows = await store.insert(SNAPSHOTS, [record])
    logger.info("Saved snapshot %s (%r)", record["id"], name)
    return rows[0] if rows else record


async def delete_snapshot(store: Store, snapshot_id: str) -> bool:
    """True iff a snapshot with this id existed and was removed."""
    try:
        removed = await store.delete(SNAPSHOTS, [eq("id", snapshot_id)])
    except BackendUnavailableError as exc:
        logger.warning("Could not confirm deletion of snapshot %s: %s", snapshot_id, exc)
        return False
    return len(removed) > 0
