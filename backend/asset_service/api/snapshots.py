"""API routes for saved view snapshots."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from asset_service.database import get_store
from asset_service.schemas.snapshots import (
    DeleteSnapshotResponse,
    SnapshotCreate,
    SnapshotItem,
)
from asset_service.services.snapshots import (
    delete_snapshot,
    list_snapshots,
    save_snapshot,
)
from asset_service.store import BackendUnavailableError, Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


@router.get("", response_model=list[SnapshotItem], summary="Saved snapshots, newest first")
async def get_snapshots(store: Store = Depends(get_store)):
    try:
        return [SnapshotItem.model_validate(r) for r in await list_snapshots(store)]
    except BackendUnavailableError as exc:
        raise HTTPException(status_code=503, detail=f"Backend unavailable: {exc}")
    except Exception:
        logger.exception("Snapshot listing failed")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "",
    response_model=SnapshotItem,
    status_code=201,
    summary="Save a snapshot",
)
async def create_snapshot(body: SnapshotCreate, store: Store = Depends(get_store)):
    """Persist a view configuration. The stored record is returned as-is."""
    try:
        row = await save_snapshot(
            store,
            name=body.name,
            active_signal_ids=body.active_signal_ids,
            hidden_signal_ids=body.hidden_signal_ids,
            date_range=body.date_range,
            custom_colors=body.custom_colors,
        )
        return SnapshotItem.model_validate(row)
    except BackendUnavailableError as exc:
        # The caller needs to know the save did not happen, with the store's reason
        raise HTTPException(status_code=503, detail=f"Failed to save snapshot: {exc}")
    except Exception:
        logger.exception("Snapshot save failed")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete(
    "/{snapshot_id}",
    response_model=DeleteSnapshotResponse,
    summary="Delete a snapshot",
)
async def remove_snapshot(snapshot_id: str, store: Store = Depends(get_store)):
    """`success` is false when nothing was deleted (or deletion could not be confirmed)."""
    return DeleteSnapshotResponse(success=await delete_snapshot(store, snapshot_id))
