"""API routes for the asset tree."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from asset_service.config import Settings, get_settings
from asset_service.database import get_store
from asset_service.schemas.assets import AssetItem, AssetPathResponse
from asset_service.services.assets import (
    ChildrenLoader,
    fetch_asset,
    fetch_asset_path,
    fetch_assets_by_ids,
    fetch_children,
    search_assets,
)
from asset_service.store import BackendUnavailableError, Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["Assets"])


def backend_unavailable(exc: BackendUnavailableError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Backend unavailable: {exc}")


# ── GET /assets ─────────────────────────────────────


@router.get(
    "",
    response_model=list[AssetItem],
    response_model_exclude_unset=True,
    summary="Children of an asset, or the root sites",
)
async def list_assets(
    parent_id: str | None = Query(default=None, alias="parentId"),
    expand: str | None = Query(
        default=None, description="Set to 'children' to embed each asset's children"
    ),
    store: Store = Depends(get_store),
):
    """Return the assets whose parent is `parentId`; root sites when omitted."""
    try:
        rows = await fetch_children(store, parent_id)
        if expand == "children" and rows:
            loader = ChildrenLoader(store)
            children = await loader.load_many([r["id"] for r in rows])
            return [
                AssetItem.model_validate({**row, "children": kids})
                for row, kids in zip(rows, children)
            ]
        return [AssetItem.model_validate(r) for r in rows]
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Asset listing failed for parent %s", parent_id)
        raise HTTPException(status_code=500, detail="Internal server error")


# ── GET /assets/search ──────────────────────────────


@router.get(
    "/search",
    response_model=list[AssetItem],
    response_model_exclude_unset=True,
    summary="Search assets by name",
)
async def search(
    query: str | None = Query(default=None, description="Case-insensitive substring"),
    store: Store = Depends(get_store),
):
    try:
        return [AssetItem.model_validate(r) for r in await search_assets(store, query)]
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Asset search failed for %r", query)
        raise HTTPException(status_code=500, detail="Internal server error")


# ── GET /assets/by-ids ──────────────────────────────


@router.get(
    "/by-ids",
    response_model=list[AssetItem],
    response_model_exclude_unset=True,
    summary="Fetch several assets",
)
async def get_assets_by_ids(
    ids: list[str] = Query(default=[]),
    store: Store = Depends(get_store),
):
    logger.debug("getAssetsByIds called with: %s", ids)
    try:
        return [AssetItem.model_validate(r) for r in await fetch_assets_by_ids(store, ids)]
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Asset batch lookup failed")
        raise HTTPException(status_code=500, detail="Internal server error")


# ── GET /assets/{asset_id} ──────────────────────────


@router.get(
    "/{asset_id}",
    response_model=AssetItem | None,
    response_model_exclude_unset=True,
    summary="Single asset",
)
async def get_asset(asset_id: str, store: Store = Depends(get_store)):
    """Return the asset, or `null` when no such id exists."""
    try:
        row = await fetch_asset(store, asset_id)
        return AssetItem.model_validate(row) if row else None
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Asset lookup failed for %s", asset_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/{asset_id}/children",
    response_model=list[AssetItem],
    response_model_exclude_unset=True,
    summary="Direct children of an asset",
)
async def get_asset_children(asset_id: str, store: Store = Depends(get_store)):
    try:
        return [AssetItem.model_validate(r) for r in await fetch_children(store, asset_id)]
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Children lookup failed for %s", asset_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/{asset_id}/path",
    response_model=AssetPathResponse,
    response_model_exclude_unset=True,
    summary="Breadcrumb path from the root to an asset",
)
async def get_asset_path(
    asset_id: str,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    try:
        path = await fetch_asset_path(store, asset_id, settings.ASSET_PATH_MAX_DEPTH)
        return AssetPathResponse(
            assets=[AssetItem.model_validate(r) for r in path.assets],
            truncated=path.truncated,
        )
    except BackendUnavailableError as exc:
        raise backend_unavailable(exc)
    except Exception:
        logger.exception("Path resolution failed for %s", asset_id)
        raise HTTPException(status_code=500, detail="Internal server error")
