"""Pydantic schemas for the snapshot endpoints."""

from pydantic import Field

from asset_service.schemas.assets import CamelModel


class SnapshotItem(CamelModel):
    id: str
    name: str
    created_at: str = Field(description="ISO-8601 creation timestamp")
    active_signal_ids: list[str]
    hidden_signal_ids: list[str]
    # Both are caller-defined encodings, stored verbatim
    date_range: str
    custom_colors: str | None = None


class SnapshotCreate(CamelModel):
    """Body for POST /snapshots."""
    name: str
    active_signal_ids: list[str]
    hidden_signal_ids: list[str]
    date_range: str
    custom_colors: str | None = None


class DeleteSnapshotResponse(CamelModel):
    success: bool
