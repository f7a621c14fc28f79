"""Pydantic schemas for the health endpoint."""

from datetime import datetime

from asset_service.schemas.assets import CamelModel


class IngestStatus(CamelModel):
    ticks: int
    rows_inserted: int
    failed_inserts: int
    sweeps: int
    failed_sweeps: int
    last_tick_at: datetime | None = None


class HealthResponse(CamelModel):
    status: str
    store_backend: str
    ingest: IngestStatus | None = None
