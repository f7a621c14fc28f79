"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from asset_service.config import Settings, get_settings
from asset_service.database import close_pool, close_store, get_store
from asset_service.ingest import LiveIngestor
from asset_service.schemas.health import HealthResponse, IngestStatus
from asset_service.store import BackendUnavailableError

logger = logging.getLogger(__name__)

# ── Background tasks: live readings every LIVE_INTERVAL_SECONDS, retention sweep on its own timer ──

_ingestor: LiveIngestor | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global _ingestor
    settings = get_settings()
    # Startup: launch background tasks
    if settings.LIVE_INGEST_ENABLED:
        _ingestor = LiveIngestor.from_settings(get_store(), settings)
        _ingestor.start()
        logger.info(
            "Live ingestion started (every %.1fs, cleanup every %.0fs, retention %dh)",
            settings.LIVE_INTERVAL_SECONDS,
            settings.CLEANUP_INTERVAL_SECONDS,
            settings.DATA_RETENTION_HOURS,
        )
    yield
    # Shutdown: cancel tasks and close clients
    if _ingestor is not None:
        await _ingestor.stop()
        _ingestor = None
    await close_store()
    await close_pool()


settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Store failures raised outside a route body (e.g. while resolving get_store)
@app.exception_handler(BackendUnavailableError)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError):
    logger.warning("Backend unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Backend unavailable: {exc}"})


@app.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    ingest = None
    if _ingestor is not None:
        ingest = IngestStatus.model_validate(vars(_ingestor.stats))
    return HealthResponse(status="ok", store_backend=settings.STORE_BACKEND, ingest=ingest)


# ── API routers ──
from asset_service.api.assets import router as assets_router
from asset_service.api.snapshots import router as snapshots_router

app.include_router(assets_router, prefix="/api/v1")
app.include_router(snapshots_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
