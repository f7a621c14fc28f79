"""
Live measurement generator.

Every tick pushes one reading per simulated signal into ``measurements`` in
a single batched insert. A second, independent timer asks the store to run
``cleanup_measurements()`` which drops rows older than the retention window.
Both loops are best-effort: failures are logged and the loops keep going.

Usage (standalone, without the API):
    cd backend
    python -m asset_service.ingest
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone

from asset_service.config import Settings, get_settings
from asset_service.store import BackendUnavailableError, Row, Store

logger = logging.getLogger("asset_service.live")

MEASUREMENTS = "measurements"
CLEANUP_PROCEDURE = "cleanup_measurements"

HIGH_THRESHOLD = 105.0
CRITICAL_THRESHOLD = 110.0


@dataclass(frozen=True)
class SimulatedSignal:
    id: str
    base: float
    variance: float


SIGNALS = (
    SimulatedSignal("sig-1", 45, 5),    # TI-1001 Inlet Temp
    SimulatedSignal("sig-2", 42, 5),    # TI-1002 Outlet Temp
    SimulatedSignal("sig-3", 100, 10),  # PI-2001 Header Press
    SimulatedSignal("sig-4", 98, 10),   # PI-2002 Suction Press
)


def generate_value(base: float, variance: float, rng: random.Random | None = None) -> float:
    """base ± variance, uniformly distributed, rounded to 2 decimals."""
    rng = rng or random
    return round(base + rng.uniform(-variance, variance), 2)


def get_status(value: float) -> str:
    if value > CRITICAL_THRESHOLD:
        return "critical"
    if value > HIGH_THRESHOLD:
        return "high"
    return "normal"


def iso_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_readings(
    ts: datetime,
    signals=SIGNALS,
    rng: random.Random | None = None,
) -> list[Row]:
    """One measurement row per signal, all sharing the same timestamp."""
    timestamp = iso_timestamp(ts)
    readings = []
    for sig in signals:
        value = generate_value(sig.base, sig.variance, rng)
        readings.append({
            "signal_id": sig.id,
            "timestamp": timestamp,
            "value": value,
            "status": get_status(value),
        })
    return readings


@dataclass
class IngestStats:
    ticks: int = 0
    rows_inserted: int = 0
    failed_inserts: int = 0
    sweeps: int = 0
    failed_sweeps: int = 0
    last_tick_at: datetime | None = None


class LiveIngestor:
    """Owns the ingestion and retention timers for one store."""

    def __init__(
        self,
        store: Store,
        signals=SIGNALS,
        interval_seconds: float = 2.0,
        cleanup_interval_seconds: float = 60.0,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.signals = tuple(signals)
        self.interval_seconds = interval_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.rng = rng
        self.stats = IngestStats()
        self._tasks: list[asyncio.Task] = []

    @classmethod
    def from_settings(cls, store: Store, settings: Settings) -> "LiveIngestor":
        return cls(
            store,
            interval_seconds=settings.LIVE_INTERVAL_SECONDS,
            cleanup_interval_seconds=settings.CLEANUP_INTERVAL_SECONDS,
        )

    async def tick(self, now: datetime | None = None) -> int:
        """Generate and insert one batch. Returns the number of rows written."""
        now = now or datetime.now(timezone.utc)
        readings = build_readings(now, self.signals, self.rng)
        self.stats.ticks += 1
        self.stats.last_tick_at = now
        try:
            await self.store.insert(MEASUREMENTS, readings)
        except asyncio.CancelledError:
            raise
        except BackendUnavailableError as exc:
            self.stats.failed_inserts += 1
            logger.error("Insert error: %s", exc)
            return 0
        except Exception:
            self.stats.failed_inserts += 1
            logger.exception("Live reading insert failed")
            return 0

        self.stats.rows_inserted += len(readings)
        logger.info("[%s] Pushed %d readings.", iso_timestamp(now), len(readings))
        return len(readings)

    async def sweep(self) -> bool:
        """Ask the store to drop expired measurements. False if it could not."""
        self.stats.sweeps += 1
        try:
            await self.store.rpc(CLEANUP_PROCEDURE)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Usually the SQL function was never provisioned (see `seed ddl`)
            self.stats.failed_sweeps += 1
            logger.warning("Cleanup warning (function missing?): %s", exc)
            return False
        logger.info("Old high-frequency data cleaned up.")
        return True

    async def run_ingest(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self.interval_seconds)

    async def run_retention(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_seconds)
            await self.sweep()

    def start(self) -> list[asyncio.Task]:
        self._tasks = [
            asyncio.create_task(self.run_ingest(), name="live-ingest"),
            asyncio.create_task(self.run_retention(), name="live-retention"),
        ]
        return self._tasks

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []


async def main():
    from asset_service.database import close_store, get_store

    settings = get_settings()
    ingestor = LiveIngestor.from_settings(get_store(), settings)
    logger.info("Starting live ingestion (every %.1fs)...", settings.LIVE_INTERVAL_SECONDS)
    logger.info("Policy: delete data older than %d hours.", settings.DATA_RETENTION_HOURS)
    try:
        await asyncio.gather(ingestor.run_ingest(), ingestor.run_retention())
    finally:
        await close_store()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
