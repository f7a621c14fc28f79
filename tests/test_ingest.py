"""
Tests for the live measurement generator.

Run with: pytest tests/test_ingest.py -v
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone

import pytest

from asset_service.ingest import (
    SIGNALS,
    LiveIngestor,
    build_readings,
    generate_value,
    get_status,
    iso_timestamp,
)
from asset_service.store import MemoryStore


class TestStatus:
    """Absolute severity thresholds."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (42.0, "normal"),
            (105.0, "normal"),
            (105.01, "high"),
            (110.0, "high"),
            (110.01, "critical"),
        ],
    )
    def test_boundaries(self, value, expected):
        assert get_status(value) == expected


class TestGeneration:

    def test_value_within_variance_and_rounded(self):
        rng = random.Random(7)
        for _ in range(200):
            value = generate_value(100, 10, rng)
            assert 90 <= value <= 110
            assert round(value, 2) == value

    def test_zero_variance_is_base(self):
        assert generate_value(45, 0) == 45

    def test_one_reading_per_signal(self):
        now = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        readings = build_readings(now, rng=random.Random(1))
        assert [r["signal_id"] for r in readings] == [s.id for s in SIGNALS]
        assert {r["timestamp"] for r in readings} == {"2026-03-01T12:00:00.000Z"}
        for r in readings:
            assert r["status"] == get_status(r["value"])


class TestTick:

    @pytest.mark.asyncio
    async def test_rows_per_tick(self, store):
        ingestor = LiveIngestor(store, rng=random.Random(3))
        for _ in range(5):
            assert await ingestor.tick() == len(SIGNALS)
        assert len(store.tables["measurements"]) == 5 * len(SIGNALS)
        assert ingestor.stats.ticks == 5
        assert ingestor.stats.rows_inserted == 20

    @pytest.mark.asyncio
    async def test_insert_failure_is_logged_not_raised(self, failing_store, caplog):
        ingestor = LiveIngestor(failing_store)
        with caplog.at_level(logging.ERROR, logger="asset_service.live"):
            assert await ingestor.tick() == 0
        assert ingestor.stats.failed_inserts == 1
        assert "Insert error" in caplog.text


class TestRetention:

    @pytest.mark.asyncio
    async def test_sweep_drops_expired_rows(self, store):
        now = datetime.now(timezone.utc)
        store.tables["measurements"] = [
            {"signal_id": "sig-1", "timestamp": iso_timestamp(now - timedelta(hours=30)),
             "value": 44.0, "status": "normal"},
            {"signal_id": "sig-1", "timestamp": iso_timestamp(now - timedelta(hours=1)),
             "value": 46.0, "status": "normal"},
        ]
        assert await LiveIngestor(store).sweep() is True
        assert [m["value"] for m in store.tables["measurements"]] == [46.0]

    @pytest.mark.asyncio
    async def test_missing_procedure_is_a_warning(self, caplog):
        ingestor = LiveIngestor(MemoryStore())
        with caplog.at_level(logging.WARNING, logger="asset_service.live"):
            assert await ingestor.sweep() is False
        assert ingestor.stats.failed_sweeps == 1
        assert "Cleanup warning" in caplog.text


class TestLoops:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store):
        ingestor = LiveIngestor(store, interval_seconds=0.01, cleanup_interval_seconds=0.01)
        tasks = ingestor.start()
        await asyncio.sleep(0.1)
        await ingestor.stop()
        assert all(t.done() for t in tasks)
        assert ingestor.stats.ticks >= 1
        assert ingestor.stats.sweeps >= 1
        assert len(store.tables["measurements"]) == ingestor.stats.ticks * len(SIGNALS)

    @pytest.mark.asyncio
    async def test_loop_survives_failures(self, failing_store):
        ingestor = LiveIngestor(failing_store, interval_seconds=0.01, cleanup_interval_seconds=0.01)
        ingestor.start()
        await asyncio.sleep(0.1)
        await ingestor.stop()
        assert ingestor.stats.failed_inserts >= 2
