"""
Tests for schema generation and seed helpers.

Run with: pytest tests/test_seed.py -v
"""

from datetime import datetime, timezone

import pytest

from asset_service.seed import (
    SAMPLE_ASSETS,
    batched,
    build_parser,
    generate_history,
    schema_ddl,
    seed_assets,
)
from asset_service.store import MemoryStore


class TestSchema:

    def test_tables_and_function(self):
        sql = "\n".join(schema_ddl(24))
        for table in ("assets", "snapshots", "measurements"):
            assert f"CREATE TABLE IF NOT EXISTS {table}" in sql
        assert '"parentId"' in sql
        assert '"activeSignalIds" TEXT[]' in sql
        assert "CREATE OR REPLACE FUNCTION cleanup_measurements()" in sql
        assert "interval '24 hours'" in sql

    def test_retention_window_is_parameterized(self):
        assert "interval '48 hours'" in schema_ddl(48)[-1]


class TestSampleTree:

    def test_forest_without_dangling_parents(self):
        known = {a["id"] for a in SAMPLE_ASSETS}
        assert all(a["parentId"] is None or a["parentId"] in known for a in SAMPLE_ASSETS)

    @pytest.mark.asyncio
    async def test_seed_replaces_existing(self):
        store = MemoryStore(tables={"assets": [
            {"id": "stale", "name": "Stale", "type": "Site", "parentId": None},
        ]})
        assert await seed_assets(store) == len(SAMPLE_ASSETS)
        assert {a["id"] for a in store.tables["assets"]} == {a["id"] for a in SAMPLE_ASSETS}


class TestHistory:

    def test_hourly_rows_per_signal(self):
        now = datetime(2026, 5, 1, tzinfo=timezone.utc)
        rows = list(generate_history(1, now=now))
        assert len(rows) == 25 * 4
        assert rows[0][1] == datetime(2026, 4, 30, tzinfo=timezone.utc)
        assert rows[-1][1] == now

    def test_batches(self):
        assert [len(b) for b in batched(range(2500), 1000)] == [1000, 1000, 500]

    def test_parser(self):
        assert build_parser().parse_args(["history", "--days", "7"]).days == 7
