"""
Seed script — provisions the Supabase schema and populates sample data.

2 sites, 15 assets down to 4 signals, plus an optional year of hourly
measurements for those signals. History is bulk-loaded with asyncpg's COPY
protocol; assets go through the regular store (PostgREST).

Usage:
    cd backend
    python -m asset_service.seed ddl        # print CREATE TABLE / FUNCTION SQL
    python -m asset_service.seed provision  # run that SQL (needs SUPABASE_DB_URL)
    python -m asset_service.seed assets     # replace the asset tree
    python -m asset_service.seed history --days 365
"""

import argparse
import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Iterator

from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from asset_service.config import get_settings
from asset_service.database import close_pool, close_store, get_pool, get_store
from asset_service.ingest import SIGNALS, generate_value, get_status
from asset_service.models.asset import Base
from asset_service.models import measurement, snapshot  # noqa: F401  (register tables)
from asset_service.store import Store, in_

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# Sample hierarchy
# ──────────────────────────────────────────────

SAMPLE_ASSETS = [
    # Sites
    {"id": "site-1", "name": "Texas Refinery", "type": "Site", "parentId": None},
    {"id": "site-2", "name": "Louisiana Chemical", "type": "Site", "parentId": None},
    # Plants
    {"id": "plant-1", "name": "Plant Alpha", "type": "Plant", "parentId": "site-1"},
    {"id": "plant-2", "name": "Plant Beta", "type": "Plant", "parentId": "site-1"},
    {"id": "plant-3", "name": "Plant Gamma", "type": "Plant", "parentId": "site-2"},
    # Trains
    {"id": "train-1", "name": "Train 101", "type": "Train", "parentId": "plant-1"},
    {"id": "train-2", "name": "Train 102", "type": "Train", "parentId": "plant-1"},
    # Units
    {"id": "unit-1", "name": "Crude Unit", "type": "Unit", "parentId": "train-1"},
    {"id": "unit-2", "name": "Vacuum Unit", "type": "Unit", "parentId": "train-1"},
    # Signal Containers
    {"id": "cont-1", "name": "Temperature Sensors", "type": "Signal Container", "parentId": "unit-1"},
    {"id": "cont-2", "name": "Pressure Sensors", "type": "Signal Container", "parentId": "unit-1"},
    # Signals
    {"id": "sig-1", "name": "TI-1001 Inlet Temp", "type": "Signal", "parentId": "cont-1"},
    {"id": "sig-2", "name": "TI-1002 Outlet Temp", "type": "Signal", "parentId": "cont-1"},
    {"id": "sig-3", "name": "PI-2001 Header Press", "type": "Signal", "parentId": "cont-2"},
    {"id": "sig-4", "name": "PI-2002 Suction Press", "type": "Signal", "parentId": "cont-2"},
]

# History generation settings
DAYS_HISTORY = 365
BATCH_SIZE = 1000


# ──────────────────────────────────────────────
# Schema
# ──────────────────────────────────────────────

def cleanup_function_sql(retention_hours: int) -> str:
    return (
        "CREATE OR REPLACE FUNCTION cleanup_measurements() RETURNS void\n"
        "LANGUAGE sql AS $$\n"
        f"    DELETE FROM measurements WHERE \"timestamp\" < now() - interval '{int(retention_hours)} hours';\n"
        "$$"
    )


def schema_ddl(retention_hours: int = 24) -> list[str]:
    """CREATE statements for every table, its indexes and the cleanup function."""
    dialect = postgresql.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)).strip())
        for index in sorted(table.indexes, key=lambda i: i.name):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)).strip())
    statements.append(cleanup_function_sql(retention_hours))
    return statements


async def provision(retention_hours: int) -> None:
    pool = await get_pool()
    async with pool.acquire() as conn:
        for statement in schema_ddl(retention_hours):
            await conn.execute(statement)
            print(f"  [OK] {statement.splitlines()[0]}")


# ──────────────────────────────────────────────
# Assets
# ──────────────────────────────────────────────

async def seed_assets(store: Store, assets: list[dict] = SAMPLE_ASSETS) -> int:
    """Replace the asset tree with ``assets``. Returns the number written."""
    existing = await store.select("assets")
    if existing:
        print(f"Deleting {len(existing)} existing assets...")
        await store.delete("assets", [in_("id", [a["id"] for a in existing])])

    print("Inserting assets...")
    rows = await store.upsert("assets", [dict(a) for a in assets])
    print(f"  [OK] {len(rows)} assets seeded")
    return len(rows)


# ──────────────────────────────────────────────
# Measurement history
# ──────────────────────────────────────────────

def generate_history(
    days: int,
    now: datetime | None = None,
    signals=SIGNALS,
    rng: random.Random | None = None,
) -> Iterator[tuple[str, datetime, float, str]]:
    """Hourly (signal_id, timestamp, value, status) records from ``now - days`` to ``now``."""
    now = now or datetime.now(timezone.utc)
    ts = now - timedelta(days=days)
    while ts <= now:
        for sig in signals:
            value = generate_value(sig.base, sig.variance, rng)
            yield (sig.id, ts, value, get_status(value))
        ts += timedelta(hours=1)


def batched(records, size: int = BATCH_SIZE) -> Iterator[list]:
    batch = []
    for record in records:
        batch.append(record)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


async def seed_history(days: int) -> int:
    pool = await get_pool()
    inserted = 0
    print(f"Seeding {days} days of hourly measurements...")
    async with pool.acquire() as conn:
        for batch in batched(generate_history(days)):
            # COPY protocol — much faster than executemany
            await conn.copy_records_to_table(
                "measurements",
                records=batch,
                columns=["signal_id", "timestamp", "value", "status"],
            )
            inserted += len(batch)
            print(f"\r  Inserted: {inserted:,} rows...", end="", flush=True)
    print(f"\n  [OK] Inserted {inserted:,} measurements.")
    return inserted


# ──────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m asset_service.seed")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("ddl", help="Print the schema SQL")
    sub.add_parser("provision", help="Create tables and cleanup function")
    sub.add_parser("assets", help="Replace the asset tree with the sample hierarchy")
    history = sub.add_parser("history", help="Bulk-load hourly measurement history")
    history.add_argument("--days", type=int, default=DAYS_HISTORY)
    return parser


async def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.command == "ddl":
        for statement in schema_ddl(settings.DATA_RETENTION_HOURS):
            print(f"{statement};\n")
        return

    print("=" * 50)
    print(f"SEED SCRIPT - {settings.APP_NAME} ({args.command})")
    print("=" * 50)
    try:
        if args.command == "provision":
            await provision(settings.DATA_RETENTION_HOURS)
        elif args.command == "assets":
            await seed_assets(get_store())
        elif args.command == "history":
            await seed_history(args.days)
    finally:
        await close_store()
        await close_pool()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
