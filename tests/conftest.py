"""Shared fixtures: an in-memory store seeded with the sample tree."""

import os

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LIVE_INGEST_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from asset_service.database import get_store
from asset_service.main import app
from asset_service.seed import SAMPLE_ASSETS
from asset_service.store import BackendUnavailableError, MemoryStore, make_cleanup_procedure


class FailingStore:
    """Every call fails as if Supabase were unreachable."""

    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise BackendUnavailableError("connection refused")

    select = insert = upsert = delete = rpc = _fail

    async def close(self):
        pass


class CountingStore(MemoryStore):
    """MemoryStore that records every select issued against it."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.selects = []

    async def select(self, table, filters=(), order=None):
        self.selects.append((table, list(filters)))
        return await super().select(table, filters, order)


def make_store(cls=MemoryStore, assets=SAMPLE_ASSETS):
    return cls(
        tables={"assets": assets, "snapshots": [], "measurements": []},
        procedures={"cleanup_measurements": make_cleanup_procedure(24)},
    )


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def counting_store():
    return make_store(CountingStore)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(failing_store):
    app.dependency_overrides[get_store] = lambda: failing_store
    yield TestClient(app)
    app.dependency_overrides.clear()
