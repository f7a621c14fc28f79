"""
Tests for the PostgREST-backed store translation.

Run with: pytest tests/test_database.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from postgrest import APIError

from asset_service.database import SupabaseStore, _apply_filter
from asset_service.store import BackendUnavailableError, contains, eq, in_, is_null


class TestFilterTranslation:

    def test_eq(self):
        query = MagicMock()
        _apply_filter(query, eq("parentId", "site-1"))
        query.eq.assert_called_once_with("parentId", "site-1")

    def test_is_null(self):
        query = MagicMock()
        _apply_filter(query, is_null("parentId"))
        query.is_.assert_called_once_with("parentId", "null")

    def test_contains_escapes_wildcards(self):
        query = MagicMock()
        _apply_filter(query, contains("name", "50%_a"))
        query.ilike.assert_called_once_with("name", "%50\\%\\_a%")

    def test_in(self):
        query = MagicMock()
        _apply_filter(query, in_("id", ("a", "b")))
        query.in_.assert_called_once_with("id", ["a", "b"])


def _client_with_rpc(execute):
    builder = MagicMock()
    builder.execute = execute
    client = MagicMock()
    client.rpc.return_value = builder
    return client


class TestErrorMapping:

    @pytest.mark.asyncio
    async def test_api_error(self):
        error = APIError({"message": "function cleanup_measurements() does not exist",
                          "code": "42883", "hint": None, "details": None})
        store = SupabaseStore(_client_with_rpc(AsyncMock(side_effect=error)))
        with pytest.raises(BackendUnavailableError, match="does not exist"):
            await store.rpc("cleanup_measurements")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        store = SupabaseStore(_client_with_rpc(AsyncMock(side_effect=httpx.ConnectError("refused"))))
        with pytest.raises(BackendUnavailableError, match="refused"):
            await store.rpc("cleanup_measurements")

    @pytest.mark.asyncio
    async def test_data_returned(self):
        store = SupabaseStore(_client_with_rpc(AsyncMock(return_value=MagicMock(data=None))))
        assert await store.rpc("cleanup_measurements") is None
