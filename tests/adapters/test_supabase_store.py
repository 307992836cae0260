"""Test suite for SupabaseStore using a mocked async client.

These tests verify the translation of Query objects into PostgREST builder
calls without contacting a Supabase project.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from postgrest.types import CountMethod

from clinicdesk.adapters.storage.supabase_store import (
    SINGLE_OBJECT_MEDIA_TYPE,
    SINGLE_ROW_ERROR,
    SupabaseStore,
)
from clinicdesk.domain.ports import Query, StoreError
from clinicdesk.infrastructure.config_manager import StoreConfig


class FakeAPIError(Exception):
    """Stand-in for postgrest.exceptions.APIError (message/code attributes)."""

    def __init__(self, message, code):
        super().__init__(message)
        self.message = message
        self.code = code


@pytest.fixture
def builder():
    """Request builder whose filter methods chain and whose execute() is awaited."""
    mock_builder = MagicMock()
    for method in ("select", "eq", "gte", "lt", "order", "single", "insert", "update", "delete"):
        getattr(mock_builder, method).return_value = mock_builder
    mock_builder.execute = AsyncMock()
    return mock_builder


@pytest.fixture
def client(builder):
    mock_client = MagicMock()
    mock_client.table.return_value = builder
    return mock_client


@pytest.fixture
def supabase_store(client):
    return SupabaseStore(client=client)


def _response(data=None, count=None):
    response = MagicMock()
    response.data = data
    response.count = count
    return response


class TestSupabaseStoreInit:
    """Construction rules."""

    def test_requires_config_or_client(self):
        with pytest.raises(StoreError):
            SupabaseStore()

    def test_rejects_duckdb_config(self):
        with pytest.raises(StoreError):
            SupabaseStore(store_config=StoreConfig(backend="duckdb"))

    @pytest.mark.asyncio
    async def test_client_created_lazily_once(self, builder):
        config = StoreConfig(backend="supabase", supabase_url="https://abc.supabase.co/", supabase_key="anon-key")
        client = MagicMock()
        client.table.return_value = builder
        builder.execute.return_value = _response(data=[])

        with patch(
            "clinicdesk.adapters.storage.supabase_store.acreate_client", new=AsyncMock(return_value=client)
        ) as create:
            supabase_store = SupabaseStore(store_config=config)
            create.assert_not_awaited()

            await supabase_store.fetch(Query("patients"))
            await supabase_store.fetch(Query("patients"))

        create.assert_awaited_once_with("https://abc.supabase.co", "anon-key")

    @pytest.mark.asyncio
    async def test_client_creation_failure(self):
        config = StoreConfig(backend="supabase", supabase_url="https://abc.supabase.co", supabase_key="k")
        with patch(
            "clinicdesk.adapters.storage.supabase_store.acreate_client",
            new=AsyncMock(side_effect=RuntimeError("invalid api key")),
        ):
            result = await SupabaseStore(store_config=config).count(Query("patients"))

        assert result.is_failure()
        assert "invalid api key" in result.error


class TestSupabaseStoreReads:
    """Query translation for reads."""

    @pytest.mark.asyncio
    async def test_fetch_translates_query(self, supabase_store, client, builder):
        builder.execute.return_value = _response(data=[{"id": "a-1"}])
        query = (
            Query("appointments")
            .eq("user_id", "u")
            .gte("data_agendamento", "2024-05-15")
            .lt("data_agendamento", "2024-05-15T23:59:59")
            .order("data_agendamento")
            .expand("patient", "patients", "patient_id", "nome")
            .expand("professional", "professionals", "professional_id", "nome")
        )

        result = await supabase_store.fetch(query)

        assert result.value == [{"id": "a-1"}]
        client.table.assert_called_once_with("appointments")
        builder.select.assert_called_once_with("*, patient:patients(nome), professional:professionals(nome)")
        builder.eq.assert_called_once_with("user_id", "u")
        builder.gte.assert_called_once_with("data_agendamento", "2024-05-15")
        builder.lt.assert_called_once_with("data_agendamento", "2024-05-15T23:59:59")
        builder.order.assert_called_once_with("data_agendamento", desc=False)

    @pytest.mark.asyncio
    async def test_fetch_none_data(self, supabase_store, builder):
        builder.execute.return_value = _response(data=None)
        assert (await supabase_store.fetch(Query("patients"))).value == []

    @pytest.mark.asyncio
    async def test_fetch_one_uses_single(self, supabase_store, builder):
        builder.execute.return_value = _response(data={"id": "p-1"})

        result = await supabase_store.fetch_one(Query("professionals").eq("id", "p-1"))

        assert result.value == {"id": "p-1"}
        builder.single.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_fetch_one_api_error(self, supabase_store, builder):
        builder.execute.side_effect = FakeAPIError(SINGLE_ROW_ERROR, "PGRST116")

        result = await supabase_store.fetch_one(Query("professionals").eq("id", "missing"))

        assert result.is_failure()
        assert result.error == SINGLE_ROW_ERROR
        assert result.error_details == {"table": "professionals", "code": "PGRST116"}

    @pytest.mark.asyncio
    async def test_count_is_exact_head_request(self, supabase_store, builder):
        builder.execute.return_value = _response(data=[], count=7)

        result = await supabase_store.count(Query("patients").eq("user_id", "u"))

        assert result.value == 7
        builder.select.assert_called_once_with("*", count=CountMethod.exact, head=True)

    @pytest.mark.asyncio
    async def test_count_missing_defaults_to_zero(self, supabase_store, builder):
        builder.execute.return_value = _response(data=[], count=None)
        assert (await supabase_store.count(Query("patients"))).value == 0


class TestSupabaseStoreWrites:
    """Query translation for writes."""

    @pytest.mark.asyncio
    async def test_insert_returns_first_row(self, supabase_store, builder):
        builder.execute.return_value = _response(data=[{"id": "p-1", "nome": "Ana"}])

        result = await supabase_store.insert("professionals", {"nome": "Ana"})

        assert result.value == {"id": "p-1", "nome": "Ana"}
        builder.insert.assert_called_once_with({"nome": "Ana"})

    @pytest.mark.asyncio
    async def test_update_is_sent_as_single_object_request(self, supabase_store, builder):
        builder.request.headers = {}
        single = MagicMock()
        single.return_value.execute = AsyncMock(return_value=_response(data={"id": "p-1", "telefone": "1"}))

        with patch("clinicdesk.adapters.storage.supabase_store.AsyncSingleRequestBuilder", new=single):
            result = await supabase_store.update(Query("professionals").eq("id", "p-1"), {"telefone": "1"})

        assert result.value == {"id": "p-1", "telefone": "1"}
        builder.update.assert_called_once_with({"telefone": "1"})
        builder.select.assert_called_once_with("*")
        assert builder.request.headers["Accept"] == SINGLE_OBJECT_MEDIA_TYPE
        single.assert_called_once_with(builder.request)
        builder.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_matching_no_row_is_rejected(self, supabase_store, builder):
        builder.request.headers = {}
        single = MagicMock()
        single.return_value.execute = AsyncMock(side_effect=FakeAPIError(SINGLE_ROW_ERROR, "PGRST116"))

        with patch("clinicdesk.adapters.storage.supabase_store.AsyncSingleRequestBuilder", new=single):
            result = await supabase_store.update(Query("professionals").eq("id", "missing"), {"telefone": "1"})

        assert result.is_failure()
        assert result.error == SINGLE_ROW_ERROR
        assert result.error_details["code"] == "PGRST116"

    @pytest.mark.asyncio
    async def test_delete_applies_filters(self, supabase_store, builder):
        builder.execute.return_value = _response(data=[])

        result = await supabase_store.delete(Query("professionals").eq("id", "p-1").eq("user_id", "u"))

        assert result.is_success()
        builder.delete.assert_called_once_with()
        assert builder.eq.call_count == 2
