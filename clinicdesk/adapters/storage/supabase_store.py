"""Supabase Store Adapter.

This adapter implements the DataStorePort contract against a hosted Supabase
project through the official async client. Queries are translated to the
PostgREST builder (`table().select().eq().gte().lt().order().single()`) and
every client exception is returned as a failure Result.

Security Impact:
    - The API key is read from StoreConfig (SecretStr) and never logged
    - Row-level security on the project still applies; the owner filters
      sent by the adapters are in addition to it

Architecture:
    - Implements DataStorePort (Hexagonal Architecture)
    - Client is created lazily on first operation and reused
    - Timeouts and retries are left to the underlying HTTP client
"""

import logging
from typing import Any, Optional

from postgrest import AsyncSingleRequestBuilder
from postgrest.types import CountMethod
from supabase import AsyncClient, acreate_client

from clinicdesk.domain.ports import (
    DataStorePort,
    Query,
    Result,
    StoreError,
)
from clinicdesk.infrastructure.config_manager import StoreConfig

logger = logging.getLogger(__name__)

SINGLE_ROW_ERROR = "JSON object requested, multiple (or no) rows returned"
SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class SupabaseStore(DataStorePort):
    """Supabase implementation of DataStorePort.

    Parameters:
        store_config: StoreConfig with backend "supabase" (preferred)
        client: Pre-built AsyncClient (tests, or callers sharing a client)

    Example Usage:
        ```python
        from clinicdesk.infrastructure.config_manager import get_store_config

        store = SupabaseStore(store_config=get_store_config())
        result = await store.fetch(Query("professionals").eq("user_id", uid))
        ```
    """

    def __init__(self, store_config: Optional[StoreConfig] = None, client: Optional[AsyncClient] = None):
        if client is None:
            if store_config is None:
                raise StoreError("SupabaseStore requires store_config or client", operation="__init__")
            if store_config.backend != "supabase":
                raise StoreError(
                    f"StoreConfig backend '{store_config.backend}' does not match Supabase store",
                    operation="__init__"
                )
        self._config = store_config
        self._client: Optional[AsyncClient] = client

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            try:
                self._client = await acreate_client(
                    self._config.supabase_url,
                    self._config.get_supabase_key(),
                )
                logger.info(f"Connected to Supabase project: {self._config.supabase_url}")
            except Exception as e:
                raise StoreError(
                    f"Failed to create Supabase client: {str(e)}",
                    operation="connect",
                )
        return self._client

    @staticmethod
    def _select_clause(query: Query) -> str:
        """Build the select string, e.g. "*, patient:patients(nome)"."""
        parts = ["*"]
        for relation in query.relations:
            parts.append(f"{relation.alias}:{relation.table}({','.join(relation.columns)})")
        return ", ".join(parts)

    @staticmethod
    def _apply_filters(builder: Any, query: Query) -> Any:
        for flt in query.filters:
            if flt.operator == "eq":
                builder = builder.eq(flt.column, flt.value)
            elif flt.operator == "gte":
                builder = builder.gte(flt.column, flt.value)
            elif flt.operator == "lt":
                builder = builder.lt(flt.column, flt.value)
            else:
                raise StoreError(f"Unsupported filter operator: {flt.operator}")
        return builder

    @staticmethod
    def _failure(error: Exception, operation: str, table: str) -> Result:
        # postgrest APIError carries message/code/hint attributes
        message = getattr(error, "message", None) or str(error)
        details = {"table": table}
        code = getattr(error, "code", None)
        if code:
            details["code"] = code
        logger.error(f"Supabase {operation} on {table} failed: {message}")
        return Result.failure_result(
            StoreError(message, operation=operation, details=details),
            error_type="StoreError",
            error_details=details,
        )

    async def fetch(self, query: Query) -> Result[list[dict]]:
        try:
            client = await self._get_client()
            builder = client.table(query.table).select(self._select_clause(query))
            builder = self._apply_filters(builder, query)
            if query.order_by:
                builder = builder.order(query.order_by, desc=not query.ascending)
            response = await builder.execute()
            return Result.success_result(list(response.data or []))
        except Exception as e:
            return self._failure(e, "fetch", query.table)

    async def fetch_one(self, query: Query) -> Result[dict]:
        try:
            client = await self._get_client()
            builder = client.table(query.table).select(self._select_clause(query))
            builder = self._apply_filters(builder, query)
            response = await builder.single().execute()
            if not response.data:
                raise StoreError(SINGLE_ROW_ERROR, operation="fetch_one")
            return Result.success_result(response.data)
        except Exception as e:
            return self._failure(e, "fetch_one", query.table)

    async def count(self, query: Query) -> Result[int]:
        try:
            client = await self._get_client()
            builder = client.table(query.table).select("*", count=CountMethod.exact, head=True)
            builder = self._apply_filters(builder, query)
            response = await builder.execute()
            return Result.success_result(response.count or 0)
        except Exception as e:
            return self._failure(e, "count", query.table)

    async def insert(self, table: str, row: dict) -> Result[dict]:
        try:
            client = await self._get_client()
            response = await client.table(table).insert(row).execute()
            if not response.data:
                raise StoreError(SINGLE_ROW_ERROR, operation="insert")
            return Result.success_result(response.data[0])
        except Exception as e:
            return self._failure(e, "insert", table)

    async def update(self, query: Query, values: dict) -> Result[dict]:
        try:
            client = await self._get_client()
            builder = self._apply_filters(client.table(query.table).update(values), query).select("*")
            # PostgREST rejects and rolls back a write that matches other than one row
            builder.request.headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
            response = await AsyncSingleRequestBuilder(builder.request).execute()
            if not response.data:
                raise StoreError(SINGLE_ROW_ERROR, operation="update")
            return Result.success_result(response.data)
        except Exception as e:
            return self._failure(e, "update", query.table)

    async def delete(self, query: Query) -> Result[None]:
        try:
            client = await self._get_client()
            builder = self._apply_filters(client.table(query.table).delete(), query)
            await builder.execute()
            return Result.success_result(None)
        except Exception as e:
            return self._failure(e, "delete", query.table)
