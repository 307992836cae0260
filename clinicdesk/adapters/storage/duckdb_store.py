"""DuckDB Store Adapter.

This adapter implements the DataStorePort contract on top of DuckDB, an
in-process database. It reproduces the behaviour of the hosted store closely
enough for local development, demos and end-to-end tests: owner filters,
half-open range filters, related-row expansion, exact counts and single-row
assertions.

Architecture:
    - Implements DataStorePort (Hexagonal Architecture)
    - Isolated from domain core - only depends on ports
    - Table and column names are checked against a fixed schema before any
      SQL is built; values are always bound as parameters
    - TIMESTAMP columns hold naive clinic wall-clock times; aware inputs are
      converted to the clinic timezone before tzinfo is dropped
"""

import json
import logging
import uuid
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Optional

import duckdb

from clinicdesk.domain.ports import (
    DataStorePort,
    Query,
    Result,
    StoreError,
)
from clinicdesk.domain.services import parse_timestamp
from clinicdesk.infrastructure.config_manager import StoreConfig

logger = logging.getLogger(__name__)

SINGLE_ROW_ERROR = "JSON object requested, multiple (or no) rows returned"

TABLES: dict[str, dict[str, str]] = {
    "professionals": {
        "id": "VARCHAR PRIMARY KEY",
        "user_id": "VARCHAR NOT NULL",
        "nome": "VARCHAR NOT NULL",
        "tipo": "VARCHAR",
        "registro": "VARCHAR",
        "especialidade": "VARCHAR",
        "telefone": "VARCHAR",
        "email": "VARCHAR",
        "horario_inicio": "VARCHAR",
        "horario_fim": "VARCHAR",
        "dias_atendimento": "VARCHAR",
        "observacoes": "VARCHAR",
        "status": "VARCHAR",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    },
    "patients": {
        "id": "VARCHAR PRIMARY KEY",
        "user_id": "VARCHAR NOT NULL",
        "nome": "VARCHAR NOT NULL",
        "created_at": "TIMESTAMP",
    },
    "appointments": {
        "id": "VARCHAR PRIMARY KEY",
        "user_id": "VARCHAR NOT NULL",
        "patient_id": "VARCHAR",
        "professional_id": "VARCHAR",
        "data_agendamento": "TIMESTAMP NOT NULL",
        "tipo": "VARCHAR",
        "status": "VARCHAR",
        "created_at": "TIMESTAMP",
    },
    "consultations": {
        "id": "VARCHAR PRIMARY KEY",
        "user_id": "VARCHAR NOT NULL",
        "patient_id": "VARCHAR",
        "professional_id": "VARCHAR",
        "created_at": "TIMESTAMP NOT NULL",
    },
}

# List-valued columns, stored as JSON text
JSON_COLUMNS = {"dias_atendimento"}

OPERATORS = {"eq": "=", "gte": ">=", "lt": "<"}


class DuckDBStore(DataStorePort):
    """DuckDB implementation of DataStorePort.

    Parameters:
        store_config: StoreConfig from configuration manager (preferred)
        db_path: Path to DuckDB database file (or ':memory:' for in-memory)
        tz: Clinic timezone for offset-bearing timestamps (None: host local)

    Example Usage:
        ```python
        store = DuckDBStore(db_path=":memory:")
        store.initialize_schema()

        result = await store.insert("professionals", {"user_id": uid, "nome": "Ana"})
        if result.is_success():
            print(result.value["id"])
        ```
    """

    def __init__(
        self,
        store_config: Optional[StoreConfig] = None,
        db_path: Optional[str] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.tz = tz
        if store_config:
            if store_config.backend != "duckdb":
                raise StoreError(
                    f"StoreConfig backend '{store_config.backend}' does not match DuckDB store",
                    operation="__init__"
                )
            self.db_path = store_config.db_path or ":memory:"
        else:
            self.db_path = db_path or ":memory:"

        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialized = False

        if self.db_path != ":memory:":
            db_path_obj = Path(self.db_path)
            if not db_path_obj.parent.exists():
                raise StoreError(
                    f"Database directory does not exist: {db_path_obj.parent}",
                    operation="__init__"
                )

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection (created lazily, then reused)."""
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path)
                logger.info(f"Connected to DuckDB database: {self.db_path}")
            except Exception as e:
                raise StoreError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                )
        return self._connection

    def initialize_schema(self) -> Result[None]:
        """Create the professionals, patients, appointments and consultations tables."""
        try:
            conn = self._get_connection()
            for table, columns in TABLES.items():
                column_sql = ",\n".join(f'"{name}" {sql_type}' for name, sql_type in columns.items())
                conn.execute(f'CREATE TABLE IF NOT EXISTS "{table}" (\n{column_sql}\n)')
                conn.execute(f'CREATE INDEX IF NOT EXISTS idx_{table}_user ON "{table}"(user_id)')

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_appointments_schedule ON appointments(data_agendamento)"
            )

            self._initialized = True
            logger.info("Database schema initialized successfully")
            return Result.success_result(None)

        except Exception as e:
            error_msg = f"Failed to initialize schema: {str(e)}"
            logger.error(error_msg, exc_info=True)
            return Result.failure_result(
                StoreError(error_msg, operation="initialize_schema"),
                error_type="StoreError"
            )

    # ------------------------------------------------------------------
    # SQL helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_column(table: str, column: str) -> None:
        if table not in TABLES:
            raise StoreError(f'relation "{table}" does not exist', details={"table": table})
        if column not in TABLES[table]:
            raise StoreError(
                f'column {table}.{column} does not exist',
                details={"table": table, "column": column}
            )

    def _coerce_in(self, table: str, column: str, value: Any) -> Any:
        """Convert a Python value to its DuckDB column representation."""
        if value is None:
            return None
        if column in JSON_COLUMNS:
            return json.dumps(value)
        if TABLES[table][column].startswith("TIMESTAMP"):
            moment = parse_timestamp(value)
            if moment.tzinfo is not None:
                moment = moment.astimezone(self.tz).replace(tzinfo=None)
            return moment
        return value

    @staticmethod
    def _coerce_out(column: str, value: Any) -> Any:
        """Convert a DuckDB value to the JSON-like shape returned by the hosted store."""
        if value is None:
            return None
        if column in JSON_COLUMNS:
            return json.loads(value)
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    def _where(self, query: Query, prefix: str = "t.") -> tuple[str, list[Any]]:
        clauses = []
        params: list[Any] = []
        for flt in query.filters:
            self._check_column(query.table, flt.column)
            clauses.append(f'{prefix}"{flt.column}" {OPERATORS[flt.operator]} ?')
            params.append(self._coerce_in(query.table, flt.column, flt.value))
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _ensure_ready(self) -> duckdb.DuckDBPyConnection:
        if not self._initialized:
            self.initialize_schema().unwrap("initialize_schema")
        return self._get_connection()

    def _execute(self, sql: str, params: list[Any]) -> tuple[list[str], list[tuple]]:
        conn = self._ensure_ready()
        cursor = conn.execute(sql, params)
        columns = [description[0] for description in cursor.description]
        return columns, cursor.fetchall()

    def _select_rows(self, query: Query) -> list[dict]:
        if query.table not in TABLES:
            raise StoreError(f'relation "{query.table}" does not exist', details={"table": query.table})

        select_parts = ["t.*"]
        joins = []
        for index, relation in enumerate(query.relations):
            self._check_column(query.table, relation.foreign_key)
            ref = f"r{index}"
            select_parts.append(f'{ref}."id" AS "{relation.alias}__id"')
            for column in relation.columns:
                self._check_column(relation.table, column)
                select_parts.append(f'{ref}."{column}" AS "{relation.alias}__{column}"')
            joins.append(f'LEFT JOIN "{relation.table}" {ref} ON {ref}."id" = t."{relation.foreign_key}"')

        where_sql, params = self._where(query)
        sql = f'SELECT {", ".join(select_parts)} FROM "{query.table}" t {" ".join(joins)}{where_sql}'
        if query.order_by:
            self._check_column(query.table, query.order_by)
            sql += f' ORDER BY t."{query.order_by}" {"ASC" if query.ascending else "DESC"}'

        columns, records = self._execute(sql, params)
        return [self._to_row(query, columns, record) for record in records]

    def _to_row(self, query: Query, columns: list[str], record: tuple) -> dict:
        row: dict[str, Any] = {}
        related: dict[str, dict[str, Any]] = {relation.alias: {} for relation in query.relations}
        for column, value in zip(columns, record):
            alias, sep, related_column = column.partition("__")
            if sep and alias in related:
                related[alias][related_column] = self._coerce_out(related_column, value)
            else:
                row[column] = self._coerce_out(column, value)
        for alias, values in related.items():
            row[alias] = None if values.pop("id", None) is None else values
        return row

    def _values_clause(self, table: str, values: dict) -> tuple[list[str], list[Any]]:
        columns = []
        params = []
        for column, value in values.items():
            self._check_column(table, column)
            columns.append(column)
            params.append(self._coerce_in(table, column, value))
        return columns, params

    # ------------------------------------------------------------------
    # DataStorePort
    # ------------------------------------------------------------------

    async def fetch(self, query: Query) -> Result[list[dict]]:
        try:
            return Result.success_result(self._select_rows(query))
        except Exception as e:
            return self._failure(e, "fetch", query.table)

    async def fetch_one(self, query: Query) -> Result[dict]:
        try:
            rows = self._select_rows(query)
        except Exception as e:
            return self._failure(e, "fetch_one", query.table)
        if len(rows) != 1:
            return Result.failure_result(
                StoreError(SINGLE_ROW_ERROR, operation="fetch_one"),
                error_type="StoreError",
                error_details={"table": query.table, "rows": len(rows)}
            )
        return Result.success_result(rows[0])

    async def count(self, query: Query) -> Result[int]:
        try:
            if query.table not in TABLES:
                raise StoreError(f'relation "{query.table}" does not exist')
            where_sql, params = self._where(query)
            _, records = self._execute(f'SELECT COUNT(*) FROM "{query.table}" t{where_sql}', params)
            return Result.success_result(int(records[0][0]))
        except Exception as e:
            return self._failure(e, "count", query.table)

    async def insert(self, table: str, row: dict) -> Result[dict]:
        try:
            if table not in TABLES:
                raise StoreError(f'relation "{table}" does not exist')
            values = dict(row)
            values.setdefault("id", str(uuid.uuid4()))
            if "created_at" in TABLES[table]:
                values.setdefault("created_at", datetime.now().isoformat())

            columns, params = self._values_clause(table, values)
            column_sql = ", ".join(f'"{c}"' for c in columns)
            placeholders = ", ".join("?" for _ in columns)
            names, records = self._execute(
                f'INSERT INTO "{table}" ({column_sql}) VALUES ({placeholders}) RETURNING *',
                params
            )
            logger.debug(f"Inserted row into {table}")
            return Result.success_result(
                {name: self._coerce_out(name, value) for name, value in zip(names, records[0])}
            )
        except Exception as e:
            return self._failure(e, "insert", table)

    async def update(self, query: Query, values: dict) -> Result[dict]:
        try:
            changes = dict(values)
            if "updated_at" in TABLES.get(query.table, {}):
                changes["updated_at"] = datetime.now().isoformat()
            columns, params = self._values_clause(query.table, changes)
            where_sql, where_params = self._where(query, prefix="")
            set_sql = ", ".join(f'"{c}" = ?' for c in columns)
            sql = f'UPDATE "{query.table}" SET {set_sql}{where_sql} RETURNING *'

            conn = self._ensure_ready()
            conn.begin()
            try:
                cursor = conn.execute(sql, params + where_params)
                names = [description[0] for description in cursor.description]
                records = cursor.fetchall()
                if len(records) != 1:
                    conn.rollback()
                    return Result.failure_result(
                        StoreError(SINGLE_ROW_ERROR, operation="update"),
                        error_type="StoreError",
                        error_details={"table": query.table, "rows": len(records)}
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

            return Result.success_result(
                {name: self._coerce_out(name, value) for name, value in zip(names, records[0])}
            )
        except Exception as e:
            return self._failure(e, "update", query.table)

    async def delete(self, query: Query) -> Result[None]:
        try:
            if query.table not in TABLES:
                raise StoreError(f'relation "{query.table}" does not exist')
            where_sql, params = self._where(query, prefix="")
            self._ensure_ready().execute(f'DELETE FROM "{query.table}"{where_sql}', params)
            return Result.success_result(None)
        except Exception as e:
            return self._failure(e, "delete", query.table)

    @staticmethod
    def _failure(error: Exception, operation: str, table: str) -> Result:
        logger.error(f"DuckDB {operation} on {table} failed: {str(error)}")
        return Result.failure_result(
            StoreError(str(error), operation=operation),
            error_type="StoreError",
            error_details={"table": table}
        )

    async def close(self) -> None:
        """Close storage connection and release resources."""
        if self._connection is not None:
            try:
                self._connection.close()
                self._connection = None
                logger.info("Closed DuckDB connection")
            except Exception as e:
                logger.warning(f"Error closing connection: {str(e)}")
