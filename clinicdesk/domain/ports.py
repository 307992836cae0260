"""Domain Ports - Abstract Contracts for Clinic Data Access.

This module defines the Port interfaces (abstract contracts) that Adapters must implement.
Following Hexagonal Architecture, the Domain Core defines what it needs, not how it's provided.

Security Impact:
    - Every query carries its own owner filter; ports never widen visibility
    - Store failures are communicated through Result, never leaked as raw client errors
    - Credentials stay inside the store adapters

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Store adapters (Supabase, DuckDB) implement DataStorePort
    - Notifier adapters (logging, console, in-memory) implement NotifierPort
    - Query is an immutable value object built fluently by the domain adapters
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Store adapters return Result objects so that a failed remote call looks
    like the `{data, error}` pair of the hosted database client instead of
    an exception escaping from deep inside the HTTP stack.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error information (only present if success=False)
        error_type: Type of error (StoreError, UnauthenticatedError, etc.)
        error_details: Additional error context (table, operation, etc.)

    Example:
        ```python
        result = await store.fetch(Query("professionals").eq("user_id", uid))
        if result.is_success():
            rows = result.value
        else:
            logger.error(result.error)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (e.g., "StoreError")
            error_details: Additional context (table, operation, etc.)

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success

    def unwrap(self, operation: Optional[str] = None) -> T:
        """Return the value or raise StoreError carrying the failure message.

        Parameters:
            operation: Operation name recorded on the raised error

        Raises:
            StoreError: If the result is a failure
        """
        if self.success:
            return self.value
        raise StoreError(
            self.error or "Unknown store error",
            operation=operation,
            details=self.error_details,
        )


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class ClinicDataError(Exception):
    """Base exception for all data-access errors raised inside the adapters.

    These errors never cross the adapter boundary: every public adapter
    operation catches them, logs them and returns a safe default.
    """
    pass


class UnauthenticatedError(ClinicDataError):
    """Raised when an operation needs a resolved user and none is present."""

    def __init__(self, message: str = "Usuário não autenticado"):
        super().__init__(message)


class StoreError(ClinicDataError):
    """Raised when the data store reports a failure.

    Not-found and multiple-match outcomes of single-row fetches are reported
    with this same type; callers cannot and should not distinguish them.

    Attributes:
        operation: The store operation that failed (fetch, insert, ...)
        details: Additional error details (table, code, hint)
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


# ============================================================================
# Query Description
# ============================================================================

FilterOperator = Literal["eq", "gte", "lt"]


@dataclass(frozen=True)
class Filter:
    """A single column comparison applied to a query."""
    column: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class Relation:
    """A related row expanded into each result under `alias`.

    Attributes:
        alias: Key under which the related row appears (e.g. "patient")
        table: Related collection name (e.g. "patients")
        foreign_key: Column on the queried table referencing the related id
        columns: Columns of the related row to include
    """
    alias: str
    table: str
    foreign_key: str
    columns: tuple[str, ...] = ("nome",)


@dataclass(frozen=True)
class Query:
    """Immutable description of a read or write target.

    Each builder method returns a new Query, so partially built queries can
    be shared safely between concurrent operations.

    Example:
        ```python
        query = (
            Query("appointments")
            .eq("user_id", user_id)
            .gte("data_agendamento", "2024-05-01")
            .lt("data_agendamento", "2024-05-01T23:59:59")
            .order("data_agendamento")
        )
        ```
    """
    table: str
    filters: tuple[Filter, ...] = ()
    order_by: Optional[str] = None
    ascending: bool = True
    relations: tuple[Relation, ...] = field(default=())

    def _with_filter(self, column: str, operator: FilterOperator, value: Any) -> 'Query':
        return replace(self, filters=self.filters + (Filter(column, operator, value),))

    def eq(self, column: str, value: Any) -> 'Query':
        return self._with_filter(column, "eq", value)

    def gte(self, column: str, value: Any) -> 'Query':
        return self._with_filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> 'Query':
        return self._with_filter(column, "lt", value)

    def order(self, column: str, ascending: bool = True) -> 'Query':
        return replace(self, order_by=column, ascending=ascending)

    def expand(self, alias: str, table: str, foreign_key: str, *columns: str) -> 'Query':
        relation = Relation(alias, table, foreign_key, tuple(columns) or ("nome",))
        return replace(self, relations=self.relations + (relation,))


# ============================================================================
# Notifications
# ============================================================================

class Notification(BaseModel):
    """User-facing message raised by an adapter operation.

    Attributes:
        title: Short headline shown to the user
        description: Longer explanation (error message or success detail)
        variant: "destructive" for failures, None for neutral/success messages
    """
    title: str
    description: str
    variant: Optional[Literal["destructive"]] = Field(None, description="Presentation variant")

    @property
    def is_destructive(self) -> bool:
        return self.variant == "destructive"


# ============================================================================
# Ports
# ============================================================================

class DataStorePort(ABC):
    """Abstract contract for the hosted clinic database.

    Mirrors the query-builder surface the adapters rely on: owner-scoped
    reads with equality and range filters, ordering, related-row expansion,
    exact counts and single-row assertions.

    Key Principles:
        - Every method is a coroutine; adapters suspend at each store call
        - Failures are returned as Result.failure_result, never raised
        - Timeouts and retries belong to the concrete client, not the port
    """

    @abstractmethod
    async def fetch(self, query: Query) -> Result[list[dict]]:
        """Return all rows matching the query, ordered as requested.

        Related rows listed in `query.relations` appear as nested dicts under
        their alias, or None when the referenced row does not exist.
        """
        pass

    @abstractmethod
    async def fetch_one(self, query: Query) -> Result[dict]:
        """Return exactly one row matching the query.

        Returns:
            Result[dict]: Failure when zero or more than one row matches
        """
        pass

    @abstractmethod
    async def count(self, query: Query) -> Result[int]:
        """Return the exact number of rows matching the query."""
        pass

    @abstractmethod
    async def insert(self, table: str, row: dict) -> Result[dict]:
        """Insert one row and return it as stored (with generated id)."""
        pass

    @abstractmethod
    async def update(self, query: Query, values: dict) -> Result[dict]:
        """Update the single row matching the query and return it.

        Returns:
            Result[dict]: Failure when zero or more than one row matches
        """
        pass

    @abstractmethod
    async def delete(self, query: Query) -> Result[None]:
        """Delete every row matching the query."""
        pass

    async def close(self) -> None:
        """Release client resources (optional, backend-specific)."""
        return None


class NotifierPort(ABC):
    """Abstract contract for surfacing messages to the user interface."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver a notification to the user."""
        pass
