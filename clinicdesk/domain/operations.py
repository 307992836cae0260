"""Operation Tracking for Adapter Loading State.

Each adapter operation runs inside `OperationTracker.track(name)`. The
tracker counts operations in flight, so `loading` is true while at least one
call is running, and remembers the last outcome per operation name.

Concurrent calls of the same operation share one status entry: it stays
in_flight until the last of them finishes and then reflects that call's
outcome. Calls are never queued or cancelled.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class OperationStatus(str, Enum):
    """Lifecycle of a tracked operation."""
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class OperationHandle:
    """Handle yielded to the body of a tracked operation.

    The body calls mark_failed() when it recovers from an error locally;
    otherwise the operation is recorded as succeeded on exit.
    """
    name: str
    failed: bool = False
    error: Optional[str] = None

    def mark_failed(self, error: Optional[str] = None) -> None:
        self.failed = True
        self.error = error


@dataclass
class OperationRecord:
    status: OperationStatus = OperationStatus.IDLE
    in_flight: int = 0
    last_error: Optional[str] = None


class OperationTracker:
    """Tracks in-flight operations of one adapter instance.

    Example Usage:
        ```python
        tracker = OperationTracker()

        async with tracker.track("create") as op:
            result = await store.insert("professionals", row)
            if result.is_failure():
                op.mark_failed(result.error)

        tracker.status("create")   # OperationStatus.FAILED
        tracker.loading            # False
        ```
    """

    def __init__(self):
        self._records: dict[str, OperationRecord] = {}
        self._in_flight = 0

    @property
    def loading(self) -> bool:
        """True while at least one operation is in flight."""
        return self._in_flight > 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def status(self, name: str) -> OperationStatus:
        record = self._records.get(name)
        return record.status if record else OperationStatus.IDLE

    def last_error(self, name: str) -> Optional[str]:
        record = self._records.get(name)
        return record.last_error if record else None

    @asynccontextmanager
    async def track(self, name: str) -> AsyncIterator[OperationHandle]:
        """Run the body as operation `name`.

        An exception escaping the body marks the operation failed and is
        re-raised; the in-flight counter is always released.
        """
        record = self._records.setdefault(name, OperationRecord())
        record.in_flight += 1
        record.status = OperationStatus.IN_FLIGHT
        self._in_flight += 1
        handle = OperationHandle(name)
        try:
            yield handle
        except BaseException as e:
            handle.mark_failed(str(e))
            raise
        finally:
            self._in_flight -= 1
            record.in_flight -= 1
            if handle.failed:
                record.status = OperationStatus.FAILED
                record.last_error = handle.error
            else:
                record.status = OperationStatus.SUCCEEDED
                record.last_error = None
            if record.in_flight > 0:
                record.status = OperationStatus.IN_FLIGHT
            logger.debug(f"Operation '{name}' finished with status {record.status.value}")
