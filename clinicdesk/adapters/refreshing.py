"""Auth-bound refreshing adapters.

Base class for the read-only adapters that keep an in-memory copy of their
last result and reload it whenever the signed-in user changes.

Lifecycle:
    - start() subscribes to the AuthContext and applies the current state
    - a transition to an authenticated user (or a different user) triggers refresh()
    - a transition to "resolved, signed out" resets the adapter without any query
    - close() unsubscribes

Each refresh is tagged with a generation number. A response that arrives
after a newer refresh started, or after a sign-out, is discarded.
"""

import logging
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from clinicdesk.domain.auth import AuthContext, AuthState, Subscription
from clinicdesk.domain.operations import OperationTracker
from clinicdesk.domain.ports import ClinicDataError, DataStorePort
from clinicdesk.domain.services import ScheduleClock

logger = logging.getLogger(__name__)

V = TypeVar('V')

RECOVERABLE_ERRORS = (ClinicDataError, PydanticValidationError, ValueError)


class RefreshingAdapter(ABC, Generic[V]):
    """Read adapter that reloads its value on authentication changes.

    Subclasses implement `_load(user_id)` plus the hooks that apply a loaded
    value, react to a failed load and reset on sign-out.

    Parameters:
        store: Data store port
        auth: Authentication context
        clock: Clinic clock (defaults to the host's local timezone)
    """

    resource = "data"

    def __init__(self, store: DataStorePort, auth: AuthContext, clock: Optional[ScheduleClock] = None):
        self.store = store
        self.auth = auth
        self.clock = clock or ScheduleClock()
        self.operations = OperationTracker()
        self._awaiting_first_load = True
        self._generation = 0
        self._subscription: Optional[Subscription] = None

    @property
    def loading(self) -> bool:
        """True until the first resolution and while a refresh is in flight."""
        return self._awaiting_first_load or self.operations.loading

    async def start(self) -> None:
        """Subscribe to authentication changes and apply the current state."""
        if self._subscription is None:
            self._subscription = self.auth.subscribe(self._on_auth_change)
        await self._apply_auth_state(None, self.auth.state)

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self) -> 'RefreshingAdapter[V]':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _on_auth_change(self, previous: AuthState, current: AuthState) -> None:
        await self._apply_auth_state(previous, current)

    async def _apply_auth_state(self, previous: Optional[AuthState], current: AuthState) -> None:
        if current.is_authenticated:
            user_changed = previous is None or previous.user_id != current.user_id
            if user_changed or not previous.is_authenticated:
                logger.info(f"Starting {self.resource} refresh for user {current.user_id}")
                await self.refresh()
        elif current.is_signed_out:
            self._generation += 1
            self._awaiting_first_load = False
            self._reset()

    async def refresh(self) -> None:
        """Reload the value for the current user.

        Does nothing while authentication is loading or nobody is signed in.
        Failures are logged and handed to `_on_failure`; nothing is raised.
        """
        state = self.auth.state
        if not state.is_authenticated:
            logger.info(f"Waiting for authentication before loading {self.resource}")
            return

        self._generation += 1
        generation = self._generation

        async with self.operations.track("refresh") as op:
            try:
                value = await self._load(state.user.id)
            except RECOVERABLE_ERRORS as e:
                op.mark_failed(str(e))
                logger.error(f"Failed to load {self.resource}: {str(e)}")
                if generation == self._generation:
                    self._on_failure(e)
                    self._awaiting_first_load = False
                return

        if generation != self._generation:
            logger.debug(f"Discarding stale {self.resource} response (generation {generation})")
            return
        self._apply(value)
        self._awaiting_first_load = False

    @abstractmethod
    async def _load(self, user_id: str) -> V:
        """Query the store for the user's value; raise ClinicDataError on failure."""
        pass

    @abstractmethod
    def _apply(self, value: V) -> None:
        pass

    @abstractmethod
    def _on_failure(self, error: Exception) -> None:
        pass

    @abstractmethod
    def _reset(self) -> None:
        pass
