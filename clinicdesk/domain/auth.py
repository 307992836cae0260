"""Authentication State and Change Subscriptions.

The adapters never authenticate anyone themselves. They read the current
user from an AuthContext and react to its transitions: the read adapters
refresh when a user becomes available and reset when the user signs out.

Listeners are coroutines receiving `(previous, current)` AuthState values.
They run sequentially on the event loop that changed the state.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    """Authenticated account as exposed by the auth provider."""

    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthState:
    """Snapshot of the authentication provider.

    Attributes:
        user: Current user, None when signed out or not yet known
        loading: True while the provider is still resolving the session
    """
    user: Optional[AuthUser] = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        """Resolved and signed in."""
        return self.user is not None and not self.loading

    @property
    def is_signed_out(self) -> bool:
        """Resolved and signed out."""
        return self.user is None and not self.loading

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


AuthListener = Callable[[AuthState, AuthState], Awaitable[None]]


class Subscription:
    """Handle returned by AuthContext.subscribe()."""

    def __init__(self, context: 'AuthContext', listener: AuthListener):
        self._context = context
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._context._remove(self._listener)
            self.active = False


class AuthContext:
    """In-process holder of the authentication state.

    Example Usage:
        ```python
        auth = AuthContext()                       # loading, no user
        subscription = auth.subscribe(on_change)
        await auth.sign_in(AuthUser(id="user-1"))  # on_change(loading, signed in)
        subscription.unsubscribe()
        ```
    """

    def __init__(self, state: Optional[AuthState] = None):
        self._state = state or AuthState()
        self._listeners: list[AuthListener] = []
        self._lock = asyncio.Lock()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[AuthUser]:
        return self._state.user

    @property
    def loading(self) -> bool:
        return self._state.loading

    def subscribe(self, listener: AuthListener) -> Subscription:
        """Register a listener for state transitions.

        Parameters:
            listener: Coroutine function called with (previous, current)

        Returns:
            Subscription: Call unsubscribe() on teardown
        """
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def set_state(self, state: AuthState) -> None:
        """Replace the state and notify listeners if it changed.

        Listener failures are logged and do not prevent the remaining
        listeners from running.
        """
        async with self._lock:
            previous = self._state
            if previous == state:
                return
            self._state = state
            listeners = list(self._listeners)

        logger.debug(
            f"Auth state changed: user={state.user_id} loading={state.loading} "
            f"(was user={previous.user_id} loading={previous.loading})"
        )
        for listener in listeners:
            try:
                await listener(previous, state)
            except Exception as e:
                logger.error(f"Auth listener failed: {str(e)}", exc_info=True)

    async def begin_loading(self) -> None:
        await self.set_state(AuthState(user=self._state.user, loading=True))

    async def sign_in(self, user: AuthUser) -> None:
        await self.set_state(AuthState(user=user, loading=False))

    async def sign_out(self) -> None:
        await self.set_state(AuthState(user=None, loading=False))
