"""ClinicDesk composition root.

Builds the store selected by configuration and wires it, together with an
AuthContext and a notifier, into the three data-access adapters.
"""

import logging
from typing import Optional

from clinicdesk.adapters.notifiers import LoggingNotifier
from clinicdesk.adapters.professionals import ProfessionalsAdapter
from clinicdesk.adapters.stats import StatsAdapter
from clinicdesk.adapters.storage import DuckDBStore, SupabaseStore
from clinicdesk.adapters.today_appointments import TodayAppointmentsAdapter
from clinicdesk.domain.auth import AuthContext, AuthState, AuthUser
from clinicdesk.domain.ports import DataStorePort, NotifierPort
from clinicdesk.domain.services import ScheduleClock
from clinicdesk.infrastructure.config_manager import StoreConfig
from clinicdesk.infrastructure.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def create_store(store_config: Optional[StoreConfig] = None) -> DataStorePort:
    """Create store adapter based on configuration.

    Parameters:
        store_config: Store configuration (defaults to the environment)

    Returns:
        DataStorePort: Configured store adapter instance

    Raises:
        ValueError: If the backend is unsupported
    """
    store_config = store_config or default_settings.store_config

    if store_config.backend == "duckdb":
        logger.info(f"Initializing DuckDB store with path: {store_config.db_path or ':memory:'}")
        return DuckDBStore(store_config=store_config, tz=default_settings.timezone)
    elif store_config.backend == "supabase":
        logger.info(f"Initializing Supabase store for: {store_config.supabase_url}")
        return SupabaseStore(store_config=store_config)
    else:
        raise ValueError(f"Unsupported store backend: {store_config.backend}")


class ClinicSession:
    """One user-facing session: auth state, notifier, store and adapters.

    Example Usage:
        ```python
        async with ClinicSession(store, notifier=CollectingNotifier()) as session:
            await session.sign_in("user-1")
            print(session.stats.stats.occupancy_rate)
            professionals = await session.professionals.list()
        ```
    """

    def __init__(
        self,
        store: DataStorePort,
        notifier: Optional[NotifierPort] = None,
        auth: Optional[AuthContext] = None,
        app_settings: Optional[Settings] = None,
    ):
        app_settings = app_settings or default_settings
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.auth = auth or AuthContext()
        self.clock = ScheduleClock(app_settings.timezone)

        self.professionals = ProfessionalsAdapter(self.store, self.auth, self.notifier)
        self.today_appointments = TodayAppointmentsAdapter(self.store, self.auth, self.clock)
        self.stats = StatsAdapter(
            self.store,
            self.auth,
            self.clock,
            daily_capacity=app_settings.daily_capacity,
            limits=app_settings.plan_limits,
        )

    async def start(self) -> None:
        await self.today_appointments.start()
        await self.stats.start()

    async def close(self) -> None:
        await self.today_appointments.close()
        await self.stats.close()
        await self.store.close()

    async def __aenter__(self) -> 'ClinicSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def sign_in(self, user_id: str, email: Optional[str] = None) -> None:
        await self.auth.sign_in(AuthUser(id=user_id, email=email))

    async def sign_out(self) -> None:
        await self.auth.sign_out()

    @property
    def auth_state(self) -> AuthState:
        return self.auth.state
