"""Shared fixtures: in-memory DuckDB store, auth context, notifier and a fixed clock."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from clinicdesk.adapters.notifiers import CollectingNotifier
from clinicdesk.adapters.storage import DuckDBStore
from clinicdesk.domain.auth import AuthContext, AuthState, AuthUser
from clinicdesk.domain.services import ScheduleClock

CLINIC_TZ = ZoneInfo("America/Sao_Paulo")

# 2024-05-15 10:30 in the clinic timezone
FIXED_NOW = datetime(2024, 5, 15, 10, 30, tzinfo=CLINIC_TZ)


@pytest.fixture
def store():
    """In-memory DuckDB store with the schema created."""
    duckdb_store = DuckDBStore(db_path=":memory:", tz=CLINIC_TZ)
    duckdb_store.initialize_schema().unwrap()
    yield duckdb_store
    if duckdb_store._connection is not None:
        duckdb_store._connection.close()


@pytest.fixture
def user():
    return AuthUser(id="user-1", email="recepcao@clinica.com")


@pytest.fixture
def auth(user):
    """Auth context already resolved with `user` signed in."""
    return AuthContext(AuthState(user=user, loading=False))


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def clock():
    return ScheduleClock(CLINIC_TZ, now=lambda: FIXED_NOW)


@pytest.fixture
def professional_row():
    """Professional fields as the caller supplies them (store column names)."""
    return {
        "nome": "Dra. Ana Souza",
        "tipo": "médico",
        "registro": "CRM-SP 123456",
        "especialidade": "Cardiologia",
        "telefone": "11 99999-0000",
        "email": "ana@clinica.com",
        "horario_inicio": "08:00",
        "horario_fim": "17:00",
        "dias_atendimento": ["segunda", "quarta"],
        "observacoes": "Atende convênios",
        "status": "ativo",
    }
