"""Store adapters for ClinicDesk.

This module contains the adapters that implement the DataStorePort
interface: the hosted Supabase project and an embedded DuckDB database.
"""

from clinicdesk.adapters.storage.duckdb_store import DuckDBStore
from clinicdesk.adapters.storage.supabase_store import SupabaseStore

__all__ = ["DuckDBStore", "SupabaseStore"]
