"""Table store sessions: interfaces, backends and tracing wrapper."""

from typing import Callable, Optional

from tabletrace.config import StoreSettings
from tabletrace.errors import ConfigError
from tabletrace.store.base import AdminClient, StoreSession, TableClient, TableSchema
from tabletrace.store.instrumented import RPC_SPAN_NAMES, InstrumentedSession
from tabletrace.store.memory import MemorySession, MemoryStore

SessionFactory = Callable[[], StoreSession]


def session_factory(settings: StoreSettings, memory_store: Optional[MemoryStore] = None) -> SessionFactory:
    """
    Return a callable that opens a new session per call.

    The locator is checked here, before any remote call is made.
    """
    if settings.backend == "memory":
        store = memory_store or MemoryStore()
        return lambda: MemorySession(store)

    if not (settings.project_id and settings.instance_id):
        raise ConfigError(
            "Missing store locator: project_id and instance_id are required",
            details={"backend": settings.backend},
        )
    # Imported lazily so the memory backend works without Google credentials.
    from tabletrace.store.bigtable import BigtableSession

    project_id, instance_id = settings.project_id, settings.instance_id
    return lambda: BigtableSession(project_id, instance_id)


__all__ = [
    "AdminClient",
    "InstrumentedSession",
    "MemorySession",
    "MemoryStore",
    "RPC_SPAN_NAMES",
    "SessionFactory",
    "StoreSession",
    "TableClient",
    "TableSchema",
    "session_factory",
]
