"""In-process table store with HBase-style admin semantics.

Used for local runs (``--backend memory``) and tests. Tables live in a
:class:`MemoryStore` shared by every session opened against it, so data
outlives individual sessions the way it does on a real server.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set, Tuple

from tabletrace.errors import StoreIOError
from tabletrace.store.base import AdminClient, StoreSession, TableClient, TableSchema


@dataclass
class _MemoryTable:
    families: Set[str]
    enabled: bool = True
    rows: Dict[str, Dict[Tuple[str, str], str]] = field(default_factory=dict)


class MemoryStore:
    """Shared state of the in-process store."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: Dict[str, _MemoryTable] = {}

    def table_names(self):
        with self._lock:
            return sorted(self._tables)

    def rows(self, table_name: str) -> Dict[str, Dict[Tuple[str, str], str]]:
        with self._lock:
            table = self._require(table_name)
            return {key: dict(cells) for key, cells in table.rows.items()}

    def _require(self, name: str) -> _MemoryTable:
        table = self._tables.get(name)
        if table is None:
            raise StoreIOError(f"Table not found: {name}", details={"table": name})
        return table


class _SessionBound:
    """Handle that stops working once the session it came from is closed."""

    def __init__(self, store: MemoryStore, session: Optional["MemorySession"] = None) -> None:
        self._store = store
        self._session = session

    def _check_open(self) -> None:
        if self._session is not None:
            self._session._check_open()


class MemoryAdmin(_SessionBound, AdminClient):
    def create_table(self, schema: TableSchema) -> None:
        self._check_open()
        if not schema.column_families:
            raise StoreIOError(
                f"Table {schema.name} must have at least one column family",
                details={"table": schema.name},
            )
        with self._store._lock:
            if schema.name in self._store._tables:
                raise StoreIOError(f"Table already exists: {schema.name}", details={"table": schema.name})
            self._store._tables[schema.name] = _MemoryTable(families=set(schema.column_families))

    def table_exists(self, name: str) -> bool:
        self._check_open()
        with self._store._lock:
            return name in self._store._tables

    def disable_table(self, name: str) -> None:
        self._check_open()
        with self._store._lock:
            table = self._store._require(name)
            if not table.enabled:
                raise StoreIOError(f"Table is already disabled: {name}", details={"table": name})
            table.enabled = False

    def delete_table(self, name: str) -> None:
        self._check_open()
        with self._store._lock:
            table = self._store._require(name)
            if table.enabled:
                raise StoreIOError(f"Table must be disabled before delete: {name}", details={"table": name})
            del self._store._tables[name]


class MemoryTable(_SessionBound, TableClient):
    def __init__(self, store: MemoryStore, name: str, session: Optional["MemorySession"] = None) -> None:
        super().__init__(store, session)
        self.name = name

    def _writable(self, family: str) -> _MemoryTable:
        table = self._store._require(self.name)
        if not table.enabled:
            raise StoreIOError(f"Table is disabled: {self.name}", details={"table": self.name})
        if family not in table.families:
            raise StoreIOError(
                f"Unknown column family {family!r} in table {self.name}",
                details={"table": self.name, "family": family},
            )
        return table

    def put(self, row_key: str, family: str, column: str, value: str) -> None:
        self._check_open()
        with self._store._lock:
            table = self._writable(family)
            table.rows.setdefault(row_key, {})[(family, column)] = value

    def get(self, row_key: str, family: str, column: str) -> Optional[str]:
        self._check_open()
        with self._store._lock:
            table = self._store._require(self.name)
            cells = table.rows.get(row_key)
            if cells is None:
                return None
            return cells.get((family, column))

    def scan(self, family: str, column: str) -> Iterator[Tuple[str, Optional[str]]]:
        self._check_open()
        # Rows are snapshotted when iteration starts, in lexicographic key order.
        with self._store._lock:
            table = self._store._require(self.name)
            snapshot = [(key, table.rows[key].get((family, column))) for key in sorted(table.rows)]
        yield from snapshot


class MemorySession(StoreSession):
    def __init__(self, store: MemoryStore) -> None:
        super().__init__()
        self._store = store

    def _check_open(self) -> None:
        if self.closed:
            raise StoreIOError("Session is closed")

    def admin(self) -> MemoryAdmin:
        self._check_open()
        return MemoryAdmin(self._store, self)

    def table(self, name: str) -> MemoryTable:
        self._check_open()
        return MemoryTable(self._store, name, self)

    def _release(self) -> None:
        return None
