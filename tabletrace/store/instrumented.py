"""Store session wrapper that records each store call as a child span."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from tabletrace.store.base import AdminClient, StoreSession, TableClient, TableSchema
from tabletrace.tracer.span import Span
from tabletrace.tracer.tracer import Tracer

CREATE_TABLE_RPC = "Sent.google.bigtable.admin.v2.BigtableTableAdmin.CreateTable"
DELETE_TABLE_RPC = "Sent.google.bigtable.admin.v2.BigtableTableAdmin.DeleteTable"
LIST_TABLES_RPC = "Sent.google.bigtable.admin.v2.BigtableTableAdmin.ListTables"
MUTATE_ROW_RPC = "Sent.google.bigtable.v2.Bigtable.MutateRow"
READ_ROWS_RPC = "Sent.google.bigtable.v2.Bigtable.ReadRows"

RPC_SPAN_NAMES = (
    CREATE_TABLE_RPC,
    DELETE_TABLE_RPC,
    LIST_TABLES_RPC,
    MUTATE_ROW_RPC,
    READ_ROWS_RPC,
)


class _Traced:
    def __init__(self, tracer: Tracer, parent: Optional[Span]) -> None:
        self._tracer = tracer
        self._parent = parent

    @contextmanager
    def _rpc(self, name: str, **attributes):
        # Child spans inherit the parent's sampling decision. They are not made
        # current, so a suspended scan never leaks into the caller's context.
        span = self._tracer.start_span(name, parent=self._parent, attributes=attributes)
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            raise
        finally:
            span.end()


class InstrumentedAdmin(_Traced, AdminClient):
    def __init__(self, admin: AdminClient, tracer: Tracer, parent: Optional[Span]) -> None:
        super().__init__(tracer, parent)
        self._admin = admin

    def create_table(self, schema: TableSchema) -> None:
        with self._rpc(CREATE_TABLE_RPC, table=schema.name):
            self._admin.create_table(schema)

    def table_exists(self, name: str) -> bool:
        with self._rpc(LIST_TABLES_RPC, table=name):
            return self._admin.table_exists(name)

    def disable_table(self, name: str) -> None:
        with self._rpc(LIST_TABLES_RPC, table=name, operation="disable"):
            self._admin.disable_table(name)

    def delete_table(self, name: str) -> None:
        with self._rpc(DELETE_TABLE_RPC, table=name):
            self._admin.delete_table(name)


class InstrumentedTable(_Traced, TableClient):
    def __init__(self, table: TableClient, tracer: Tracer, parent: Optional[Span]) -> None:
        super().__init__(tracer, parent)
        self._table = table
        self.name = table.name

    def put(self, row_key: str, family: str, column: str, value: str) -> None:
        with self._rpc(MUTATE_ROW_RPC, table=self.name, row_key=row_key):
            self._table.put(row_key, family, column, value)

    def get(self, row_key: str, family: str, column: str) -> Optional[str]:
        with self._rpc(READ_ROWS_RPC, table=self.name, row_key=row_key):
            return self._table.get(row_key, family, column)

    def scan(self, family: str, column: str) -> Iterator[Tuple[str, Optional[str]]]:
        # The span covers the whole stream, not just the first row.
        with self._rpc(READ_ROWS_RPC, table=self.name) as span:
            count = 0
            for row in self._table.scan(family, column):
                count += 1
                yield row
            span.set_attribute("rows", count)


class InstrumentedSession(StoreSession):
    """Wraps a session; every admin and row call becomes a child of ``parent``."""

    def __init__(self, session: StoreSession, tracer: Tracer, parent: Optional[Span]) -> None:
        super().__init__()
        self._session = session
        self._tracer = tracer
        self._parent = parent

    def admin(self) -> InstrumentedAdmin:
        return InstrumentedAdmin(self._session.admin(), self._tracer, self._parent)

    def table(self, name: str) -> InstrumentedTable:
        return InstrumentedTable(self._session.table(name), self._tracer, self._parent)

    def _release(self) -> None:
        self._session.close()
