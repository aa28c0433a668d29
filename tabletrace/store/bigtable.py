"""Cloud Bigtable backend built on google-cloud-bigtable.

Credentials come from Application Default Credentials. Setting
``BIGTABLE_EMULATOR_HOST`` points the client at a local emulator instead.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import bigtable
from google.cloud.bigtable import column_family, row_filters

from tabletrace.errors import StoreIOError
from tabletrace.store.base import AdminClient, StoreSession, TableClient, TableSchema

logger = logging.getLogger(__name__)

_STORE_ERRORS = (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


@contextmanager
def _translate_errors(operation: str, **details):
    try:
        yield
    except _STORE_ERRORS as exc:
        raise StoreIOError(f"{operation} failed: {exc}", details=details) from exc


class BigtableAdmin(AdminClient):
    def __init__(self, instance) -> None:
        self._instance = instance

    def create_table(self, schema: TableSchema) -> None:
        families = {name: column_family.MaxVersionsGCRule(1) for name in schema.column_families}
        with _translate_errors("CreateTable", table=schema.name):
            self._instance.table(schema.name).create(column_families=families)

    def table_exists(self, name: str) -> bool:
        with _translate_errors("ListTables", table=name):
            return self._instance.table(name).exists()

    def disable_table(self, name: str) -> None:
        # Bigtable has no disabled state; the table only has to exist.
        if not self.table_exists(name):
            raise StoreIOError(f"Table not found: {name}", details={"table": name})
        logger.debug("disable_table(%s) is a no-op on Bigtable", name)

    def delete_table(self, name: str) -> None:
        with _translate_errors("DeleteTable", table=name):
            self._instance.table(name).delete()


class BigtableTable(TableClient):
    def __init__(self, instance, name: str) -> None:
        self._table = instance.table(name)
        self.name = name

    def put(self, row_key: str, family: str, column: str, value: str) -> None:
        with _translate_errors("MutateRow", table=self.name, row_key=row_key):
            row = self._table.direct_row(row_key.encode("utf-8"))
            row.set_cell(family, column.encode("utf-8"), value.encode("utf-8"))
            status = row.commit()
        if status is not None and getattr(status, "code", 0):
            raise StoreIOError(
                f"MutateRow failed: {status.message}",
                details={"table": self.name, "row_key": row_key, "code": status.code},
            )

    def get(self, row_key: str, family: str, column: str) -> Optional[str]:
        with _translate_errors("ReadRows", table=self.name, row_key=row_key):
            row = self._table.read_row(
                row_key.encode("utf-8"), filter_=row_filters.CellsColumnLimitFilter(1)
            )
        if row is None:
            return None
        return _cell_value(row, family, column)

    def scan(self, family: str, column: str) -> Iterator[Tuple[str, Optional[str]]]:
        with _translate_errors("ReadRows", table=self.name):
            for row in self._table.read_rows(filter_=row_filters.CellsColumnLimitFilter(1)):
                yield row.row_key.decode("utf-8"), _cell_value(row, family, column)


def _cell_value(row, family: str, column: str) -> Optional[str]:
    try:
        value = row.cell_value(family, column.encode("utf-8"))
    except KeyError:
        return None
    return value.decode("utf-8") if value is not None else None


class BigtableSession(StoreSession):
    """One ``bigtable.Client`` per session, scoped to a project and instance."""

    def __init__(self, project_id: str, instance_id: str, client=None) -> None:
        super().__init__()
        self.project_id = project_id
        self.instance_id = instance_id
        with _translate_errors("Connect", project=project_id, instance=instance_id):
            self._client = client or bigtable.Client(project=project_id, admin=True)
        self._instance = self._client.instance(instance_id)

    def admin(self) -> BigtableAdmin:
        return BigtableAdmin(self._instance)

    def table(self, name: str) -> BigtableTable:
        return BigtableTable(self._instance, name)

    def _release(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()
