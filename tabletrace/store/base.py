"""Store session interfaces shared by every backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableSchema:
    name: str
    column_families: Tuple[str, ...]


class AdminClient(ABC):
    """Schema operations."""

    @abstractmethod
    def create_table(self, schema: TableSchema) -> None: ...

    @abstractmethod
    def table_exists(self, name: str) -> bool: ...

    @abstractmethod
    def disable_table(self, name: str) -> None: ...

    @abstractmethod
    def delete_table(self, name: str) -> None: ...


class TableClient(ABC):
    """Row operations on one table."""

    name: str

    @abstractmethod
    def put(self, row_key: str, family: str, column: str, value: str) -> None: ...

    @abstractmethod
    def get(self, row_key: str, family: str, column: str) -> Optional[str]:
        """Return the cell value, or None if the row or cell is absent."""

    @abstractmethod
    def scan(self, family: str, column: str) -> Iterator[Tuple[str, Optional[str]]]:
        """Lazily yield ``(row_key, value)`` in the store's key order."""


class StoreSession(ABC):
    """
    One live connection to the table store.

    Use it as a context manager; :meth:`close` releases the connection exactly
    once no matter how often it is called.
    """

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    def admin(self) -> AdminClient: ...

    @abstractmethod
    def table(self, name: str) -> TableClient: ...

    @abstractmethod
    def _release(self) -> None:
        """Backend-specific connection teardown."""

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._release()
        except Exception:
            logger.warning("Error while closing %s", type(self).__name__, exc_info=True)

    def __enter__(self) -> "StoreSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
