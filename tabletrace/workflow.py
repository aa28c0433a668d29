"""The traced table lifecycle: create, write/read/scan N times, delete.

Each phase opens its own store session and runs inside a root span with a
phase-specific sampler. The phase span is passed explicitly to the store
wrapper, which parents its RPC spans on it. Annotations go to the current
span, which is the phase span while its scope is open; a failed annotation
never interrupts the phase.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Tuple

from tabletrace.context import annotate
from tabletrace.errors import StoreIOError
from tabletrace.processors.sampler import always_sample, probability_sampler
from tabletrace.store import RPC_SPAN_NAMES, InstrumentedSession, SessionFactory, TableSchema
from tabletrace.tracer.span import Span
from tabletrace.tracer.tracer import Tracer

logger = logging.getLogger(__name__)

TABLE_NAME = "Hello-Bigtable"
COLUMN_FAMILY_NAME = "cf1"
COLUMN_NAME = "greeting"

GREETINGS = ("Hello World!", "Hello Cloud Bigtable!", "Hello HBase!")

CREATE_TABLE_SPAN = "CreateTable"
WRITES_AND_READS_SPAN = "WritesAndReads"
DELETE_TABLE_SPAN = "DeleteTable"

RETAINED_SPAN_NAMES = RPC_SPAN_NAMES + (
    CREATE_TABLE_SPAN,
    WRITES_AND_READS_SPAN,
    DELETE_TABLE_SPAN,
)

TABLE_SCHEMA = TableSchema(name=TABLE_NAME, column_families=(COLUMN_FAMILY_NAME,))


def row_key(index: int) -> str:
    # Sequential keys keep the example simple. Rows are stored sorted by key,
    # so production schemas should avoid them to spread writes across nodes.
    return f"greeting{index}"


class WorkflowState(Enum):
    INIT = "init"
    TABLE_CREATED = "table_created"
    WRITE_READ_CYCLE = "write_read_cycle"
    TABLE_DELETED = "table_deleted"
    DONE = "done"
    FATAL_EXIT = "fatal_exit"


class HelloWorkflow:
    """
    Runs the lifecycle against sessions from ``session_factory``.

    Any :class:`StoreIOError` is fatal: the state becomes ``FATAL_EXIT``, the
    error propagates and no later phase runs. Nothing is retried or rolled back.
    """

    def __init__(
        self,
        tracer: Tracer,
        session_factory: SessionFactory,
        *,
        iterations: int = 5,
        write_sample_rate: float = 0.5,
        create_if_missing: bool = False,
    ) -> None:
        self.tracer = tracer
        self.session_factory = session_factory
        self.iterations = iterations
        self.write_sample_rate = write_sample_rate
        self.create_if_missing = create_if_missing
        self.state = WorkflowState.INIT
        self.last_scan: List[Tuple[str, Optional[str]]] = []

    def run(self) -> None:
        try:
            with self.tracer.start_as_current_span(
                CREATE_TABLE_SPAN, parent=None, sampler=always_sample()
            ) as span:
                self.create_table(span)
            self.state = WorkflowState.TABLE_CREATED

            for _ in range(self.iterations):
                with self.tracer.start_as_current_span(
                    WRITES_AND_READS_SPAN,
                    parent=None,
                    sampler=probability_sampler(self.write_sample_rate),
                    record_events=True,
                ) as span:
                    self.do_writes_and_reads(span)
                self.state = WorkflowState.WRITE_READ_CYCLE

            with self.tracer.start_as_current_span(
                DELETE_TABLE_SPAN, parent=None, sampler=always_sample()
            ) as span:
                self.delete_table(span)
            self.state = WorkflowState.TABLE_DELETED
        except StoreIOError:
            logger.error("Store failure in state %s", self.state.value)
            self.state = WorkflowState.FATAL_EXIT
            raise
        self.state = WorkflowState.DONE

    def _open(self, span: Span) -> InstrumentedSession:
        return InstrumentedSession(self.session_factory(), self.tracer, parent=span)

    def create_table(self, span: Span) -> None:
        with self._open(span) as session:
            admin = session.admin()
            if self.create_if_missing and admin.table_exists(TABLE_SCHEMA.name):
                annotate(f"Table {TABLE_SCHEMA.name} already exists")
                return
            annotate(f"Create table {TABLE_SCHEMA.name}")
            admin.create_table(TABLE_SCHEMA)

    def do_writes_and_reads(self, span: Span) -> List[Tuple[str, Optional[str]]]:
        with self._open(span) as session:
            table = session.table(TABLE_NAME)

            annotate("Write some greetings to the table")
            for index, greeting in enumerate(GREETINGS):
                table.put(row_key(index), COLUMN_FAMILY_NAME, COLUMN_NAME, greeting)

            key = row_key(0)
            greeting = table.get(key, COLUMN_FAMILY_NAME, COLUMN_NAME)
            annotate(f"Get a single greeting by row key: {key} = {greeting}")

            annotate("Scan for all greetings")
            rows = []
            for scanned_key, value in table.scan(COLUMN_FAMILY_NAME, COLUMN_NAME):
                annotate(f"{scanned_key} {value}")
                rows.append((scanned_key, value))

        self.last_scan = rows
        return rows

    def delete_table(self, span: Span) -> None:
        with self._open(span) as session:
            admin = session.admin()
            annotate("Delete the table")
            admin.disable_table(TABLE_NAME)
            admin.delete_table(TABLE_NAME)
