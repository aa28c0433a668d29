"""Runs the diagnostics app on a background thread with uvicorn."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI

from tabletrace.errors import InitializationError

logger = logging.getLogger(__name__)


class DiagnosticsServer:
    """
    Serves a FastAPI app on ``host:port`` from a daemon thread.

    The listen backlog bounds queued connections. The thread dies with the
    process; :meth:`stop` is available for an orderly shutdown.
    """

    def __init__(
        self,
        app: FastAPI,
        *,
        host: str = "127.0.0.1",
        port: int = 8000,
        backlog: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.backlog = backlog
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host,
                port=port,
                backlog=backlog,
                log_level="warning",
                access_log=False,
                lifespan="off",
            )
        )
        self._thread: Optional[threading.Thread] = None

    @property
    def started(self) -> bool:
        return self._server.started

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on; differs from ``port`` when 0 was requested."""
        if not self._server.started or not self._server.servers:
            return None
        return self._server.servers[0].sockets[0].getsockname()[1]

    def start(self, wait_timeout: float = 5.0) -> None:
        """Start serving and wait until the socket is bound."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._server.run, name="tabletrace-diagnostics", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + wait_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise InitializationError(
                    f"Diagnostics server failed to start on {self.host}:{self.port}",
                    details={"host": self.host, "port": self.port},
                )
            if time.monotonic() >= deadline:
                raise InitializationError(
                    f"Diagnostics server did not start within {wait_timeout}s",
                    details={"host": self.host, "port": self.port},
                )
            time.sleep(0.01)
        logger.info("Diagnostics available at http://%s:%s/tracez", self.host, self.bound_port)

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout=timeout)
        self._thread = None
