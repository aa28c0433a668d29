"""Command-line entry point: ``tabletrace`` / ``python -m tabletrace``.

Exit status: 0 on success, 1 on a store I/O failure, 2 on invalid configuration.
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import Any, Dict, List, Optional

from tabletrace.config import TabletraceConfig, load_config
from tabletrace.diagnostics import DiagnosticsServer, create_app
from tabletrace.errors import ConfigError, InitializationError, StoreIOError
from tabletrace.store import session_factory
from tabletrace.tracing import TracingHandle, init_tracing, stop_tracing
from tabletrace.workflow import RETAINED_SPAN_NAMES, HelloWorkflow

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_IO_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabletrace",
        description="Create, exercise and delete a table while tracing every phase.",
    )
    parser.add_argument("--config", help="Path to a tabletrace.toml file")
    parser.add_argument("--backend", choices=["bigtable", "memory"], help="Table store backend")
    parser.add_argument("--project-id", help="Store project id")
    parser.add_argument("--instance-id", help="Store instance id")
    parser.add_argument("--iterations", type=int, help="Number of write/read cycles")
    parser.add_argument("--port", type=int, help="Diagnostics port")
    parser.add_argument(
        "--no-diagnostics", action="store_true", help="Do not serve the /tracez page"
    )
    parser.add_argument("--debug", action="store_true", help="Log every finished span")
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Dict[str, Any]] = {}

    def put(section: str, key: str, value: Any) -> None:
        if value is not None:
            overrides.setdefault(section, {})[key] = value

    put("store", "backend", args.backend)
    put("store", "project_id", args.project_id)
    put("store", "instance_id", args.instance_id)
    put("workflow", "iterations", args.iterations)
    put("diagnostics", "port", args.port)
    if args.no_diagnostics:
        put("diagnostics", "enabled", False)
    if args.debug:
        put("logging", "debug", True)
        put("tracing", "debug", True)
    return overrides


def configure_logging(config: TabletraceConfig) -> None:
    level = logging.DEBUG if config.logging.debug else config.logging.level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(config_file=args.config, overrides=_overrides(args))
        factory = session_factory(config.store)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(config)

    handle: Optional[TracingHandle] = None
    server: Optional[DiagnosticsServer] = None
    try:
        handle = init_tracing(
            config.tracing,
            retained_span_names=RETAINED_SPAN_NAMES,
            diagnostics=config.diagnostics,
        )
        if config.diagnostics.enabled:
            server = DiagnosticsServer(
                create_app(handle.span_store),
                host=config.diagnostics.host,
                port=config.diagnostics.port,
                backlog=config.diagnostics.backlog,
            )
            try:
                server.start()
            except InitializationError as exc:
                # The workflow does not depend on diagnostics.
                logger.warning("Continuing without diagnostics: %s", exc)
                server = None

        workflow = HelloWorkflow(
            handle.tracer,
            factory,
            iterations=config.workflow.iterations,
            write_sample_rate=config.tracing.write_sample_rate,
            create_if_missing=config.workflow.create_if_missing,
        )
        workflow.run()
    except StoreIOError as exc:
        print(f"Exception while running HelloWorld: {exc.message}", file=sys.stderr)
        traceback.print_exc()
        return EXIT_IO_FAILURE
    except InitializationError as exc:
        print(f"Initialization error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    finally:
        stop_tracing(handle)
        if server is not None:
            server.stop()

    logger.info("Workflow finished")
    return EXIT_OK
