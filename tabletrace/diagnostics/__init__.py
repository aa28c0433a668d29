"""Live diagnostics over recent trace activity."""

from tabletrace.diagnostics.server import DiagnosticsServer
from tabletrace.diagnostics.tracez import TRACEZ_PATH, create_app, render_tracez

__all__ = ["DiagnosticsServer", "TRACEZ_PATH", "create_app", "render_tracez"]
