"""tabletrace error hierarchy and exceptions."""

from __future__ import annotations


class TabletraceError(Exception):
    """Base exception for all tabletrace errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TabletraceError):
    """Raised when configuration is invalid, missing or conflicting."""
    pass


class ExportError(TabletraceError):
    """Raised when span export fails."""
    pass


class InitializationError(TabletraceError):
    """Raised when tracing or diagnostics start-up fails."""
    pass


class StoreIOError(TabletraceError):
    """Raised when any table store operation fails (connection, admin or data)."""
    pass
