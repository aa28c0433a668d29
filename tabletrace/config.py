"""Configuration loading: TOML file, ``TABLETRACE_*`` environment, explicit overrides.

Priority (lowest to highest): config file < environment variables < overrides.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from tabletrace.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tabletrace.toml"
ENV_PREFIX = "TABLETRACE_"


class StoreSettings(BaseModel):
    backend: Literal["bigtable", "memory"] = "bigtable"
    project_id: Optional[str] = None
    instance_id: Optional[str] = None

    @model_validator(mode="after")
    def _require_locator(self) -> "StoreSettings":
        if self.backend == "bigtable" and not (self.project_id and self.instance_id):
            raise ValueError("project_id and instance_id are required for the bigtable backend")
        return self


class TracingSettings(BaseModel):
    service_name: str = "tabletrace"
    default_sample_rate: float = Field(1.0, ge=0.0, le=1.0)
    write_sample_rate: float = Field(0.5, ge=0.0, le=1.0)
    use_otlp: bool = True
    enable_console: bool = False
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    max_queue_size: int = Field(2048, gt=0)
    max_export_batch_size: int = Field(512, gt=0)
    schedule_delay_millis: int = Field(5000, gt=0)
    debug: bool = False

    @model_validator(mode="after")
    def _single_exporter(self) -> "TracingSettings":
        if self.use_otlp and self.enable_console:
            raise ValueError("use_otlp and enable_console cannot both be enabled")
        return self


class DiagnosticsSettings(BaseModel):
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=0, le=65535)
    backlog: int = Field(10, gt=0)
    max_spans_per_name: int = Field(16, gt=0)
    max_sampled_spans: int = Field(256, gt=0)


class WorkflowSettings(BaseModel):
    iterations: int = Field(5, ge=0)
    create_if_missing: bool = False


class LoggingSettings(BaseModel):
    level: str = "INFO"
    debug: bool = False

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return level


class TabletraceConfig(BaseModel):
    store: StoreSettings = Field(default_factory=StoreSettings)
    tracing: TracingSettings = Field(default_factory=TracingSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# env suffix -> (section, key, parser)
def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


ENV_VAR_MAPPING = {
    "STORE_BACKEND": ("store", "backend", str),
    "PROJECT_ID": ("store", "project_id", str),
    "INSTANCE_ID": ("store", "instance_id", str),
    "SERVICE_NAME": ("tracing", "service_name", str),
    "SAMPLE_RATE": ("tracing", "default_sample_rate", float),
    "WRITE_SAMPLE_RATE": ("tracing", "write_sample_rate", float),
    "USE_OTLP": ("tracing", "use_otlp", _parse_bool),
    "ENABLE_CONSOLE": ("tracing", "enable_console", _parse_bool),
    "ENDPOINT": ("tracing", "endpoint", str),
    "API_KEY": ("tracing", "api_key", str),
    "DIAGNOSTICS_ENABLED": ("diagnostics", "enabled", _parse_bool),
    "DIAGNOSTICS_HOST": ("diagnostics", "host", str),
    "DIAGNOSTICS_PORT": ("diagnostics", "port", int),
    "ITERATIONS": ("workflow", "iterations", int),
    "CREATE_IF_MISSING": ("workflow", "create_if_missing", _parse_bool),
    "LOG_LEVEL": ("logging", "level", str),
    "DEBUG": ("logging", "debug", _parse_bool),
}


def find_config_file() -> Optional[str]:
    """Look for ``tabletrace.toml`` in the working directory, then ``~/.tabletrace.toml``."""
    candidates = [Path.cwd() / CONFIG_FILE_NAME, Path.home() / f".{CONFIG_FILE_NAME}"]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


def load_toml_config(path: str) -> Dict[str, Any]:
    """
    Load a TOML config file.

    Returns an empty dict if the file does not exist.

    Raises:
        ConfigError: if the file is not valid TOML
    """
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    try:
        with config_path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}", details={"path": path}) from exc


def load_config_from_env() -> Dict[str, Dict[str, Any]]:
    """Collect ``TABLETRACE_*`` environment variables into a nested dict."""
    result: Dict[str, Dict[str, Any]] = {}
    for suffix, (section, key, parser) in ENV_VAR_MAPPING.items():
        raw = os.environ.get(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        try:
            value = parser(raw)
        except ValueError as exc:
            raise ConfigError(
                f"Invalid value for {ENV_PREFIX + suffix}: {raw!r}",
                details={"variable": ENV_PREFIX + suffix},
            ) from exc
        result.setdefault(section, {})[key] = value
    # TABLETRACE_DEBUG matches --debug: it also turns on span logging.
    if "debug" in result.get("logging", {}):
        result.setdefault("tracing", {}).setdefault("debug", result["logging"]["debug"])
    return result


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TabletraceConfig:
    """
    Build the effective configuration.

    Raises:
        ConfigError: if any source is unreadable, an explicit ``config_file``
            does not exist, or the merged result is invalid
    """
    if config_file is not None and not Path(config_file).is_file():
        raise ConfigError(f"Config file not found: {config_file}", details={"path": config_file})
    path = config_file or find_config_file()
    data: Dict[str, Any] = load_toml_config(path) if path else {}
    if path:
        logger.debug("Loaded configuration file %s", path)
    data = _deep_merge(data, load_config_from_env())
    data = _deep_merge(data, overrides or {})
    try:
        return TabletraceConfig.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc


def validate_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[bool, str, Optional[TabletraceConfig]]:
    """Like :func:`load_config` but returns ``(ok, message, config_or_None)``."""
    try:
        config = load_config(config_file=config_file, overrides=overrides)
    except ConfigError as exc:
        return False, str(exc), None
    return True, "ok", config
