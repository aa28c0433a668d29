"""Tests for config file loading and priority."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tabletrace import config
from tabletrace.errors import ConfigError

MEMORY_STORE = {"store": {"backend": "memory"}}


def write_temp_toml(content):
    f = tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False)
    with f:
        f.write(content)
    return f.name


class TestConfigFileLoading(unittest.TestCase):
    """Test TOML config file loading."""

    def test_load_toml_config_basic(self):
        """Test loading a basic TOML config file."""
        path = write_temp_toml("""
[store]
backend = "bigtable"
project_id = "my-project"
instance_id = "my-instance"

[tracing]
write_sample_rate = 0.25
use_otlp = false
""")
        try:
            loaded = config.load_toml_config(path)
            self.assertEqual(loaded["store"]["project_id"], "my-project")
            self.assertEqual(loaded["tracing"]["write_sample_rate"], 0.25)
            self.assertFalse(loaded["tracing"]["use_otlp"])
        finally:
            os.unlink(path)

    def test_load_toml_config_missing_file(self):
        """Test that loading missing file returns empty dict."""
        self.assertEqual(config.load_toml_config("/nonexistent/file.toml"), {})

    def test_load_toml_config_invalid_toml(self):
        """Test that invalid TOML raises ConfigError."""
        path = write_temp_toml("invalid [toml content")
        try:
            with self.assertRaises(ConfigError):
                config.load_toml_config(path)
        finally:
            os.unlink(path)

    def test_find_config_file_current_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "tabletrace.toml").write_text("[store]\nbackend = \"memory\"\n")
            original_cwd = os.getcwd()
            try:
                os.chdir(tmpdir)
                found = config.find_config_file()
                self.assertIsNotNone(found)
                self.assertEqual(Path(found).name, "tabletrace.toml")
            finally:
                os.chdir(original_cwd)

    def test_find_config_file_home_directory(self):
        with tempfile.TemporaryDirectory() as cwd, tempfile.TemporaryDirectory() as home:
            (Path(home) / ".tabletrace.toml").write_text("")
            original_cwd = os.getcwd()
            try:
                os.chdir(cwd)
                with mock.patch.object(Path, "home", return_value=Path(home)):
                    found = config.find_config_file()
                self.assertEqual(found, str(Path(home) / ".tabletrace.toml"))
            finally:
                os.chdir(original_cwd)

    def test_find_config_file_none(self):
        with tempfile.TemporaryDirectory() as cwd, tempfile.TemporaryDirectory() as home:
            original_cwd = os.getcwd()
            try:
                os.chdir(cwd)
                with mock.patch.object(Path, "home", return_value=Path(home)):
                    self.assertIsNone(config.find_config_file())
            finally:
                os.chdir(original_cwd)


class TestConfigPriority(unittest.TestCase):
    """Test configuration loading priority."""

    def setUp(self):
        self.empty_config = write_temp_toml("")

    def tearDown(self):
        os.unlink(self.empty_config)

    def test_explicit_missing_file_is_an_error(self):
        with self.assertRaises(ConfigError) as ctx:
            config.load_config(config_file="/nonexistent/file.toml", overrides=MEMORY_STORE)
        self.assertIn("Config file not found", str(ctx.exception))

    def test_file_values_loaded(self):
        path = write_temp_toml("""
[store]
backend = "memory"

[workflow]
iterations = 3
""")
        try:
            cfg = config.load_config(config_file=path)
            self.assertEqual(cfg.store.backend, "memory")
            self.assertEqual(cfg.workflow.iterations, 3)
            self.assertEqual(cfg.diagnostics.port, 8000)
            self.assertEqual(cfg.diagnostics.backlog, 10)
        finally:
            os.unlink(path)

    def test_env_overrides_config_file(self):
        path = write_temp_toml("""
[store]
backend = "memory"

[tracing]
service_name = "from-file"
""")
        try:
            with mock.patch.dict(os.environ, {"TABLETRACE_SERVICE_NAME": "from-env"}):
                cfg = config.load_config(config_file=path)
            self.assertEqual(cfg.tracing.service_name, "from-env")
        finally:
            os.unlink(path)

    def test_explicit_overrides_win(self):
        with mock.patch.dict(os.environ, {"TABLETRACE_ITERATIONS": "7"}):
            cfg = config.load_config(
                config_file=self.empty_config,
                overrides={**MEMORY_STORE, "workflow": {"iterations": 2}},
            )
        self.assertEqual(cfg.workflow.iterations, 2)

    def test_overrides_merge_into_sections(self):
        path = write_temp_toml("""
[tracing]
service_name = "kept"
use_otlp = false
""")
        try:
            cfg = config.load_config(
                config_file=path,
                overrides={**MEMORY_STORE, "tracing": {"write_sample_rate": 0.1}},
            )
            self.assertEqual(cfg.tracing.service_name, "kept")
            self.assertEqual(cfg.tracing.write_sample_rate, 0.1)
        finally:
            os.unlink(path)


class TestConfigValidation(unittest.TestCase):

    def setUp(self):
        self.empty_config = write_temp_toml("")

    def tearDown(self):
        os.unlink(self.empty_config)

    def test_bigtable_requires_locator(self):
        with self.assertRaises(ConfigError) as ctx:
            config.load_config(
                config_file=self.empty_config,
                overrides={"store": {"backend": "bigtable", "project_id": "p"}},
            )
        self.assertIn("instance_id", str(ctx.exception))

    def test_memory_backend_needs_no_locator(self):
        cfg = config.load_config(config_file=self.empty_config, overrides=MEMORY_STORE)
        self.assertIsNone(cfg.store.project_id)

    def test_validate_config_reports_bad_rate(self):
        ok, message, cfg = config.validate_config(
            config_file=self.empty_config,
            overrides={**MEMORY_STORE, "tracing": {"write_sample_rate": 1.5}},
        )
        self.assertFalse(ok)
        self.assertIsNone(cfg)
        self.assertIn("write_sample_rate", message)

    def test_validate_config_ok(self):
        ok, message, cfg = config.validate_config(
            config_file=self.empty_config, overrides=MEMORY_STORE
        )
        self.assertTrue(ok)
        self.assertEqual(message, "ok")
        self.assertEqual(cfg.store.backend, "memory")

    def test_conflicting_exporters_rejected(self):
        ok, message, _ = config.validate_config(
            config_file=self.empty_config,
            overrides={**MEMORY_STORE, "tracing": {"use_otlp": True, "enable_console": True}},
        )
        self.assertFalse(ok)
        self.assertIn("enable_console", message)

    def test_log_level_normalized(self):
        cfg = config.load_config(
            config_file=self.empty_config,
            overrides={**MEMORY_STORE, "logging": {"level": "debug"}},
        )
        self.assertEqual(cfg.logging.level, "DEBUG")


class TestConfigFromEnv(unittest.TestCase):
    """Test loading configuration from environment variables."""

    def test_load_config_from_env_type_conversion(self):
        env = {
            "TABLETRACE_STORE_BACKEND": "memory",
            "TABLETRACE_SAMPLE_RATE": "0.7",
            "TABLETRACE_USE_OTLP": "false",
            "TABLETRACE_ENABLE_CONSOLE": "yes",
            "TABLETRACE_DIAGNOSTICS_PORT": "9000",
            "TABLETRACE_CREATE_IF_MISSING": "1",
        }
        with mock.patch.dict(os.environ, env):
            env_config = config.load_config_from_env()

        self.assertEqual(env_config["store"]["backend"], "memory")
        self.assertEqual(env_config["tracing"]["default_sample_rate"], 0.7)
        self.assertFalse(env_config["tracing"]["use_otlp"])
        self.assertTrue(env_config["tracing"]["enable_console"])
        self.assertEqual(env_config["diagnostics"]["port"], 9000)
        self.assertTrue(env_config["workflow"]["create_if_missing"])

    def test_debug_enables_span_logging(self):
        path = write_temp_toml("")
        try:
            with mock.patch.dict(os.environ, {"TABLETRACE_DEBUG": "true", "TABLETRACE_STORE_BACKEND": "memory"}):
                env_config = config.load_config_from_env()
                cfg = config.load_config(config_file=path)
        finally:
            os.unlink(path)

        self.assertTrue(env_config["logging"]["debug"])
        self.assertTrue(env_config["tracing"]["debug"])
        self.assertTrue(cfg.logging.debug)
        self.assertTrue(cfg.tracing.debug)

    def test_load_config_from_env_missing_vars(self):
        """Unset and empty variables do not appear in the result."""
        with mock.patch.dict(os.environ, {"TABLETRACE_PROJECT_ID": ""}):
            self.assertEqual(config.load_config_from_env(), {})

    def test_invalid_number_raises(self):
        with mock.patch.dict(os.environ, {"TABLETRACE_ITERATIONS": "five"}):
            with self.assertRaises(ConfigError) as ctx:
                config.load_config_from_env()
        self.assertIn("TABLETRACE_ITERATIONS", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
