"""Unit tests for configuration loading and environment overrides."""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from portlab.core.config import (
    DEFAULT_HOSTS,
    DEFAULT_USER_AGENT,
    dump_config_to_yaml,
    load_config,
    load_config_from_yaml_text,
    resolve_config,
)
from portlab.core.utils.env import env_overrides, load_dotenv
from portlab.core.utils.errors import ConfigLoadError


class TestConfig(unittest.TestCase):
    """Validate YAML parsing, validation and defaults."""

    def test_defaults(self) -> None:
        config = resolve_config(environ={})
        self.assertEqual(config.provider.hosts, list(DEFAULT_HOSTS))
        self.assertEqual(config.provider.backoff_seconds, [0.2, 0.5, 1.0])
        self.assertEqual(config.cleaning.iqr_min_points, 20)
        self.assertEqual(config.cache.ttl_seconds, 60.0)
        self.assertEqual(config.portfolio.initial_value, 100.0)

    def test_yaml_sections_are_loaded(self) -> None:
        config = load_config_from_yaml_text(
            textwrap.dedent("""
                provider:
                  hosts: [query2.finance.yahoo.com]
                  timeout_seconds: 5
                cleaning:
                  iqr_k: 3.0
                log_level: DEBUG
            """)
        )
        self.assertEqual(config.provider.hosts, ["query2.finance.yahoo.com"])
        self.assertEqual(config.provider.timeout_seconds, 5.0)
        self.assertEqual(config.cleaning.iqr_k, 3.0)
        self.assertEqual(config.log_level, "DEBUG")

    def test_invalid_values_raise_config_error(self) -> None:
        cases = [
            "provider:\n  timeout_seconds: 0\n",
            "provider:\n  hosts: []\n",
            "cleaning:\n  iqr_min_points: 1\n",
            "cache:\n  ttl_seconds: -1\n",
            "portfolio:\n  initial_value: 0\n",
            "- not\n- a mapping\n",
            "provider: [unclosed\n",
        ]
        for text in cases:
            with self.subTest(text=text):
                with self.assertRaises(ConfigLoadError):
                    load_config_from_yaml_text(text)

    def test_missing_file_raises_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(ConfigLoadError):
                load_config(Path(temp_dir) / "missing.yaml")

    def test_environment_overrides_file_values(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.yaml"
            config_path.write_text("cache:\n  ttl_seconds: 10\n", encoding="utf-8")
            environ = {
                "PORTLAB_CACHE__TTL_SECONDS": "30",
                "PORTLAB_PROVIDER__HOSTS": "a.example.com, b.example.com",
                "PORTLAB_PROVIDER__BACKOFF_SECONDS": "0,0.1",
                "PORTLAB_LOG__LEVEL": "WARNING",
                "PORTLAB_API_PORT": "9000",
                "UNRELATED": "1",
            }
            config = resolve_config(config_path, environ=environ)
        self.assertEqual(config.cache.ttl_seconds, 30.0)
        self.assertEqual(config.provider.hosts, ["a.example.com", "b.example.com"])
        self.assertEqual(config.provider.backoff_seconds, [0.0, 0.1])
        self.assertEqual(config.log_level, "WARNING")

    def test_string_override_keeps_commas(self) -> None:
        agent = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko)"
        config = resolve_config(environ={"PORTLAB_PROVIDER__USER_AGENT": agent})
        self.assertEqual(config.provider.user_agent, agent)
        self.assertIn(",", DEFAULT_USER_AGENT)
        default_again = resolve_config(environ={"PORTLAB_PROVIDER__USER_AGENT": DEFAULT_USER_AGENT})
        self.assertEqual(default_again.provider.user_agent, DEFAULT_USER_AGENT)

    def test_env_overrides_keep_raw_strings(self) -> None:
        overrides = env_overrides({"PORTLAB_PROVIDER__HOSTS": "a.example.com,b.example.com"})
        self.assertEqual(overrides, {"provider": {"hosts": "a.example.com,b.example.com"}})

    def test_log_level_is_normalized_and_validated(self) -> None:
        self.assertEqual(resolve_config(environ={"PORTLAB_LOG__LEVEL": " debug "}).log_level, "DEBUG")
        with self.assertRaises(ConfigLoadError):
            resolve_config(environ={"PORTLAB_LOG__LEVEL": "chatty"})

    def test_dump_round_trips_through_yaml(self) -> None:
        config = resolve_config(environ={"PORTLAB_PORTFOLIO__INITIAL_VALUE": "1000"})
        reloaded = load_config_from_yaml_text(dump_config_to_yaml(config))
        self.assertEqual(reloaded, config)


class TestEnvHelpers(unittest.TestCase):
    """Validate dotenv loading and override collection."""

    def test_env_overrides_ignores_flat_names(self) -> None:
        overrides = env_overrides({"PORTLAB_API_HOST": "0.0.0.0", "PORTLAB_CACHE__TTL_SECONDS": "5"})
        self.assertEqual(overrides, {"cache": {"ttl_seconds": "5"}})

    def test_load_dotenv_does_not_override_existing(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            env_path = Path(temp_dir) / ".env"
            env_path.write_text(
                "# comment\nexport PORTLAB_TEST_NEW='fresh'\nPORTLAB_TEST_KEEP=file\n",
                encoding="utf-8",
            )
            with patch.dict(os.environ, {"PORTLAB_TEST_KEEP": "shell"}, clear=False):
                loaded = load_dotenv(env_path)
                self.assertEqual(os.environ["PORTLAB_TEST_NEW"], "fresh")
                self.assertEqual(os.environ["PORTLAB_TEST_KEEP"], "shell")
        self.assertEqual(loaded, {"PORTLAB_TEST_NEW": "fresh"})

    def test_malformed_dotenv_line_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            env_path = Path(temp_dir) / ".env"
            env_path.write_text("PORTLAB_TEST_OK=1\nnot a pair\n", encoding="utf-8")
            with patch.dict(os.environ, {}, clear=False):
                with self.assertRaises(ConfigLoadError):
                    load_dotenv(env_path)

    def test_missing_dotenv_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            self.assertEqual(load_dotenv(Path(temp_dir) / ".env"), {})


if __name__ == "__main__":
    unittest.main()
