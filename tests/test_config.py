# tests/test_config.py
"""
Tests for agentmem configuration models and loading.

Covers model defaults and validation, TOML loading, AGENTMEM_* environment
overrides and runtime override precedence.
"""

import os

import pytest

from agentmem.config import (DEFAULT_SENSITIVE_PATTERNS, ConfidentialityConfig,
                             DurableStoreConfig, MemoryConfig, load_config,
                             load_toml_config)
from agentmem.config.loader import _deep_merge, apply_env_overrides
from agentmem.exceptions import ConfigError

KEY = "a" * 32


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Ensure no AGENTMEM_* variables leak in from the environment."""
    for name in list(os.environ):
        if name.startswith("AGENTMEM_"):
            monkeypatch.delenv(name)


# =============================================================================
# MODELS
# =============================================================================


class TestModels:
    def test_defaults(self):
        config = MemoryConfig()
        assert config.bounded.max_messages == 100
        assert config.bounded.max_conversations == 10
        assert config.durable.enabled is False
        assert config.tiered.sync_interval_ms == 60000
        assert config.confidentiality.redaction_enabled is True
        assert config.confidentiality.sensitive_patterns == DEFAULT_SENSITIVE_PATTERNS

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            MemoryConfig.from_dict({"bounded": {"max_messages": 0}})

    def test_rejects_short_key(self):
        with pytest.raises(ValueError):
            MemoryConfig.from_dict({"confidentiality": {"encryption_key": "short"}})

    def test_key_is_secret(self):
        config = ConfidentialityConfig(encryption_key=KEY)
        assert KEY not in repr(config)
        assert config.key_value() == KEY
        assert ConfidentialityConfig().key_value() is None

    def test_durable_backend_validation(self):
        assert DurableStoreConfig(backend="SQLite").backend == "sqlite"
        with pytest.raises(ValueError):
            DurableStoreConfig(backend="dynamodb")

    def test_table_prefix_validation(self):
        with pytest.raises(ValueError):
            DurableStoreConfig(table_prefix="x; DROP TABLE y")


# =============================================================================
# LOADING
# =============================================================================


class TestLoading:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.toml")
        assert config == MemoryConfig()

    def test_toml_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[bounded]\nmax_messages = 20\n\n"
            "[durable]\nenabled = true\npath = \"/tmp/x.db\"\n"
        )
        config = load_config(path)
        assert config.bounded.max_messages == 20
        assert config.durable.enabled is True
        assert config.durable.path == "/tmp/x.db"

    def test_toml_namespaced_table(self, tmp_path):
        path = tmp_path / "shared.toml"
        path.write_text("[agentmem.tiered]\nsync_interval_ms = 500\n")
        assert load_toml_config(path) == {"tiered": {"sync_interval_ms": 500}}

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[bounded\nmax_messages = ")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_values_raise_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.toml", overrides={"bounded": {"max_messages": -1}})

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTMEM_MAX_MESSAGES", "42")
        monkeypatch.setenv("AGENTMEM_SYNC_INTERVAL_MS", "1500")
        monkeypatch.setenv("AGENTMEM_ENCRYPTION_KEY", KEY)
        monkeypatch.setenv("AGENTMEM_REDACTION_ENABLED", "false")

        config = load_config(tmp_path / "absent.toml")
        assert config.bounded.max_messages == 42
        assert config.tiered.sync_interval_ms == 1500
        assert config.confidentiality.key_value() == KEY
        assert config.confidentiality.redaction_enabled is False

    def test_env_durable_path_enables_durable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTMEM_DURABLE_PATH", str(tmp_path / "d.db"))
        config = load_config(tmp_path / "absent.toml")
        assert config.durable.enabled is True
        assert config.durable.path == str(tmp_path / "d.db")

    def test_env_explicit_disable_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTMEM_DURABLE_PATH", str(tmp_path / "d.db"))
        monkeypatch.setenv("AGENTMEM_DURABLE_ENABLED", "0")
        assert load_config(tmp_path / "absent.toml").durable.enabled is False

    def test_bad_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTMEM_MAX_MESSAGES", "many")
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.toml")

    def test_precedence_file_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text("[bounded]\nmax_messages = 20\nmax_conversations = 4\n")
        monkeypatch.setenv("AGENTMEM_MAX_MESSAGES", "30")

        config = load_config(path, overrides={"bounded": {"max_conversations": 9}})
        assert config.bounded.max_messages == 30
        assert config.bounded.max_conversations == 9


class TestHelpers:
    def test_deep_merge_does_not_mutate(self):
        base = {"a": {"b": 1, "c": 2}}
        merged = _deep_merge(base, {"a": {"c": 3}})
        assert merged == {"a": {"b": 1, "c": 3}}
        assert base == {"a": {"b": 1, "c": 2}}

    def test_apply_env_overrides_without_env(self):
        assert apply_env_overrides({"x": 1}) == {"x": 1}
