"""Tests for environment-driven settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cfgsnap.config import CfgSnapConfig, get_config, reset_config


class TestDefaults:
    def test_defaults(self):
        config = CfgSnapConfig()
        assert config.database_url is None
        assert config.publisher_port == 7071
        assert config.receiver_port == 7070
        assert config.log_format == "text"
        assert config.get_schema_path() == Path("protocol/config_snapshot.fbs")


class TestEnvironment:
    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("CFGSNAP_ENGINE_CONTROL_URL", "http://engine:7070/config/")
        monkeypatch.setenv("CFGSNAP_RECEIVER_PORT", "9070")

        config = CfgSnapConfig()

        assert config.engine_control_url == "http://engine:7070/config"
        assert config.receiver_port == 9070

    def test_path_expansion(self, monkeypatch):
        monkeypatch.setenv("PROTO_DIR", "/srv/proto")
        monkeypatch.setenv("CFGSNAP_SCHEMA_PATH", "$PROTO_DIR/config_snapshot.fbs")
        assert CfgSnapConfig().schema_path == "/srv/proto/config_snapshot.fbs"

    def test_invalid_port(self, monkeypatch):
        monkeypatch.setenv("CFGSNAP_PUBLISHER_PORT", "0")
        with pytest.raises(ValidationError):
            CfgSnapConfig()

    def test_invalid_log_format(self, monkeypatch):
        monkeypatch.setenv("CFGSNAP_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            CfgSnapConfig()


class TestSingleton:
    def test_cached_until_reset(self):
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first

    def test_overrides_replace_instance(self):
        config = get_config(publisher_port=9071)
        assert config.publisher_port == 9071
        assert get_config() is config
