"""Unit tests for the FilterConfig model."""

import pytest

from sharkscope.models.errors import ConfigError, CONFIG_INVALID
from sharkscope.models.filter_config import (
    ANALYSIS_FIELDS,
    CAPTURE_FIELDS,
    FilterConfig,
    build_filter_config,
)


class TestFilterConfig:
    """Tests for FilterConfig serialization."""

    def test_to_dict_omits_unset_fields(self):
        """Test absent fields are not serialized."""
        config = FilterConfig(name="dns", display_filter="dns", timeout=30)

        assert config.to_dict() == {"name": "dns", "display_filter": "dns", "timeout": 30}

    def test_from_dict_ignores_unknown_keys(self):
        """Test stored entries with extra keys still load."""
        config = FilterConfig.from_dict({"name": "x", "capture_filter": "port 53", "legacy": True})

        assert config == FilterConfig(name="x", capture_filter="port 53")

    def test_present(self):
        """Test present() returns only set fields of the requested group."""
        config = FilterConfig(
            name="x", capture_filter="port 443", display_filter="tls", max_packets=10,
        )

        assert config.present(CAPTURE_FIELDS) == {"capture_filter": "port 443", "max_packets": 10}
        assert config.present(ANALYSIS_FIELDS) == {"display_filter": "tls"}

    def test_present_keeps_empty_string(self):
        """Test an empty string counts as set."""
        config = FilterConfig(name="x", display_filter="")

        assert config.present(ANALYSIS_FIELDS) == {"display_filter": ""}


class TestBuildFilterConfig:
    """Tests for build_filter_config()."""

    def test_valid(self):
        """Test a full valid configuration."""
        config = build_filter_config("web", {
            "description": "HTTPS traffic",
            "capture_filter": "port 443",
            "display_filter": "tls.handshake",
            "output_format": "fields",
            "custom_fields": "ip.src,tls.handshake.extensions_server_name",
            "timeout": 30,
            "max_packets": 500,
            "interface": "eth0",
        })

        assert config.name == "web"
        assert config.output_format == "fields"
        assert config.max_packets == 500

    def test_empty_config_is_valid(self):
        """Test a configuration with no fields."""
        assert build_filter_config("empty", {}) == FilterConfig(name="empty")

    @pytest.mark.parametrize("config", [
        "not a dict",
        {"unknown": 1},
        {"name": "override"},
        {"capture_filter": 443},
        {"timeout": 0},
        {"timeout": True},
        {"max_packets": "10"},
        {"output_format": "pdml"},
    ])
    def test_invalid(self, config):
        """Test invalid configurations are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            build_filter_config("bad", config)

        assert exc_info.value.code == CONFIG_INVALID
