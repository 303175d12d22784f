"""Tests for the configuration schema module."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdns_responder.config.schema import (
    LoggingConfig,
    MdnsConfig,
    ResponderConfig,
    create_default_config,
)
from mdns_responder.config.validators import (
    validate_hostname_label,
    validate_multicast_group,
    validate_port,
    validate_positive_float,
    validate_positive_int,
    validate_ttl,
)


class TestValidationFunctions:
    """Test validation utility functions."""

    def test_validate_port(self):
        """Test port number validation."""
        assert validate_port(5353) is True
        assert validate_port(65535) is True
        assert validate_port(0) is False
        assert validate_port(65536) is False
        assert validate_port(True) is False

    def test_validate_positive_numbers(self):
        """Test positive int and float validation."""
        assert validate_positive_int(1) is True
        assert validate_positive_int(0) is False
        assert validate_positive_float(0.5) is True
        assert validate_positive_float(0) is False
        assert validate_positive_float(-1.0) is False

    def test_validate_multicast_group(self):
        """Test multicast group validation per IP version."""
        assert validate_multicast_group("224.0.0.251", 4) is True
        assert validate_multicast_group("ff02::fb", 6) is True
        assert validate_multicast_group("192.168.1.1", 4) is False
        assert validate_multicast_group("224.0.0.251", 6) is False
        assert validate_multicast_group("not-an-ip", 4) is False

    def test_validate_hostname_label(self):
        """Test hostname base validation."""
        assert validate_hostname_label(None) is True
        assert validate_hostname_label("host") is True
        assert validate_hostname_label("my-host-2") is True
        assert validate_hostname_label("") is False
        assert validate_hostname_label("-host") is False
        assert validate_hostname_label("host.local") is False
        assert validate_hostname_label("a" * 57) is False

    def test_validate_ttl(self):
        """Test multicast TTL validation."""
        assert validate_ttl(255) is True
        assert validate_ttl(1) is True
        assert validate_ttl(0) is False
        assert validate_ttl(256) is False


class TestResponderConfig:
    """Test ResponderConfig validation."""

    def test_defaults(self):
        """Test default responder configuration uses the mDNS constants."""
        config = ResponderConfig()

        assert config.port == 5353
        assert config.ipv4_group == "224.0.0.251"
        assert config.ipv6_group == "ff02::fb"
        assert config.membership_interval == 60.0
        assert 1.0 <= config.confirmation_timeout <= 3.0

    def test_invalid_port(self):
        """Test invalid port is rejected."""
        with pytest.raises(ValueError, match="Invalid mDNS port"):
            ResponderConfig(port=0)

    def test_invalid_groups(self):
        """Test non-multicast group addresses are rejected."""
        with pytest.raises(ValueError, match="IPv4 multicast group"):
            ResponderConfig(ipv4_group="10.0.0.1")

        with pytest.raises(ValueError, match="IPv6 multicast group"):
            ResponderConfig(ipv6_group="224.0.0.251")

    def test_both_families_disabled(self):
        """Test that at least one family must stay enabled."""
        with pytest.raises(ValueError, match="At least one"):
            ResponderConfig(enable_ipv4=False, enable_ipv6=False)

    def test_timeout_must_be_shorter_than_interval(self):
        """Test confirmation timeout must fit in a maintenance interval."""
        with pytest.raises(ValueError, match="shorter"):
            ResponderConfig(confirmation_timeout=90.0, membership_interval=60.0)

    def test_invalid_hostname(self):
        """Test invalid hostname base is rejected."""
        with pytest.raises(ValueError, match="Invalid hostname"):
            ResponderConfig(hostname="bad name")


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_defaults(self):
        """Test default logging configuration."""
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.file is None

    def test_invalid_level(self):
        """Test invalid log level is rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            LoggingConfig(level="VERBOSE")

    def test_invalid_format(self):
        """Test invalid log format is rejected."""
        with pytest.raises(ValueError, match="Invalid log format"):
            LoggingConfig(format="xml")


def test_create_default_config():
    """Test default configuration factory."""
    config = create_default_config()

    assert isinstance(config, MdnsConfig)
    assert isinstance(config.responder, ResponderConfig)
    assert isinstance(config.logging, LoggingConfig)
