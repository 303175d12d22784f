"""
Configuration Validators

This module provides validation functions for mDNS responder configuration parameters.
"""

import ipaddress
import re
from pathlib import Path
from typing import Optional


def validate_boolean(value) -> bool:
    """Validate boolean value."""
    return isinstance(value, bool)


def validate_file_path(path: str) -> bool:
    """Validate file path format."""
    if not path:
        return False

    try:
        # Check if path is valid
        Path(path)
        return True
    except (TypeError, ValueError):
        return False


def validate_log_level(level: str) -> bool:
    """Validate log level."""
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    return level.upper() in valid_levels


def validate_positive_float(value: float) -> bool:
    """Validate positive float."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_positive_int(value: int) -> bool:
    """Validate positive integer."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_port(port: int) -> bool:
    """Validate port number."""
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def validate_ttl(ttl: int) -> bool:
    """Validate multicast TTL / hop limit."""
    return isinstance(ttl, int) and not isinstance(ttl, bool) and 1 <= ttl <= 255


def validate_multicast_group(address: str, version: int) -> bool:
    """Validate that address is a multicast address of the given IP version."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.version == version and ip.is_multicast


def validate_hostname_label(label: Optional[str]) -> bool:
    """Validate a single DNS label used as the hostname base.

    The label must fit in 63 bytes even after a numeric conflict suffix
    is appended, so leave some headroom.
    """
    if label is None:
        return True
    if not isinstance(label, str) or not label or len(label) > 56:
        return False
    return bool(re.match(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$", label))
