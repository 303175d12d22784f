"""
mDNS Responder Configuration Schema

Configuration schema for the hostname prober, the multicast socket pair and
operational logging settings.
"""

from dataclasses import dataclass, field
from typing import Optional

from .validators import (
    validate_boolean,
    validate_file_path,
    validate_hostname_label,
    validate_log_level,
    validate_multicast_group,
    validate_port,
    validate_positive_float,
    validate_positive_int,
    validate_ttl,
)

MDNS_PORT = 5353
MDNS_IPV4_GROUP = "224.0.0.251"
MDNS_IPV6_GROUP = "ff02::fb"
MEMBERSHIP_INTERVAL = 60.0
CONFIRMATION_TIMEOUT = 2.0


@dataclass
class ResponderConfig:
    """Responder configuration section."""

    hostname: Optional[str] = None
    port: int = MDNS_PORT
    ipv4_group: str = MDNS_IPV4_GROUP
    ipv6_group: str = MDNS_IPV6_GROUP
    enable_ipv4: bool = True
    enable_ipv6: bool = True
    membership_interval: float = MEMBERSHIP_INTERVAL
    confirmation_timeout: float = CONFIRMATION_TIMEOUT
    multicast_ttl: int = 255

    def __post_init__(self) -> None:
        """Validate responder configuration."""
        if not validate_hostname_label(self.hostname):
            raise ValueError(f"Invalid hostname: {self.hostname}")

        if not validate_port(self.port):
            raise ValueError(f"Invalid mDNS port: {self.port}")

        if not validate_multicast_group(self.ipv4_group, 4):
            raise ValueError(f"Invalid IPv4 multicast group: {self.ipv4_group}")

        if not validate_multicast_group(self.ipv6_group, 6):
            raise ValueError(f"Invalid IPv6 multicast group: {self.ipv6_group}")

        if not validate_boolean(self.enable_ipv4):
            raise ValueError(f"Enable IPv4 must be boolean: {self.enable_ipv4}")

        if not validate_boolean(self.enable_ipv6):
            raise ValueError(f"Enable IPv6 must be boolean: {self.enable_ipv6}")

        if not (self.enable_ipv4 or self.enable_ipv6):
            raise ValueError("At least one of IPv4 and IPv6 must be enabled")

        if not validate_positive_float(self.membership_interval):
            raise ValueError(
                f"Membership interval must be positive: {self.membership_interval}"
            )

        if not validate_positive_float(self.confirmation_timeout):
            raise ValueError(
                f"Confirmation timeout must be positive: {self.confirmation_timeout}"
            )

        if self.confirmation_timeout >= self.membership_interval:
            raise ValueError(
                "Confirmation timeout must be shorter than the membership interval"
            )

        if not validate_ttl(self.multicast_ttl):
            raise ValueError(f"Invalid multicast TTL: {self.multicast_ttl}")


@dataclass
class LoggingConfig:
    """Logging configuration section."""

    level: str = "INFO"
    format: str = "structured"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        if not validate_log_level(self.level):
            raise ValueError(f"Invalid log level: {self.level}")

        if self.format not in ["simple", "detailed", "structured"]:
            raise ValueError(f"Invalid log format: {self.format}")

        if self.file is not None and not validate_file_path(self.file):
            raise ValueError(f"Invalid log file path: {self.file}")

        if not validate_positive_int(self.max_size_mb):
            raise ValueError(f"Max size MB must be positive: {self.max_size_mb}")

        if not validate_positive_int(self.backup_count):
            raise ValueError(f"Backup count must be positive: {self.backup_count}")


@dataclass
class MdnsConfig:
    """Main mDNS responder configuration."""

    responder: ResponderConfig = field(default_factory=ResponderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def create_default_config() -> MdnsConfig:
    """Create a default configuration instance."""
    return MdnsConfig()
