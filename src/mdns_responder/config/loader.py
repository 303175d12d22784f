"""Configuration loader for the mDNS responder.

This module handles loading configuration from files and environment variables,
with validation.
"""

import json
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .schema import LoggingConfig, MdnsConfig, ResponderConfig, create_default_config

ENV_PREFIX = "MDNS_RESPONDER_"


class ConfigLoader:
    """Configuration loader."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_file: Path to configuration file (YAML or JSON)
        """
        self.config_file = config_file
        self._config: Optional[MdnsConfig] = None

    def load_config(self) -> MdnsConfig:
        """Load configuration from file and environment variables.

        Returns:
            Loaded and validated responder configuration

        Raises:
            FileNotFoundError: If config file is specified but not found
            ValueError: If configuration is invalid
            yaml.YAMLError: If YAML parsing fails
            json.JSONDecodeError: If JSON parsing fails
        """
        # Start with default configuration
        config_dict = asdict(create_default_config())

        # Load from file if specified
        if self.config_file:
            file_config = self._load_from_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)

        # Apply environment variable overrides
        config_dict = self._apply_env_overrides(config_dict)

        # Create and validate configuration
        self._config = self._dict_to_config(config_dict)

        return self._config

    def get_config(self) -> Optional[MdnsConfig]:
        """Get current configuration."""
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file.

        Args:
            file_path: Path to configuration file

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If file is not found
            ValueError: If file format is not supported
            yaml.YAMLError: If YAML parsing fails
            json.JSONDecodeError: If JSON parsing fails
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        # Determine file format from extension
        if path.suffix.lower() in [".yaml", ".yml"]:
            result = yaml.safe_load(content)
            return result if isinstance(result, dict) else {}
        elif path.suffix.lower() == ".json":
            json_result = json.loads(content)
            return json_result if isinstance(json_result, dict) else {}
        else:
            # Try YAML first, then JSON
            try:
                result = yaml.safe_load(content)
                return result if isinstance(result, dict) else {}
            except yaml.YAMLError:
                try:
                    json_result = json.loads(content)
                    return json_result if isinstance(json_result, dict) else {}
                except json.JSONDecodeError:
                    raise ValueError(f"Unsupported file format: {file_path}")

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> MdnsConfig:
        """Convert dictionary to configuration object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Responder configuration object

        Raises:
            ValueError: If configuration is invalid
        """
        responder_section = config_dict.get("responder") or {}
        logging_section = config_dict.get("logging") or {}

        self._check_known_keys("responder", responder_section, ResponderConfig)
        self._check_known_keys("logging", logging_section, LoggingConfig)

        return MdnsConfig(
            responder=ResponderConfig(**responder_section),
            logging=LoggingConfig(**logging_section),
        )

    @staticmethod
    def _check_known_keys(section: str, values: Dict[str, Any], schema: type) -> None:
        """Reject keys the section dataclass does not define."""
        known = {f.name for f in fields(schema)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(
                f"Unknown keys in '{section}' section: {', '.join(unknown)}"
            )

    def _merge_configs(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Merge two configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary

        Returns:
            Merged configuration dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables use the format MDNS_RESPONDER_<SECTION>_<KEY>
        For example: MDNS_RESPONDER_RESPONDER_CONFIRMATION_TIMEOUT=3

        Args:
            config_dict: Base configuration dictionary

        Returns:
            Configuration dictionary with environment overrides applied
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            # Parse environment variable key
            key_parts = env_key[len(ENV_PREFIX) :].lower().split("_")
            if len(key_parts) < 2:
                continue

            section = key_parts[0]
            config_key = "_".join(key_parts[1:])

            if section in config_dict and isinstance(config_dict[section], dict):
                config_dict[section][config_key] = self._convert_env_value(env_value)

        return config_dict

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable value to appropriate Python type.

        Args:
            value: Environment variable value as string

        Returns:
            Converted value
        """
        # Try boolean
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        # Try integer
        try:
            return int(value)
        except ValueError:
            pass

        # Try float
        try:
            return float(value)
        except ValueError:
            pass

        # Return as string
        return value


def load_config_from_file(config_file: Optional[str] = None) -> MdnsConfig:
    """Convenience function to load configuration.

    Args:
        config_file: Path to configuration file

    Returns:
        Loaded configuration
    """
    return ConfigLoader(config_file).load_config()
