"""Configuration loader with YAML parsing and environment variable substitution."""

import argparse
import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict
from .models import ExporterConfig


# Command-line flag destination → (section, key) in the configuration
ARG_OVERRIDES = {
    "socket_path": ("socket", "path"),
    "socket_timeout": ("socket", "timeout_seconds"),
    "telemetry_address": ("telemetry", "address"),
    "telemetry_endpoint": ("telemetry", "endpoint"),
    "tls_cert_file": ("telemetry", "tls_cert_file"),
    "tls_key_file": ("telemetry", "tls_key_file"),
    "tls_client_ca_file": ("telemetry", "tls_client_ca_file"),
    "insecure": ("telemetry", "insecure"),
    "log_level": (None, "log_level"),
}


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> ExporterConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        return ExporterConfig(**ConfigLoader._read_file(config_path))

    @staticmethod
    def from_args(args: argparse.Namespace) -> ExporterConfig:
        """
        Build configuration from an optional YAML file and command-line flags.

        Flags left at None keep the file (or model default) value.

        Args:
            args: Parsed command-line arguments

        Returns:
            ExporterConfig: Validated configuration object
        """
        config_path = getattr(args, "config", None)
        raw_config = ConfigLoader._read_file(config_path) if config_path else {}

        for dest, (section, key) in ARG_OVERRIDES.items():
            value = getattr(args, dest, None)
            if value is None:
                continue
            if section is None:
                raw_config[key] = value
            else:
                raw_config.setdefault(section, {})
                raw_config[section][key] = value

        return ExporterConfig(**raw_config)

    @staticmethod
    def _read_file(config_path: str) -> Dict[str, Any]:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        # Substitute environment variables
        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            # Replace ${VAR_NAME} with os.getenv('VAR_NAME')
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
