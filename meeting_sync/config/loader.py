"""
Configuration loader module for meeting sync.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Type and range validation of known keys
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from meeting_sync.errors import MeetingSyncError
from meeting_sync.utils.paths import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

logger = logging.getLogger(__name__)


class ConfigError(MeetingSyncError):
    """Raised when configuration loading or validation fails."""

    pass


# Valid configuration keys and their expected types
VALID_KEYS: dict[str, Any] = {
    # Logging options
    "verbose": bool,
    "log_dir": str,
    "log_retention_count": int,
    # Storage options
    "database_path": str,
    # Fathom API options
    "fathom_base_url": str,
    "fathom_api_key": str,
    "fathom_api_key_env": str,
    "api_timeout": (int, float),
    "api_page_size": int,
    "api_max_retries": int,
    "api_initial_retry_delay": (int, float),
    "api_max_retry_delay": (int, float),
    # Sync options
    "lookback": (str, int),
    "match_policy": str,
    "log_limit": int,
    "created_by": str,
    # Webhook options
    "webhook_secret_env": str,
    # Daemon options
    "daemon_interval": (str, int),
    "daemon_pid_file": str,
}

VALID_MATCH_POLICIES = ["attendee_order", "most_specific"]


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # With custom path
        loader = ConfigLoader(config_dir=Path("/custom/path"))
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        config_file: str = DEFAULT_CONFIG_FILE,
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.meeting-sync/ or $MEETING_SYNC_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    def _get_config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self._get_config_path())

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Args:
            path: Path to the configuration file

        Returns:
            Dictionary containing configuration values, or empty dict if file
            doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path)

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are ignored so newer config files keep working with
        older releases.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigError: If configuration is invalid
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            if key not in VALID_KEYS:
                continue
            expected_type = VALID_KEYS[key]
            if isinstance(expected_type, tuple):
                types = expected_type
            else:
                types = (expected_type,)
            # YAML booleans are ints to isinstance(); only accept them for bool keys
            if isinstance(value, bool) and bool not in types:
                valid = False
            else:
                valid = isinstance(value, types)
            if not valid:
                type_name = " or ".join(t.__name__ for t in types)
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        if "match_policy" in config:
            if config["match_policy"] not in VALID_MATCH_POLICIES:
                raise ConfigError(
                    f"Invalid match_policy '{config['match_policy']}'. "
                    f"Must be one of: {', '.join(VALID_MATCH_POLICIES)}"
                )

        # Positive integer values
        positive_int_keys = [
            "api_page_size",
            "api_max_retries",
            "log_limit",
        ]
        for key in positive_int_keys:
            if key in config and config[key] < 1:
                raise ConfigError(f"{key} must be >= 1, got {config[key]}")

        if "log_retention_count" in config and config["log_retention_count"] < 0:
            raise ConfigError(
                f"log_retention_count must be >= 0, got {config['log_retention_count']}"
            )

        # Positive float values (timeouts and delays)
        positive_float_keys = [
            "api_timeout",
            "api_initial_retry_delay",
            "api_max_retry_delay",
        ]
        for key in positive_float_keys:
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

        # Durations use the daemon interval syntax
        from meeting_sync.daemon import parse_interval

        for key in ("lookback", "daemon_interval"):
            if key in config:
                try:
                    seconds = parse_interval(config[key])
                except ValueError as e:
                    raise ConfigError(f"Invalid {key}: {e}") from e
                if seconds <= 0:
                    raise ConfigError(f"{key} must be positive, got {config[key]}")

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config
