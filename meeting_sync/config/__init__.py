"""
meeting_sync.config - Configuration management module

Contains configuration loading, validation, and the default config file.
"""

from meeting_sync.config.generator import generate_default_config, save_config_file
from meeting_sync.config.loader import (
    DEFAULT_CONFIG_FILE,
    VALID_MATCH_POLICIES,
    ConfigError,
    ConfigLoader,
)

__all__ = [
    "ConfigLoader",
    "ConfigError",
    "DEFAULT_CONFIG_FILE",
    "VALID_MATCH_POLICIES",
    "generate_default_config",
    "save_config_file",
]
