"""
meeting_sync.utils - Utility module

Common utilities including logging configuration.
"""

from meeting_sync.utils.normalization import (
    extract_domain,
    normalize_identity,
    normalize_pattern,
)
from meeting_sync.utils.paths import DEFAULT_CONFIG_DIR, resolve_config_dir

__all__ = [
    "extract_domain",
    "normalize_identity",
    "normalize_pattern",
    "resolve_config_dir",
    "DEFAULT_CONFIG_DIR",
]
