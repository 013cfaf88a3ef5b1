"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError, UnresolvedAccountError
from .logging import configure_logging
from .review import ReviewConfig, get_review_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "ReviewConfig",
    "StorageConfig",
    "UnresolvedAccountError",
    "configure_logging",
    "get_database_config",
    "get_review_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]
