"""Application configuration helpers."""

from __future__ import annotations

from .anonymiser import (
    DEFAULT_EMAIL_TEMPLATE,
    DEFAULT_MARKER_FIELD,
    DEFAULT_PHONE_NUMBER,
    AnonymiserConfig,
    IgnoreRule,
    get_anonymiser_config,
)
from .env import env_flag, env_list, optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, get_database_config

__all__ = [
    "DEFAULT_EMAIL_TEMPLATE",
    "DEFAULT_MARKER_FIELD",
    "DEFAULT_PHONE_NUMBER",
    "AnonymiserConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "IgnoreRule",
    "configure_logging",
    "env_flag",
    "env_list",
    "get_anonymiser_config",
    "get_database_config",
    "optional_env_var",
]
