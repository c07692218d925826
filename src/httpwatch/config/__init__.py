"""Configuration management for httpwatch.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides, including the ``WATCH_INTERVAL``
variable understood by the terminal ``watch`` utility.
"""

from httpwatch.config.settings import (
    MIN_INTERVAL,
    ConfigurationError,
    Settings,
    load_settings,
    parse_address,
    parse_duration,
)

__all__ = [
    "MIN_INTERVAL",
    "ConfigurationError",
    "Settings",
    "load_settings",
    "parse_address",
    "parse_duration",
]
