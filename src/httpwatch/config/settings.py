"""Configuration management for httpwatch.

Loads settings from an optional YAML configuration file with environment
variable overrides. The resulting ``Settings`` object is immutable: it is
built once at startup (CLI flags applied via ``model_copy``) and handed
explicitly to the watch loop and the render layer.
"""

from __future__ import annotations

import logging
import math
import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from httpwatch import HttpWatchError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/httpwatch.yaml")

# Quicker intervals are silently raised to this floor (seconds).
MIN_INTERVAL = 0.1

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigurationError(HttpWatchError, ValueError):
    """Raised when configuration values cannot be interpreted."""


def parse_duration(value: str | float | int) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) as well as unit-suffixed durations
    such as ``500ms``, ``2s`` or ``1m30s``. ``nan`` and infinities are
    rejected.
    """
    if isinstance(value, (int, float)):
        return _finite(float(value))
    text = value.strip()
    if not text:
        raise ConfigurationError("Empty duration")
    try:
        seconds = float(text)
    except ValueError:
        seconds = _parse_units(text)
    return _finite(seconds)


def _parse_units(text: str) -> float:
    pos = 0
    total = 0.0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ConfigurationError(f"Invalid duration: {text!r}")
    return total


def _finite(seconds: float) -> float:
    if not math.isfinite(seconds):
        raise ConfigurationError(f"Duration must be finite, got {seconds}")
    return seconds


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``HOST:PORT`` listen address."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"Invalid listen address: {address!r}")
    port_num = int(port)
    if not 0 <= port_num <= 65535:
        raise ConfigurationError(f"Port out of range in address: {address!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_num


class WatchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval: float = Field(default=2.0, description="Seconds between runs")
    color: bool = Field(default=False, description="Interpret ANSI color sequences")
    no_title: bool = Field(default=False, description="Hide the header line")
    command: tuple[str, ...] = Field(default=())

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("interval")
    @classmethod
    def _clamp_interval(cls, value: float) -> float:
        return max(_finite(value), MIN_INTERVAL)


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=0, le=65535)
    shutdown_grace: float = Field(default=5.0, gt=0)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for httpwatch.

    Loads from YAML file and supports environment variable overrides
    (``HTTPWATCH_WATCH__INTERVAL=5s`` and so on). Reads .env files.
    """

    model_config = {
        "env_prefix": "HTTPWATCH_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    watch: WatchConfig = Field(default_factory=WatchConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML data arrives as init kwargs and must lose to the environment.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def with_overrides(
        self,
        watch: dict | None = None,
        server: dict | None = None,
        logging: dict | None = None,
    ) -> Settings:
        """Return a copy with the given section fields replaced and revalidated."""
        update = {}
        if watch:
            update["watch"] = WatchConfig(**{**self.watch.model_dump(), **watch})
        if server:
            update["server"] = ServerConfig(**{**self.server.model_dump(), **server})
        if logging:
            update["logging"] = LoggingConfig(**{**self.logging.model_dump(), **logging})
        return self.model_copy(update=update)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    elif config_path is not None:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    try:
        return Settings(**yaml_data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    # Same variable the terminal watch utility reads.
    watch_interval = os.environ.get("WATCH_INTERVAL", "")
    if not watch_interval:
        return
    watch = yaml_data.setdefault("watch", {})
    if "interval" not in watch:
        watch["interval"] = parse_duration(watch_interval)


def format_duration(seconds: float) -> str:
    """Format seconds compactly, e.g. ``100ms``, ``2s`` or ``1m30s``."""
    if seconds < 1:
        return f"{round(seconds * 1000, 3):g}ms"
    minutes, secs = divmod(round(seconds, 3), 60)
    if not minutes:
        return f"{secs:g}s"
    hours, minutes = divmod(int(minutes), 60)
    text = f"{hours}h" if hours else ""
    return f"{text}{minutes}m{secs:g}s"
