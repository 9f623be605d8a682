"""Centralized configuration for bizmetrics.

Loads settings from, in increasing priority:
1. Defaults
2. An optional YAML file (``BIZMETRICS_CONFIG`` or an explicit path)
3. An optional ``.env`` file
4. ``BIZMETRICS_*`` environment variables

Missing or invalid configuration raises ``ConfigError`` with a message that
says which variable to set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import pytz
import yaml

__all__ = [
    "ConfigError",
    "Settings",
    "get_settings",
    "load_env_file",
    "load_settings",
]

ENV_PREFIX = "BIZMETRICS_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


@dataclass
class Settings:
    """Settings for the dashboard service and CLI.

    Attributes
    ----------
    supabase_url : str | None
        Hosted backend project URL
    supabase_key : str | None
        Hosted backend API key
    timezone : str
        IANA timezone dashboards are computed in (default: UTC)
    locale : str
        Locale for chart labels (en, es)
    top_n : int
        Default size of top-N rankings
    request_timeout : float
        HTTP timeout in seconds
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for the JSONL log file (console only when unset)
    """

    supabase_url: str | None = None
    supabase_key: str | None = None
    timezone: str = "UTC"
    locale: str = "en"
    top_n: int = 5
    request_timeout: float = 10.0
    log_level: str = "INFO"
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ConfigError(
                f"Unknown timezone '{self.timezone}'. "
                "Set BIZMETRICS_TIMEZONE to an IANA name (e.g., America/Mexico_City)"
            ) from None

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"BIZMETRICS_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'")

        if self.top_n <= 0:
            raise ConfigError(f"BIZMETRICS_TOP_N must be positive, got {self.top_n}")

        if self.request_timeout <= 0:
            raise ConfigError(f"BIZMETRICS_REQUEST_TIMEOUT must be positive, got {self.request_timeout}")

    @property
    def storage_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def require_storage(self) -> tuple[str, str]:
        """Return (url, key) of the hosted backend.

        Raises
        ------
        ConfigError
            If either value is missing
        """
        if not self.supabase_url or not self.supabase_key:
            raise ConfigError(
                "BIZMETRICS_SUPABASE_URL and BIZMETRICS_SUPABASE_KEY are required to reach the backend.\n\n"
                "Quick fix:\n"
                "  1. Add both to .env (or your environment)\n"
                "  2. Or pass --fixtures <file.yaml> to work offline"
            )
        return self.supabase_url, self.supabase_key

    @classmethod
    def from_env(
        cls,
        env_file: Path | str | None = None,
        config_file: Path | str | None = None,
    ) -> Settings:
        """Load settings from YAML, .env and environment.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)
        config_file
            Path to YAML settings file (default: ``BIZMETRICS_CONFIG`` if set)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If a file is unreadable or a value is invalid
        """
        env_file = Path(env_file) if env_file is not None else Path(".env")
        if env_file.exists():
            load_env_file(env_file)

        values: dict[str, Any] = {}

        config_file = config_file or os.environ.get(f"{ENV_PREFIX}CONFIG")
        if config_file:
            values.update(_load_yaml_settings(Path(config_file)))

        for f in fields(cls):
            env_value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if env_value is not None:
                values[f.name] = env_value

        try:
            return cls(
                supabase_url=values.get("supabase_url"),
                supabase_key=values.get("supabase_key"),
                timezone=str(values.get("timezone", "UTC")),
                locale=str(values.get("locale", "en")),
                top_n=int(values.get("top_n", 5)),
                request_timeout=float(values.get("request_timeout", 10.0)),
                log_level=str(values.get("log_level", "INFO")),
                log_dir=Path(values["log_dir"]) if values.get("log_dir") else None,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def _load_yaml_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Variables already set in the environment keep their values.
    """
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ.setdefault(key, value)


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None, config_file: Path | str | None = None) -> Settings:
    """Load settings and keep them as the process-wide instance."""
    global _settings
    _settings = Settings.from_env(env_file, config_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings were not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings
