"""YAML configuration loader with env var interpolation."""

import os
import re
import yaml
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from sqlsession.config_schema import Config, DatabaseConfig, LoggingConfig
from sqlsession.exceptions import ConfigError


def load_config(cli_path: "Optional[str]" = None) -> Config:
    """Load configuration from YAML file.

    Variables from a ``.env`` file in the working directory are loaded
    into the environment first, so ``${VAR}`` references can use them.

    Search order:
    1. CLI-specified path
    2. ./sqlsession.yaml
    3. ~/.config/sqlsession/config.yaml
    4. /etc/sqlsession/config.yaml
    """
    load_dotenv(Path.cwd() / ".env")

    search_paths = [
        Path("./sqlsession.yaml"),
        Path.home() / ".config" / "sqlsession" / "config.yaml",
        Path("/etc/sqlsession/config.yaml"),
    ]

    if cli_path:
        config_path = Path(cli_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {cli_path}")
    else:
        config_path = None
        for path in search_paths:
            if path.exists():
                config_path = path
                break

        if config_path is None:
            searched = "\n  ".join(str(p) for p in search_paths)
            raise ConfigError(
                f"No config file found. Searched:\n  {searched}\n\n"
                "Create sqlsession.yaml or specify --config path"
            )

    return _parse_config(config_path)


def _parse_config(path: Path) -> Config:
    """Parse YAML config file."""
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    database_raw = raw.get("database")
    if not database_raw:
        raise ConfigError("No database configured")

    return Config(
        database=_parse_database(database_raw),
        logging=_parse_logging(raw.get("logging") or {}),
    )


def _parse_database(raw: dict) -> DatabaseConfig:
    """Parse database section."""
    if not isinstance(raw, dict):
        raise ConfigError("Database section must be a mapping")
    if "url" not in raw:
        raise ConfigError("Database missing required field: url")

    user = raw.get("user")
    password = raw.get("password")

    return DatabaseConfig(
        url=_interpolate(raw["url"]),
        user=str(_interpolate(user)) if user is not None else None,
        password=str(_interpolate(password)) if password is not None else None,
        echo=bool(raw.get("echo", False)),
    )


def _parse_logging(raw: dict) -> LoggingConfig:
    """Parse logging section."""
    return LoggingConfig(
        level=_interpolate(raw.get("level", "INFO")),
        path=_interpolate(raw.get("path")),
    )


def _interpolate(value: "Optional[str]") -> "Optional[str]":
    """Expand ${VAR} references in a string value."""
    if value is None:
        return None
    if not isinstance(value, str):
        return value

    pattern = re.compile(r'\$\{([^}]+)\}')

    def replacer(match):
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ConfigError(f"Environment variable not set: {var_name}")
        return env_value

    return pattern.sub(replacer, value)
