"""Configuration data classes."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class DatabaseConfig:
    """Connection target and credentials for a session."""
    url: str
    user: Optional[str] = None
    password: Optional[str] = None
    echo: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    path: Optional[str] = None


@dataclass
class Config:
    """Top-level configuration."""
    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
