"""
Configuration system for simple-jobs.

Typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading validated against a JSON schema
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import jsonschema
import yaml
from dotenv import find_dotenv, load_dotenv

from .config_schema import CONFIG_SCHEMA
from .errors import ConfigError

StoreBackendType = Literal["memory", "fs", "sqlite", "postgres"]
StatusModelName = Literal["enum", "progress"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]


@dataclass
class StoreConfig:
    """Configuration for the job store backend."""

    backend: StoreBackendType = "memory"

    # fs
    directory: Path | None = None

    # sqlite
    db_path: str | None = None

    # postgres
    pg_dsn: str | None = None

    # sqlite / postgres
    table_name: str | None = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.backend not in ("memory", "fs", "sqlite", "postgres"):
            raise ConfigError(f"Invalid store backend: {self.backend}")
        if isinstance(self.directory, str):
            self.directory = Path(self.directory)
        if self.backend == "fs" and self.directory is None:
            raise ConfigError("directory is required for fs store backend")
        if self.backend == "sqlite" and not self.db_path:
            raise ConfigError("db_path is required for sqlite store backend")
        if self.backend == "postgres":
            if not self.pg_dsn:
                raise ConfigError("pg_dsn is required for postgres store backend")
            if not self.pg_dsn.startswith(("postgresql://", "postgres://")):
                raise ConfigError("pg_dsn must be a valid PostgreSQL connection string")


@dataclass
class EngineConfig:
    """Configuration for the submission engine and completion waiter."""

    poll_interval: float = 0.01
    wait_timeout: float | None = None
    status_model: StatusModelName = "enum"

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ConfigError("poll_interval must be positive")
        if self.wait_timeout is not None and self.wait_timeout <= 0:
            raise ConfigError("wait_timeout must be positive")
        if self.status_model not in ("enum", "progress"):
            raise ConfigError(f"Invalid status model: {self.status_model}")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: LogLevel = "INFO"
    format: LogFormat = "text"

    def __post_init__(self):
        """Validate configuration after initialization."""
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if self.level not in valid_levels:
            raise ConfigError(f"Invalid log level: {self.level}. Must be one of {valid_levels}")
        valid_formats = ("text", "json")
        if self.format not in valid_formats:
            raise ConfigError(f"Invalid log format: {self.format}. Must be one of {valid_formats}")


@dataclass
class Settings:
    """
    Master configuration for simple-jobs.

    Aggregates all configuration sections into a single object that can be
    loaded from environment variables, files, or constructed programmatically.
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "SIMPLE_JOBS_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            SIMPLE_JOBS_STORE_BACKEND=fs
            SIMPLE_JOBS_STORE_DIR=/var/lib/jobs
            SIMPLE_JOBS_POLL_INTERVAL=0.05
        """
        store: dict[str, Any] = {}
        if backend := os.getenv(f"{prefix}STORE_BACKEND"):
            store["backend"] = backend.lower()
        if directory := os.getenv(f"{prefix}STORE_DIR"):
            store["directory"] = directory
        if db_path := os.getenv(f"{prefix}STORE_DB_PATH"):
            store["db_path"] = db_path
        if dsn := os.getenv(f"{prefix}STORE_PG_DSN"):
            store["pg_dsn"] = dsn
        if table := os.getenv(f"{prefix}STORE_TABLE"):
            store["table_name"] = table

        engine: dict[str, Any] = {}
        try:
            if poll := os.getenv(f"{prefix}POLL_INTERVAL"):
                engine["poll_interval"] = float(poll)
            if timeout := os.getenv(f"{prefix}WAIT_TIMEOUT"):
                engine["wait_timeout"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting: {exc}", cause=exc) from exc
        if model := os.getenv(f"{prefix}STATUS_MODEL"):
            engine["status_model"] = model.lower()

        logging_cfg: dict[str, Any] = {}
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            logging_cfg["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            logging_cfg["format"] = log_format.lower()

        return cls(
            store=StoreConfig(**store),
            engine=EngineConfig(**engine),
            logging=LoggingConfig(**logging_cfg),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise ConfigError(f"Unsupported config file format: {suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary, validated against the configuration schema.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e.message}", cause=e) from e

        return cls(
            store=StoreConfig(**data.get("store", {})),
            engine=EngineConfig(**data.get("engine", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""

        def convert(obj):
            if isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            if isinstance(obj, Path):
                return str(obj)
            return obj

        return convert(dataclasses.asdict(self))


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = [
    "StoreConfig",
    "EngineConfig",
    "LoggingConfig",
    "Settings",
    "load_env",
]
