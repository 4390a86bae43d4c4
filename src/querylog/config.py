"""Configuration management for querylog."""

import json
import logging
import os
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_offset(value: str) -> float | None:
    return None if value.lower() in ("", "local", "none") else float(value)


@dataclass
class StorageSettings:
    """Configuration for the persistence backend."""

    type: str = "duckdb"  # "duckdb" or "memory"
    db_path: str | None = None  # None means use default ~/.querylog/history.duckdb
    options: dict[str, Any] = field(default_factory=dict)

    def resolved_path(self) -> str:
        """Return the database path, falling back to the default location."""
        if self.db_path:
            return self.db_path
        return str(Path.home() / ".querylog" / "history.duckdb")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageSettings":
        """Create StorageSettings from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__annotations__})


@dataclass
class HistorySettings:
    """Configuration for query history behaviour."""

    persistence_timeout_seconds: float = 5.0
    utc_offset_hours: float | None = None  # None means the machine's local timezone
    consistent_reads: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistorySettings":
        """Create HistorySettings from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__annotations__})


@dataclass
class QueryLogConfig:
    """Main configuration for querylog."""

    storage: StorageSettings = field(default_factory=StorageSettings)
    history: HistorySettings = field(default_factory=HistorySettings)

    # Server settings
    server_host: str = "localhost"
    server_port: int = 8080

    @classmethod
    def load(cls) -> "QueryLogConfig":
        """Load configuration from various sources."""
        config = cls()

        # 1. Load from config file if exists
        config_paths = [Path.home() / ".querylog" / "config.json", Path.cwd() / ".querylog.json", Path.cwd() / "querylog.config.json"]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path) as f:
                        data = json.load(f)
                    config = cls._merge_config(config, data)
                    break
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning(f"Ignoring unreadable config file {config_path}: {e}")

        # 2. Override with environment variables
        env_mappings: dict[str, str | tuple[str, Callable[[str], Any]]] = {
            "QUERYLOG_STORAGE_TYPE": "storage.type",
            "QUERYLOG_DB_PATH": "storage.db_path",
            "QUERYLOG_PERSISTENCE_TIMEOUT": ("history.persistence_timeout_seconds", float),
            "QUERYLOG_UTC_OFFSET_HOURS": ("history.utc_offset_hours", _parse_offset),
            "QUERYLOG_CONSISTENT_READS": ("history.consistent_reads", _parse_bool),
            "QUERYLOG_SERVER_HOST": "server_host",
            "QUERYLOG_SERVER_PORT": ("server_port", int),
        }

        for env_var, config_mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                if isinstance(config_mapping, tuple):
                    path, converter = config_mapping
                    config = cls._set_nested(config, path, converter(value))
                else:
                    config = cls._set_nested(config, config_mapping, value)

        return config

    @classmethod
    def _merge_config(cls, config: "QueryLogConfig", data: dict[str, Any]) -> "QueryLogConfig":
        """Merge configuration data into config object."""
        if isinstance(data.get("storage"), dict):
            config.storage = StorageSettings.from_dict(data["storage"])
        if isinstance(data.get("history"), dict):
            config.history = HistorySettings.from_dict(data["history"])

        for key, value in data.items():
            if key in ("storage", "history"):
                continue
            if hasattr(config, key):
                setattr(config, key, value)

        return config

    @classmethod
    def _set_nested(cls, config: "QueryLogConfig", path: str, value: Any) -> "QueryLogConfig":
        """Set a nested attribute using dot notation."""
        parts = path.split(".")
        obj: Any = config
        for part in parts[:-1]:
            obj = getattr(obj, part)
        setattr(obj, parts[-1], value)
        return config

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            config_dir = Path.home() / ".querylog"
            config_dir.mkdir(exist_ok=True)
            path = config_dir / "config.json"

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)


# Global config instance
_config: QueryLogConfig | None = None


def get_config() -> QueryLogConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = QueryLogConfig.load()
    return _config


def reload_config() -> QueryLogConfig:
    """Reload configuration from sources."""
    global _config
    _config = QueryLogConfig.load()
    return _config
