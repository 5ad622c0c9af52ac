"""Centralized settings for Matchfolio.

Reads configuration from environment variables with sensible defaults,
optionally layered over a YAML file. Environment variables always win
over the file so deployments can override a checked-in config.

Usage:
    from matchfolio.config.settings import load_settings
    settings = load_settings("config/matchfolio.yaml")
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class MatchfolioSettings:
    """Immutable application settings."""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Storage
    data_dir: Path = Path("data")
    persist_storage: bool = True

    # Tracking cadence
    poll_interval_seconds: float = 10.0
    cycle_interval_seconds: float = 60.0
    refresh_every: int = 10  # full rebuild every N maintenance cycles

    # Score provider
    score_api_url: str = "http://localhost:8080"
    score_api_key: str = ""
    score_api_timeout: float = 30.0

    @property
    def users_path(self) -> Path:
        return self.data_dir / "users.jsonl"

    @property
    def matches_path(self) -> Path:
        return self.data_dir / "match_scores.jsonl"


# YAML section -> {yaml key: settings field}
_YAML_LAYOUT: dict[str, dict[str, str]] = {
    "logging": {"level": "log_level", "json": "json_logs"},
    "storage": {"data_dir": "data_dir", "persist": "persist_storage"},
    "tracking": {
        "poll_interval_seconds": "poll_interval_seconds",
        "cycle_interval_seconds": "cycle_interval_seconds",
        "refresh_every": "refresh_every",
    },
    "score_api": {"url": "score_api_url", "api_key": "score_api_key", "timeout": "score_api_timeout"},
}

_ENV_VARS: dict[str, str] = {
    "log_level": "MATCHFOLIO_LOG_LEVEL",
    "json_logs": "MATCHFOLIO_JSON_LOGS",
    "data_dir": "MATCHFOLIO_DATA_DIR",
    "persist_storage": "MATCHFOLIO_PERSIST_STORAGE",
    "poll_interval_seconds": "MATCHFOLIO_POLL_INTERVAL_SECONDS",
    "cycle_interval_seconds": "MATCHFOLIO_CYCLE_INTERVAL_SECONDS",
    "refresh_every": "MATCHFOLIO_REFRESH_EVERY",
    "score_api_url": "MATCHFOLIO_SCORE_API_URL",
    "score_api_key": "MATCHFOLIO_SCORE_API_KEY",
    "score_api_timeout": "MATCHFOLIO_SCORE_API_TIMEOUT",
}


def _bool(val: Any, default: bool) -> bool:
    if isinstance(val, bool):
        return val
    text = str(val).strip().lower()
    if text in ("1", "true", "yes"):
        return True
    if text in ("0", "false", "no"):
        return False
    return default


def _convert(name: str, raw: Any) -> Any:
    """Coerce a raw env/YAML value to the type of the settings field."""
    default = getattr(MatchfolioSettings, name)
    if isinstance(default, bool):
        return _bool(raw, default)
    if isinstance(default, Path):
        return Path(raw)
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if name == "log_level":
        return str(raw).upper()
    return str(raw)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Flatten the sectioned YAML file into settings field values."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    values: dict[str, Any] = {}
    for section, keys in _YAML_LAYOUT.items():
        section_data = raw.get(section) or {}
        for yaml_key, field_name in keys.items():
            if yaml_key in section_data and section_data[yaml_key] is not None:
                values[field_name] = _convert(field_name, section_data[yaml_key])
    return values


def get_settings() -> MatchfolioSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        MATCHFOLIO_LOG_LEVEL: Logging level (default: INFO)
        MATCHFOLIO_JSON_LOGS: Render logs as JSON (default: false)
        MATCHFOLIO_DATA_DIR: Storage directory (default: data)
        MATCHFOLIO_PERSIST_STORAGE: Enable JSONL persistence (default: true)
        MATCHFOLIO_POLL_INTERVAL_SECONDS: Per-match poll interval (default: 10)
        MATCHFOLIO_CYCLE_INTERVAL_SECONDS: Maintenance cycle interval (default: 60)
        MATCHFOLIO_REFRESH_EVERY: Full refresh every N cycles (default: 10)
        MATCHFOLIO_SCORE_API_URL: Score provider base URL
        MATCHFOLIO_SCORE_API_KEY: Score provider API key
        MATCHFOLIO_SCORE_API_TIMEOUT: Score request timeout in seconds (default: 30)
    """
    return load_settings(None)


def load_settings(config_path: str | Path | None = None) -> MatchfolioSettings:
    """Load settings from an optional YAML file, then environment overrides.

    Expected YAML structure (every key optional):
        logging:
          level: DEBUG
          json: true
        storage:
          data_dir: /var/lib/matchfolio
          persist: true
        tracking:
          poll_interval_seconds: 10
          cycle_interval_seconds: 60
          refresh_every: 10
        score_api:
          url: https://scores.example.com
          api_key: secret
          timeout: 15

    A missing file is ignored.
    """
    values: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            values.update(_read_yaml(path))

    for field in fields(MatchfolioSettings):
        env_val = os.environ.get(_ENV_VARS[field.name])
        if env_val is not None and env_val != "":
            values[field.name] = _convert(field.name, env_val)

    return MatchfolioSettings(**values)
