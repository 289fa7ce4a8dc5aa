"""Configuration settings for the Bible plan engine.

Settings are layered, later layers winning:
1. Dataclass defaults
2. YAML file (~/.bibleplan/config.yaml, BIBLEPLAN_CONFIG env override)
3. BIBLEPLAN_* environment variables

Example config.yaml:

    start_date: 2026-01-01
    provider_base_url: https://biblia-api.vercel.app/api/v1
    provider_timeout: 10
    cache_max_entries: 500
    cache_ttl_seconds: 86400
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from bibleplan.plan import START_DATE
from bibleplan.provider import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

CONFIG_ENV = "BIBLEPLAN_CONFIG"

# Environment variable -> settings field
ENV_OVERRIDES = {
    "BIBLEPLAN_START_DATE": "start_date",
    "BIBLEPLAN_PROVIDER_URL": "provider_base_url",
    "BIBLEPLAN_PROVIDER_TIMEOUT": "provider_timeout",
    "BIBLEPLAN_CACHE_MAX_ENTRIES": "cache_max_entries",
    "BIBLEPLAN_CACHE_TTL": "cache_ttl_seconds",
}


@dataclass
class Settings:
    """Application settings."""

    # Reading plan
    start_date: date = START_DATE

    # Content provider
    provider_base_url: str = DEFAULT_BASE_URL
    provider_timeout: float = DEFAULT_TIMEOUT

    # Chapter cache (None = unbounded / never expires)
    cache_max_entries: int | None = None
    cache_ttl_seconds: float | None = None

    config_path: Path = field(
        default_factory=lambda: Path.home() / ".bibleplan" / "config.yaml"
    )


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(
            f"Invalid start_date: '{value}'. Expected an ISO date like 2026-01-01."
        )


def _parse_positive(name: str, value: Any, cast: type) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        parsed = cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name}: '{value}'. Expected a number.")
    if parsed <= 0:
        raise ValueError(f"Invalid {name}: {parsed}. Must be greater than 0.")
    return parsed


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw config/env value to the type of settings field `name`."""
    if name == "start_date":
        return _parse_date(value)
    if name == "provider_base_url":
        return str(value)
    if name == "provider_timeout":
        timeout = _parse_positive(name, value, float)
        return DEFAULT_TIMEOUT if timeout is None else timeout
    if name == "cache_max_entries":
        return _parse_positive(name, value, int)
    if name == "cache_ttl_seconds":
        return _parse_positive(name, value, float)
    if name == "config_path":
        return Path(value).expanduser()
    raise ValueError(f"Unknown setting: '{name}'")


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from defaults, a YAML file and the environment.

    Args:
        path: Config file (default: BIBLEPLAN_CONFIG or
            ~/.bibleplan/config.yaml). A missing file is skipped.

    Returns:
        Settings

    Raises:
        ValueError: If the file or an environment variable holds an
            unknown key or an invalid value
    """
    settings = Settings()

    if path is None:
        path = os.environ.get(CONFIG_ENV) or settings.config_path
    config_path = Path(path).expanduser()
    settings = replace(settings, config_path=config_path)

    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ValueError(f"Config file must be a mapping: {config_path}")

        known = {f.name for f in fields(Settings)} - {"config_path"}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(
                f"Unknown setting(s) in {config_path}: {', '.join(unknown)}. "
                f"Supported: {', '.join(sorted(known))}"
            )

        settings = replace(
            settings, **{key: _coerce(key, value) for key, value in raw.items()}
        )

    overrides = {
        name: _coerce(name, os.environ[var])
        for var, name in ENV_OVERRIDES.items()
        if var in os.environ
    }
    if overrides:
        settings = replace(settings, **overrides)

    return settings
