from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
import tomllib

_CONFIG_CACHE: dict | None = None

DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def config_path() -> Path:
    override = os.environ.get("SORREL_CONFIG_PATH")
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base).expanduser() if base else (Path.home() / ".config")
    return root / "sorrel" / "config.toml"


def load_config() -> dict:
    path = config_path()
    if not path.exists():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ValueError(f"Invalid config file: {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file structure: {path}")
    return data


def get_config() -> dict:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None:
        _CONFIG_CACHE = load_config()
    return _CONFIG_CACHE


def reset_config_cache() -> None:
    global _CONFIG_CACHE
    _CONFIG_CACHE = None


def get_config_value(*keys: str, default: object | None = None) -> object | None:
    current: object = get_config()
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def resolve_step_modules(cli_values: list[str] | None) -> list[str]:
    if cli_values:
        return list(cli_values)
    configured = get_config_value("run", "steps")
    if isinstance(configured, list):
        if not all(isinstance(v, str) for v in configured):
            raise ValueError(f"run.steps must be a list of strings: {config_path()}")
        return list(configured)
    env_value = os.environ.get("SORREL_STEPS", "")
    return [part.strip() for part in env_value.split(",") if part.strip()]


def resolve_log_level(cli_value: str | None) -> str:
    if cli_value:
        return cli_value.upper()
    configured = get_config_value("logging", "level")
    if isinstance(configured, str) and configured.strip():
        return configured.upper()
    return (os.environ.get("SORREL_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()


def configure_logging(level: str) -> None:
    """Send sorrel's log records to stderr so stdout stays machine-readable."""
    numeric = logging.getLevelName(level)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")
    root = logging.getLogger("sorrel")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric)
