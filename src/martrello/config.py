"""Configuration for martrello: defaults, YAML file, environment."""

import os
from pathlib import Path
from typing import Any

import yaml

from martrello.errors import ValidationError
from martrello.persistence import HttpPersistence, MemoryPersistence, Persistence

MARTRELLO_DEFAULTS = {
    "api-url": "",
    "data-file": "~/.local/share/martrello/boards.json",
    "timeout": 10.0,
    "log-level": "WARNING",
}

ENV_PREFIX = "MARTRELLO_"
CONFIG_ENV = "MARTRELLO_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/martrello/config.yaml"


def _python_key(file_key: str) -> str:
    """Convert file-style key (hyphenated) to Python-style (underscored)."""
    return file_key.replace("-", "_")


def _env_key(file_key: str) -> str:
    """Convert file-style key to its environment variable name."""
    return ENV_PREFIX + file_key.replace("-", "_").upper()


def _coerce_value(file_key: str, raw: Any):
    """Type-coerce a value using the type of its default."""
    default = MARTRELLO_DEFAULTS.get(file_key)
    if default is None or raw is None:
        return raw
    try:
        if isinstance(default, bool):
            if isinstance(raw, bool):
                return raw
            return str(raw).lower() in ("true", "yes", "1")
        if isinstance(default, float):
            return float(raw)
        if isinstance(default, int):
            return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"bad value for {file_key}: {raw!r}") from None
    return str(raw)


def config_path(env: dict[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    return Path(env.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH).expanduser()


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file into {python_key: value}. Missing file is empty."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain a mapping")
    return {_python_key(k): _coerce_value(k, v) for k, v in data.items() if k in MARTRELLO_DEFAULTS}


def load_config(
    path: str | Path | None = None,
    env: dict[str, str] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Merge defaults, the config file, environment and explicit overrides.

    Later sources win. Overrides set to None are ignored so argparse
    namespaces can be passed straight through.
    """
    env = os.environ if env is None else env
    config = {_python_key(k): v for k, v in MARTRELLO_DEFAULTS.items()}
    config.update(read_config_file(path if path is not None else config_path(env)))
    for file_key in MARTRELLO_DEFAULTS:
        raw = env.get(_env_key(file_key))
        if raw is not None and raw != "":
            config[_python_key(file_key)] = _coerce_value(file_key, raw)
    for key, value in overrides.items():
        if value is not None:
            config[key] = _coerce_value(key.replace("_", "-"), value)
    return config


def build_persistence(config: dict[str, Any]) -> Persistence:
    """HTTP backend when an API URL is configured, else the local file backend."""
    if config.get("api_url"):
        return HttpPersistence(config["api_url"], timeout=config["timeout"])
    return MemoryPersistence(Path(config["data_file"]).expanduser())
