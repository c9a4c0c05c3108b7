from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

_CONFIG_CACHE: Dict[str, Any] | None = None
_MISSING = object()


def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    """Read ``.env`` into the environment, then the YAML config (``CATDASH_CONFIG`` or config/default.yaml)."""
    root = repo_root()
    env_path = Path(os.getenv("CATDASH_ENV_FILE", root / ".env"))
    if env_path.exists():
        load_dotenv(env_path)

    config_path = Path(path) if path else Path(os.getenv("CATDASH_CONFIG", root / "config" / "default.yaml"))
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a mapping: {config_path}")
    return data


def get_config(refresh: bool = False) -> Dict[str, Any]:
    global _CONFIG_CACHE
    if refresh or _CONFIG_CACHE is None:
        _CONFIG_CACHE = load_config()
    return _CONFIG_CACHE


def config_section(name: str) -> Dict[str, Any]:
    section = get_config().get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def config_value(dotted_key: str, default: Any = None) -> Any:
    """``config_value("http.timeout_sec", 10.0)``; missing keys give ``default``."""
    node: Any = get_config()
    for part in dotted_key.split("."):
        if not isinstance(node, dict):
            return default
        node = node.get(part, _MISSING)
        if node is _MISSING or node is None:
            return default
    return node
