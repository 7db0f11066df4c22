"""Helpers for loading YAML configuration files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from hmmclassifier.errors import ConfigurationError


@lru_cache(maxsize=None)
def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ConfigurationError(f"YAML config at {path} must contain a mapping")
    return payload


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """Load a YAML configuration file with caching.

    A missing file raises :class:`FileNotFoundError`. The cached mapping is
    copied so callers may mutate the result.
    """

    resolved = Path(path).resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Config file missing at {resolved}")
    return dict(_read_yaml(resolved))


def clear_config_cache() -> None:
    """Forget cached YAML payloads, e.g. after a config file was rewritten."""

    _read_yaml.cache_clear()


__all__ = ["clear_config_cache", "load_yaml_config"]
