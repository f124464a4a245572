"""Effects configuration loading and logging setup for the command layer."""
from __future__ import annotations

import json
import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ConfigError
from .types import EffectsConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _load_config(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")
    # Allow {"effects": {...}} as well as a bare options object.
    effects = data.get("effects", data)
    if not isinstance(effects, dict):
        raise ConfigError(f"'effects' in {path} must be a JSON object")
    return effects


def load_effects_config(path: Optional[Union[str, Path]] = None) -> EffectsConfig:
    """Read an `EffectsConfig` from a JSON file; no path gives the defaults."""
    raw = _load_config(Path(path) if path is not None else None)
    try:
        return EffectsConfig.from_config(raw)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def merge_overrides(config: EffectsConfig, **overrides: Any) -> EffectsConfig:
    """Return ``config`` with every non-None override applied."""
    given = {k: v for k, v in overrides.items() if v is not None}
    if not given:
        return config
    known = {f.name for f in fields(EffectsConfig)}
    unknown = sorted(set(given) - known)
    if unknown:
        raise ConfigError(f"Unknown effects options: {', '.join(unknown)}")
    try:
        parsed = EffectsConfig.from_config(given)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    return replace(config, **{k: getattr(parsed, k) for k in given})


def configure_logging(level: Union[int, str] = logging.WARNING) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
