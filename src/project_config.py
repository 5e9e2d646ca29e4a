"""Loading of the engine's tuning knobs from ``config.toml``.

The file is looked up at ``$PUZZLE_CONFIG`` when that variable is set,
otherwise at the repository root.  Modules read their table once at import
time through :func:`get_section`, e.g. ``get_section("generation.attempts")``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import-untyped]


_CONFIG_FILENAME = "config.toml"
_CONFIG_ENV = "PUZZLE_CONFIG"


def config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """Location of the configuration file for *env* (``os.environ`` by default)."""

    override = (os.environ if env is None else env).get(_CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parents[1] / _CONFIG_FILENAME


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """Load and cache the puzzle engine configuration as a dictionary."""
    path = config_path()
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise RuntimeError(
            f"Configuration file '{path}' was not found; set {_CONFIG_ENV} or restore {_CONFIG_FILENAME}"
        ) from exc


def reload() -> None:
    """Forget the cached configuration; already imported modules keep their values."""

    get_config.cache_clear()


def get_section(path: str, default: Any = None) -> Any:
    """Retrieve a nested configuration value using dotted notation."""

    data: Any = get_config()
    for part in path.split("."):
        if isinstance(data, dict) and part in data:
            data = data[part]
        else:
            if default is not None:
                return default
            raise KeyError(f"Configuration path '{path}' not found")
    return data


__all__ = ["config_path", "get_config", "get_section", "reload"]
