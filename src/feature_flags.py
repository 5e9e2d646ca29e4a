"""Runtime feature flag helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Sequence

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import-untyped]

__all__ = [
    "active_profile",
    "get_feature",
    "is_events_enabled",
    "is_history_enabled",
    "reload",
]

_FEATURES_FILENAME = "config/features.toml"

_EVENTS_OVERRIDE_KEYS = ("CLI_EVENTS_ENABLED", "PUZZLE_EVENTS_ENABLED", "EVENTS_ENABLED")
_HISTORY_OVERRIDE_KEYS = ("CLI_HISTORY_ENABLED", "PUZZLE_HISTORY_ENABLED")


def _features_path() -> Path:
    return Path(__file__).resolve().parents[1] / _FEATURES_FILENAME


@lru_cache(maxsize=1)
def _load_features() -> dict[str, Any]:
    path = _features_path()
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def reload() -> None:
    """Clear the cached feature configuration."""

    _load_features.cache_clear()


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalised = value.strip().lower()
        if normalised in {"1", "true", "yes", "on"}:
            return True
        if normalised in {"0", "false", "no", "off"}:
            return False
    return None


def active_profile(env: Mapping[str, str] | None = None) -> str | None:
    """Profile named by ``PUZZLE_PROFILE``, if any."""

    source = os.environ if env is None else env
    value = source.get("PUZZLE_PROFILE")
    return value.strip().lower() if value and value.strip() else None


def get_feature(name: str, profile: str | None = None) -> dict[str, Any]:
    """Return the feature block *name* merged with its ``by_profile`` entry."""

    features = _load_features()
    entry = features.get(name)
    merged: dict[str, Any] = {}
    if isinstance(entry, dict):
        for key, value in entry.items():
            if key == "by_profile":
                continue
            merged[key] = value

        if profile:
            by_profile = entry.get("by_profile")
            if isinstance(by_profile, dict):
                profile_block = by_profile.get(profile.lower())
                if isinstance(profile_block, dict):
                    for key, value in profile_block.items():
                        merged[key] = value
    return merged


def _is_enabled(name: str, keys: Sequence[str], env: Mapping[str, str] | None, profile: str | None) -> bool:
    enabled = bool(get_feature(name, profile).get("enabled", False))
    if env:
        for key in keys:
            override = _coerce_bool(env.get(key))
            if override is not None:
                enabled = override
                break
    return enabled


def is_events_enabled(env: Mapping[str, str] | None = None, *, profile: str | None = None) -> bool:
    """Return ``True`` when generation events should be written."""

    return _is_enabled("events", _EVENTS_OVERRIDE_KEYS, env, profile)


def is_history_enabled(env: Mapping[str, str] | None = None, *, profile: str | None = None) -> bool:
    """Return ``True`` when the CLI should keep a recency history between puzzles."""

    return _is_enabled("history", _HISTORY_OVERRIDE_KEYS, env, profile)
