"""Configuration persistence for the sequence player."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Immutable playback defaults loaded from disk."""

    pause: float = 0.0
    delay: float = 0.0
    stereo_pan: float = 0.0
    sox_path: str = "sox"
    normalize: bool = False
    keep_cache: bool = False
    cache_dir: Optional[str] = None


def get_config_dir(app_name: str = "sequence-player") -> Path:
    """Return the per-user config directory for the current platform."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            root = Path(base)
        else:
            root = Path.home() / "AppData" / "Roaming"
        return _ensure_dir(root / app_name)
    elif os.name == "posix":
        if _is_macos():
            return _ensure_dir(
                Path.home() / "Library" / "Application Support" / app_name
            )
        base = os.environ.get("XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
        return _ensure_dir(root / app_name)
    else:
        return _ensure_dir(Path.home() / ".config" / app_name)


def get_config_path() -> Path:
    """Return the full config file path."""
    return get_config_dir() / "config.json"


def load_config() -> AppConfig:
    """Load configuration from disk, falling back to defaults on error."""
    path = get_config_path()
    if not path.exists():
        return AppConfig()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to load config from %s", path)
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()
    return _config_from_mapping(raw)


def save_config(cfg: AppConfig) -> None:
    """Persist configuration to disk atomically."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    data = {
        "pause": cfg.pause,
        "delay": cfg.delay,
        "stereo_pan": cfg.stereo_pan,
        "sox_path": cfg.sox_path,
        "normalize": cfg.normalize,
        "keep_cache": cfg.keep_cache,
        "cache_dir": cfg.cache_dir,
    }
    temp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    os.replace(temp_path, path)


def _ensure_dir(path: Path) -> Path:
    """Create the directory if needed and return the path."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def _is_macos() -> bool:
    """Return True when running on macOS."""
    return os.uname().sysname == "Darwin" if hasattr(os, "uname") else False  # pyright: ignore[reportAttributeAccessIssue]


def _get_bool(raw: dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    return default


def _get_float(
    raw: dict[str, Any],
    key: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Fetch a number with optional clamping; bools are rejected."""
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        value = default
    value = float(value)
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def _get_str(raw: dict[str, Any], key: str, default: str) -> str:
    value = raw.get(key, default)
    if not isinstance(value, str) or not value:
        return default
    return value


def _config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Normalize raw JSON data into an AppConfig."""
    cache_dir = raw.get("cache_dir")
    if not isinstance(cache_dir, str) or not cache_dir:
        cache_dir = None
    return AppConfig(
        pause=_get_float(raw, "pause", 0.0, min_value=0.0),
        delay=_get_float(raw, "delay", 0.0, min_value=0.0),
        stereo_pan=_get_float(raw, "stereo_pan", 0.0, min_value=-1.0, max_value=1.0),
        sox_path=_get_str(raw, "sox_path", "sox"),
        normalize=_get_bool(raw, "normalize", False),
        keep_cache=_get_bool(raw, "keep_cache", False),
        cache_dir=cache_dir,
    )
