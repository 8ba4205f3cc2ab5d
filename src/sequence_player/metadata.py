"""Audio metadata helpers for duration estimates."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

_DURATION_CACHE: dict[Path, Optional[float]] = {}


def read_duration(path: Path) -> Optional[float]:
    """Best-effort track length in seconds, or None when unknown."""
    try:
        from mutagen import File as MutagenFile
    except Exception:
        return None
    try:
        audio = MutagenFile(path)
    except Exception:
        return None
    if not audio:
        return None
    info = getattr(audio, "info", None)
    length = getattr(info, "length", None)
    if not isinstance(length, (int, float)) or length <= 0:
        return None
    return float(length)


def get_duration(path: Path) -> Optional[float]:
    if path in _DURATION_CACHE:
        return _DURATION_CACHE[path]
    duration = read_duration(path)
    _DURATION_CACHE[path] = duration
    return duration


def total_duration(paths: Iterable[Path]) -> Optional[float]:
    """Sum of all durations, or None if any track length is unknown."""
    total = 0.0
    for path in paths:
        duration = get_duration(path)
        if duration is None:
            return None
        total += duration
    return total


def format_duration(seconds: Optional[float]) -> str:
    if seconds is None:
        return "--:--"
    whole = int(round(seconds))
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
