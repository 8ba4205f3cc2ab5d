"""Playlist I/O helpers (M3U8)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Literal

from sequence_player.errors import PathError, PlaylistEntryError
from sequence_player.playlist import is_supported

logger = logging.getLogger(__name__)


def _entry_path(entry: str, base: Path) -> Path:
    item = Path(entry)
    if not item.is_absolute():
        item = base / item
    return item


def _check_entry(line_no: int, entry: str, base: Path) -> Path:
    item = _entry_path(entry, base)
    if not is_supported(item):
        raise PlaylistEntryError(line_no, entry, "is not a supported audio file")
    if not item.is_file():
        raise PlaylistEntryError(line_no, entry, "does not exist")
    return item


def load_m3u8(path: Path) -> tuple[Path, ...]:
    """Load a UTF-8 playlist, skipping comments and unplayable entries."""
    try:
        lines = path.read_text(encoding="utf-8-sig").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise PathError(path, f"cannot be read ({exc})") from exc
    base = path.parent
    tracks: list[Path] = []
    for line_no, line in enumerate(lines, start=1):
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        try:
            tracks.append(_check_entry(line_no, entry, base))
        except PlaylistEntryError as exc:
            logger.warning("Skipping playlist entry in %s, %s", path.name, exc)
    logger.info("Loaded %d tracks from %s", len(tracks), path)
    return tuple(tracks)


def save_m3u8(
    tracks: Iterable[Path],
    dest: Path,
    mode: Literal["relative", "absolute"] = "relative",
) -> None:
    """Save tracks as a UTF-8 M3U8 playlist."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    lines = ["#EXTM3U"]
    for track in tracks:
        if mode == "absolute":
            lines.append(str(track.absolute()))
            continue
        try:
            lines.append(str(track.relative_to(dest.parent)))
        except ValueError:
            lines.append(str(track))
    dest.write_text("\n".join(lines) + "\n", encoding="utf-8")
