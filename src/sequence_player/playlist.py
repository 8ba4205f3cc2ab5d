"""Resolving an input path into the ordered list of candidate tracks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import os
from pathlib import Path

from sequence_player.errors import PathError, UnsupportedExtension
from sequence_player.track_range import RangeSelector, select_tracks

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".mp3", ".wav", ".flac"}
PLAYLIST_EXTENSIONS = {".m3u8"}


class SourceKind(Enum):
    FILE = "file"
    PLAYLIST = "playlist"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TrackSource:
    """Candidate tracks together with the kind of input they came from."""

    kind: SourceKind
    origin: Path
    tracks: tuple[Path, ...]

    def __len__(self) -> int:
        return len(self.tracks)


def is_supported(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def is_playlist(path: Path) -> bool:
    return path.suffix.lower() in PLAYLIST_EXTENSIONS


def load_from_directory(directory: Path) -> tuple[Path, ...]:
    """Return audio files directly inside ``directory`` in scandir order."""
    try:
        with os.scandir(directory) as entries:
            tracks = [
                Path(entry.path)
                for entry in entries
                if entry.is_file() and is_supported(Path(entry.name))
            ]
    except OSError as exc:
        raise PathError(directory, f"cannot be read ({exc})") from exc
    logger.info("Found %d tracks in %s", len(tracks), directory)
    return tuple(tracks)


def resolve_input(path: Path) -> TrackSource:
    """Classify ``path`` and return its candidate tracks."""
    if not path.exists():
        raise PathError(path)
    if path.is_dir():
        return TrackSource(SourceKind.DIRECTORY, path, load_from_directory(path))
    if not path.is_file():
        raise PathError(path, "is not a regular file or directory")
    if is_supported(path):
        return TrackSource(SourceKind.FILE, path, (path,))
    if is_playlist(path):
        from sequence_player.playlist_io import load_m3u8

        return TrackSource(SourceKind.PLAYLIST, path, load_m3u8(path))
    raise UnsupportedExtension(path)


def apply_selector(source: TrackSource, selector: RangeSelector) -> list[Path]:
    """Slice directory sources; files and playlists are used as-is."""
    if source.kind is not SourceKind.DIRECTORY or selector.is_empty:
        return list(source.tracks)
    selected = select_tracks(source.tracks, selector)
    logger.info(
        "Selected %d of %d tracks (offset=%s limit=%s)",
        len(selected),
        len(source.tracks),
        selector.offset,
        selector.limit,
    )
    return selected
