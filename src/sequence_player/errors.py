"""Exception types raised by the sequence player."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SequencePlayerError(Exception):
    """Base class for every error the player reports to the user."""


class ParseError(SequencePlayerError, ValueError):
    """A track selector bound could not be parsed as an integer."""


class PathError(SequencePlayerError):
    """The input path is missing or cannot be read."""

    def __init__(self, path: Path, reason: str = "does not exist") -> None:
        super().__init__(f"Input path {path} {reason}")
        self.path = path


class UnsupportedExtension(SequencePlayerError):
    """A single-file input is neither an audio file nor a playlist."""

    def __init__(self, path: Path) -> None:
        suffix = path.suffix or "(none)"
        super().__init__(f"Unsupported file type {suffix} for {path}")
        self.path = path


class PlaylistEntryError(SequencePlayerError):
    """A playlist line does not name a playable track."""

    def __init__(self, line_no: int, entry: str, reason: str) -> None:
        super().__init__(f"line {line_no}: {entry!r} {reason}")
        self.line_no = line_no
        self.entry = entry
        self.reason = reason


class ExternalToolError(SequencePlayerError):
    """The preprocessing tool exited with a non-zero status."""

    def __init__(
        self, command: list[str], returncode: int, stderr: Optional[str] = None
    ) -> None:
        message = f"{command[0]} exited with status {returncode}"
        detail = (stderr or "").strip()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ToolNotFound(SequencePlayerError):
    """The preprocessing executable could not be launched."""

    def __init__(self, tool: str) -> None:
        super().__init__(
            f"Could not launch {tool!r}. Install SoX or pass --sox-path."
        )
        self.tool = tool


class DeviceInputError(SequencePlayerError):
    """The interactive device choice was not a valid index."""


class DeviceUnavailable(SequencePlayerError):
    """No output device could be chosen."""


class DecodeOrDeviceError(SequencePlayerError):
    """A track could not be opened, decoded or played."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Playback failed for {path}: {reason}")
        self.path = path
