"""SoX normalization/pan preprocessing with an on-disk cache.

Each track is run through SoX once per pan value. The output lands in
``<root>/p<pan>/<file name>``, numbered when two sources share a name, and
the mere existence of that file counts as a cache hit; nothing compares it
against the source again.
"""

from __future__ import annotations

import logging
from pathlib import Path
import shutil
import subprocess
import tempfile
from types import TracebackType
from typing import Callable, Optional, Sequence

from sequence_player.errors import ExternalToolError, ToolNotFound

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, Path], None]
Runner = Callable[..., subprocess.CompletedProcess]


def default_cache_root() -> Path:
    return Path(tempfile.gettempdir()) / "sequence-player"


def cache_dir_name(pan: float) -> str:
    return f"p{pan:.2f}"


def channel_gains(pan: float) -> tuple[float, float]:
    """Return ``(left, right)`` remix gains for ``pan`` in [-1, 1]."""
    left = min(max(1.0 - pan, 0.0), 1.0)
    right = min(max(1.0 + pan, 0.0), 1.0)
    return left, right


def build_sox_command(
    sox_path: str, source: Path, target: Path, pan: float
) -> list[str]:
    left, right = channel_gains(pan)
    return [
        sox_path,
        str(source),
        str(target),
        "-V1",
        "--replay-gain",
        "album",
        "remix",
        f"1v{left:g}",
        f"2v{right:g}",
    ]


class SoxCache:
    """Scoped cache directory of SoX-processed copies for one pan value."""

    def __init__(
        self,
        pan: float,
        sox_path: str = "sox",
        root: Optional[Path] = None,
        *,
        keep: bool = False,
        runner: Runner = subprocess.run,
    ) -> None:
        self.pan = pan
        self.sox_path = sox_path
        self.root = root or default_cache_root()
        self.directory = self.root / cache_dir_name(pan)
        self.keep = keep
        self._runner = runner
        self.tool_runs = 0
        self._targets: dict[Path, Path] = {}

    def __enter__(self) -> SoxCache:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if not self.keep:
            self.cleanup()

    def target_for(self, source: Path) -> Path:
        """Return the cache file for ``source``, stable for this instance.

        The first source with a given file name keeps that name. A different
        source sharing it gets ``<stem>-<n><suffix>`` with the lowest free
        ``n`` from 2.
        """
        key = source.absolute()
        target = self._targets.get(key)
        if target is not None:
            return target
        taken = {path.name for path in self._targets.values()}
        name = source.name
        n = 2
        while name in taken:
            name = f"{source.stem}-{n}{source.suffix}"
            n += 1
        target = self.directory / name
        self._targets[key] = target
        return target

    def process(
        self,
        tracks: Sequence[Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[Path]:
        """Return processed copies of ``tracks`` in the same order."""
        self.directory.mkdir(parents=True, exist_ok=True)
        total = len(tracks)
        processed: list[Path] = []
        for source in tracks:
            target = self.target_for(source)
            if target.exists():
                logger.debug("Cache hit for %s", source.name)
            else:
                self._run_sox(source, target)
            processed.append(target)
            if on_progress is not None:
                on_progress(len(processed), total, source)
        return processed

    def _run_sox(self, source: Path, target: Path) -> None:
        command = build_sox_command(self.sox_path, source, target, self.pan)
        logger.info("Processing %s", source.name)
        logger.debug("Running %s", command)
        try:
            result = self._runner(
                command, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            raise ToolNotFound(self.sox_path) from exc
        self.tool_runs += 1
        if result.returncode != 0:
            # A half-written file would otherwise be trusted as a cache hit.
            target.unlink(missing_ok=True)
            raise ExternalToolError(command, result.returncode, result.stderr)

    def cleanup(self) -> bool:
        """Remove the cache directory, returning False on failure."""
        if not self.directory.exists():
            return True
        try:
            shutil.rmtree(self.directory)
        except OSError as exc:
            logger.warning("Could not remove cache dir %s: %s", self.directory, exc)
            return False
        logger.info("Removed cache dir %s", self.directory)
        return True
