"""Sequential playback of the final track list."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
import logging
from pathlib import Path
import time
from typing import Callable, Iterable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from sequence_player.devices import OutputDevice, SelectDevice
from sequence_player.metadata import total_duration

logger = logging.getLogger(__name__)

REFERENCE_TOTALS_MINUTES = (30, 45, 60, 75)

PlayTrack = Callable[[OutputDevice, Path, float], None]


class SessionState(Enum):
    IDLE = "idle"
    DEVICE_SELECTED = "device-selected"
    DELAYING = "delaying"
    PLAYING = "playing"
    PAUSING = "pausing"
    DONE = "done"


@dataclass(frozen=True)
class SessionOptions:
    pause: float = 0.0
    delay: float = 0.0
    stereo_pan: float = 0.0


@dataclass
class SessionReport:
    device: OutputDevice
    played: list[Path] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


@dataclass(frozen=True)
class EndEstimate:
    label: str
    ends_at: datetime


def estimate_end_times(
    start: datetime,
    *,
    delay: float,
    pause: float,
    track_count: int,
    measured_seconds: Optional[float] = None,
    reference_minutes: Iterable[int] = REFERENCE_TOTALS_MINUTES,
) -> list[EndEstimate]:
    """Project when playback ends for assumed and measured running times."""
    overhead = timedelta(seconds=delay + pause * max(track_count - 1, 0))
    estimates = [
        EndEstimate(f"{minutes} min", start + overhead + timedelta(minutes=minutes))
        for minutes in reference_minutes
    ]
    if measured_seconds is not None:
        estimates.append(
            EndEstimate(
                "measured", start + overhead + timedelta(seconds=measured_seconds)
            )
        )
    return estimates


class PlaybackSequencer:
    """Plays tracks one after another on a single chosen device."""

    def __init__(
        self,
        play_track: PlayTrack,
        list_devices: Callable[[], Sequence[OutputDevice]],
        select_device: SelectDevice,
        options: SessionOptions = SessionOptions(),
        *,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = datetime.now,
        console: Optional[Console] = None,
        measure: Callable[[Iterable[Path]], Optional[float]] = total_duration,
    ) -> None:
        self._play_track = play_track
        self._list_devices = list_devices
        self._select_device = select_device
        self.options = options
        self._sleep = sleep
        self._now = now
        self._console = console or Console()
        self._measure = measure
        self.state = SessionState.IDLE
        self.transitions: list[SessionState] = [SessionState.IDLE]

    def _enter(self, state: SessionState) -> None:
        self.state = state
        self.transitions.append(state)

    def choose_device(self) -> OutputDevice:
        device = self._select_device(list(self._list_devices()))
        self._enter(SessionState.DEVICE_SELECTED)
        self._console.print(f"Output device: {device.name}", markup=False)
        return device

    def print_end_estimates(self, tracks: Sequence[Path]) -> None:
        estimates = estimate_end_times(
            self._now(),
            delay=self.options.delay,
            pause=self.options.pause,
            track_count=len(tracks),
            measured_seconds=self._measure(tracks),
        )
        self._console.print(f"Starting in {self.options.delay:g}s. Estimated end:")
        for estimate in estimates:
            self._console.print(
                f"  {estimate.label:>8}: {estimate.ends_at:%H:%M:%S}"
            )

    def run(self, tracks: Sequence[Path]) -> SessionReport:
        """Select a device, then play ``tracks`` to completion."""
        device = self.choose_device()
        report = SessionReport(device=device)
        if self.options.delay > 0:
            self._enter(SessionState.DELAYING)
            self.print_end_estimates(tracks)
            self._sleep(self.options.delay)
        report.started_at = self._now()
        total = len(tracks)
        progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        with progress:
            task = progress.add_task("Playing", total=total)
            for index, path in enumerate(tracks):
                self._enter(SessionState.PLAYING)
                progress.update(task, description=escape(path.name))
                logger.info("Playing %d/%d %s", index + 1, total, path)
                self._play_track(device, path, self.options.stereo_pan)
                report.played.append(path)
                progress.advance(task)
                if self.options.pause > 0 and index < total - 1:
                    self._enter(SessionState.PAUSING)
                    progress.update(
                        task, description=f"{escape(path.name)} (paused)"
                    )
                    self._sleep(self.options.pause)
        report.finished_at = self._now()
        self._enter(SessionState.DONE)
        logger.info("Played %d tracks", len(report.played))
        return report
