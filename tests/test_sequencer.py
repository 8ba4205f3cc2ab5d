"""Tests for the playback sequencer."""

from __future__ import annotations

from datetime import datetime, timedelta
import io
from pathlib import Path

import pytest
from rich.console import Console

from sequence_player.devices import OutputDevice
from sequence_player.errors import DecodeOrDeviceError
from sequence_player.sequencer import (
    PlaybackSequencer,
    SessionOptions,
    SessionState,
    estimate_end_times,
)

DEVICES = [
    OutputDevice(index=0, device_id="hw:0", name="Speakers"),
    OutputDevice(index=1, device_id="hw:1", name="Headphones"),
]
START = datetime(2024, 5, 1, 20, 0, 0)


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple] = []
        self.select_calls = 0

    def play(self, device: OutputDevice, path: Path, pan: float) -> None:
        self.events.append(("play", device.index, path.name, pan))

    def sleep(self, seconds: float) -> None:
        self.events.append(("sleep", seconds))

    def select(self, devices) -> OutputDevice:
        self.select_calls += 1
        return devices[1]


def _sequencer(
    recorder: Recorder, options: SessionOptions, measured: float | None = None
) -> tuple[PlaybackSequencer, io.StringIO]:
    output = io.StringIO()
    sequencer = PlaybackSequencer(
        recorder.play,
        lambda: DEVICES,
        recorder.select,
        options,
        sleep=recorder.sleep,
        now=lambda: START,
        console=Console(file=output, width=100),
        measure=lambda _tracks: measured,
    )
    return sequencer, output


TRACKS = [Path("a.mp3"), Path("b.mp3"), Path("c.mp3")]


def test_plays_in_order_without_sleeping() -> None:
    recorder = Recorder()
    sequencer, _ = _sequencer(recorder, SessionOptions())
    report = sequencer.run(TRACKS)
    assert recorder.events == [
        ("play", 1, "a.mp3", 0.0),
        ("play", 1, "b.mp3", 0.0),
        ("play", 1, "c.mp3", 0.0),
    ]
    assert report.played == TRACKS
    assert report.device == DEVICES[1]
    assert recorder.select_calls == 1
    assert sequencer.state is SessionState.DONE


def test_pause_between_tracks_only() -> None:
    recorder = Recorder()
    sequencer, _ = _sequencer(recorder, SessionOptions(pause=2.5))
    sequencer.run(TRACKS)
    assert [e[0] for e in recorder.events] == [
        "play",
        "sleep",
        "play",
        "sleep",
        "play",
    ]
    assert ("sleep", 2.5) in recorder.events


def test_delay_happens_before_first_track() -> None:
    recorder = Recorder()
    sequencer, output = _sequencer(recorder, SessionOptions(delay=30.0), 600.0)
    sequencer.run(TRACKS)
    assert recorder.events[0] == ("sleep", 30.0)
    assert sequencer.transitions[:4] == [
        SessionState.IDLE,
        SessionState.DEVICE_SELECTED,
        SessionState.DELAYING,
        SessionState.PLAYING,
    ]
    text = output.getvalue()
    assert "Estimated end" in text
    assert "20:30:30" in text
    assert "measured: 20:10:30" in text


def test_no_estimates_without_delay() -> None:
    recorder = Recorder()
    sequencer, output = _sequencer(recorder, SessionOptions())
    sequencer.run(TRACKS)
    assert "Estimated end" not in output.getvalue()
    assert SessionState.DELAYING not in sequencer.transitions


def test_pan_is_forwarded() -> None:
    recorder = Recorder()
    sequencer, _ = _sequencer(recorder, SessionOptions(stereo_pan=-0.4))
    sequencer.run(TRACKS[:1])
    assert recorder.events == [("play", 1, "a.mp3", -0.4)]


def test_failure_stops_the_run() -> None:
    recorder = Recorder()

    def play(device: OutputDevice, path: Path, pan: float) -> None:
        if path.name == "b.mp3":
            raise DecodeOrDeviceError(path, "corrupt")
        recorder.play(device, path, pan)

    sequencer, _ = _sequencer(recorder, SessionOptions())
    sequencer._play_track = play
    with pytest.raises(DecodeOrDeviceError):
        sequencer.run(TRACKS)
    assert [e[2] for e in recorder.events] == ["a.mp3"]


def test_estimate_end_times_includes_pauses() -> None:
    estimates = estimate_end_times(
        START, delay=60, pause=10, track_count=4, reference_minutes=(30,)
    )
    assert [e.label for e in estimates] == ["30 min"]
    assert estimates[0].ends_at == START + timedelta(minutes=31, seconds=30)


def test_estimate_end_times_measured() -> None:
    estimates = estimate_end_times(
        START, delay=0, pause=0, track_count=1, measured_seconds=125.0
    )
    assert [e.label for e in estimates][-1] == "measured"
    assert estimates[-1].ends_at == START + timedelta(seconds=125)
    assert len(estimates) == 5


def test_end_to_end_directory_selection(tmp_path: Path) -> None:
    from sequence_player.playlist import apply_selector, resolve_input
    from sequence_player.playback import Playback
    from sequence_player.track_range import parse_range

    for name in ("first.mp3", "second.mp3", "third.mp3"):
        (tmp_path / name).write_text(name, encoding="utf-8")
    source = resolve_input(tmp_path)
    tracks = apply_selector(source, parse_range("1:"))

    plain: list[str] = []
    spatial: list[str] = []

    class Vlc:
        def list_devices(self) -> list[OutputDevice]:
            return DEVICES

        def set_device(self, device: OutputDevice) -> None:
            pass

        def play_blocking(self, path: Path) -> None:
            plain.append(path.name)

    class Spatial:
        def play_blocking(self, path: Path, device: OutputDevice, pan: float) -> None:
            spatial.append(path.name)

    playback = Playback(vlc_factory=Vlc, spatial_factory=Spatial)
    recorder = Recorder()
    sequencer = PlaybackSequencer(
        playback.play,
        playback.list_devices,
        recorder.select,
        SessionOptions(),
        sleep=recorder.sleep,
        console=Console(file=io.StringIO()),
    )
    sequencer.run(tracks)
    assert plain == [path.name for path in source.tracks[1:]]
    assert spatial == []
    assert not any(e[0] == "sleep" for e in recorder.events)
