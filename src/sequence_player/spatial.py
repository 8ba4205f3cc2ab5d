"""Panned playback through a virtual listener and two emitters.

The listener's ears sit on the x axis. Each source channel gets an emitter
one unit in front of the listener, shifted sideways by the pan value. Every
ear hears every emitter with inverse-square attenuation and a head-shadow
weight, which yields a 2x2 gain matrix applied to the decoded samples.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from pathlib import Path
from typing import Any, Optional, cast

import numpy as np

from sequence_player.devices import OutputDevice
from sequence_player.errors import DecodeOrDeviceError

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]

sd: Any | None = None
sf: Any | None = None
_AUDIO_IMPORT_ERROR: Optional[Exception] = None


def _load_audio_modules() -> None:
    global sd, sf, _AUDIO_IMPORT_ERROR
    if (sd is not None and sf is not None) or _AUDIO_IMPORT_ERROR is not None:
        return
    try:
        import sounddevice as sd_module  # type: ignore
        import soundfile as sf_module  # type: ignore
    except Exception as exc:  # pragma: no cover - needs PortAudio/libsndfile
        _AUDIO_IMPORT_ERROR = exc
    else:
        sd = cast(Any, sd_module)
        sf = cast(Any, sf_module)


@dataclass(frozen=True)
class SpatialLayout:
    left_ear: Point
    right_ear: Point
    left_emitter: Point
    right_emitter: Point


def layout_for_pan(
    pan: float, *, ear_offset: float = 1.0, distance: float = 1.0
) -> SpatialLayout:
    return SpatialLayout(
        left_ear=(-ear_offset, 0.0, 0.0),
        right_ear=(ear_offset, 0.0, 0.0),
        left_emitter=(pan - ear_offset, distance, 0.0),
        right_emitter=(pan + ear_offset, distance, 0.0),
    )


def _distance(a: Point, b: Point) -> float:
    return math.dist(a, b)


def _ear_gain(emitter: Point, ear: Point, other_ear: Point) -> float:
    near = _distance(emitter, ear)
    far = _distance(emitter, other_ear)
    separation = _distance(ear, other_ear)
    shadow = min(max(0.5 + 0.5 * (far - near) / separation, 0.0), 1.0)
    attenuation = min(1.0, 1.0 / max(near * near, 1e-9))
    return shadow * attenuation


def channel_matrix(layout: SpatialLayout) -> np.ndarray:
    """Return ``m`` where ``m[ear, channel]`` is the gain of channel at ear.

    The matrix is scaled so the louder ear sums to unity.
    """
    ears = (
        (layout.left_ear, layout.right_ear),
        (layout.right_ear, layout.left_ear),
    )
    emitters = (layout.left_emitter, layout.right_emitter)
    matrix = np.array(
        [[_ear_gain(emitter, ear, other) for emitter in emitters] for ear, other in ears],
        dtype=np.float32,
    )
    peak = float(matrix.sum(axis=1).max())
    if peak > 0:
        matrix /= peak
    return matrix


def to_stereo(samples: np.ndarray) -> np.ndarray:
    if samples.ndim == 1:
        samples = samples[:, np.newaxis]
    if samples.shape[1] == 1:
        return np.repeat(samples, 2, axis=1)
    return samples[:, :2]


def apply_pan(samples: np.ndarray, pan: float) -> np.ndarray:
    matrix = channel_matrix(layout_for_pan(pan))
    return (to_stereo(samples) @ matrix.T).astype(np.float32, copy=False)


class SpatialPlayer:
    """Decode with soundfile and play the panned mix with sounddevice."""

    def __init__(self) -> None:
        _load_audio_modules()
        if sd is None or sf is None:
            raise RuntimeError(
                "Panned playback needs the sounddevice and soundfile packages."
            ) from _AUDIO_IMPORT_ERROR

    def output_index(self, device: OutputDevice) -> Optional[int]:
        """Find the sounddevice output matching ``device`` by name."""
        if device.is_default:
            return None
        wanted = device.name.casefold()
        try:
            candidates = cast(Any, sd).query_devices()
        except Exception:
            logger.warning("sounddevice query failed", exc_info=True)
            return None
        for index, info in enumerate(candidates):
            if info["max_output_channels"] < 2:
                continue
            name = str(info["name"]).casefold()
            if name in wanted or wanted in name:
                return index
        logger.info("No sounddevice output matches %s, using default", device.name)
        return None

    def play_blocking(self, path: Path, device: OutputDevice, pan: float) -> None:
        try:
            samples, rate = cast(Any, sf).read(
                str(path), dtype="float32", always_2d=True
            )
        except Exception as exc:
            raise DecodeOrDeviceError(path, str(exc)) from exc
        mixed = apply_pan(samples, pan)
        try:
            cast(Any, sd).play(
                mixed, rate, device=self.output_index(device), blocking=True
            )
        except Exception as exc:
            raise DecodeOrDeviceError(path, str(exc)) from exc
