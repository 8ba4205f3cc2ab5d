"""VLC-backed audio player."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, cast
import threading

from sequence_player.devices import DEFAULT_DEVICE, OutputDevice
from sequence_player.errors import DecodeOrDeviceError

logger = logging.getLogger(__name__)

vlc: Any | None = None
_VLC_IMPORT_ERROR: Optional[Exception] = None


def _load_vlc() -> None:
    global vlc
    global _VLC_IMPORT_ERROR
    if vlc is not None or _VLC_IMPORT_ERROR is not None:
        return
    try:
        import vlc as vlc_module  # type: ignore
    except Exception as exc:  # pragma: no cover - platform-dependent import
        vlc = None
        _VLC_IMPORT_ERROR = exc
    else:
        vlc = cast(Any, vlc_module)
        _VLC_IMPORT_ERROR = None


def _decode(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value) if value is not None else ""


class VlcPlayer:
    """Blocking wrapper around python-vlc's MediaPlayer."""

    def __init__(self, poll_seconds: float = 0.25) -> None:
        _load_vlc()
        if vlc is None:
            raise RuntimeError(
                "VLC backend is unavailable. Install VLC and the python-vlc package."
            ) from _VLC_IMPORT_ERROR
        self._instance = cast(Any, vlc).Instance()
        self._player = self._instance.media_player_new()
        self._poll_seconds = poll_seconds
        self._current_media: Optional[str] = None
        self._device = DEFAULT_DEVICE
        self._end_reached = threading.Event()
        self._error = threading.Event()
        self._attach_events()

    def _attach_events(self) -> None:
        if vlc is None:
            return
        vlc_module = cast(Any, vlc)
        try:
            event_manager = self._player.event_manager()
            event_manager.event_attach(
                vlc_module.EventType.MediaPlayerEndReached, self._handle_end_reached
            )
            event_manager.event_attach(
                vlc_module.EventType.MediaPlayerEncounteredError, self._handle_error
            )
        except Exception:
            logger.warning("VLC event manager unavailable", exc_info=True)

    def _handle_end_reached(self, event: object) -> None:
        del event
        self._end_reached.set()

    def _handle_error(self, event: object) -> None:
        del event
        self._error.set()
        self._end_reached.set()

    @property
    def current_media(self) -> Optional[str]:
        """Return the current media path if loaded."""
        return self._current_media

    def list_devices(self) -> list[OutputDevice]:
        """Enumerate output devices of the active audio module."""
        try:
            head = self._player.audio_output_device_enum()
        except Exception:
            logger.warning("Device enumeration failed", exc_info=True)
            return [DEFAULT_DEVICE]
        devices: list[OutputDevice] = []
        node = head
        while node:
            item = node.contents
            devices.append(
                OutputDevice(
                    index=len(devices),
                    device_id=_decode(item.device),
                    name=_decode(item.description) or _decode(item.device),
                )
            )
            node = item.next
        if head:
            release = getattr(vlc, "libvlc_audio_output_device_list_release", None)
            if release is not None:
                release(head)
        return devices or [DEFAULT_DEVICE]

    def set_device(self, device: OutputDevice) -> None:
        """Route subsequent playback to ``device``."""
        self._device = device
        self._apply_device()

    def _apply_device(self) -> None:
        # VLC drops the choice when the audio output is recreated, so this
        # runs again after every play().
        if self._device.is_default:
            return
        self._player.audio_output_device_set(None, self._device.device_id)

    def load(self, path: str) -> None:
        """Load media into the player."""
        media = self._instance.media_new(path)
        self._player.set_media(media)
        self._current_media = path
        self._end_reached.clear()
        self._error.clear()

    def stop(self) -> None:
        self._player.stop()

    def get_state(self) -> str:
        """Return a best-effort playback state string."""
        try:
            state = self._player.get_state()
        except Exception:
            return "unknown"
        if state is None:
            return "unknown"
        name = getattr(state, "name", None)
        if isinstance(name, str):
            return name.lower()
        return str(state).lower()

    def play_blocking(self, path: Path) -> None:
        """Play ``path`` and return once it has finished."""
        self.load(str(path))
        if self._player.play() == -1:
            raise DecodeOrDeviceError(path, "VLC could not start playback")
        self._apply_device()
        while not self._end_reached.wait(self._poll_seconds):
            if self.get_state() == "error":
                self._error.set()
                break
        self._player.stop()
        if self._error.is_set():
            raise DecodeOrDeviceError(path, "VLC reported a decode or output error")
