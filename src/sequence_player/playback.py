"""Route each track to the plain or the panned playback backend."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from sequence_player.devices import OutputDevice
from sequence_player.player_vlc import VlcPlayer
from sequence_player.spatial import SpatialPlayer

logger = logging.getLogger(__name__)

PAN_EPSILON = 0.001


def uses_spatial_output(pan: float) -> bool:
    return abs(pan) > PAN_EPSILON


class Playback:
    """Blocking single-track playback shared by the whole session.

    The VLC player is created once and reused; the spatial backend opens a
    fresh output stream for every track.
    """

    def __init__(
        self,
        vlc_factory: Callable[[], VlcPlayer] = VlcPlayer,
        spatial_factory: Callable[[], SpatialPlayer] = SpatialPlayer,
    ) -> None:
        self._vlc_factory = vlc_factory
        self._spatial_factory = spatial_factory
        self._vlc: Optional[VlcPlayer] = None
        self._spatial: Optional[SpatialPlayer] = None
        self._device: Optional[OutputDevice] = None

    @property
    def vlc(self) -> VlcPlayer:
        if self._vlc is None:
            self._vlc = self._vlc_factory()
        return self._vlc

    @property
    def spatial(self) -> SpatialPlayer:
        if self._spatial is None:
            self._spatial = self._spatial_factory()
        return self._spatial

    def list_devices(self) -> list[OutputDevice]:
        return self.vlc.list_devices()

    def play(self, device: OutputDevice, path: Path, pan: float) -> None:
        if uses_spatial_output(pan):
            logger.debug("Spatial playback of %s at pan %.2f", path.name, pan)
            self.spatial.play_blocking(path, device, pan)
            return
        if device != self._device:
            self.vlc.set_device(device)
            self._device = device
        self.vlc.play_blocking(path)
