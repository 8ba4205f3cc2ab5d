"""Output device descriptors and the interactive device prompt."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Sequence

from sequence_player.errors import DeviceInputError, DeviceUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputDevice:
    """An audio output as reported by the playback backend.

    ``device_id`` is the backend identifier; an empty string means the
    system default output.
    """

    index: int
    device_id: str
    name: str

    @property
    def is_default(self) -> bool:
        return not self.device_id


DEFAULT_DEVICE = OutputDevice(index=0, device_id="", name="System default")

SelectDevice = Callable[[Sequence[OutputDevice]], OutputDevice]


def format_devices(devices: Sequence[OutputDevice]) -> list[str]:
    return [f" {device.index}: {device.name}" for device in devices]


def parse_choice(text: str, devices: Sequence[OutputDevice]) -> OutputDevice:
    """Map a typed index to a device, raising DeviceInputError otherwise."""
    try:
        index = int(text.strip())
    except ValueError:
        raise DeviceInputError("Invalid input") from None
    for device in devices:
        if device.index == index:
            return device
    raise DeviceInputError("Invalid device index")


def prompt_for_device(
    devices: Sequence[OutputDevice],
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> OutputDevice:
    """Ask until a valid device index is entered."""
    if not devices:
        raise DeviceUnavailable("No audio output devices available")
    write("Available devices:")
    for line in format_devices(devices):
        write(line)
    while True:
        try:
            text = read_line("Input choice: ")
        except (EOFError, OSError) as exc:
            raise DeviceUnavailable(f"Could not read device choice: {exc}") from exc
        try:
            device = parse_choice(text, devices)
        except DeviceInputError as exc:
            write(str(exc))
            continue
        logger.info("Selected output device %s", device.name)
        return device


def fixed_choice(index: int) -> SelectDevice:
    """Return a selector that always picks ``index`` without prompting."""

    def select(devices: Sequence[OutputDevice]) -> OutputDevice:
        try:
            return parse_choice(str(index), devices)
        except DeviceInputError as exc:
            raise DeviceUnavailable(f"{exc}: {index}") from exc

    return select
