"""Pytest configuration for the sequence player."""

from __future__ import annotations

import os
from pathlib import Path
import shutil
import subprocess

import pytest


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    del config
    if os.environ.get("SEQUENCE_PLAYER_CI") != "1":
        return
    skip_vlc = pytest.mark.skip(reason="Skipping VLC-dependent tests in CI.")
    for item in items:
        if "vlc" in item.keywords:
            item.add_marker(skip_vlc)


class FakeSox:
    """Stand-in for subprocess.run that copies input to output."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.calls: list[list[str]] = []

    def __call__(self, command: list[str], **kwargs) -> subprocess.CompletedProcess:
        del kwargs
        self.calls.append(command)
        source, target = Path(command[1]), Path(command[2])
        if self.returncode == 0:
            shutil.copyfile(source, target)
        else:
            target.write_text("partial", encoding="utf-8")
        return subprocess.CompletedProcess(
            command, self.returncode, stdout="", stderr=self.stderr
        )


@pytest.fixture
def fake_sox() -> FakeSox:
    return FakeSox()


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "music"
    folder.mkdir()
    for name in ("one.mp3", "two.flac", "three.wav"):
        (folder / name).write_text(name, encoding="utf-8")
    (folder / "cover.jpg").write_text("jpg", encoding="utf-8")
    return folder


@pytest.fixture
def sox_factory() -> type[FakeSox]:
    return FakeSox
