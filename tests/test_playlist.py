"""Tests for input resolution and playlist loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sequence_player.errors import PathError, UnsupportedExtension
from sequence_player.playlist import (
    SourceKind,
    TrackSource,
    apply_selector,
    is_supported,
    load_from_directory,
    resolve_input,
)
from sequence_player.playlist_io import load_m3u8, save_m3u8
from sequence_player.track_range import RangeSelector


def test_supported_extensions_case_insensitive() -> None:
    assert is_supported(Path("a.MP3"))
    assert is_supported(Path("b.Flac"))
    assert not is_supported(Path("c.ogg"))


def test_directory_lists_audio_files_only(music_dir: Path) -> None:
    tracks = load_from_directory(music_dir)
    assert {path.name for path in tracks} == {"one.mp3", "two.flac", "three.wav"}


def test_directory_skips_subdirectories(music_dir: Path) -> None:
    (music_dir / "nested.mp3").mkdir()
    tracks = load_from_directory(music_dir)
    assert "nested.mp3" not in {path.name for path in tracks}


def test_directory_order_is_not_assumed(tmp_path: Path) -> None:
    (tmp_path / "z.mp3").write_text("z", encoding="utf-8")
    (tmp_path / "a.mp3").write_text("a", encoding="utf-8")
    source = resolve_input(tmp_path)
    assert source.kind is SourceKind.DIRECTORY
    assert {path.name for path in source.tracks} == {"z.mp3", "a.mp3"}


def test_single_audio_file(tmp_path: Path) -> None:
    song = tmp_path / "song.wav"
    song.write_text("x", encoding="utf-8")
    source = resolve_input(song)
    assert source.kind is SourceKind.FILE
    assert source.tracks == (song,)


def test_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(PathError):
        resolve_input(tmp_path / "nope")


def test_unsupported_file_raises(tmp_path: Path) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("x", encoding="utf-8")
    with pytest.raises(UnsupportedExtension):
        resolve_input(notes)


def test_plain_m3u_is_unsupported(tmp_path: Path) -> None:
    m3u = tmp_path / "list.m3u"
    m3u.write_text("", encoding="utf-8")
    with pytest.raises(UnsupportedExtension):
        resolve_input(m3u)


def test_playlist_skips_comments_missing_and_non_audio(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "a.mp3").write_text("a", encoding="utf-8")
    (tmp_path / "b.flac").write_text("b", encoding="utf-8")
    (tmp_path / "c.txt").write_text("c", encoding="utf-8")
    playlist = tmp_path / "list.m3u8"
    playlist.write_text(
        "#comment\na.mp3\nmissing.mp3\nb.flac\nc.txt\n", encoding="utf-8"
    )
    with caplog.at_level(logging.WARNING, logger="sequence_player.playlist_io"):
        source = resolve_input(playlist)
    assert source.kind is SourceKind.PLAYLIST
    assert [path.name for path in source.tracks] == ["a.mp3", "b.flac"]
    skipped = [
        r for r in caplog.records if "Skipping playlist entry" in r.getMessage()
    ]
    assert len(skipped) == 2
    assert "missing.mp3" in skipped[0].getMessage()
    assert "c.txt" in skipped[1].getMessage()


def test_playlist_accepts_absolute_entries_and_blank_lines(tmp_path: Path) -> None:
    sub = tmp_path / "sub"
    sub.mkdir()
    song = sub / "song.mp3"
    song.write_text("x", encoding="utf-8")
    playlist = tmp_path / "list.m3u8"
    playlist.write_text(f"#EXTM3U\n\n{song}\n", encoding="utf-8")
    assert load_m3u8(playlist) == (song,)


def test_playlist_relative_to_its_folder(tmp_path: Path) -> None:
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "two.wav").write_text("2", encoding="utf-8")
    playlist = tmp_path / "list.m3u8"
    playlist.write_text("sub/two.wav\n", encoding="utf-8")
    assert load_m3u8(playlist) == (tmp_path / "sub" / "two.wav",)


def test_unreadable_playlist_raises(tmp_path: Path) -> None:
    playlist = tmp_path / "list.m3u8"
    playlist.write_bytes(b"\xff\xfe\xfa bad")
    with pytest.raises(PathError):
        load_m3u8(playlist)


def test_selector_applies_to_directories_only(tmp_path: Path) -> None:
    tracks = tuple(tmp_path / f"{i}.mp3" for i in range(3))
    selector = RangeSelector(offset=1)
    directory = TrackSource(SourceKind.DIRECTORY, tmp_path, tracks)
    playlist = TrackSource(SourceKind.PLAYLIST, tmp_path / "l.m3u8", tracks)
    assert apply_selector(directory, selector) == list(tracks[1:])
    assert apply_selector(playlist, selector) == list(tracks)


def test_save_playlist_round_trip(tmp_path: Path) -> None:
    a = tmp_path / "a.mp3"
    b = tmp_path / "b.mp3"
    a.write_text("a", encoding="utf-8")
    b.write_text("b", encoding="utf-8")
    dest = tmp_path / "out.m3u8"
    save_m3u8([b, a], dest)
    lines = dest.read_text(encoding="utf-8").splitlines()
    assert lines == ["#EXTM3U", "b.mp3", "a.mp3"]
    assert load_m3u8(dest) == (b, a)


def test_save_playlist_absolute(tmp_path: Path) -> None:
    a = tmp_path / "a.mp3"
    a.write_text("a", encoding="utf-8")
    dest = tmp_path / "lists" / "out.m3u8"
    save_m3u8([a], dest, mode="absolute")
    assert Path(dest.read_text(encoding="utf-8").splitlines()[1]).is_absolute()
