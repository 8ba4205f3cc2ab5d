"""Command-line interface for the sequence player."""

from __future__ import annotations

import argparse
import sys
import logging
import threading
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, TypeVar
from types import TracebackType

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from sequence_player.config import AppConfig, load_config
from sequence_player.devices import (
    SelectDevice,
    fixed_choice,
    format_devices,
    prompt_for_device,
)
from sequence_player.errors import SequencePlayerError
from sequence_player.faults import dump_threads, enable_faulthandler
from sequence_player.logging_setup import init_logging, set_console_level
from sequence_player.metadata import format_duration, get_duration
from sequence_player.playback import Playback
from sequence_player.playlist import apply_selector, resolve_input
from sequence_player.playlist_io import save_m3u8
from sequence_player.sequencer import PlaybackSequencer, SessionOptions
from sequence_player.sox_cache import SoxCache
from sequence_player.track_range import parse_range

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="seq-player",
        description="Play a folder, file or playlist to a chosen output device",
    )
    parser.add_argument(
        "--input-path",
        default=None,
        help="Audio file, .m3u8 playlist or directory to play",
    )
    parser.add_argument(
        "--pause", type=float, default=None, help="Seconds to wait between tracks"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait before the first track",
    )
    parser.add_argument(
        "--stereo-pan",
        type=float,
        default=None,
        help="Pan bias from -1 (left) to 1 (right)",
    )
    parser.add_argument(
        "--track-select",
        default="",
        help='Directory range as "skip:take", e.g. "2:" or "0:-1"',
    )
    parser.add_argument("--sox-path", default=None, help="SoX executable")
    parser.add_argument(
        "--normalize",
        action="store_true",
        default=None,
        help="Run tracks through SoX replay-gain and pan before playback",
    )
    parser.add_argument(
        "--keep-cache",
        action="store_true",
        default=None,
        help="Keep the SoX cache directory after playback",
    )
    parser.add_argument("--cache-dir", default=None, help="Root of the SoX cache")
    parser.add_argument(
        "--device", type=int, default=None, help="Output device index (skips prompt)"
    )
    parser.add_argument(
        "--list-devices", action="store_true", help="List output devices and exit"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Print the tracks that would play"
    )
    parser.add_argument(
        "--save-playlist", default=None, help="Write the final track list as .m3u8"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show info logs on the console"
    )
    return parser


def resolve_options(args: argparse.Namespace, cfg: AppConfig) -> SessionOptions:
    """Merge CLI flags over the stored configuration."""
    pause = cfg.pause if args.pause is None else args.pause
    delay = cfg.delay if args.delay is None else args.delay
    pan = cfg.stereo_pan if args.stereo_pan is None else args.stereo_pan
    return SessionOptions(
        pause=max(pause, 0.0),
        delay=max(delay, 0.0),
        stereo_pan=min(max(pan, -1.0), 1.0),
    )


T = TypeVar("T")


def _pick(flag: Optional[T], fallback: T) -> T:
    return fallback if flag is None else flag


def _print_tracks(console: Console, tracks: Sequence[Path]) -> None:
    for index, path in enumerate(tracks, start=1):
        console.print(
            f"{index:>3}. {path}  [{format_duration(get_duration(path))}]",
            markup=False,
        )


def _preprocess(
    cache: SoxCache, tracks: Sequence[Path], console: Console
) -> list[Path]:
    progress = Progress(
        TextColumn("Normalizing"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.description}"),
        console=console,
    )
    with progress:
        task = progress.add_task("", total=len(tracks))

        def report(done: int, total: int, source: Path) -> None:
            progress.update(
                task, completed=done, total=total, description=escape(source.name)
            )

        return cache.process(tracks, on_progress=report)


def run(args: argparse.Namespace, cfg: AppConfig, console: Console) -> int:
    """Resolve, optionally preprocess and play the requested tracks."""
    playback = Playback()
    if args.list_devices:
        for line in format_devices(playback.list_devices()):
            console.print(line, markup=False)
        return 0

    selector = parse_range(args.track_select)
    source = resolve_input(Path(args.input_path))
    tracks = apply_selector(source, selector)
    logger.info(
        "Resolved %s input %s to %d tracks",
        source.kind.value,
        source.origin,
        len(tracks),
    )
    if args.save_playlist:
        save_m3u8(tracks, Path(args.save_playlist))
    if args.dry_run:
        _print_tracks(console, tracks)
        return 0
    if not tracks:
        console.print("No tracks to play.")
        return 0

    options = resolve_options(args, cfg)
    select: SelectDevice = (
        prompt_for_device if args.device is None else fixed_choice(args.device)
    )

    if not _pick(args.normalize, cfg.normalize):
        sequencer = PlaybackSequencer(
            playback.play, playback.list_devices, select, options, console=console
        )
        sequencer.run(tracks)
        return 0

    cache_dir = _pick(args.cache_dir, cfg.cache_dir)
    with SoxCache(
        options.stereo_pan,
        sox_path=_pick(args.sox_path, cfg.sox_path),
        root=Path(cache_dir) if cache_dir else None,
        keep=_pick(args.keep_cache, cfg.keep_cache),
    ) as cache:
        processed = _preprocess(cache, tracks, console)
        # The pan is already baked into the processed copies.
        baked = SessionOptions(pause=options.pause, delay=options.delay)
        sequencer = PlaybackSequencer(
            playback.play, playback.list_devices, select, baked, console=console
        )
        sequencer.run(processed)
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    log_path = init_logging()
    enable_faulthandler(log_path)
    logger.info("App start")

    def excepthook(exc_type, exc, tb) -> None:
        logger.exception("Uncaught exception", exc_info=(exc_type, exc, tb))
        dump_threads("uncaught exception")

    sys.excepthook = excepthook

    if hasattr(threading, "excepthook"):

        def thread_hook(args: threading.ExceptHookArgs) -> None:
            exc_value = args.exc_value or RuntimeError("unknown")
            exc_info: Tuple[
                type[BaseException], BaseException, Optional[TracebackType]
            ] = (
                args.exc_type,
                exc_value,
                args.exc_traceback,
            )
            thread_name = args.thread.name if args.thread else "thread"
            logger.exception("Thread exception in %s", thread_name, exc_info=exc_info)
            dump_threads(f"thread exception in {thread_name}")

        threading.excepthook = thread_hook

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if not args.list_devices and not args.input_path:
        parser.error("--input-path is required")
    if args.verbose:
        set_console_level(logging.INFO)

    try:
        exit_code = run(args, load_config(), Console())
    except (SequencePlayerError, RuntimeError) as exc:
        logger.info("Aborted: %s", exc)
        print(str(exc), file=sys.stderr)
        exit_code = 1
    logger.info("App exit code=%s", exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
