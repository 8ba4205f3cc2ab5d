"""faulthandler integration for crash diagnostics."""

from __future__ import annotations

import faulthandler
import time
from pathlib import Path
from typing import Optional, TextIO

_DUMP_FILE: Optional[TextIO] = None


def enable_faulthandler(log_path: Path) -> Path:
    """Route fatal-signal tracebacks into ``crashdump.log`` beside the log."""
    global _DUMP_FILE
    dump_path = log_path.parent / "crashdump.log"
    try:
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(dump_path, "a", encoding="utf-8")
    except OSError:
        return dump_path
    _DUMP_FILE = handle
    faulthandler.enable(file=handle, all_threads=True)
    return dump_path


def dump_threads(label: str) -> None:
    """Write a timestamped header and the stacks of all threads."""
    handle = _DUMP_FILE
    if handle is None:
        return
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    try:
        handle.write(f"\n[{stamp}] {label}\n")
        faulthandler.dump_traceback(file=handle, all_threads=True)
        handle.flush()
    except (OSError, ValueError):
        return
