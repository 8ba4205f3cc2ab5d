"""Parsing and applying the ``skip:take`` track selector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, TypeVar

from sequence_player.errors import ParseError

T = TypeVar("T")


@dataclass(frozen=True)
class RangeSelector:
    """Leading tracks to skip and where to stop.

    ``limit`` is an exclusive end index from 2 up, unbounded at 0 or 1, and
    a number of tracks to drop from the end when negative.
    """

    offset: Optional[int] = None
    limit: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.offset is None and self.limit is None


def _parse_bound(segment: str, name: str, text: str) -> Optional[int]:
    segment = segment.strip()
    if not segment:
        return None
    try:
        return int(segment)
    except ValueError:
        raise ParseError(
            f"Invalid {name} {segment!r} in track selector {text!r}"
        ) from None


def parse_range(text: str) -> RangeSelector:
    """Parse ``"skip:take"`` into a :class:`RangeSelector`."""
    if not text or not text.strip():
        return RangeSelector()
    segments = text.split(":")
    if len(segments) > 2:
        raise ParseError(f"Track selector {text!r} has more than one ':'")
    offset = _parse_bound(segments[0], "offset", text)
    limit = None
    if len(segments) == 2:
        limit = _parse_bound(segments[1], "limit", text)
    return RangeSelector(offset=offset, limit=limit)


def resolve_bounds(count: int, selector: RangeSelector) -> tuple[int, int]:
    """Return ``(lower, upper)`` where an upper bound of 0 means unbounded."""
    lower = selector.offset or 0
    if selector.limit is None or selector.limit in (0, 1):
        upper = 0
    elif selector.limit > 1:
        upper = selector.limit
    else:
        upper = max(count - abs(selector.limit), 0)
    return lower, upper


def select_tracks(candidates: Sequence[T], selector: RangeSelector) -> list[T]:
    """Apply ``selector`` to ``candidates`` preserving their order."""
    lower, upper = resolve_bounds(len(candidates), selector)
    selected: list[T] = []
    for index, item in enumerate(candidates):
        if index < lower:
            continue
        if upper != 0 and index >= upper:
            break
        selected.append(item)
    return selected
