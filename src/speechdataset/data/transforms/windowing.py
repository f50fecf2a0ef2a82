"""Window extraction over the frame axis of variable-length examples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from speechdataset.errors import InvalidArgumentError


@dataclass(frozen=True, slots=True, order=True)
class Window:
    """Half-open frame range ``[begin, end)``."""

    begin: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.begin

    def contains(self, frame_index: int) -> bool:
        return self.begin <= frame_index < self.end

    def as_slice(self) -> slice:
        return slice(self.begin, self.end)

    def __iter__(self) -> Iterator[int]:
        yield self.begin
        yield self.end


def valid_windows(
    snippet_length: int,
    focus_index: int | None,
    window_length: int,
    window_hop: int,
) -> tuple[Window, ...]:
    """Compute the windows of ``window_length`` frames to cut from a snippet.

    Without a focus frame the windows are evenly spaced by ``window_hop``,
    starting at frame 0; a trailing remainder shorter than a window is left
    uncovered.

    With a focus frame every emitted window contains it. The anchor is the
    centered window, clamped into bounds, walked back along the hop grid as
    far as the focus frame stays covered; windows are then emitted forward
    from that anchor until the focus frame would precede the window start or
    the window would run past the snippet end.
    """
    _require_positive_int("snippet_length", snippet_length)
    if focus_index is not None:
        _require_int("focus_index", focus_index)
        if focus_index < 0:
            raise InvalidArgumentError(f"focus_index must be >= 0, got {focus_index}")
    _require_positive_int("window_length", window_length)
    _require_positive_int("window_hop", window_hop)
    if window_length > snippet_length:
        raise InvalidArgumentError(
            f"window_length ({window_length}) exceeds snippet_length ({snippet_length})"
        )
    if focus_index is not None and focus_index >= snippet_length:
        raise InvalidArgumentError(
            f"focus_index ({focus_index}) equals or exceeds snippet_length ({snippet_length})"
        )

    snippet_length = int(snippet_length)
    window_length = int(window_length)
    window_hop = int(window_hop)

    if window_length == snippet_length:
        return (Window(0, snippet_length),)

    if focus_index is None:
        return _evenly_spaced_windows(snippet_length, window_length, window_hop)

    focus_index = int(focus_index)
    left = _focused_anchor(snippet_length, focus_index, window_length, window_hop)
    return _focused_windows(left, snippet_length, focus_index, window_length, window_hop)


def _evenly_spaced_windows(snippet_length: int, window_length: int, window_hop: int) -> tuple[Window, ...]:
    windows: list[Window] = []
    begin = 0
    while begin + window_length <= snippet_length:
        windows.append(Window(begin, begin + window_length))
        begin += window_hop
    return tuple(windows)


def _focused_anchor(snippet_length: int, focus_index: int, window_length: int, window_hop: int) -> int:
    """Leftmost hop-aligned start, relative to the centered window, still covering the focus."""
    left = focus_index - window_length // 2
    if left < 0:
        left = 0
    elif left + window_length > snippet_length:
        left = snippet_length - window_length

    while True:
        previous = left - window_hop
        if previous < 0 or focus_index >= previous + window_length:
            break
        left = previous
    return left


def _focused_windows(
    left: int,
    snippet_length: int,
    focus_index: int,
    window_length: int,
    window_hop: int,
) -> tuple[Window, ...]:
    windows: list[Window] = []
    while left + window_length <= snippet_length:
        if focus_index < left:
            break
        windows.append(Window(left, left + window_length))
        left += window_hop
    return tuple(windows)


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _require_positive_int(name: str, value: object) -> None:
    if _require_int(name, value) <= 0:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value}")
