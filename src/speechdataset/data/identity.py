"""Unique example id generation.

A single :data:`DEFAULT_UID_GENERATOR` is created at import time and lives for
the rest of the process; stores share it unless given their own generator.
Ids handed out by a generator are never reused.
"""

from __future__ import annotations

from itertools import count


class UidGenerator:
    """Monotonic id source producing strings such as ``"ex-00000001"``."""

    def __init__(self, *, prefix: str = "ex", start: int = 1) -> None:
        if not prefix:
            raise ValueError("prefix must not be empty")
        if start < 0:
            raise ValueError("start must be >= 0")
        self._prefix = prefix
        self._counter = count(start)

    @property
    def prefix(self) -> str:
        return self._prefix

    def next_uid(self) -> str:
        return f"{self._prefix}-{next(self._counter):08d}"


DEFAULT_UID_GENERATOR = UidGenerator()
