"""Error kinds raised by dataset store, codec, and windowing operations."""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Malformed or missing parameters, or an operation invalid for current state."""


class NotFoundError(LookupError):
    """Unknown example uid or label lookup."""


class FormatError(ValueError):
    """Serialized dataset bytes do not match the expected binary layout."""
