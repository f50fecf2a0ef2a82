"""Serializable keyword-spotting example store with windowed batch assembly."""

from speechdataset.errors import FormatError, InvalidArgumentError, NotFoundError

__all__ = [
    "FormatError",
    "InvalidArgumentError",
    "NotFoundError",
]
