"""Logging configuration for command line entry points."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: int | str = logging.INFO, format_string: str | None = None) -> None:
    """Configure a stderr stream handler on the root logger.

    Library modules only create loggers; handlers are installed here by the CLI.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
