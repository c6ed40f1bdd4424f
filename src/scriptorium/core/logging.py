"""Console logging for the ``scriptorium`` command.

Engine modules only create module loggers; the CLI calls
:func:`configure_logging` once per invocation to route records to stderr
through Rich. Calling it again adjusts the level without stacking handlers.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging", "console"]

LOG_LEVEL_ENV: Final[str] = "SCRIPTORIUM_LOG_LEVEL"
_HANDLER_MARKER: Final[str] = "_scriptorium_handler"

# Library loggers that are too chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")

console = Console(stderr=True)


def _level(level_name: str | None) -> int:
    name = (level_name or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _installed_handler(root: logging.Logger) -> logging.Handler | None:
    return next((h for h in root.handlers if getattr(h, _HANDLER_MARKER, False)), None)


def configure_logging(level_name: str | None = None) -> None:
    """Route log records to the stderr console at ``level_name``.

    Without an explicit level, ``SCRIPTORIUM_LOG_LEVEL`` is used, then INFO.
    Unknown level names fall back to INFO.
    """
    root = logging.getLogger()
    if _installed_handler(root) is None:
        handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _HANDLER_MARKER, True)
        root.handlers = [handler]

    root.setLevel(_level(level_name))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
