"""Logging setup shared by the loader, parser, renderer and CLI."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "defgen"

# The logger name shows which stage emitted a record, e.g. ``[defgen.parser]``.
CONSOLE_FORMAT = "[%(name)s] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(stage: str | None = None) -> logging.Logger:
    """Return the logger for one extraction stage (``loader``, ``parser``...)."""
    return logging.getLogger(f"{_LOGGER_NAME}.{stage}" if stage else _LOGGER_NAME)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send defgen records to stderr, and to ``log_file`` when given.

    ``verbose`` lowers the level to DEBUG so discovered modules, services and
    exclusions are reported. Calling this again replaces the earlier handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [_handler(logging.StreamHandler(), CONSOLE_FORMAT, level)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_file, encoding="utf-8"), FILE_FORMAT, level))
    for handler in handlers:
        root.addHandler(handler)
    return root


def _handler(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["CONSOLE_FORMAT", "FILE_FORMAT", "configure_logging", "get_logger"]
