"""Centralized logging configuration.
Call setup_logging() once at application startup; format, level, optional
log file and third-party levels all come from Settings.
"""

from __future__ import annotations

import io
import logging
import sys
from typing import Optional, TextIO

from requirements_clarifier.config import Settings, get_settings


def _level(name: str) -> int:
    return logging.getLevelName(name.upper()) if name else logging.INFO


def _utf8_stdout() -> TextIO:
    # Unicode-safe wrapper for Windows consoles
    if hasattr(sys.stdout, "buffer"):
        return io.TextIOWrapper(
            sys.stdout.buffer, encoding="utf-8", errors="replace", line_buffering=True
        )
    return sys.stdout


def build_handlers(
    settings: Settings,
    stream: Optional[TextIO] = None,
) -> list[logging.Handler]:
    """Console handler plus a file handler when `log_file` is set."""
    formatter = logging.Formatter(fmt=settings.log_format, datefmt=settings.log_date_format)
    level = _level(settings.log_level)

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or _utf8_stdout())]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def apply_library_levels(settings: Settings) -> None:
    """Quiet noisy libraries but keep our code at the requested level."""
    for name, level in settings.library_log_levels.items():
        logging.getLogger(name).setLevel(_level(level))


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> None:
    """Configure structured logging for the analysis pipeline."""
    settings = settings or get_settings()
    if level:
        settings = settings.model_copy(update={"log_level": level})

    root = logging.getLogger()
    # Avoid duplicate handlers on repeated calls
    if root.handlers:
        return

    root.setLevel(_level(settings.log_level))
    for handler in build_handlers(settings):
        root.addHandler(handler)
    apply_library_levels(settings)
