"""Logging setup helpers for the slideshow renderer."""
from __future__ import annotations

import logging
from logging import Logger
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Pillow logs every PNG chunk at DEBUG and MoviePy is chatty about ffmpeg.
_NOISY_LOGGERS = ("PIL", "moviepy", "asyncio")


def configure_logging(
    level: str,
    log_file: Optional[Path] = None,
    *,
    noisy: Iterable[str] = _NOISY_LOGGERS,
) -> Logger:
    """Configure root logger with a console handler and an optional file handler."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicate logs during repeated runs
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(numeric_level)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(numeric_level)
        logger.addHandler(file_handler)

    for name in noisy:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))

    logger.debug("Logging configured", extra={"level": level, "file": str(log_file)})
    return logger


def get_logger(name: Optional[str] = None) -> Logger:
    """Return a module-level logger."""
    return logging.getLogger(name)
