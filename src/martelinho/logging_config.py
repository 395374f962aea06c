"""Utilities to configure consistent logging across the application."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

APP_LOGGER = "martelinho"

# Libraries that log connection pool, scheduler and file watcher chatter at INFO.
NOISY_LOGGERS = ("pymongo", "dask", "watchdog")


def configure_logging(
    log_path: Path | None = None,
    level: int = logging.INFO,
    library_level: int = logging.WARNING,
) -> None:
    """Configure root logging handlers and formatting.

    Args:
        log_path: Optional path to a file where logs will be written.
        level: Level of the root and `martelinho` loggers (defaults to INFO).
        library_level: Minimum level kept from the MongoDB driver, Dask and
            the Streamlit file watcher.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
        force=True,
    )
    logging.getLogger(APP_LOGGER).setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, library_level))
