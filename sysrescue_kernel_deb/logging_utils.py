from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

MARKERS = {
    logging.DEBUG: "[.]",
    logging.INFO: "[+]",
    logging.WARNING: "[!]",
    logging.ERROR: "[-]",
    logging.CRITICAL: "[-]",
}


class MarkerFormatter(logging.Formatter):
    """Prefix console lines with a status marker instead of a level name."""

    def format(self, record: logging.LogRecord) -> str:
        marker = MARKERS.get(record.levelno, "[?]")
        return f"{marker} {super().format(record)}"


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    Console output goes to stderr with a status marker per line. When
    log_path is given, a timestamped copy of every record is appended there
    as well; if the file cannot be opened the run continues console-only.

    Returns the log file path actually in use (None when console-only).
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_kernel_deb_configured", False):
        return getattr(logger, "_kernel_deb_log_path", None)

    handlers: list[logging.Handler] = []
    chosen_path: Optional[str] = None
    file_error: Optional[OSError] = None

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(MarkerFormatter("%(message)s"))
        handlers.append(console)

    if log_path:
        fmt = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            file_error = e
        else:
            file_handler.setFormatter(fmt)
            handlers.append(file_handler)
            chosen_path = log_path

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_kernel_deb_configured", True)
    setattr(logger, "_kernel_deb_log_path", chosen_path)

    if file_error is not None:
        logging.getLogger(__name__).warning("Cannot write log file %s (%s); console only", log_path, file_error)
    else:
        logging.getLogger(__name__).debug("Logging initialized (file=%s)", chosen_path)
    return chosen_path
