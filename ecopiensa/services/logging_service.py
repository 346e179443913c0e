"""
Logging service for the Ecopiensa editor.

Everything logs through the ``ecopiensa`` logger hierarchy. setup_logging()
attaches a console handler and, optionally, a dated log file under
~/.local/share/ecopiensa/logs/. The level can be overridden at startup with
the ECOPIENSA_LOG_LEVEL environment variable (DEBUG, INFO, ...).
"""

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional


DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "ecopiensa" / "logs"
LOG_LEVEL_ENV = "ECOPIENSA_LOG_LEVEL"
PACKAGE_LOGGER = "ecopiensa"

LOG_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_configured_log_file: Optional[Path] = None
_logging_initialized = False


def _level_from_env(default: int) -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def _open_log_file(log_dir: Path) -> logging.Handler:
    """Create today's log file handler, making the directory if needed."""
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"ecopiensa_{date.today():%Y%m%d}.log"
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.set_name(str(path))
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
    force: bool = False,
) -> Optional[Path]:
    """
    Configure editor logging.

    Args:
        log_level: Level used unless ECOPIENSA_LOG_LEVEL names another one.
        log_to_file: Also write to a dated file in ``log_dir``.
        log_dir: Directory for log files. Defaults to ~/.local/share/ecopiensa/logs/
        force: Replace handlers from an earlier call.

    Returns:
        Path of the log file in use, or None when logging to the console only.
    """
    global _configured_log_file, _logging_initialized

    if _logging_initialized and not force:
        return _configured_log_file

    level = _level_from_env(log_level)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(level)
    package_logger.propagate = False

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    _configured_log_file = None
    if log_to_file:
        try:
            file_handler = _open_log_file(log_dir or DEFAULT_LOG_DIR)
        except OSError as e:
            package_logger.warning(f"Could not create log file: {e}. Logging to console only.")
        else:
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
            _configured_log_file = Path(file_handler.get_name())

    _logging_initialized = True
    package_logger.debug(f"Logging configured at {logging.getLevelName(level)}")
    return _configured_log_file


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, typically ``get_logger(__name__)``.

    Names outside the package are nested under ``ecopiensa`` so they share
    its handlers.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
