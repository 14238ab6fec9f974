"""
CNC Dashboard Logging

Log handlers for the setup wizard. Every record is masked before it is
written, so connection strings and tokens never reach the console or the
setup log.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from cnc_dashboard.wizard.ui import mask_secrets


LOGGER_NAME = "cnc_dashboard"

CONSOLE_FORMAT = "%(message)s"
DEBUG_CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that masks credentials in log messages."""

    def format(self, record: logging.LogRecord) -> str:
        return mask_secrets(super().format(record))


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[Path] = None,
    quiet: bool = False,
    debug: bool = False
) -> logging.Logger:
    """Attach the wizard's handlers to the `cnc_dashboard` logger.

    Args:
        level: Console level (default: DEBUG when `debug`, else INFO)
        log_file: Setup log that receives every record
        quiet: Skip the console handler; the UI does its own output
        debug: Timestamped console records with level and logger name

    Returns:
        The configured logger
    """
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(SecretMaskingFormatter(DEBUG_CONSOLE_FORMAT if debug else CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(SecretMaskingFormatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger under the dashboard namespace ('scan' becomes 'cnc_dashboard.scan')."""
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_log_path(state_dir: Path) -> Path:
    """Dated setup log inside the state directory."""
    return state_dir / "logs" / f"setup-{datetime.now().strftime('%Y-%m-%d')}.log"
