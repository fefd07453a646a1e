"""
Production Logging

Coloured console output plus an optional rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..tui import Color

LOGGER_NAME = 'saxkeys'


class ColorFormatter(logging.Formatter):
    """Colored log formatter"""
    COLORS = {
        logging.DEBUG: Color.GRAY,
        logging.INFO: Color.TURQUOISE,
        logging.WARNING: Color.ORANGE,
        logging.ERROR: Color.RED,
        logging.CRITICAL: Color.RED + Color.BOLD,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: Optional[bool] = None):
        super().__init__(fmt or '%(levelname)s %(name)s: %(message)s')
        if use_colors is None:
            use_colors = sys.stderr.isatty()
        self.use_colors = use_colors

    def format(self, record):
        formatted = super().format(record)
        if not self.use_colors:
            return formatted
        color = self.COLORS.get(record.levelno, Color.WHITE)
        return f"{color}{formatted}{Color.RESET}"


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None,
                  max_file_size: int = 10 * 1024 * 1024,
                  backup_count: int = 5) -> logging.Logger:
    """
    Configure the package logger

    Args:
        verbose: Enable debug output
        log_file: Optional log file path (rotated)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Repeated calls replace handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(ColorFormatter())
    logger.addHandler(console)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                log_file,
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
            fh.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
            logger.addHandler(fh)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    return logger
