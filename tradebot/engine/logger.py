"""
Logging setup for the trading bot.

Console: rich, human-readable, with tracebacks.
File: plain text, rotated, readable by BotLogfileService.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from ..utils import console

DEFAULT_LOG_FILE = "logs/tradebot.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logging(log_file: Optional[str] = DEFAULT_LOG_FILE, log_level: str = "INFO") -> logging.Logger:
    """
    Sets up logging to both console (Rich) and file.

    Args:
        log_file: Path to log file, or None to disable file logging
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    # Remove existing handlers to avoid duplicates during re-runs
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers = [RichHandler(console=console, rich_tracebacks=True, show_path=False)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers)

    # ccxt logs every HTTP request at DEBUG
    logging.getLogger("ccxt").setLevel(max(level, logging.INFO))
    return logging.getLogger("tradebot")
