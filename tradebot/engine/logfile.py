"""
Read access to the bot's log file (used by the CLI logs mode).
"""

import logging
from collections import deque
from itertools import islice
from pathlib import Path

logger = logging.getLogger(__name__)


class BotLogfileService:

    def __init__(self, log_file: str):
        self.path = Path(log_file)

    def get_logfile_tail(self, line_count: int) -> str:
        """Last line_count lines of the log file."""
        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            lines = deque(f, maxlen=max(line_count, 0))
        return "".join(lines)

    def get_logfile_head(self, line_count: int) -> str:
        """First line_count lines of the log file."""
        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            lines = list(islice(f, max(line_count, 0)))
        return "".join(lines)

    def get_logfile(self, max_lines: int) -> str:
        return self.get_logfile_tail(max_lines)

    def get_logfile_bytes(self, max_file_size: int) -> bytes:
        """
        Whole file, or its first max_file_size bytes if it is larger.
        """
        size = self.path.stat().st_size
        with open(self.path, "rb") as f:
            if size <= max_file_size:
                return f.read()
            logger.warning(
                f"Logfile exceeds max size, truncating end of file. "
                f"Max size: {max_file_size} Logfile size: {size}"
            )
            return f.read(max_file_size)
