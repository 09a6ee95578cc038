"""Progress reporting passed explicitly to the pool and workflows."""

import logging
import threading
from typing import Optional

from wooscrape.logging_config import get_logger

__all__ = ["ProgressReporter", "LoggingProgress", "NullProgress"]


class ProgressReporter:
    """Interface for run progress. The default implementation does nothing."""

    def update(self, message: str) -> None:
        pass

    def succeed(self, message: str) -> None:
        pass

    def fail(self, message: str) -> None:
        pass


class NullProgress(ProgressReporter):
    """Discards all progress messages."""
    pass


class LoggingProgress(ProgressReporter):
    """Reports progress through the package logger.

    Updates are logged at DEBUG so per-URL chatter stays out of the
    console unless ``--verbose`` is set; the final outcome is logged at
    INFO/ERROR.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or get_logger("progress")
        self._lock = threading.Lock()
        self.last_message = ""

    def update(self, message: str) -> None:
        with self._lock:
            self.last_message = message
        self._logger.debug(message)

    def succeed(self, message: str) -> None:
        self._logger.info(f"✔ {message}")

    def fail(self, message: str) -> None:
        self._logger.error(f"✖ {message}")
