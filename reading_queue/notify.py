"""Notifier implementations for user-facing queue messages."""

import logging
import sys
from typing import TextIO

NOTICE_LOGGER_NAME = "reading_queue.notices"


class LoggingNotifier:
    """Send notices to the ``reading_queue.notices`` logger."""

    def __init__(self, level: int = logging.WARNING) -> None:
        self.level = level
        self._logger = logging.getLogger(NOTICE_LOGGER_NAME)

    def notify(self, message: str) -> None:
        self._logger.log(self.level, message)


class ConsoleNotifier:
    """Print notices for an interactive user and keep them for later inspection."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        print(message, file=self.stream or sys.stderr)
