"""Structured event logger for PV Notifications.

Every record is an UPPER_SNAKE event name plus keyword context, rendered as
``EVENT | key=value | key=value`` into the Home Assistant log. When file
logging is switched on, the same records are mirrored to a rotating file.
File writes happen on a QueueListener thread so the event loop never blocks.
"""

from __future__ import annotations

import logging
import queue
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class PvLogger:
    """Event-style logger on top of the standard logging module."""

    def __init__(
        self,
        name: str = "events",
        log_dir: Path | None = None,
        max_file_size_mb: int = 2,
        backup_count: int = 3,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Child logger name below the integration logger
            log_dir: Directory for the rotating log file
            max_file_size_mb: Size limit per file
            backup_count: Rotated files to keep
        """
        self.name = name
        self._logger = logging.getLogger(f"custom_components.pv_notifications.{name}")

        if log_dir is None:
            log_dir = Path(__file__).parent.parent / "log"
        self.log_dir = log_dir
        self.log_file = log_dir / "pv_notifications.log"

        self._max_bytes = max_file_size_mb * 1024 * 1024
        self._backup_count = backup_count

        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None

    @staticmethod
    def format_event(event: str, **data: Any) -> str:
        """Render an event and its context as a single line."""
        if not data:
            return event
        return " | ".join([event, *(f"{k}={v}" for k, v in data.items())])

    def log(self, level: int, event: str, **data: Any) -> None:
        """Log an event at a standard logging level."""
        self._logger.log(level, self.format_event(event, **data))

    def error(self, event: str, **data: Any) -> None:
        self.log(logging.ERROR, event, **data)

    def warning(self, event: str, **data: Any) -> None:
        self.log(logging.WARNING, event, **data)

    def info(self, event: str, **data: Any) -> None:
        self.log(logging.INFO, event, **data)

    def debug(self, event: str, **data: Any) -> None:
        self.log(logging.DEBUG, event, **data)

    # ========== File mirror ==========

    @property
    def file_logging_enabled(self) -> bool:
        """Return True while records are mirrored to file."""
        return self._listener is not None

    def set_file_logging(self, enabled: bool) -> None:
        """Attach or detach the rotating file mirror.

        Creating the file handler touches the filesystem; call from an
        executor when running inside the event loop.
        """
        if enabled == self.file_logging_enabled:
            return

        if enabled:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                file_handler = RotatingFileHandler(
                    self.log_file,
                    maxBytes=self._max_bytes,
                    backupCount=self._backup_count,
                    encoding="utf-8",
                )
            except OSError as ex:
                _LOGGER.error("Failed to open log file %s: %s", self.log_file, ex)
                return

            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            file_handler.setLevel(logging.DEBUG)

            records: queue.SimpleQueue = queue.SimpleQueue()
            self._queue_handler = QueueHandler(records)
            self._listener = QueueListener(records, file_handler)
            self._listener.start()
            self._logger.addHandler(self._queue_handler)
        else:
            self._logger.removeHandler(self._queue_handler)
            self._listener.stop()
            for handler in self._listener.handlers:
                handler.close()
            self._queue_handler = None
            self._listener = None

        self.info("FILE_LOGGING_CHANGED", enabled=enabled)

    def shutdown(self) -> None:
        """Stop mirroring to file."""
        self.set_file_logging(False)


_logger_instance: PvLogger | None = None


def get_logger() -> PvLogger:
    """Get or create the shared logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = PvLogger()
    return _logger_instance
