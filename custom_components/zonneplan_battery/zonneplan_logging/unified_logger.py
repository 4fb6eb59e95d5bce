"""Structured event logger.

Every event goes to the Home Assistant log as ``EVENT | key=value | ...``.
When file logging is switched on, events are also written to:
1. A rotating log file (5MB, 3 backups)
2. Daily JSON-lines files in YEAR/MONTH/DAY folders

File I/O runs in a background thread so the event loop never blocks.
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

_LOGGER_PREFIX = "custom_components.zonneplan_battery"


class ZonneplanLogger:
    """Event logger with optional file output.

    File logging is off until enabled, either from the options flow
    or programmatically with set_file_logging().
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    _LEVELS = {
        CRITICAL: logging.CRITICAL,
        ERROR: logging.ERROR,
        WARNING: logging.WARNING,
        INFO: logging.INFO,
        DEBUG: logging.DEBUG,
    }

    def __init__(
        self,
        name: str = "events",
        log_dir: Path | None = None,
        max_file_size_mb: int = 5,
        backup_count: int = 3,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Suffix of the standard logger name
            log_dir: Directory for log files, set later via set_log_dir()
            max_file_size_mb: Max size of the rotating log file
            backup_count: Number of rotated files to keep
        """
        self.name = name
        self.log_dir = log_dir
        self._max_file_size_mb = max_file_size_mb
        self._backup_count = backup_count
        self._file_logging_enabled = False

        self._ha_logger = logging.getLogger(f"{_LOGGER_PREFIX}.{name}")
        self._file_handler: RotatingFileHandler | None = None

        self._write_queue: queue.Queue = queue.Queue()
        self._shutdown_event = threading.Event()
        self._writer_thread: threading.Thread | None = None
        self._atexit_registered = False

    # ========== File output ==========

    def set_log_dir(self, log_dir: Path) -> None:
        """Point file output at a directory (takes effect on next enable)."""
        self.log_dir = log_dir

    def set_file_logging(self, enabled: bool) -> None:
        """Enable or disable file logging."""
        if enabled == self._file_logging_enabled:
            return

        if enabled and self.log_dir is None:
            self.warning("FILE_LOGGING_NO_DIRECTORY")
            return

        self._file_logging_enabled = enabled
        if enabled:
            self._start_writer_thread()
        else:
            self._stop_writer_thread()

        self.info("FILE_LOGGING_CHANGED", enabled=enabled)

    @property
    def file_logging_enabled(self) -> bool:
        """Check if file logging is enabled."""
        return self._file_logging_enabled

    def _start_writer_thread(self) -> None:
        if self._writer_thread is not None and self._writer_thread.is_alive():
            return

        self._shutdown_event.clear()
        self._writer_thread = threading.Thread(
            target=self._writer_loop,
            name="ZonneplanLogWriter",
            daemon=True,
        )
        self._writer_thread.start()

        if not self._atexit_registered:
            atexit.register(self._stop_writer_thread)
            self._atexit_registered = True

    def _stop_writer_thread(self) -> None:
        if self._writer_thread is None:
            return

        self._shutdown_event.set()
        # Sentinel wakes the thread up
        self._write_queue.put(None)
        self._writer_thread.join(timeout=2.0)
        self._writer_thread = None

    def _writer_loop(self) -> None:
        """Background thread: drain the queue into files."""
        self._attach_file_handler()

        while not self._shutdown_event.is_set():
            try:
                item = self._write_queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if item is None:
                break

            try:
                self._write_daily_entry(*item)
            except OSError as ex:
                _LOGGER.error("Failed to write to daily log: %s", ex)

        self._detach_file_handler()

    def _attach_file_handler(self) -> None:
        """Create the rotating handler (runs in the writer thread)."""
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                self.log_dir / "zonneplan_battery.log",
                maxBytes=self._max_file_size_mb * 1024 * 1024,
                backupCount=self._backup_count,
                encoding="utf-8",
            )
        except OSError as ex:
            _LOGGER.error("Failed to set up file handler: %s", ex)
            return

        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler.setLevel(logging.DEBUG)
        self._ha_logger.addHandler(handler)
        self._file_handler = handler

    def _detach_file_handler(self) -> None:
        if self._file_handler is None:
            return
        self._ha_logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def _daily_log_file(self, moment: datetime) -> Path:
        daily_dir = (
            self.log_dir / str(moment.year) / f"{moment.month:02d}" / f"{moment.day:02d}"
        )
        daily_dir.mkdir(parents=True, exist_ok=True)
        return daily_dir / "events.log"

    def _write_daily_entry(
        self, event: str, level: str, data: dict, timestamp: datetime
    ) -> None:
        entry = {
            "timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
            "level": level,
            "event": event,
            "data": data,
        }
        with open(self._daily_log_file(timestamp), "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    # ========== Logging API ==========

    def log(self, level: str, event: str, **data: Any) -> None:
        """Log an event at the given level.

        Args:
            level: One of critical, error, warning, info, debug
            event: Event name, e.g. "MEASUREMENT_SENT"
            **data: Context values
        """
        message = event
        if data:
            message = f"{event} | " + " | ".join(f"{k}={v}" for k, v in data.items())

        self._ha_logger.log(self._LEVELS.get(level, logging.DEBUG), message)

        if self._file_logging_enabled:
            self._write_queue.put_nowait((event, level, data, datetime.now()))

    def critical(self, event: str, **data: Any) -> None:
        """Log critical event."""
        self.log(self.CRITICAL, event, **data)

    def error(self, event: str, **data: Any) -> None:
        """Log error event."""
        self.log(self.ERROR, event, **data)

    def warning(self, event: str, **data: Any) -> None:
        """Log warning event."""
        self.log(self.WARNING, event, **data)

    def info(self, event: str, **data: Any) -> None:
        """Log info event."""
        self.log(self.INFO, event, **data)

    def debug(self, event: str, **data: Any) -> None:
        """Log debug event."""
        self.log(self.DEBUG, event, **data)

    def separator(self, title: str = "") -> None:
        """Log a visual separator."""
        if title:
            self.debug(f"{'=' * 20} {title} {'=' * 20}")
        else:
            self.debug("=" * 60)


_logger_instance: ZonneplanLogger | None = None


def get_logger() -> ZonneplanLogger:
    """Get or create the singleton logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = ZonneplanLogger()
    return _logger_instance
