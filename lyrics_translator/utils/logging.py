"""
Logging Utilities
=================
Per-concern file loggers and the status buffer polled by the control API.

Short status lines go to the buffer through :func:`debug_print`; warnings and
errors logged on any pipeline logger are mirrored into it as well, so the
status console shows provider failures without reading log files.
"""
import os
import re
import logging
import threading
from collections import deque
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional

from lyrics_translator.config import config


ANSI_PATTERN = re.compile(r'\033\[[0-9;]*m')

LEVEL_ORDER = {'DEBUG': 10, 'INFO': 20, 'WARNING': 30, 'ERROR': 40, 'CRITICAL': 50}

# attribute name -> (logger name, file name)
LOGGERS = {
    'app': ('lyrics_translator.app', 'app.log'),
    'pipeline': ('lyrics_translator.pipeline', 'pipeline.log'),
    'network': ('lyrics_translator.network', 'network.log'),
    'cache': ('lyrics_translator.cache', 'cache.log'),
    'db': ('lyrics_translator.database', 'database.log'),
    'api': ('lyrics_translator.api', 'api.log'),
}


class LogBuffer:
    """Thread-safe ring of recent status lines with monotonically increasing ids."""

    def __init__(self, max_size: int = None):
        self.buffer = deque(maxlen=max_size or config.logging.log_buffer_size)
        self.lock = threading.Lock()
        self.last_id = 0

    def add(self, level: str, source: str, message: str) -> Dict:
        with self.lock:
            self.last_id += 1
            entry = {
                'id': self.last_id,
                'timestamp': datetime.now().strftime('%H:%M:%S.%f')[:-3],
                'level': level,
                'source': source,
                'message': ANSI_PATTERN.sub('', message)
            }
            self.buffer.append(entry)
            return entry

    def get_all(self) -> List[Dict]:
        with self.lock:
            return list(self.buffer)

    def get_since(self, since_id: int = 0, source: str = None, min_level: str = None) -> List[Dict]:
        """
        Entries newer than ``since_id``, optionally filtered.

        Args:
            since_id: Last id the caller has seen
            source: Only entries from this source (case-insensitive)
            min_level: Only entries at or above this level
        """
        threshold = LEVEL_ORDER.get((min_level or '').upper(), 0)
        wanted = source.upper() if source else None
        with self.lock:
            return [
                e for e in self.buffer
                if e['id'] > since_id
                and (wanted is None or e['source'].upper() == wanted)
                and LEVEL_ORDER.get(e['level'], 0) >= threshold
            ]

    def clear(self):
        with self.lock:
            self.buffer.clear()
            self.last_id = 0


log_buffer = LogBuffer()


class BufferHandler(logging.Handler):
    """Mirrors log records into a :class:`LogBuffer`."""

    def __init__(self, buffer: LogBuffer, level: int = logging.WARNING):
        super().__init__(level)
        self.target = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            source = record.name.rsplit('.', 1)[-1].upper()
            self.target.add(record.levelname, source, record.getMessage())
        except Exception:
            self.handleError(record)


class ANSIStripFormatter(logging.Formatter):
    """Formatter that strips ANSI codes for file output."""

    def format(self, record):
        return ANSI_PATTERN.sub('', super().format(record))


class AppLogger:
    """
    Application loggers, one per concern.

    Each named logger writes to its own rotating file, echoes warnings to the
    console (everything when verbose) and mirrors warnings into ``log_buffer``.
    Loggers are exposed as ``<concern>_logger`` attributes.
    """

    app_logger: logging.Logger
    pipeline_logger: logging.Logger
    network_logger: logging.Logger
    cache_logger: logging.Logger
    db_logger: logging.Logger
    api_logger: logging.Logger

    def __init__(self, log_dir: str = None, buffer: LogBuffer = None):
        self.log_dir = log_dir or config.paths.log_folder
        self.buffer = buffer or log_buffer
        os.makedirs(self.log_dir, exist_ok=True)

        for concern, (name, filename) in LOGGERS.items():
            setattr(self, f'{concern}_logger', self._setup_logger(name, filename))

    def _setup_logger(self, name: str, filename: str) -> logging.Logger:
        verbose = config.logging.verbose_debug
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        logger.propagate = False

        # Handlers survive re-creation of AppLogger; attach them once
        if logger.handlers:
            return logger

        file_handler = RotatingFileHandler(
            os.path.join(self.log_dir, filename),
            maxBytes=config.logging.log_file_max_bytes,
            backupCount=config.logging.log_file_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(ANSIStripFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))

        for handler in (file_handler, console_handler, BufferHandler(self.buffer)):
            logger.addHandler(handler)
        return logger


_logger_instance: Optional[AppLogger] = None


def get_logger() -> AppLogger:
    """Get or create the global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AppLogger()
    return _logger_instance


def debug_print(message: str, level: str = 'INFO', source: str = 'DEBUG'):
    """
    Record a status line for the control API, echoing it when verbose.

    Args:
        message: Status text, may contain ANSI colors
        level: DEBUG, INFO, WARNING or ERROR
        source: Short component tag such as ``DISPATCH`` or ``CACHE``
    """
    log_buffer.add(level, source, message)
    if config.logging.verbose_debug:
        print(message)
