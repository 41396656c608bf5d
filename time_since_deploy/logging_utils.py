"""Structured logging utilities for the drift report.

Every log line goes to stderr so stdout carries only the report table.
On a TTY lines are coloured and human-readable; otherwise each entry is a
single JSON object per line, suitable for log aggregators.
"""
import os
import sys
import json
import threading
from datetime import datetime, timezone
from typing import Optional, TextIO


LEVELS = {'DEBUG': 0, 'INFO': 1, 'WARN': 2, 'ERROR': 3}

LEVEL_COLORS = {
    'DEBUG': '\033[36m',  # Cyan
    'INFO': '\033[32m',   # Green
    'WARN': '\033[33m',   # Yellow
    'ERROR': '\033[31m',  # Red
}


class StructuredLogger:
    """Structured logger emitting event names plus key/value fields."""

    def __init__(self, level: str = 'INFO', stream: Optional[TextIO] = None):
        """Initialize logger.

        Args:
            level: Minimum log level (DEBUG, INFO, WARN, ERROR)
            stream: Output stream; defaults to the current ``sys.stderr``
        """
        self.level = level.upper()
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def set_level(self, level: str) -> None:
        self.level = level.upper()

    def _should_log(self, level: str) -> bool:
        level_num = LEVELS.get(level.upper(), 1)
        min_level_num = LEVELS.get(self.level, 1)
        return level_num >= min_level_num

    def _format(self, level: str, message: str, fields: dict) -> str:
        stream = self.stream
        is_tty = bool(getattr(stream, 'isatty', None) and stream.isatty())
        if not is_tty:
            entry = {
                'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
                'level': level,
                'msg': message,
                **fields,
            }
            return json.dumps(entry, default=str)

        parts = [f"{LEVEL_COLORS.get(level, '')}[{level}]\033[0m {message}"]
        if fields:
            kv_parts = []
            for k, v in fields.items():
                if isinstance(v, (dict, list)):
                    v = json.dumps(v, default=str)[:100]
                kv_parts.append(f"{k}={v}")
            parts.append("| " + " ".join(kv_parts))
        return " ".join(parts)

    def _log(self, level: str, message: str, **kwargs) -> None:
        level = level.upper()
        if not self._should_log(level):
            return
        line = self._format(level, message, kwargs)
        # One write per entry; concurrent drift tasks log from worker threads.
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def debug(self, message: str, **kwargs) -> None:
        self._log('DEBUG', message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log('INFO', message, **kwargs)

    def warn(self, message: str, **kwargs) -> None:
        self._log('WARN', message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log('ERROR', message, **kwargs)


# Global logger instance
# Log level can be set via LOG_LEVEL environment variable
logger = StructuredLogger(level=os.getenv('LOG_LEVEL', 'INFO'))
