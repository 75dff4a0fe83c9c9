"""
Activity logger for the domain panel.

Structured logging with JSON and human-readable text output, minimum-level
filtering, masking of notification secrets and WebDAV credentials, and a
bounded history of recent entries that a front end can show as an
operation log.
"""

import json
import sys
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, TextIO

from .config import PanelConfig
from .enums import LogLevel

_LEVEL_RANK = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


@dataclass
class LogEntry:
    """A single log entry with all metadata."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)


class ActivityLogger:
    """
    Logger shared by the sync controller and its collaborators.

    Supports:
    - JSON lines, text, or both on one output stream
    - Dropping entries below a configured level
    - Masking of secret-bearing keys (tokens, send keys, passwords)
    - A bounded in-memory history of recent entries
    """

    SENSITIVE_KEYS = frozenset({
        'token', 'secret', 'password', 'pass', 'api_key', 'send_key',
        'sendkey', 'qmsg_key', 'authorization', 'auth', 'credential',
        'hmac', 'private_key', 'cookie',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        level: str = "info",
        history_size: int = 200,
    ) -> None:
        """
        Initialize the logger.

        Args:
            output_format: 'json', 'text', 'both' or 'none'
            output_stream: Stream for log lines (defaults to sys.stderr)
            level: Minimum level to record ('debug', 'info', 'warn', 'error')
            history_size: Number of recent entries kept in memory
        """
        if output_format not in ("json", "text", "both", "none"):
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._output_stream = output_stream or sys.stderr
        self._min_level = LogLevel(level)
        self._history: deque[LogEntry] = deque(maxlen=history_size)

    @property
    def output_format(self) -> str:
        """Get the current output format."""
        return self._output_format

    @property
    def min_level(self) -> LogLevel:
        """Lowest level that is recorded."""
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Recent entries, oldest first."""
        return list(self._history)

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Check whether entries at this level are recorded."""
        return _LEVEL_RANK[level] >= _LEVEL_RANK[self._min_level]

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record an entry.

        Args:
            level: Log severity level
            component: Component name generating the log
            message: Human-readable log message
            data: Optional additional data to include

        Returns:
            The created LogEntry, or None if the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )

        self._history.append(entry)
        self._output_entry(entry)
        return entry

    def debug(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, component, message, data)

    def info(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, component, message, data)

    def warn(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, component, message, data)

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        response_status_code: Optional[int] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an error with its context.

        Args:
            component: Component name generating the log
            message: Human-readable error message
            error: Optional exception object
            request_url: Optional URL of the failed request
            response_status_code: Optional HTTP status code
            additional_data: Optional additional context data
        """
        data = additional_data.copy() if additional_data else {}

        if error is not None:
            data["error_message"] = str(error)
            data["error_type"] = type(error).__name__
            error_code = getattr(error, "code", None)
            if error_code is not None:
                data["error_code"] = error_code

        if request_url is not None:
            data["request_url"] = request_url

        if response_status_code is not None:
            data["response_status_code"] = response_status_code

        return self.log(LogLevel.ERROR, component, message, data)

    def mask_sensitive_data(self, data):
        """
        Recursively mask secret-bearing values.

        Keys are matched case-insensitively by substring, so 'bot_token'
        and 'WEBDAV_PASS' are both masked.
        """
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                masked[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                masked[key] = self.mask_sensitive_data(value)
            elif isinstance(value, list):
                masked[key] = [self.mask_sensitive_data(item) for item in value]
            else:
                masked[key] = value
        return masked

    def clear(self) -> None:
        """Forget the in-memory history."""
        self._history.clear()

    def format_json(self, entry: LogEntry) -> str:
        """Render an entry as one JSON line."""
        return json.dumps(
            {
                "timestamp": entry.timestamp,
                "level": entry.level.value,
                "component": entry.component,
                "message": entry.message,
                "data": entry.data,
            },
            ensure_ascii=False,
            default=str,
        )

    def format_text(self, entry: LogEntry) -> str:
        """Render an entry as '[TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}'."""
        parts = [
            f"[{entry.timestamp}]",
            entry.level.value.upper(),
            f"[{entry.component}]",
            entry.message,
        ]
        if entry.data:
            parts.append(json.dumps(entry.data, ensure_ascii=False, default=str))
        return " ".join(parts)

    def _output_entry(self, entry: LogEntry) -> None:
        if self._output_format in ("json", "both"):
            self._output_stream.write(self.format_json(entry) + "\n")
        if self._output_format in ("text", "both"):
            self._output_stream.write(self.format_text(entry) + "\n")
        if self._output_format != "none":
            self._output_stream.flush()


def create_activity_logger(
    config: PanelConfig,
    output_stream: Optional[TextIO] = None,
) -> ActivityLogger:
    """Create a logger from the logging section of the configuration."""
    return ActivityLogger(
        output_format=config.logging.output_format,
        output_stream=output_stream,
        level=config.logging.level,
    )
