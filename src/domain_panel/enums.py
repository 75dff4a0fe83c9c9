"""
Enumeration types for the domain panel.

These enums provide type-safe constants for record status, derived view
classes, notification options and controller state.
"""

from enum import Enum


class DomainStatus(Enum):
    """Lifecycle status of a tracked domain."""

    ACTIVE = "active"
    EXPIRED = "expired"
    PENDING = "pending"


class ProgressSeverity(Enum):
    """Display class for the usage-progress bar."""

    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


class NotificationMethod(Enum):
    """Supported notification providers, in dispatch order."""

    TELEGRAM = "telegram"
    WECHAT = "wechat"
    QQ = "qq"
    EMAIL = "email"


class NotificationInterval(Enum):
    """How often expiry reminders should be repeated."""

    DAILY = "daily"
    WEEKLY = "weekly"
    ONCE = "once"


class SortOrder(Enum):
    """Sort direction for record views."""

    ASC = "asc"
    DESC = "desc"


class ExportFormat(Enum):
    """File formats supported by import and export."""

    JSON = "json"
    CSV = "csv"
    TXT = "txt"


class SyncState(Enum):
    """State of the sync controller around a mutating action."""

    IDLE = "idle"
    SUBMITTING = "submitting"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
