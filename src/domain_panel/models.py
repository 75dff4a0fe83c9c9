"""
Data models for the domain panel.

This module defines the domain record, notification settings, view
parameters, and the result types returned by the sync controller.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .enums import (
    DomainStatus,
    NotificationInterval,
    NotificationMethod,
    SortOrder,
)

RecordId = Union[int, str]


@dataclass
class DomainRecord:
    """A tracked domain and its registration window."""

    domain: str
    status: str  # 'active', 'expired', 'pending'
    registrar: str
    register_date: str  # ISO 8601
    expire_date: str  # ISO 8601
    id: Optional[RecordId] = None  # Assigned by the store
    renew_url: Optional[str] = None

    @classmethod
    def draft(cls) -> "DomainRecord":
        """Create an empty record as shown in a blank add form."""
        return cls(
            domain="",
            status=DomainStatus.ACTIVE.value,
            registrar="",
            register_date="",
            expire_date="",
        )

    def to_dict(self, snake_case: bool = False) -> dict:
        """
        Convert to the wire representation.

        Args:
            snake_case: Emit register_date/expire_date instead of camelCase

        Returns:
            Dictionary with optional keys omitted when unset
        """
        data: dict = {}
        if self.id is not None:
            data["id"] = self.id
        data["domain"] = self.domain
        data["status"] = self.status
        data["registrar"] = self.registrar
        if snake_case:
            data["register_date"] = self.register_date
            data["expire_date"] = self.expire_date
        else:
            data["registerDate"] = self.register_date
            data["expireDate"] = self.expire_date
        if self.renew_url is not None:
            data["renewUrl"] = self.renew_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DomainRecord":
        """
        Build a candidate record from a wire dictionary.

        Accepts camelCase and snake_case keys. Performs no validation.
        """
        register_date = data.get("registerDate", data.get("register_date"))
        expire_date = data.get("expireDate", data.get("expire_date"))
        renew_url = data.get("renewUrl", data.get("renew_url"))
        return cls(
            domain=_as_text(data.get("domain")),
            status=_as_text(data.get("status")),
            registrar=_as_text(data.get("registrar")),
            register_date=_as_text(register_date),
            expire_date=_as_text(expire_date),
            id=data.get("id"),
            renew_url=renew_url if renew_url is None else str(renew_url),
        )


def _as_text(value) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class NotificationSettings:
    """Deployment-wide reminder settings, stored as a single row."""

    warning_days: int = 15
    notification_enabled: bool = True
    notification_interval: str = NotificationInterval.DAILY.value
    notification_methods: set[str] = field(
        default_factory=lambda: {NotificationMethod.TELEGRAM.value}
    )

    def to_dict(self) -> dict:
        """Convert to the wire representation."""
        return {
            "warningDays": self.warning_days,
            "notificationEnabled": self.notification_enabled,
            "notificationInterval": self.notification_interval,
            # Fixed order keeps stored documents stable
            "notificationMethod": [
                method.value
                for method in NotificationMethod
                if method.value in self.notification_methods
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationSettings":
        """Build settings from a wire dictionary, with defaults for gaps."""
        defaults = cls()
        methods = data.get("notificationMethod", data.get("notification_method"))
        if isinstance(methods, str):
            methods = [m.strip() for m in methods.split(",") if m.strip()]
        return cls(
            warning_days=int(data.get("warningDays", data.get("warning_days", defaults.warning_days))),
            notification_enabled=bool(
                data.get("notificationEnabled", data.get("notification_enabled", defaults.notification_enabled))
            ),
            notification_interval=str(
                data.get("notificationInterval", data.get("notification_interval", defaults.notification_interval))
            ),
            notification_methods=set(methods) if methods is not None else defaults.notification_methods,
        )


@dataclass
class ValidationResult:
    """Result of validating a record or settings object."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class ViewQuery:
    """UI parameters for filtering and sorting the record list."""

    search_text: str = ""
    status_filter: str = "all"
    sort_field: Optional[str] = None  # 'domain', 'expireDate', 'daysLeft', ...
    sort_order: SortOrder = SortOrder.ASC


@dataclass
class ViewPage:
    """One page of the filtered and sorted record list."""

    items: list[DomainRecord]
    total: int  # Matching records across all pages
    page: int
    page_size: int
    page_count: int


@dataclass
class CollectionStats:
    """Summary figures shown above the record table."""

    total: int
    active: int
    expired: int
    pending: int
    expiring_soon: int
    average_progress: int


@dataclass
class ExportedFile:
    """An export ready to be offered as a download."""

    filename: str
    mime_type: str
    content: str


@dataclass
class OperationResult:
    """Outcome of a sync controller operation."""

    success: bool
    message: str = ""
    errors: list[str] = field(default_factory=list)


@dataclass
class NotificationResult:
    """Result of a notification delivery attempt for one method."""

    method: str
    success: bool
    error: Optional[str] = None


@dataclass
class ExpiryCheck:
    """Records found inside the expiring-soon window and what was sent."""

    expiring: list[DomainRecord]
    notified: bool = False
    results: list[NotificationResult] = field(default_factory=list)
