"""
Exception classes for the domain panel.

All exceptions inherit from DomainPanelError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DomainPanelError(Exception):
    """Base exception for all domain panel errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainPanelError):
    """Raised when record or settings validation fails."""

    pass


class FormatError(DomainPanelError):
    """Raised when an imported file or stored document is malformed."""

    pass


class EmptyFileError(FormatError):
    """Raised when an imported file has no usable lines."""

    pass


class MissingColumnsError(FormatError):
    """Raised when a CSV header lacks one or more required columns."""

    pass


class TransportError(DomainPanelError):
    """Raised when a remote call fails or returns a non-success response."""

    pass


class PersistenceError(DomainPanelError):
    """Raised when local persistence fails (file I/O, malformed document)."""

    pass


class TamperingError(PersistenceError):
    """Raised when HMAC validation fails, indicating data tampering."""

    pass


class NotConfiguredError(DomainPanelError):
    """Raised when a notification method lacks its secret or address."""

    pass


class NotificationError(DomainPanelError):
    """Raised when a notification provider refuses a message."""

    pass
