"""
Record validation module.

Checks domain records before they are committed and notification settings
before they are stored. Every rule is evaluated independently so a single
pass reports all problems with a record.
"""

from typing import Iterable, Optional

from .dates import is_valid_date
from .enums import DomainStatus, NotificationInterval, NotificationMethod
from .i18n import get_message
from .models import DomainRecord, NotificationSettings, ValidationResult

VALID_STATUSES = frozenset(status.value for status in DomainStatus)
VALID_INTERVALS = frozenset(interval.value for interval in NotificationInterval)
VALID_METHODS = frozenset(method.value for method in NotificationMethod)

MIN_WARNING_DAYS = 1
MAX_WARNING_DAYS = 365


class RecordValidator:
    """
    Validates domain records field by field.

    Handles:
    - Non-empty domain name
    - Status restricted to active/expired/pending
    - Non-empty registrar (can be relaxed)
    - Parseable registration and expiration dates

    Expiration before registration is accepted so already-lapsed domains
    can be entered.
    """

    def __init__(
        self,
        require_registrar: bool = True,
        language: Optional[str] = None,
    ) -> None:
        """
        Initialize the validator.

        Args:
            require_registrar: Reject records with a blank registrar
            language: Language for error messages ('zh' or 'en')
        """
        self._require_registrar = require_registrar
        self._language = language

    def validate(self, record: DomainRecord) -> ValidationResult:
        """
        Validate a single record.

        Args:
            record: The candidate record

        Returns:
            ValidationResult listing one message per failed rule
        """
        errors: list[str] = []

        if not (record.domain or "").strip():
            errors.append(self._msg("validation.domain_empty"))

        if record.status not in VALID_STATUSES:
            errors.append(self._msg("validation.status_invalid"))

        if self._require_registrar and not (record.registrar or "").strip():
            errors.append(self._msg("validation.registrar_empty"))

        if not is_valid_date(record.register_date):
            errors.append(self._msg("validation.register_date_invalid"))

        if not is_valid_date(record.expire_date):
            errors.append(self._msg("validation.expire_date_invalid"))

        return ValidationResult(valid=not errors, errors=errors)

    def validate_collection(self, records: Iterable[DomainRecord]) -> list[dict]:
        """
        Validate every record of a collection.

        Returns:
            One {"domain", "errors"} entry per invalid record, in input order
        """
        failures = []
        for record in records:
            result = self.validate(record)
            if not result.valid:
                failures.append({"domain": record.domain, "errors": result.errors})
        return failures

    def validate_settings(self, settings: NotificationSettings) -> ValidationResult:
        """Validate notification settings before they are stored."""
        errors: list[str] = []

        days = settings.warning_days
        if (
            isinstance(days, bool)
            or not isinstance(days, int)
            or not MIN_WARNING_DAYS <= days <= MAX_WARNING_DAYS
        ):
            errors.append(self._msg("settings.warning_days_invalid"))

        if settings.notification_interval not in VALID_INTERVALS:
            errors.append(self._msg("settings.interval_invalid"))

        for method in sorted(settings.notification_methods):
            if method not in VALID_METHODS:
                errors.append(self._msg("settings.method_invalid", method=method))

        return ValidationResult(valid=not errors, errors=errors)

    def _msg(self, key: str, **kwargs) -> str:
        return get_message(key, self._language, **kwargs)


def validate(record: DomainRecord, language: Optional[str] = None) -> ValidationResult:
    """Validate a record with the default rules (registrar required)."""
    return RecordValidator(language=language).validate(record)


def validate_settings(
    settings: NotificationSettings, language: Optional[str] = None
) -> ValidationResult:
    """Validate notification settings."""
    return RecordValidator(language=language).validate_settings(settings)
