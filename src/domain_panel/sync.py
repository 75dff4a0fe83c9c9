"""
Sync Controller for the domain panel.

Owns the client-held record collection and keeps it consistent with the
persistence collaborator. Every mutation is applied locally first, sent
to the store as a full-collection replace, and confirmed by a reload.
The controller also drives the expiry-reminder side effect, file
import/export and WebDAV backup round trips.

Operations never raise collaborator errors; they return an
OperationResult carrying a short localized message.
"""

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, Union

from .activity_log import ActivityLogger
from .backup import WebDAVBackup
from .codec import export_collection
from .codec import import_file as decode_file
from .dates import utc_now
from .enums import DomainStatus, ExportFormat, SyncState
from .exceptions import DomainPanelError
from .i18n import get_message
from .models import (
    CollectionStats,
    DomainRecord,
    ExpiryCheck,
    ExportedFile,
    NotificationSettings,
    OperationResult,
    RecordId,
    ViewPage,
    ViewQuery,
)
from .notifications import NotificationRouter
from .preferences import ClientPreferences, PreferenceStore
from .record_validator import VALID_STATUSES, RecordValidator
from .store import DomainStore
from .views import DEFAULT_PAGE_SIZE, build_page, collection_stats, find_expiring


class SyncController:
    """
    Keeps the local record collection in step with the store.

    Mutating operations move the controller from IDLE to SUBMITTING and
    back. There is no locking; overlapping calls are resolved by whichever
    reload finishes last.
    """

    def __init__(
        self,
        store: DomainStore,
        notifier: Optional[NotificationRouter] = None,
        backup: Optional[WebDAVBackup] = None,
        preferences: Optional[ClientPreferences] = None,
        preference_store: Optional[PreferenceStore] = None,
        logger: Optional[ActivityLogger] = None,
        language: str = "zh",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: Persistence collaborator
            notifier: Optional router for expiry reminders
            backup: Optional WebDAV backup client
            preferences: Client preferences; loaded from preference_store
                when omitted
            preference_store: Optional persistence for preferences
            logger: Optional activity logger
            language: Language for result messages ('zh' or 'en')
            clock: Returns the current time; defaults to UTC now
        """
        self._store = store
        self._notifier = notifier
        self._backup = backup
        self._preference_store = preference_store
        if preferences is None:
            preferences = preference_store.load() if preference_store else ClientPreferences()
        self._preferences = preferences
        self._logger = logger
        self._language = language
        self._clock = clock or utc_now
        self._validator = RecordValidator(language=language)

        self._records: list[DomainRecord] = []
        self._settings = NotificationSettings()
        self._state = SyncState.IDLE
        self._last_check: Optional[ExpiryCheck] = None

    @property
    def records(self) -> list[DomainRecord]:
        """Copy of the current collection."""
        return list(self._records)

    @property
    def settings(self) -> NotificationSettings:
        return self._settings

    @property
    def preferences(self) -> ClientPreferences:
        return self._preferences

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_check(self) -> Optional[ExpiryCheck]:
        """Result of the most recent expiry check."""
        return self._last_check

    # ------------------------------------------------------------------
    # Fetch and save
    # ------------------------------------------------------------------

    async def load(self) -> OperationResult:
        """
        Fetch the full collection from the store.

        A failed fetch empties the local collection. A successful fetch
        runs the expiry check against the fetched records.
        """
        try:
            records = await self._store.list_all()
        except DomainPanelError as e:
            self._records = []
            return self._failure("sync.load_failed", e)

        self._records = list(records)
        self._log_info("Collection loaded", {"count": len(self._records)})
        await self.check_expiring_and_notify(self._records, self._settings.warning_days)
        return OperationResult(
            success=True,
            message=self._msg("sync.loaded", count=len(self._records)),
        )

    async def save(self, collection: Sequence[DomainRecord]) -> OperationResult:
        """
        Replace the stored collection.

        The local collection is replaced before the store call and is not
        rolled back if the store rejects it.
        """
        if isinstance(collection, (str, bytes)) or not isinstance(collection, Sequence):
            return OperationResult(success=False, message=self._msg("sync.not_sequence"))

        self._records = list(collection)
        with self._submitting():
            try:
                await self._store.replace_all(self._records)
            except DomainPanelError as e:
                return self._failure("sync.save_failed", e)

        self._log_info("Collection saved", {"count": len(self._records)})
        return OperationResult(success=True, message=self._msg("sync.saved"))

    async def _commit(self, collection: list[DomainRecord], message: Optional[str] = None) -> OperationResult:
        """Save then reload; the reload result only matters when it fails."""
        with self._submitting():
            saved = await self.save(collection)
            if not saved.success:
                return saved
            loaded = await self.load()
            if not loaded.success:
                return loaded
        if message:
            return OperationResult(success=True, message=message)
        return saved

    # ------------------------------------------------------------------
    # Record mutations
    # ------------------------------------------------------------------

    async def add(self, record: DomainRecord) -> OperationResult:
        """Validate and append a record."""
        result = self._validator.validate(record)
        if not result.valid:
            return OperationResult(
                success=False,
                message=self._msg("validation.failed"),
                errors=result.errors,
            )
        return await self._commit(self._records + [record])

    async def edit(self, index: int, record: DomainRecord) -> OperationResult:
        """Validate and replace the record at index."""
        invalid = self._check_indices([index])
        if invalid:
            return invalid

        result = self._validator.validate(record)
        if not result.valid:
            return OperationResult(
                success=False,
                message=self._msg("validation.failed"),
                errors=result.errors,
            )

        updated = list(self._records)
        updated[index] = record
        return await self._commit(updated)

    async def delete(self, identifier: RecordId) -> OperationResult:
        """
        Delete one record by domain name (str) or id (int).

        The local collection is left alone until the reload.
        """
        if identifier is None or identifier == "" or isinstance(identifier, bool):
            return OperationResult(success=False, message=self._msg("sync.missing_identifier"))

        with self._submitting():
            try:
                await self._store.delete_one(identifier)
            except DomainPanelError as e:
                return self._failure("sync.delete_failed", e)
            self._log_info("Record deleted", {"identifier": identifier})

            loaded = await self.load()
            if not loaded.success:
                return loaded
        return OperationResult(success=True, message=self._msg("sync.deleted"))

    async def batch_delete(self, indices: Iterable[int]) -> OperationResult:
        """Remove the records at the given indexes in one replace."""
        indices = list(indices)
        invalid = self._check_indices(indices)
        if invalid:
            return invalid

        doomed = set(indices)
        kept = [r for i, r in enumerate(self._records) if i not in doomed]
        return await self._commit(kept)

    async def batch_set_status(
        self,
        indices: Iterable[int],
        status: Union[DomainStatus, str],
    ) -> OperationResult:
        """Set the status of the records at the given indexes in one replace."""
        indices = list(indices)
        invalid = self._check_indices(indices)
        if invalid:
            return invalid

        value = status.value if isinstance(status, DomainStatus) else status
        if value not in VALID_STATUSES:
            message = self._msg("validation.status_invalid")
            return OperationResult(success=False, message=message, errors=[message])

        targets = set(indices)
        updated = [
            replace(r, status=value) if i in targets else r
            for i, r in enumerate(self._records)
        ]
        return await self._commit(updated)

    def _check_indices(self, indices: list[int]) -> Optional[OperationResult]:
        for index in indices:
            if (
                isinstance(index, bool)
                or not isinstance(index, int)
                or not 0 <= index < len(self._records)
            ):
                message = self._msg("sync.invalid_index", index=index)
                return OperationResult(success=False, message=message, errors=[message])
        return None

    # ------------------------------------------------------------------
    # Expiry reminders
    # ------------------------------------------------------------------

    async def check_expiring_and_notify(
        self,
        collection: Sequence[DomainRecord],
        window_days: Optional[int] = None,
    ) -> ExpiryCheck:
        """
        Find records inside the warning window and send one reminder.

        Nothing is sent when no record is expiring, reminders are disabled
        or have no method selected, no notifier is configured, or the
        client dismissed reminders for today.
        """
        if window_days is None:
            window_days = self._settings.warning_days
        now = self._clock()
        check = ExpiryCheck(expiring=find_expiring(collection, window_days, now))
        self._last_check = check

        if not check.expiring or not self._reminders_allowed(now):
            return check

        try:
            check.results = await self._notifier.notify(
                check.expiring,
                self._settings.notification_methods,
                warning_days=window_days,
                now=now,
            )
        except DomainPanelError as e:
            self._log_error("Reminder dispatch failed", e)
            return check

        check.notified = True
        self._log_info("Reminder dispatched", {
            "expiring": [r.domain for r in check.expiring],
            "failed": [r.method for r in check.results if not r.success],
        })
        return check

    def _reminders_allowed(self, now: datetime) -> bool:
        if self._notifier is None:
            return False
        if not self._settings.notification_enabled or not self._settings.notification_methods:
            return False
        return not self._preferences.reminders_dismissed_on(now.date())

    async def dismiss_reminders_today(self) -> OperationResult:
        """Suppress reminders for the rest of the current day."""
        self._preferences.dont_remind_date = self._clock().date().isoformat()
        if self._preference_store:
            try:
                self._preference_store.save(self._preferences)
            except DomainPanelError as e:
                return self._failure("sync.save_failed", e)
        return OperationResult(success=True, message=self._msg("sync.reminders_dismissed"))

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def load_settings(self) -> OperationResult:
        """Fetch the settings row; defaults stay in place when none is stored."""
        try:
            settings = await self._store.get_settings()
        except DomainPanelError as e:
            return self._failure("settings.load_failed", e)
        if settings is not None:
            self._settings = settings
        return OperationResult(success=True)

    async def update_settings(self, settings: NotificationSettings) -> OperationResult:
        """Validate and store new notification settings."""
        result = self._validator.validate_settings(settings)
        if not result.valid:
            return OperationResult(
                success=False,
                message=self._msg("validation.failed"),
                errors=result.errors,
            )
        with self._submitting():
            try:
                await self._store.set_settings(settings)
            except DomainPanelError as e:
                return self._failure("settings.save_failed", e)
        self._settings = settings
        return OperationResult(success=True, message=self._msg("settings.saved"))

    # ------------------------------------------------------------------
    # Import, export, backup
    # ------------------------------------------------------------------

    async def import_file(self, filename: str, content: Union[str, bytes]) -> OperationResult:
        """
        Replace the whole collection with the contents of an uploaded file.

        Candidates are validated before anything is replaced; a file with
        any invalid record changes nothing.
        """
        try:
            records = decode_file(filename, content, self._language)
        except DomainPanelError as e:
            return self._failure("sync.import_failed", e)

        invalid = self._reject_invalid(records, "sync.import_failed")
        if invalid:
            return invalid
        return await self._commit(records, self._msg("sync.imported", count=len(records)))

    def export(self, fmt: Union[ExportFormat, str] = ExportFormat.JSON) -> ExportedFile:
        """Export the current collection."""
        return export_collection(self._records, ExportFormat(fmt), self._language)

    async def backup(self) -> OperationResult:
        """Upload the stored collection to WebDAV."""
        if self._backup is None:
            return OperationResult(success=False, message=self._msg("sync.backup_not_configured"))

        with self._submitting():
            try:
                records = await self._store.list_all()
                if not records:
                    return OperationResult(success=False, message=self._msg("sync.no_data"))
                url = await self._backup.backup(records)
            except DomainPanelError as e:
                return self._failure("sync.backup_failed", e)

        self._log_info("Backup uploaded", {"url": url, "count": len(records)})
        return OperationResult(success=True, message=self._msg("sync.backup_done", url=url))

    async def restore(self) -> OperationResult:
        """Replace the collection with the WebDAV backup."""
        if self._backup is None:
            return OperationResult(success=False, message=self._msg("sync.backup_not_configured"))

        try:
            records = await self._backup.restore()
        except DomainPanelError as e:
            return self._failure("sync.restore_failed", e)

        invalid = self._reject_invalid(records, "sync.restore_failed")
        if invalid:
            return invalid
        return await self._commit(records, self._msg("sync.restore_done", count=len(records)))

    def _reject_invalid(self, records: list[DomainRecord], key: str) -> Optional[OperationResult]:
        failures = self._validator.validate_collection(records)
        if not failures:
            return None
        reason = self._msg("validation.failed")
        return OperationResult(
            success=False,
            message=self._msg(key, error=reason),
            errors=_flatten_failures(failures),
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view(
        self,
        query: Optional[ViewQuery] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ViewPage:
        """Filtered, sorted page of the current collection."""
        return build_page(self._records, query, page, page_size, self._clock())

    def stats(self) -> CollectionStats:
        return collection_stats(self._records, self._settings.warning_days, self._clock())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _submitting(self):
        previous = self._state
        self._state = SyncState.SUBMITTING
        try:
            yield
        finally:
            self._state = previous

    def _msg(self, key: str, **kwargs) -> str:
        return get_message(key, self._language, **kwargs)

    def _failure(self, key: str, error: DomainPanelError) -> OperationResult:
        self._log_error(key, error)
        return OperationResult(
            success=False,
            message=self._msg(key, error=error.message),
            errors=_detail_errors(error),
        )

    def _log_info(self, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.info("SyncController", message, data)

    def _log_error(self, message: str, error: DomainPanelError) -> None:
        if self._logger:
            self._logger.log_error("SyncController", message, error=error, additional_data=error.details)


def _flatten_failures(failures: list) -> list[str]:
    return [
        f"{item.get('domain', '')}: {message}"
        for item in failures
        if isinstance(item, dict)
        for message in item.get("errors", [])
    ]


def _detail_errors(error: DomainPanelError) -> list[str]:
    """Per-record messages carried by a validation rejection, if any."""
    failures = error.details.get("invalid") or error.details.get("details")
    if isinstance(failures, list):
        return _flatten_failures(failures)
    return []
