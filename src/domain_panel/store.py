"""
Persistence collaborators for domain records.

Defines the DomainStore protocol used by the sync controller and two
adapters:

- HttpDomainStore talks to the panel's JSON API over HTTPS.
- FileDomainStore keeps records and settings in a local JSON document
  protected by an HMAC, for single-machine use and tests.

Both apply a save as a full-collection replace: the stored set is swapped
for the supplied one in a single step.
"""

import hashlib
import hmac
import json
import os
import tempfile
from abc import abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Sequence, runtime_checkable

import httpx

from .activity_log import ActivityLogger
from .config import ApiConfig, PanelConfig
from .enums import LogLevel
from .exceptions import PersistenceError, TamperingError, TransportError, ValidationError
from .i18n import get_message
from .models import DomainRecord, NotificationSettings, RecordId
from .record_validator import RecordValidator


@runtime_checkable
class DomainStore(Protocol):
    """Protocol defining the persistence collaborator."""

    @abstractmethod
    async def list_all(self) -> list[DomainRecord]:
        """Fetch the full stored collection."""
        ...

    @abstractmethod
    async def replace_all(self, records: Sequence[DomainRecord]) -> None:
        """Replace the stored collection with records."""
        ...

    @abstractmethod
    async def delete_one(self, identifier: RecordId) -> None:
        """Delete a single record by domain name or id."""
        ...

    @abstractmethod
    async def get_settings(self) -> Optional[NotificationSettings]:
        """Fetch the notification settings row, if any."""
        ...

    @abstractmethod
    async def set_settings(self, settings: NotificationSettings) -> None:
        """Store the notification settings row."""
        ...


class HttpDomainStore:
    """
    Store backed by the panel's HTTP API.

    Endpoints (relative to the configured base URL):
    - GET    /api/domains   -> {"success": true, "domains": [...]}
    - POST   /api/domains   <- {"domains": [...]}   full replace
    - DELETE /api/domains   <- {"domain": ...} or {"id": ...}
    - GET    /api/settings  -> {"success": true, "settings": {...} | null}
    - POST   /api/settings  <- {"settings": {...}}

    Every response carries a ``success`` flag; a false flag or a non-2xx
    status raises TransportError with the server's message.
    """

    DOMAINS_PATH = "/api/domains"
    SETTINGS_PATH = "/api/settings"

    def __init__(
        self,
        config: ApiConfig,
        logger: Optional[ActivityLogger] = None,
        language: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the HTTP store.

        Args:
            config: API location and wire options
            logger: Optional activity logger
            language: Language for error messages
            transport: Optional httpx transport (used by tests)
        """
        if config.delete_key not in ("domain", "id"):
            raise ValueError(f"delete_key must be 'domain' or 'id', got {config.delete_key!r}")
        self._base_url = config.base_url.rstrip("/")
        self._timeout = config.timeout
        self._delete_key = config.delete_key
        self._snake_case = config.snake_case_fields
        self._logger = logger
        self._language = language
        self._transport = transport

    async def list_all(self) -> list[DomainRecord]:
        data = await self._request("GET", self.DOMAINS_PATH)
        domains = data.get("domains")
        if not isinstance(domains, list):
            raise TransportError(
                code="invalid_response",
                message=get_message("transport.invalid_response", self._language),
                details={"path": self.DOMAINS_PATH},
            )
        return [DomainRecord.from_dict(item) for item in domains if isinstance(item, dict)]

    async def replace_all(self, records: Sequence[DomainRecord]) -> None:
        payload = {"domains": [r.to_dict(snake_case=self._snake_case) for r in records]}
        await self._request("POST", self.DOMAINS_PATH, payload)

    async def delete_one(self, identifier: RecordId) -> None:
        await self._request("DELETE", self.DOMAINS_PATH, {self._delete_key: identifier})

    async def get_settings(self) -> Optional[NotificationSettings]:
        data = await self._request("GET", self.SETTINGS_PATH)
        settings = data.get("settings")
        if not settings:
            return None
        try:
            return NotificationSettings.from_dict(settings)
        except (TypeError, ValueError, AttributeError):
            raise TransportError(
                code="invalid_response",
                message=get_message("transport.invalid_response", self._language),
                details={"path": self.SETTINGS_PATH},
            )

    async def set_settings(self, settings: NotificationSettings) -> None:
        await self._request("POST", self.SETTINGS_PATH, {"settings": settings.to_dict()})

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        """
        Perform one API call and unwrap the success envelope.

        Raises:
            TransportError: On network failure, non-JSON body, non-2xx
                status, or success == false
        """
        url = f"{self._base_url}{path}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, url, json=payload)
            except httpx.HTTPError as e:
                self._log_error(f"{method} {path} failed", e, url)
                raise TransportError(
                    code="network_error",
                    message=get_message("transport.request_failed", self._language, error=str(e) or type(e).__name__),
                    details={"url": url, "method": method},
                )

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            if response.is_success:
                raise TransportError(
                    code="invalid_response",
                    message=get_message("transport.invalid_response", self._language),
                    details={"url": url, "status": response.status_code},
                )
            data = {}

        if not response.is_success or data.get("success") is False:
            message = data.get("error") or get_message(
                "transport.http_status", self._language, status=response.status_code
            )
            details = {"url": url, "status": response.status_code}
            if data.get("details"):
                details["details"] = data["details"]
            self._log(LogLevel.ERROR, f"{method} {path} rejected: {message}", details)
            raise TransportError(code="request_rejected", message=message, details=details)

        self._log(LogLevel.DEBUG, f"{method} {path} ok", {"status": response.status_code})
        return data

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "HttpDomainStore", message, data)

    def _log_error(self, message: str, error: Exception, url: str) -> None:
        if self._logger:
            self._logger.log_error("HttpDomainStore", message, error=error, request_url=url)


class FileDomainStore:
    """
    Local store persisting records to a JSON file with HMAC protection.

    The document holds the records, the settings row, the next id to
    assign and an HMAC over all of them. A replace validates every
    record first, assigns fresh ids, and writes the file atomically.
    """

    VERSION = 1

    def __init__(
        self,
        file_path: Path,
        hmac_secret: str,
        logger: Optional[ActivityLogger] = None,
        language: Optional[str] = None,
    ) -> None:
        """
        Initialize the file store.

        Args:
            file_path: Path to the JSON document
            hmac_secret: Secret key for HMAC computation
            logger: Optional activity logger
            language: Language for validation messages
        """
        self._file_path = Path(file_path)
        self._hmac_secret = hmac_secret.encode("utf-8")
        self._logger = logger
        self._language = language
        self._validator = RecordValidator(language=language)

    @property
    def file_path(self) -> Path:
        """Get the store file path."""
        return self._file_path

    async def list_all(self) -> list[DomainRecord]:
        document = self._read()
        return [DomainRecord.from_dict(item) for item in document["records"]]

    async def replace_all(self, records: Sequence[DomainRecord]) -> None:
        """
        Replace the stored collection.

        Raises:
            ValidationError: If any record is invalid; nothing is written
            PersistenceError: If the file cannot be read or written
        """
        failures = self._validator.validate_collection(records)
        if failures:
            raise ValidationError(
                code="validation_failed",
                message=get_message("validation.failed", self._language),
                details={"invalid": failures},
            )

        document = self._read()
        next_id = document["next_id"]
        stored = []
        for record in records:
            item = record.to_dict()
            item["id"] = next_id
            next_id += 1
            stored.append(item)

        document["records"] = stored
        document["next_id"] = next_id
        self._write(document)
        self._log(LogLevel.INFO, "Collection replaced", {"count": len(stored)})

    async def delete_one(self, identifier: RecordId) -> None:
        """Delete every record whose domain (str) or id (int) matches."""
        document = self._read()
        if isinstance(identifier, str):
            kept = [item for item in document["records"] if item.get("domain") != identifier]
        else:
            kept = [item for item in document["records"] if item.get("id") != identifier]
        removed = len(document["records"]) - len(kept)
        document["records"] = kept
        self._write(document)
        self._log(LogLevel.INFO, "Record deleted", {"identifier": identifier, "removed": removed})

    async def get_settings(self) -> Optional[NotificationSettings]:
        settings = self._read()["settings"]
        if not settings:
            return None
        try:
            return NotificationSettings.from_dict(settings)
        except (TypeError, ValueError, AttributeError):
            raise PersistenceError(
                code="invalid_document",
                message="Store file holds a malformed settings row",
                details={"file_path": str(self._file_path)},
            )

    async def set_settings(self, settings: NotificationSettings) -> None:
        document = self._read()
        document["settings"] = settings.to_dict()
        self._write(document)

    def compute_hmac(self, data: dict) -> str:
        """Compute HMAC-SHA256 over the canonical JSON form of data."""
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _empty_document(self) -> dict:
        return {
            "version": self.VERSION,
            "records": [],
            "settings": None,
            "next_id": 1,
            "last_updated": "",
        }

    def _signed_fields(self, document: dict) -> dict:
        return {
            "version": document.get("version"),
            "records": document.get("records", []),
            "settings": document.get("settings"),
            "next_id": document.get("next_id"),
            "last_updated": document.get("last_updated"),
        }

    def _read(self) -> dict:
        """
        Load and verify the document; a missing file is an empty store.

        Raises:
            TamperingError: If the HMAC does not match
            PersistenceError: If the file cannot be read or parsed
        """
        if not self._file_path.exists():
            return self._empty_document()

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceError(
                code="parse_error",
                message=f"Failed to parse store file: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to read store file: {e}",
                details={"file_path": str(self._file_path)},
            )

        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("records"), list)
            or not all(isinstance(item, dict) for item in raw["records"])
        ):
            raise PersistenceError(
                code="invalid_document",
                message="Store file does not contain a record list",
                details={"file_path": str(self._file_path)},
            )

        stored_hmac = raw.get("hmac", "")
        computed_hmac = self.compute_hmac(self._signed_fields(raw))
        if not hmac.compare_digest(str(stored_hmac), computed_hmac):
            self._log(LogLevel.ERROR, "HMAC mismatch", {"file_path": str(self._file_path)})
            raise TamperingError(
                code="hmac_mismatch",
                message="HMAC validation failed - data may have been tampered with",
                details={"file_path": str(self._file_path)},
            )

        document = self._signed_fields(raw)
        next_id = document["next_id"] or 1
        if isinstance(next_id, bool) or not isinstance(next_id, int):
            raise PersistenceError(
                code="invalid_document",
                message=f"Store file has an invalid next_id: {next_id!r}",
                details={"file_path": str(self._file_path)},
            )
        document["next_id"] = next_id
        return document

    def _write(self, document: dict) -> None:
        """
        Sign and write the document via a temporary file and rename.

        Raises:
            PersistenceError: If the file cannot be written
        """
        document = dict(document)
        document["last_updated"] = datetime.now(timezone.utc).isoformat()
        output = self._signed_fields(document)
        output["hmac"] = self.compute_hmac(self._signed_fields(document))

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._file_path.name}.", dir=self._file_path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(output, f, indent=2, sort_keys=True, ensure_ascii=False)
                os.replace(tmp_name, self._file_path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to write store file: {e}",
                details={"file_path": str(self._file_path)},
            )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "FileDomainStore", message, data)


def create_domain_store(
    config: PanelConfig,
    logger: Optional[ActivityLogger] = None,
) -> DomainStore:
    """
    Create the store selected by configuration.

    An API section selects the HTTP store; otherwise the local file store
    is used.
    """
    if config.api:
        return HttpDomainStore(config.api, logger=logger, language=config.language)
    return FileDomainStore(
        file_path=config.persistence.state_file_path,
        hmac_secret=config.persistence.hmac_secret,
        logger=logger,
        language=config.language,
    )
