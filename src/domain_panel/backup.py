"""
WebDAV backup collaborator.

Stores the whole record collection as one pretty-printed JSON array at a
fixed path below the configured WebDAV folder, and reads it back for
restore. Rows written by older deployments use snake_case keys; both key
styles are accepted on restore.
"""

import json
from typing import Optional, Sequence

import httpx

from .activity_log import ActivityLogger
from .config import PanelConfig, WebDAVConfig
from .enums import LogLevel
from .exceptions import FormatError, TransportError
from .i18n import get_message
from .models import DomainRecord


class WebDAVBackup:
    """Uploads and downloads the collection backup over WebDAV."""

    def __init__(
        self,
        config: WebDAVConfig,
        logger: Optional[ActivityLogger] = None,
        language: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the backup client.

        Args:
            config: WebDAV folder URL, credentials and backup path
            logger: Optional activity logger
            language: Language for error messages
            transport: Optional httpx transport (used by tests)
        """
        self._folder = config.url if config.url.endswith("/") else config.url + "/"
        self._auth = httpx.BasicAuth(config.username, config.password)
        self._backup_path = config.backup_path.lstrip("/")
        self._timeout = config.timeout
        self._logger = logger
        self._language = language
        self._transport = transport

    @property
    def backup_url(self) -> str:
        """Full URL of the backup document."""
        return self.url_for(self._backup_path)

    def url_for(self, path: str) -> str:
        return self._folder + path.lstrip("/")

    async def put_file(self, path: str, content: bytes, content_type: str = "application/json") -> str:
        """
        Upload content to path below the folder.

        Returns:
            The URL written to

        Raises:
            TransportError: On network failure or a non-2xx response
        """
        url = self.url_for(path)
        response = await self._request("PUT", url, content=content, headers={"Content-Type": content_type})
        if not response.is_success:
            raise self._failure("backup.upload_failed", url, response)
        self._log(LogLevel.INFO, "Uploaded file", {"url": url, "bytes": len(content)})
        return url

    async def get_file(self, path: str) -> bytes:
        """
        Download the file at path below the folder.

        Raises:
            TransportError: On network failure or a non-2xx response
        """
        url = self.url_for(path)
        response = await self._request("GET", url)
        if not response.is_success:
            raise self._failure("backup.download_failed", url, response)
        return response.content

    async def backup(self, records: Sequence[DomainRecord]) -> str:
        """
        Upload records as the backup document.

        Returns:
            URL of the stored backup
        """
        body = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
        return await self.put_file(self._backup_path, body.encode("utf-8"))

    async def restore(self) -> list[DomainRecord]:
        """
        Download and parse the backup document.

        Raises:
            TransportError: If the download fails
            FormatError: If the document is not a JSON array of objects
        """
        content = await self.get_file(self._backup_path)
        try:
            data = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise FormatError(
                code="not_json",
                message=get_message("backup.not_json", self._language),
                details={"url": self.backup_url},
            )
        if not isinstance(data, list):
            raise FormatError(
                code="not_array",
                message=get_message("backup.not_array", self._language),
                details={"url": self.backup_url},
            )
        return [DomainRecord.from_dict(item) for item in data if isinstance(item, dict)]

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            auth=self._auth, timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                return await client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                if self._logger:
                    self._logger.log_error("WebDAVBackup", f"{method} failed", error=e, request_url=url)
                raise TransportError(
                    code="network_error",
                    message=get_message("transport.request_failed", self._language, error=str(e) or type(e).__name__),
                    details={"url": url, "method": method},
                )

    def _failure(self, key: str, url: str, response: httpx.Response) -> TransportError:
        # The server's own text wins over the generic message
        message = response.text.strip() or get_message(key, self._language)
        if self._logger:
            self._logger.log_error(
                "WebDAVBackup",
                get_message(key, "en"),
                request_url=url,
                response_status_code=response.status_code,
            )
        return TransportError(
            code=key.split(".", 1)[1],
            message=message,
            details={"url": url, "status": response.status_code},
        )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "WebDAVBackup", message, data)


def create_backup(
    config: PanelConfig,
    logger: Optional[ActivityLogger] = None,
) -> Optional[WebDAVBackup]:
    """Create the WebDAV backup client, or None when WebDAV is not configured."""
    if not config.webdav or not config.webdav.url:
        return None
    return WebDAVBackup(config.webdav, logger=logger, language=config.language)
