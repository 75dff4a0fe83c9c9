"""
Notification Router module for the domain panel.

Provides the expiry-reminder channels (Telegram, WeChat via ServerChan,
QQ via Qmsg, Email) and a router that sends one reminder per selected
method. Every method gets a single independent attempt; a method that is
not configured or is refused by its provider fails alone.
"""

import asyncio
import html
import smtplib
import ssl
from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

import httpx
import idna

from .activity_log import ActivityLogger
from .config import EmailConfig, PanelConfig, QQConfig, TelegramConfig, WeChatConfig
from .dates import resolve_now, try_parse_date
from .enums import LogLevel, NotificationMethod
from .exceptions import DomainPanelError, NotConfiguredError, NotificationError, TransportError
from .i18n import DEFAULT_LANGUAGE, get_message
from .models import DomainRecord, NotificationResult
from .views import DEFAULT_WARNING_DAYS, record_days_left

DEFAULT_TIMEOUT = 30.0

TELEGRAM_API = "https://api.telegram.org"
SERVERCHAN_API = "https://sctapi.ftqq.com"
QMSG_API = "https://qmsg.zendee.cn"


def display_domain(domain: str) -> str:
    """
    Render a domain for humans.

    Punycode labels (``xn--``) are decoded to Unicode; names that fail
    IDNA decoding are shown unchanged.
    """
    if "xn--" not in domain.lower():
        return domain
    try:
        return idna.decode(domain)
    except UnicodeError:
        return domain


@dataclass
class NotificationPayload:
    """The set of expiring records to announce."""

    records: list[DomainRecord]
    warning_days: int = DEFAULT_WARNING_DAYS
    language: str = DEFAULT_LANGUAGE  # 'zh' or 'en'
    now: Optional[datetime] = None

    @property
    def title(self) -> str:
        return get_message("notification.title", self.language)

    def render(self, style: str = "text") -> str:
        """
        Render the reminder body.

        Args:
            style: 'html' (Telegram), 'markdown' (ServerChan) or 'text'

        Returns:
            The message text
        """
        now = resolve_now(self.now)
        sep = "：" if self.language == "zh" else ": "

        def bold(text: str) -> str:
            if style == "html":
                return f"<b>{html.escape(text)}</b>"
            if style == "markdown":
                return f"**{text}**"
            return text

        def plain(text: str) -> str:
            return html.escape(text) if style == "html" else text

        lines = [
            f"⚠️ {bold(self.title)}",
            "",
            plain(get_message("notification.intro", self.language, days=self.warning_days)),
            "",
        ]
        for record in self.records:
            remaining = record_days_left(record, now)
            lines.append(f"🔸 {bold(display_domain(record.domain))}")
            lines.append(
                "   " + plain(get_message("notification.registrar_label", self.language)
                              + sep + record.registrar)
            )
            lines.append(
                "   " + plain(get_message("notification.expire_label", self.language)
                              + sep + format_expiry(record.expire_date))
            )
            if remaining is not None:
                lines.append(
                    "   " + plain(
                        get_message("notification.days_left_label", self.language)
                        + sep
                        + get_message("notification.days_left_value", self.language, days=remaining)
                    )
                )
            if record.renew_url:
                lines.append(
                    "   " + plain(get_message("notification.renew_label", self.language)
                                  + sep + record.renew_url)
                )
            lines.append("")

        lines.append(plain(get_message("notification.footer", self.language)))
        # Markdown needs blank lines to keep line breaks
        joiner = "\n\n" if style == "markdown" else "\n"
        if style == "markdown":
            lines = [line for line in lines if line]
        return joiner.join(lines)


def format_expiry(expire_date: str) -> str:
    """Show the calendar date of an expiry, or the raw value if unparseable."""
    parsed = try_parse_date(expire_date)
    return parsed.date().isoformat() if parsed else expire_date


@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol defining the interface for notification channels."""

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> None:
        """
        Deliver the reminder.

        Raises:
            NotConfiguredError: If the channel lacks its secret or address
            NotificationError: If the provider refused the message
            TransportError: If the provider could not be reached
        """
        ...

    @abstractmethod
    def get_name(self) -> str:
        """Return the notification method this channel serves."""
        ...


async def _post(
    method: str,
    url: str,
    transport: Optional[httpx.AsyncBaseTransport],
    language: str,
    **kwargs,
) -> tuple[httpx.Response, dict]:
    """POST to a provider and decode its JSON body ({} if not JSON)."""
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=transport) as client:
        try:
            response = await client.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(
                code="network_error",
                message=get_message(
                    "notification.provider_error", language,
                    method=method, error=str(e) or type(e).__name__,
                ),
                details={"method": method},
            )
    try:
        data = response.json()
    except ValueError:
        data = {}
    return response, data if isinstance(data, dict) else {}


def _refused(method: str, language: str, error: str, status: Optional[int] = None) -> NotificationError:
    details = {"method": method}
    if status is not None:
        details["status"] = status
    return NotificationError(
        code="provider_refused",
        message=get_message("notification.provider_error", language, method=method, error=error),
        details=details,
    )


def _not_configured(method: str, language: str) -> NotConfiguredError:
    return NotConfiguredError(
        code="not_configured",
        message=get_message("notification.not_configured", language, method=method),
        details={"method": method},
    )


class TelegramChannel:
    """Telegram notification channel using the Bot API."""

    def __init__(
        self,
        config: TelegramConfig,
        simulation_mode: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize Telegram channel.

        Args:
            config: Telegram configuration with bot_token and chat_id
            simulation_mode: If True, no real network requests are made
            transport: Optional httpx transport (used by tests)
        """
        self._bot_token = config.bot_token
        self._chat_id = config.chat_id
        self._simulation_mode = simulation_mode
        self._transport = transport

    async def send(self, payload: NotificationPayload) -> None:
        name = self.get_name()
        if not self._bot_token or not self._chat_id:
            raise _not_configured(name, payload.language)
        if self._simulation_mode:
            return

        response, data = await _post(
            name,
            f"{TELEGRAM_API}/bot{self._bot_token}/sendMessage",
            self._transport,
            payload.language,
            json={
                "chat_id": self._chat_id,
                "text": payload.render("html"),
                "parse_mode": "HTML",
            },
        )
        if response.status_code != 200 or not data.get("ok", False):
            error = data.get("description") or f"HTTP {response.status_code}"
            raise _refused(name, payload.language, error, response.status_code)

    def get_name(self) -> str:
        return NotificationMethod.TELEGRAM.value


class WeChatChannel:
    """WeChat notifications through ServerChan."""

    def __init__(
        self,
        config: WeChatConfig,
        simulation_mode: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._send_key = config.send_key
        self._simulation_mode = simulation_mode
        self._transport = transport

    async def send(self, payload: NotificationPayload) -> None:
        name = self.get_name()
        if not self._send_key:
            raise _not_configured(name, payload.language)
        if self._simulation_mode:
            return

        response, data = await _post(
            name,
            f"{SERVERCHAN_API}/{self._send_key}.send",
            self._transport,
            payload.language,
            data={"title": payload.title, "desp": payload.render("markdown")},
        )
        # ServerChan reports success as code 0
        if not response.is_success or data.get("code") != 0:
            error = data.get("message") or f"HTTP {response.status_code}"
            raise _refused(name, payload.language, error, response.status_code)

    def get_name(self) -> str:
        return NotificationMethod.WECHAT.value


class QQChannel:
    """QQ notifications through Qmsg."""

    def __init__(
        self,
        config: QQConfig,
        simulation_mode: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._qmsg_key = config.qmsg_key
        self._qq = config.qq
        self._simulation_mode = simulation_mode
        self._transport = transport

    async def send(self, payload: NotificationPayload) -> None:
        name = self.get_name()
        if not self._qmsg_key:
            raise _not_configured(name, payload.language)
        if self._simulation_mode:
            return

        form = {"msg": payload.render("text")}
        if self._qq:
            form["qq"] = self._qq

        response, data = await _post(
            name,
            f"{QMSG_API}/send/{self._qmsg_key}",
            self._transport,
            payload.language,
            data=form,
        )
        if not response.is_success or data.get("success") is not True:
            error = data.get("reason") or f"HTTP {response.status_code}"
            raise _refused(name, payload.language, error, response.status_code)

    def get_name(self) -> str:
        return NotificationMethod.QQ.value


class EmailChannel:
    """Email notification channel using SMTP."""

    def __init__(
        self, config: EmailConfig, simulation_mode: bool = False
    ) -> None:
        """
        Initialize Email channel.

        Args:
            config: Email configuration with SMTP settings
            simulation_mode: If True, no real network requests are made
        """
        self._smtp_host = config.smtp_host
        self._smtp_port = config.smtp_port
        self._username = config.username
        self._password = config.password
        self._from_address = config.from_address
        self._to_addresses = list(config.to_addresses)
        self._simulation_mode = simulation_mode

    async def send(self, payload: NotificationPayload) -> None:
        name = self.get_name()
        if not self._smtp_host or not self._from_address or not self._to_addresses:
            raise _not_configured(name, payload.language)
        if self._simulation_mode:
            return

        # smtplib blocks, so it runs in the default executor
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._send_sync, payload)

    def _send_sync(self, payload: NotificationPayload) -> None:
        msg = self.format_email(payload)
        try:
            context = ssl.create_default_context()
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=DEFAULT_TIMEOUT) as server:
                server.starttls(context=context)
                if self._username:
                    server.login(self._username, self._password)
                server.sendmail(
                    self._from_address,
                    self._to_addresses,
                    msg.as_string(),
                )
        except smtplib.SMTPException as e:
            raise _refused(self.get_name(), payload.language, str(e))
        except OSError as e:
            raise TransportError(
                code="network_error",
                message=get_message(
                    "notification.provider_error", payload.language,
                    method=self.get_name(), error=str(e),
                ),
                details={"method": self.get_name()},
            )

    def format_email(self, payload: NotificationPayload) -> MIMEMultipart:
        """Build a text + HTML message."""
        msg = MIMEMultipart("alternative")
        msg["From"] = self._from_address
        msg["To"] = ", ".join(self._to_addresses)
        msg["Subject"] = f"{payload.title} ({len(payload.records)})"
        msg.attach(MIMEText(payload.render("text"), "plain", "utf-8"))
        msg.attach(MIMEText(payload.render("html").replace("\n", "<br>\n"), "html", "utf-8"))
        return msg

    def get_name(self) -> str:
        return NotificationMethod.EMAIL.value


class NotificationRouter:
    """
    Routes expiry reminders to the selected notification methods.

    Methods are attempted in a fixed order (telegram, wechat, qq, email),
    once each. Failures are logged and reported per method; they never
    stop the remaining methods.
    """

    def __init__(
        self,
        logger: Optional[ActivityLogger] = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        """
        Initialize the notification router.

        Args:
            logger: Optional activity logger for delivery failures
            language: Language for message bodies and errors
        """
        self._channels: dict[str, NotificationChannel] = {}
        self._logger = logger
        self._language = language

    def register_channel(self, channel: NotificationChannel) -> None:
        """Register a channel, replacing any channel for the same method."""
        self._channels[channel.get_name()] = channel

    def unregister_channel(self, channel_name: str) -> bool:
        """
        Unregister a channel by method name.

        Returns:
            True if the channel was found and removed
        """
        return self._channels.pop(channel_name, None) is not None

    @property
    def channels(self) -> list[NotificationChannel]:
        """Registered channels in dispatch order."""
        return [self._channels[m.value] for m in NotificationMethod if m.value in self._channels]

    async def notify(
        self,
        records: Sequence[DomainRecord],
        methods: Iterable[str],
        warning_days: int = DEFAULT_WARNING_DAYS,
        now: Optional[datetime] = None,
    ) -> list[NotificationResult]:
        """
        Send one reminder listing records through each selected method.

        Args:
            records: The expiring records
            methods: Selected method names
            warning_days: Window mentioned in the message
            now: Reference time for days-left figures

        Returns:
            One NotificationResult per selected method, in dispatch order
        """
        selected = set(methods)
        payload = NotificationPayload(
            records=list(records),
            warning_days=warning_days,
            language=self._language,
            now=now,
        )

        results = []
        for method in NotificationMethod:
            if method.value not in selected:
                continue
            results.append(await self._send(method.value, payload))
        return results

    async def _send(self, method: str, payload: NotificationPayload) -> NotificationResult:
        channel = self._channels.get(method)
        try:
            if channel is None:
                raise _not_configured(method, payload.language)
            await channel.send(payload)
        except DomainPanelError as e:
            self._log_failure(method, e, len(payload.records))
            return NotificationResult(method=method, success=False, error=e.message)

        self._log(LogLevel.INFO, f"Reminder sent via {method}", {
            "method": method,
            "domains": [r.domain for r in payload.records],
        })
        return NotificationResult(method=method, success=True)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "NotificationRouter", message, data)

    def _log_failure(self, method: str, error: DomainPanelError, count: int) -> None:
        if self._logger is None:
            return
        self._logger.log_error(
            component="NotificationRouter",
            message=f"Notification via '{method}' failed",
            error=error,
            additional_data={"method": method, "records": count, **error.details},
        )


def create_notification_router(
    config: PanelConfig,
    logger: Optional[ActivityLogger] = None,
) -> NotificationRouter:
    """
    Create a router with a channel for every configured method.

    Args:
        config: Panel configuration
        logger: Optional activity logger

    Returns:
        Configured NotificationRouter
    """
    router = NotificationRouter(logger=logger, language=config.language)
    notifications = config.notifications
    simulation = config.simulation_mode

    if notifications.telegram:
        router.register_channel(TelegramChannel(notifications.telegram, simulation_mode=simulation))
    if notifications.wechat:
        router.register_channel(WeChatChannel(notifications.wechat, simulation_mode=simulation))
    if notifications.qq:
        router.register_channel(QQChannel(notifications.qq, simulation_mode=simulation))
    if notifications.email:
        router.register_channel(EmailChannel(notifications.email, simulation_mode=simulation))

    return router
