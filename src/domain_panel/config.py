"""
Configuration dataclasses for the domain panel.

This module defines the configuration for the panel API, notification
channels, WebDAV backup, local persistence and logging, plus loaders for
JSON configuration files and ``.env``-style environment variables.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import PersistenceError

DEFAULT_STATE_FILE = Path.home() / ".domain_panel" / "domains.json"
DEFAULT_PREFERENCES_FILE = Path.home() / ".domain_panel" / "preferences.json"
DEFAULT_BACKUP_PATH = "domain/domains-backup.json"


@dataclass
class ApiConfig:
    """Remote panel API the HTTP store talks to."""

    base_url: str
    timeout: float = 30.0
    delete_key: str = "domain"  # 'domain' or 'id', fixed per deployment
    snake_case_fields: bool = False


@dataclass
class TelegramConfig:
    """Telegram notification channel configuration."""

    bot_token: str
    chat_id: str


@dataclass
class WeChatConfig:
    """WeChat notifications through ServerChan."""

    send_key: str


@dataclass
class QQConfig:
    """QQ notifications through Qmsg."""

    qmsg_key: str
    qq: Optional[str] = None  # Target QQ number; Qmsg default when unset


@dataclass
class EmailConfig:
    """Email notification channel configuration."""

    smtp_host: str
    smtp_port: int
    username: str
    password: str
    from_address: str
    to_addresses: list[str] = field(default_factory=list)


@dataclass
class NotificationConfig:
    """Notification channels configuration."""

    telegram: Optional[TelegramConfig] = None
    wechat: Optional[WeChatConfig] = None
    qq: Optional[QQConfig] = None
    email: Optional[EmailConfig] = None


@dataclass
class WebDAVConfig:
    """WebDAV folder used for backup and restore."""

    url: str
    username: str
    password: str
    backup_path: str = DEFAULT_BACKUP_PATH
    timeout: float = 30.0


@dataclass
class PersistenceConfig:
    """Local file persistence configuration."""

    state_file_path: Path
    hmac_secret: str
    preferences_file_path: Path = DEFAULT_PREFERENCES_FILE


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both', 'none'


@dataclass
class PanelConfig:
    """Main configuration combining all sub-configurations."""

    notifications: NotificationConfig
    persistence: PersistenceConfig
    logging: LoggingConfig
    api: Optional[ApiConfig] = None  # None selects the local file store
    webdav: Optional[WebDAVConfig] = None
    language: str = "zh"  # 'zh' or 'en'
    simulation_mode: bool = False


def create_default_config(
    simulation_mode: bool = False,
    language: str = "zh",
    state_file: Optional[Path] = None,
    hmac_secret: str = "default-secret-change-me",
) -> PanelConfig:
    """
    Create a default configuration backed by the local file store.

    Args:
        simulation_mode: Enable simulation mode (no real network requests)
        language: Output language ('zh' or 'en')
        state_file: Path to the local record store
        hmac_secret: Secret for HMAC protection of the store
    """
    return PanelConfig(
        notifications=NotificationConfig(),
        persistence=PersistenceConfig(
            state_file_path=state_file or DEFAULT_STATE_FILE,
            hmac_secret=hmac_secret,
        ),
        logging=LoggingConfig(),
        language=language,
        simulation_mode=simulation_mode,
    )


def config_from_dict(data: dict) -> PanelConfig:
    """
    Build a PanelConfig from its JSON representation.

    Channels are only configured when enabled and given their secrets.

    Raises:
        KeyError, TypeError, ValueError: On malformed data
    """
    api = None
    api_data = data.get("api") or {}
    if api_data.get("base_url"):
        api = ApiConfig(
            base_url=api_data["base_url"],
            timeout=float(api_data.get("timeout", 30.0)),
            delete_key=api_data.get("delete_key", "domain"),
            snake_case_fields=bool(api_data.get("snake_case_fields", False)),
        )

    webdav = None
    webdav_data = data.get("webdav") or {}
    if webdav_data.get("url"):
        webdav = WebDAVConfig(
            url=webdav_data["url"],
            username=webdav_data.get("username", ""),
            password=webdav_data.get("password", ""),
            backup_path=webdav_data.get("backup_path", DEFAULT_BACKUP_PATH),
            timeout=float(webdav_data.get("timeout", 30.0)),
        )

    persistence_data = data.get("persistence") or {}
    persistence = PersistenceConfig(
        state_file_path=Path(persistence_data.get("state_file_path") or DEFAULT_STATE_FILE),
        hmac_secret=persistence_data.get("hmac_secret", "default-secret-change-me"),
        preferences_file_path=Path(
            persistence_data.get("preferences_file_path") or DEFAULT_PREFERENCES_FILE
        ),
    )

    logging_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_data.get("level", "info"),
        output_format=logging_data.get("output_format", "text"),
    )

    notifications_data = data.get("notifications") or {}
    notifications = NotificationConfig()

    telegram_data = notifications_data.get("telegram") or {}
    if telegram_data.get("enabled") and telegram_data.get("bot_token") and telegram_data.get("chat_id"):
        notifications.telegram = TelegramConfig(
            bot_token=telegram_data["bot_token"],
            chat_id=str(telegram_data["chat_id"]),
        )

    wechat_data = notifications_data.get("wechat") or {}
    if wechat_data.get("enabled") and wechat_data.get("send_key"):
        notifications.wechat = WeChatConfig(send_key=wechat_data["send_key"])

    qq_data = notifications_data.get("qq") or {}
    if qq_data.get("enabled") and qq_data.get("qmsg_key"):
        notifications.qq = QQConfig(
            qmsg_key=qq_data["qmsg_key"],
            qq=qq_data.get("qq"),
        )

    email_data = notifications_data.get("email") or {}
    if email_data.get("enabled") and email_data.get("smtp_host"):
        notifications.email = EmailConfig(
            smtp_host=email_data["smtp_host"],
            smtp_port=int(email_data.get("smtp_port", 587)),
            username=email_data.get("username", ""),
            password=email_data.get("password", ""),
            from_address=email_data.get("from_address", ""),
            to_addresses=list(email_data.get("to_addresses", [])),
        )

    return PanelConfig(
        notifications=notifications,
        persistence=persistence,
        logging=logging_config,
        api=api,
        webdav=webdav,
        language=data.get("language", "zh"),
        simulation_mode=bool(data.get("simulation_mode", False)),
    )


def config_to_dict(config: PanelConfig) -> dict:
    """Convert a PanelConfig to its JSON representation."""
    notifications = config.notifications
    data: dict = {
        "language": config.language,
        "simulation_mode": config.simulation_mode,
        "persistence": {
            "state_file_path": str(config.persistence.state_file_path),
            "hmac_secret": config.persistence.hmac_secret,
            "preferences_file_path": str(config.persistence.preferences_file_path),
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
        "notifications": {},
    }

    if config.api:
        data["api"] = {
            "base_url": config.api.base_url,
            "timeout": config.api.timeout,
            "delete_key": config.api.delete_key,
            "snake_case_fields": config.api.snake_case_fields,
        }

    if config.webdav:
        data["webdav"] = {
            "url": config.webdav.url,
            "username": config.webdav.username,
            "password": config.webdav.password,
            "backup_path": config.webdav.backup_path,
            "timeout": config.webdav.timeout,
        }

    if notifications.telegram:
        data["notifications"]["telegram"] = {
            "enabled": True,
            "bot_token": notifications.telegram.bot_token,
            "chat_id": notifications.telegram.chat_id,
        }
    if notifications.wechat:
        data["notifications"]["wechat"] = {
            "enabled": True,
            "send_key": notifications.wechat.send_key,
        }
    if notifications.qq:
        data["notifications"]["qq"] = {
            "enabled": True,
            "qmsg_key": notifications.qq.qmsg_key,
            "qq": notifications.qq.qq,
        }
    if notifications.email:
        data["notifications"]["email"] = {
            "enabled": True,
            "smtp_host": notifications.email.smtp_host,
            "smtp_port": notifications.email.smtp_port,
            "username": notifications.email.username,
            "password": notifications.email.password,
            "from_address": notifications.email.from_address,
            "to_addresses": notifications.email.to_addresses,
        }

    return data


def load_config_from_file(config_path: Path) -> Optional[PanelConfig]:
    """
    Load configuration from a JSON file.

    Returns:
        PanelConfig, or None if the file does not exist

    Raises:
        PersistenceError: If the file cannot be read or is malformed
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        raise PersistenceError(
            code="parse_error",
            message=f"Failed to parse config file: {e}",
            details={"file_path": str(config_path)},
        )
    except OSError as e:
        raise PersistenceError(
            code="io_error",
            message=f"Failed to read config file: {e}",
            details={"file_path": str(config_path)},
        )

    try:
        return config_from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceError(
            code="invalid_config",
            message=f"Invalid config file: {e}",
            details={"file_path": str(config_path)},
        )


def save_config_to_file(config: PanelConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file.

    Raises:
        PersistenceError: If the file cannot be written
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config_to_dict(config), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise PersistenceError(
            code="io_error",
            message=f"Failed to write config file: {e}",
            details={"file_path": str(config_path)},
        )


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


def _float_env(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


def load_config_from_env(dotenv_path: Optional[Path] = None) -> PanelConfig:
    """
    Build configuration from environment variables.

    Variables from a ``.env`` file are loaded first without overriding
    values already set in the process environment. Variable names follow
    the panel's deployment settings (TG_BOT_TOKEN, TG_USER_ID, WEBDAV_URL,
    WEBDAV_USER, WEBDAV_PASS, ...).
    """
    load_dotenv(dotenv_path=dotenv_path)

    language = _env("PANEL_LANGUAGE", "zh").lower()
    if language not in ("zh", "en"):
        language = "zh"

    api = None
    if _env("PANEL_API_URL"):
        api = ApiConfig(
            base_url=_env("PANEL_API_URL"),
            timeout=_float_env("PANEL_API_TIMEOUT", 30.0),
            delete_key=_env("PANEL_DELETE_KEY", "domain") or "domain",
            snake_case_fields=_env("PANEL_SNAKE_CASE", "0") == "1",
        )

    webdav = None
    if _env("WEBDAV_URL"):
        webdav = WebDAVConfig(
            url=_env("WEBDAV_URL"),
            username=_env("WEBDAV_USER"),
            password=_env("WEBDAV_PASS"),
            backup_path=_env("WEBDAV_BACKUP_PATH", DEFAULT_BACKUP_PATH),
        )

    notifications = NotificationConfig()
    if _env("TG_BOT_TOKEN") and _env("TG_USER_ID"):
        notifications.telegram = TelegramConfig(
            bot_token=_env("TG_BOT_TOKEN"),
            chat_id=_env("TG_USER_ID"),
        )
    if _env("WECHAT_SENDKEY"):
        notifications.wechat = WeChatConfig(send_key=_env("WECHAT_SENDKEY"))
    if _env("QMSG_KEY"):
        notifications.qq = QQConfig(qmsg_key=_env("QMSG_KEY"), qq=_env("QMSG_QQ") or None)
    if _env("SMTP_HOST"):
        recipients = [a.strip() for a in _env("MAIL_TO").split(",") if a.strip()]
        notifications.email = EmailConfig(
            smtp_host=_env("SMTP_HOST"),
            smtp_port=int(_float_env("SMTP_PORT", 587)),
            username=_env("SMTP_USER"),
            password=_env("SMTP_PASS"),
            from_address=_env("MAIL_FROM", _env("SMTP_USER")),
            to_addresses=recipients,
        )

    state_file = _env("PANEL_STATE_FILE")
    preferences_file = _env("PANEL_PREFERENCES_FILE")

    return PanelConfig(
        notifications=notifications,
        persistence=PersistenceConfig(
            state_file_path=Path(state_file) if state_file else DEFAULT_STATE_FILE,
            hmac_secret=_env("PANEL_HMAC_SECRET", "default-secret-change-me"),
            preferences_file_path=Path(preferences_file) if preferences_file else DEFAULT_PREFERENCES_FILE,
        ),
        logging=LoggingConfig(
            level=_env("LOG_LEVEL", "info").lower(),
            output_format=_env("LOG_FORMAT", "text").lower(),
        ),
        api=api,
        webdav=webdav,
        language=language,
        simulation_mode=_env("SIMULATION_MODE", "0") == "1",
    )
