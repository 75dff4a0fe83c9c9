"""
Domain Panel - domain expiry tracking core.

This package keeps a collection of domain registrations in sync with a
remote or local store, computes expiry countdowns and usage progress,
imports and exports the collection as JSON, CSV or TXT, backs it up to
WebDAV, and sends expiry reminders over Telegram, WeChat, QQ and email.
"""

__version__ = "0.1.0"
__author__ = "Domain Panel Team"

from domain_panel.exceptions import (
    DomainPanelError,
    ValidationError,
    FormatError,
    EmptyFileError,
    MissingColumnsError,
    TransportError,
    PersistenceError,
    TamperingError,
    NotConfiguredError,
    NotificationError,
)
from domain_panel.enums import (
    DomainStatus,
    ProgressSeverity,
    NotificationMethod,
    NotificationInterval,
    SortOrder,
    ExportFormat,
    SyncState,
    LogLevel,
)
from domain_panel.models import (
    DomainRecord,
    NotificationSettings,
    ValidationResult,
    ViewQuery,
    ViewPage,
    CollectionStats,
    ExportedFile,
    OperationResult,
    NotificationResult,
    ExpiryCheck,
)
from domain_panel.record_validator import (
    RecordValidator,
    validate,
    validate_settings,
)
from domain_panel.views import (
    days_left,
    usage_progress,
    progress_severity,
    is_expiring_soon,
    find_expiring,
    filter_and_sort,
    paginate,
    page_count,
    clamp_page,
    build_page,
    collection_stats,
)
from domain_panel.codec import (
    export_collection,
    export_json,
    export_csv,
    export_txt,
    import_json,
    import_csv,
    import_txt,
    import_file,
)
from domain_panel.config import (
    ApiConfig,
    TelegramConfig,
    WeChatConfig,
    QQConfig,
    EmailConfig,
    NotificationConfig,
    WebDAVConfig,
    PersistenceConfig,
    LoggingConfig,
    PanelConfig,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
    load_config_from_env,
)
from domain_panel.activity_log import (
    ActivityLogger,
    LogEntry,
    create_activity_logger,
)
from domain_panel.store import (
    DomainStore,
    HttpDomainStore,
    FileDomainStore,
    create_domain_store,
)
from domain_panel.notifications import (
    NotificationPayload,
    NotificationChannel,
    TelegramChannel,
    WeChatChannel,
    QQChannel,
    EmailChannel,
    NotificationRouter,
    create_notification_router,
)
from domain_panel.backup import (
    WebDAVBackup,
    create_backup,
)
from domain_panel.preferences import (
    ClientPreferences,
    KeyValueStore,
    MemoryKeyValueStore,
    JsonFileKeyValueStore,
    PreferenceStore,
    create_preference_store,
)
from domain_panel.i18n import (
    get_message,
    get_all_message_keys,
    has_translation,
    get_missing_translations,
    validate_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from domain_panel.sync import SyncController

__all__ = [
    # Exceptions
    "DomainPanelError",
    "ValidationError",
    "FormatError",
    "EmptyFileError",
    "MissingColumnsError",
    "TransportError",
    "PersistenceError",
    "TamperingError",
    "NotConfiguredError",
    "NotificationError",
    # Enums
    "DomainStatus",
    "ProgressSeverity",
    "NotificationMethod",
    "NotificationInterval",
    "SortOrder",
    "ExportFormat",
    "SyncState",
    "LogLevel",
    # Models
    "DomainRecord",
    "NotificationSettings",
    "ValidationResult",
    "ViewQuery",
    "ViewPage",
    "CollectionStats",
    "ExportedFile",
    "OperationResult",
    "NotificationResult",
    "ExpiryCheck",
    # Validation
    "RecordValidator",
    "validate",
    "validate_settings",
    # Views
    "days_left",
    "usage_progress",
    "progress_severity",
    "is_expiring_soon",
    "find_expiring",
    "filter_and_sort",
    "paginate",
    "page_count",
    "clamp_page",
    "build_page",
    "collection_stats",
    # Codec
    "export_collection",
    "export_json",
    "export_csv",
    "export_txt",
    "import_json",
    "import_csv",
    "import_txt",
    "import_file",
    # Configuration
    "ApiConfig",
    "TelegramConfig",
    "WeChatConfig",
    "QQConfig",
    "EmailConfig",
    "NotificationConfig",
    "WebDAVConfig",
    "PersistenceConfig",
    "LoggingConfig",
    "PanelConfig",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
    "load_config_from_env",
    # Activity Logger
    "ActivityLogger",
    "LogEntry",
    "create_activity_logger",
    # Stores
    "DomainStore",
    "HttpDomainStore",
    "FileDomainStore",
    "create_domain_store",
    # Notifications
    "NotificationPayload",
    "NotificationChannel",
    "TelegramChannel",
    "WeChatChannel",
    "QQChannel",
    "EmailChannel",
    "NotificationRouter",
    "create_notification_router",
    # Backup
    "WebDAVBackup",
    "create_backup",
    # Preferences
    "ClientPreferences",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "PreferenceStore",
    "create_preference_store",
    # I18n
    "get_message",
    "get_all_message_keys",
    "has_translation",
    "get_missing_translations",
    "validate_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # Sync Controller
    "SyncController",
]
