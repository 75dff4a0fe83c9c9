"""
Internationalization (i18n) module for the domain panel.

Provides translations for all user-facing messages in Chinese (zh) and
English (en). Chinese is the panel's primary language.
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"zh", "en"})
DEFAULT_LANGUAGE = "zh"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Record validation
    "validation.domain_empty": {
        "zh": "域名不能为空",
        "en": "Domain must not be empty",
    },
    "validation.status_invalid": {
        "zh": "状态必须是 active、expired 或 pending",
        "en": "Status must be one of active, expired or pending",
    },
    "validation.registrar_empty": {
        "zh": "注册商不能为空",
        "en": "Registrar must not be empty",
    },
    "validation.register_date_invalid": {
        "zh": "注册日期格式无效",
        "en": "Registration date is not a valid date",
    },
    "validation.expire_date_invalid": {
        "zh": "到期日期格式无效",
        "en": "Expiration date is not a valid date",
    },
    "validation.failed": {
        "zh": "数据校验失败",
        "en": "Validation failed",
    },

    # Settings validation
    "settings.warning_days_invalid": {
        "zh": "提醒天数必须在 1 到 365 之间",
        "en": "Warning days must be between 1 and 365",
    },
    "settings.interval_invalid": {
        "zh": "通知频率必须是 daily、weekly 或 once",
        "en": "Notification interval must be one of daily, weekly or once",
    },
    "settings.method_invalid": {
        "zh": "不支持的通知方式: {method}",
        "en": "Unsupported notification method: {method}",
    },
    "settings.saved": {
        "zh": "设置已保存",
        "en": "Settings saved",
    },
    "settings.load_failed": {
        "zh": "获取设置失败: {error}",
        "en": "Failed to load settings: {error}",
    },
    "settings.save_failed": {
        "zh": "保存设置失败: {error}",
        "en": "Failed to save settings: {error}",
    },

    # Status labels
    "status.active": {
        "zh": "正常",
        "en": "Active",
    },
    "status.expired": {
        "zh": "已过期",
        "en": "Expired",
    },
    "status.pending": {
        "zh": "待激活",
        "en": "Pending",
    },

    # Export column headers
    "export.header.domain": {
        "zh": "域名",
        "en": "Domain",
    },
    "export.header.registrar": {
        "zh": "注册商",
        "en": "Registrar",
    },
    "export.header.register_date": {
        "zh": "注册日期",
        "en": "Register Date",
    },
    "export.header.expire_date": {
        "zh": "过期日期",
        "en": "Expire Date",
    },
    "export.header.status": {
        "zh": "状态",
        "en": "Status",
    },

    # Import
    "import.empty_file": {
        "zh": "文件内容为空或格式不正确",
        "en": "The file is empty or malformed",
    },
    "import.missing_columns": {
        "zh": "缺少必要的列: {columns}",
        "en": "Missing required columns: {columns}",
    },
    "import.invalid_json": {
        "zh": "JSON 格式错误: {error}",
        "en": "Invalid JSON: {error}",
    },
    "import.not_array": {
        "zh": "JSON 数据必须是数组",
        "en": "JSON data must be an array",
    },
    "import.invalid_record": {
        "zh": "第 {index} 条记录格式错误",
        "en": "Record {index} is malformed",
    },
    "import.unsupported_format": {
        "zh": "不支持的文件格式: {extension}",
        "en": "Unsupported file format: {extension}",
    },
    "import.decode_failed": {
        "zh": "文件编码必须是 UTF-8",
        "en": "The file must be UTF-8 encoded",
    },

    # Sync controller
    "sync.loaded": {
        "zh": "已加载 {count} 个域名",
        "en": "Loaded {count} domain(s)",
    },
    "sync.load_failed": {
        "zh": "获取域名失败: {error}",
        "en": "Failed to load domains: {error}",
    },
    "sync.saved": {
        "zh": "数据保存成功",
        "en": "Saved successfully",
    },
    "sync.save_failed": {
        "zh": "保存失败: {error}",
        "en": "Save failed: {error}",
    },
    "sync.not_sequence": {
        "zh": "数据格式错误",
        "en": "Data must be a list of records",
    },
    "sync.deleted": {
        "zh": "删除成功",
        "en": "Deleted successfully",
    },
    "sync.delete_failed": {
        "zh": "删除失败: {error}",
        "en": "Delete failed: {error}",
    },
    "sync.missing_identifier": {
        "zh": "缺少参数",
        "en": "Missing identifier",
    },
    "sync.invalid_index": {
        "zh": "无效的序号: {index}",
        "en": "Invalid index: {index}",
    },
    "sync.imported": {
        "zh": "导入成功，共 {count} 条",
        "en": "Imported {count} record(s)",
    },
    "sync.import_failed": {
        "zh": "导入失败: {error}",
        "en": "Import failed: {error}",
    },
    "sync.no_data": {
        "zh": "没有可导出的域名数据",
        "en": "There are no domains to export",
    },
    "sync.backup_done": {
        "zh": "备份成功: {url}",
        "en": "Backup stored at {url}",
    },
    "sync.backup_failed": {
        "zh": "备份失败: {error}",
        "en": "Backup failed: {error}",
    },
    "sync.restore_done": {
        "zh": "恢复成功，共 {count} 条",
        "en": "Restored {count} record(s)",
    },
    "sync.restore_failed": {
        "zh": "恢复失败: {error}",
        "en": "Restore failed: {error}",
    },
    "sync.backup_not_configured": {
        "zh": "WebDAV 备份未配置",
        "en": "WebDAV backup is not configured",
    },
    "sync.reminders_dismissed": {
        "zh": "今日不再提醒",
        "en": "Reminders dismissed for today",
    },

    # Transport
    "transport.request_failed": {
        "zh": "请求失败: {error}",
        "en": "Request failed: {error}",
    },
    "transport.http_status": {
        "zh": "服务器返回错误状态: {status}",
        "en": "Server responded with status {status}",
    },
    "transport.invalid_response": {
        "zh": "服务器返回无效数据",
        "en": "Server returned an invalid response",
    },

    # Backup
    "backup.upload_failed": {
        "zh": "WebDAV上传失败",
        "en": "WebDAV upload failed",
    },
    "backup.download_failed": {
        "zh": "WebDAV下载失败",
        "en": "WebDAV download failed",
    },
    "backup.not_json": {
        "zh": "WebDAV文件内容不是有效JSON",
        "en": "The WebDAV file is not valid JSON",
    },
    "backup.not_array": {
        "zh": "WebDAV文件内容不是数组",
        "en": "The WebDAV file does not contain an array",
    },

    # Notifications
    "notification.title": {
        "zh": "域名到期提醒",
        "en": "Domain expiry reminder",
    },
    "notification.intro": {
        "zh": "以下域名将在{days}天内到期：",
        "en": "The following domains expire within {days} days:",
    },
    "notification.registrar_label": {
        "zh": "注册商",
        "en": "Registrar",
    },
    "notification.expire_label": {
        "zh": "到期时间",
        "en": "Expires",
    },
    "notification.days_left_label": {
        "zh": "剩余天数",
        "en": "Days left",
    },
    "notification.days_left_value": {
        "zh": "{days}天",
        "en": "{days} days",
    },
    "notification.renew_label": {
        "zh": "续期链接",
        "en": "Renew",
    },
    "notification.footer": {
        "zh": "请及时续费以避免域名过期！",
        "en": "Please renew in time to avoid losing these domains!",
    },
    "notification.not_configured": {
        "zh": "{method} 通知未配置",
        "en": "{method} notifications are not configured",
    },
    "notification.provider_error": {
        "zh": "{method} 通知发送失败: {error}",
        "en": "{method} notification failed: {error}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'validation.domain_empty')
        language: Language code ('zh' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('status.active', 'en')
        'Active'
        >>> get_message('sync.invalid_index', 'zh', index=3)
        '无效的序号: 3'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)

    if translations is None:
        return key

    message = translations.get(language)

    if message is None:
        message = translations.get(DEFAULT_LANGUAGE)

    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # Leave the template unformatted rather than fail
            pass

    return message


def status_label(status: str, language: Optional[str] = None) -> str:
    """Localized label for a status value; unknown values pass through."""
    key = f"status.{status}"
    if key not in TRANSLATIONS:
        return status
    return get_message(key, language)


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def has_translation(key: str, language: str) -> bool:
    """
    Check if a translation exists for a key and language.

    Args:
        key: The message key
        language: The language code

    Returns:
        True if translation exists, False otherwise.
    """
    translations = TRANSLATIONS.get(key)
    if translations is None:
        return False
    return language in translations


def get_missing_translations(language: str) -> set[str]:
    """Get all message keys that are missing translations for a language."""
    missing = set()
    for key, translations in TRANSLATIONS.items():
        if language not in translations:
            missing.add(key)
    return missing


def validate_translations() -> dict[str, set[str]]:
    """
    Validate that all languages have all translations.

    Returns:
        Dictionary mapping language codes to sets of missing message keys.
        Empty sets indicate complete translations.
    """
    result = {}
    for language in SUPPORTED_LANGUAGES:
        result[language] = get_missing_translations(language)
    return result
