"""
Client presentation preferences.

ClientPreferences is a plain value object handed to the controller and the
view layer. It is persisted through a KeyValueStore holding string values
under fixed keys, the same shape a browser's local storage offers.
"""

import json
from abc import abstractmethod
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .config import PanelConfig
from .exceptions import PersistenceError
from .views import DEFAULT_WARNING_DAYS

KEY_BACKGROUND_IMAGE = "bgImage"
KEY_CAROUSEL_INTERVAL = "carouselInterval"
KEY_WARNING_DAYS = "warningDays"
KEY_DONT_REMIND = "dontRemindToday"
KEY_DARK_MODE = "darkMode"

DEFAULT_CAROUSEL_INTERVAL = 30


@dataclass
class ClientPreferences:
    """Presentation preferences scoped to one client."""

    background_image: str = ""
    carousel_interval: int = DEFAULT_CAROUSEL_INTERVAL  # seconds
    warning_days: int = DEFAULT_WARNING_DAYS
    dont_remind_date: Optional[str] = None  # ISO calendar date
    dark_mode: bool = False

    def reminders_dismissed_on(self, day: date) -> bool:
        """Check whether reminders were dismissed for the given day."""
        return self.dont_remind_date == day.isoformat()


@runtime_checkable
class KeyValueStore(Protocol):
    """String key/value persistence."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """In-process key/value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """
    Key/value store backed by a flat JSON object on disk.

    The file is read on every access and rewritten on every change.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> dict:
        if not self._file_path.exists():
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to read preferences: {e}",
                details={"file_path": str(self._file_path)},
            )
        if not isinstance(data, dict):
            raise PersistenceError(
                code="invalid_document",
                message="Preferences file does not contain an object",
                details={"file_path": str(self._file_path)},
            )
        return data

    def _write(self, data: dict) -> None:
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True, ensure_ascii=False)
        except OSError as e:
            raise PersistenceError(
                code="io_error",
                message=f"Failed to write preferences: {e}",
                details={"file_path": str(self._file_path)},
            )


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class PreferenceStore:
    """Loads and saves ClientPreferences through a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def load(self) -> ClientPreferences:
        """Read preferences; missing or malformed values fall back to defaults."""
        defaults = ClientPreferences()
        return ClientPreferences(
            background_image=self._store.get(KEY_BACKGROUND_IMAGE) or defaults.background_image,
            carousel_interval=_parse_int(self._store.get(KEY_CAROUSEL_INTERVAL), defaults.carousel_interval),
            warning_days=_parse_int(self._store.get(KEY_WARNING_DAYS), defaults.warning_days),
            dont_remind_date=self._store.get(KEY_DONT_REMIND) or None,
            dark_mode=self._store.get(KEY_DARK_MODE) == "true",
        )

    def save(self, preferences: ClientPreferences) -> None:
        """Write every preference; an unset dismissal date removes its key."""
        self._store.set(KEY_BACKGROUND_IMAGE, preferences.background_image)
        self._store.set(KEY_CAROUSEL_INTERVAL, str(preferences.carousel_interval))
        self._store.set(KEY_WARNING_DAYS, str(preferences.warning_days))
        if preferences.dont_remind_date:
            self._store.set(KEY_DONT_REMIND, preferences.dont_remind_date)
        else:
            self._store.remove(KEY_DONT_REMIND)
        self._store.set(KEY_DARK_MODE, "true" if preferences.dark_mode else "false")


def create_preference_store(config: PanelConfig) -> PreferenceStore:
    """Create a preference store backed by the configured JSON file."""
    return PreferenceStore(JsonFileKeyValueStore(config.persistence.preferences_file_path))
