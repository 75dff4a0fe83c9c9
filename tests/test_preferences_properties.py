"""
Property-based tests for client preferences persistence.
"""

import json
import tempfile
from datetime import date
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_panel.config import create_default_config
from domain_panel.exceptions import PersistenceError
from domain_panel.preferences import (
    ClientPreferences,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    PreferenceStore,
    create_preference_store,
)


@st.composite
def preferences_strategy(draw) -> ClientPreferences:
    """Generate valid ClientPreferences objects."""
    dismissed = draw(st.one_of(st.none(), st.dates().map(date.isoformat)))
    return ClientPreferences(
        background_image=draw(st.one_of(st.just(""), st.just("https://img.example/bg.jpg"))),
        carousel_interval=draw(st.integers(min_value=1, max_value=3600)),
        warning_days=draw(st.integers(min_value=1, max_value=365)),
        dont_remind_date=dismissed,
        dark_mode=draw(st.booleans()),
    )


class TestPreferenceRoundTripProperty:
    """Property-based tests for save then load."""

    @given(preferences=preferences_strategy())
    @settings(max_examples=100)
    def test_memory_round_trip(self, preferences: ClientPreferences) -> None:
        """*For any* preferences, loading after saving SHALL give them back."""
        store = PreferenceStore(MemoryKeyValueStore())

        store.save(preferences)

        assert store.load() == preferences

    @given(preferences=preferences_strategy())
    @settings(max_examples=30)
    def test_file_round_trip(self, preferences: ClientPreferences) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            kv = JsonFileKeyValueStore(Path(tmpdir) / "prefs" / "preferences.json")
            PreferenceStore(kv).save(preferences)

            assert PreferenceStore(JsonFileKeyValueStore(kv.file_path)).load() == preferences

    def test_stored_as_strings_under_fixed_keys(self) -> None:
        kv = MemoryKeyValueStore()

        PreferenceStore(kv).save(ClientPreferences(dark_mode=True, dont_remind_date="2025-06-01"))

        assert kv.get("darkMode") == "true"
        assert kv.get("carouselInterval") == "30"
        assert kv.get("warningDays") == "15"
        assert kv.get("dontRemindToday") == "2025-06-01"
        assert kv.get("bgImage") == ""

    def test_clearing_dismissal_removes_key(self) -> None:
        kv = MemoryKeyValueStore({"dontRemindToday": "2025-06-01"})

        PreferenceStore(kv).save(ClientPreferences())

        assert kv.get("dontRemindToday") is None


class TestPreferenceDefaults:
    """Missing or malformed values fall back to defaults."""

    def test_empty_store(self) -> None:
        assert PreferenceStore(MemoryKeyValueStore()).load() == ClientPreferences()

    @given(junk=st.text(alphabet="abcxyz.,- ", max_size=10))
    @settings(max_examples=50)
    def test_malformed_numbers(self, junk: str) -> None:
        kv = MemoryKeyValueStore({"carouselInterval": junk, "warningDays": junk})

        loaded = PreferenceStore(kv).load()

        assert loaded.carousel_interval == 30
        assert loaded.warning_days == 15

    def test_dark_mode_only_for_true(self) -> None:
        for value, expected in [("true", True), ("false", False), ("1", False), ("TRUE", False)]:
            loaded = PreferenceStore(MemoryKeyValueStore({"darkMode": value})).load()
            assert loaded.dark_mode is expected

    def test_reminders_dismissed_on(self) -> None:
        prefs = ClientPreferences(dont_remind_date="2025-06-01")

        assert prefs.reminders_dismissed_on(date(2025, 6, 1)) is True
        assert prefs.reminders_dismissed_on(date(2025, 6, 2)) is False
        assert ClientPreferences().reminders_dismissed_on(date(2025, 6, 1)) is False


class TestJsonFileKeyValueStore:
    """File-backed key/value store."""

    def test_implements_protocol(self) -> None:
        assert isinstance(MemoryKeyValueStore(), KeyValueStore)
        assert isinstance(JsonFileKeyValueStore(Path("unused.json")), KeyValueStore)

    def test_missing_file_reads_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            kv = JsonFileKeyValueStore(Path(tmpdir) / "none.json")
            assert kv.get("darkMode") is None
            kv.remove("darkMode")
            assert not kv.file_path.exists()

    def test_malformed_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "preferences.json"
            path.write_text("{not json", encoding="utf-8")

            try:
                JsonFileKeyValueStore(path).get("darkMode")
                assert False, "Expected PersistenceError"
            except PersistenceError as e:
                assert e.code == "io_error"

    def test_non_object_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "preferences.json"
            path.write_text(json.dumps(["darkMode"]), encoding="utf-8")

            try:
                JsonFileKeyValueStore(path).get("darkMode")
                assert False, "Expected PersistenceError"
            except PersistenceError as e:
                assert e.code == "invalid_document"

    def test_undecodable_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "preferences.json"
            path.write_bytes(b"\xff\xfe\x00garbage")

            try:
                JsonFileKeyValueStore(path).get("darkMode")
                assert False, "Expected PersistenceError"
            except PersistenceError as e:
                assert e.code == "io_error"


class TestPreferenceStoreFactory:
    """Preferences persist to the configured file."""

    def test_uses_configured_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config = create_default_config()
            config.persistence.preferences_file_path = Path(tmpdir) / "prefs" / "preferences.json"

            store = create_preference_store(config)
            store.save(ClientPreferences(warning_days=7, dark_mode=True))

            saved = json.loads(config.persistence.preferences_file_path.read_text(encoding="utf-8"))
            assert saved["warningDays"] == "7"
            assert saved["darkMode"] == "true"
            assert create_preference_store(config).load().warning_days == 7
