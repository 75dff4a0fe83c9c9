"""
Property-based tests for internationalization (i18n) module.

Uses Hypothesis to verify that every message exists in both languages and
that lookups fall back predictably.
"""

import string

from hypothesis import given, settings
from hypothesis import strategies as st

from domain_panel.enums import DomainStatus
from domain_panel.i18n import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    TRANSLATIONS,
    get_all_message_keys,
    get_message,
    get_missing_translations,
    has_translation,
    status_label,
    validate_translations,
)


def placeholders(template: str) -> set[str]:
    return {name for _, name, _, _ in string.Formatter().parse(template) if name}


class TestTranslationCoverageProperty:
    """Property-based tests for translation coverage."""

    def test_all_languages_have_all_translations(self) -> None:
        """
        *For any* message key used in the panel, translations SHALL exist
        for both "zh" and "en".
        """
        assert len(get_all_message_keys()) > 0, "No translations defined"

        for language in SUPPORTED_LANGUAGES:
            missing = get_missing_translations(language)
            assert len(missing) == 0, (
                f"Language '{language}' is missing translations for: {missing}"
            )

    @given(key=st.sampled_from(sorted(TRANSLATIONS.keys())))
    @settings(max_examples=100)
    def test_translations_are_non_empty(self, key: str) -> None:
        for language in SUPPORTED_LANGUAGES:
            assert has_translation(key, language)
            message = TRANSLATIONS[key][language]
            assert message.strip(), f"Empty translation for '{key}' in '{language}'"

    @given(key=st.sampled_from(sorted(TRANSLATIONS.keys())))
    @settings(max_examples=100)
    def test_placeholders_match_across_languages(self, key: str) -> None:
        """
        *For any* message key, both languages SHALL use the same format
        placeholders so one call formats either translation.
        """
        assert placeholders(TRANSLATIONS[key]["zh"]) == placeholders(TRANSLATIONS[key]["en"])

    def test_validate_translations_returns_empty_sets(self) -> None:
        result = validate_translations()

        assert set(result.keys()) == SUPPORTED_LANGUAGES
        assert all(len(missing) == 0 for missing in result.values())

    def test_chinese_and_english_translations_differ(self) -> None:
        identical = [key for key, t in TRANSLATIONS.items() if t["zh"] == t["en"]]
        assert len(identical) <= len(TRANSLATIONS) * 0.1, f"Identical translations: {identical}"


class TestGetMessageFunction:
    """Tests for the get_message function behavior."""

    def test_default_language_is_chinese(self) -> None:
        assert DEFAULT_LANGUAGE == "zh"

    @given(language=st.one_of(st.none(), st.text(max_size=5).filter(lambda s: s not in SUPPORTED_LANGUAGES)))
    @settings(max_examples=30)
    def test_unknown_language_uses_default(self, language) -> None:
        assert get_message("validation.domain_empty", language) == "域名不能为空"

    def test_unknown_key_returns_key(self) -> None:
        assert get_message("this.key.does.not.exist", "en") == "this.key.does.not.exist"

    def test_format_args(self) -> None:
        assert get_message("sync.invalid_index", "zh", index=3) == "无效的序号: 3"
        assert get_message("import.missing_columns", "en", columns="status") == "Missing required columns: status"

    def test_missing_format_args_leave_template(self) -> None:
        assert "{index}" in get_message("sync.invalid_index", "en")


class TestStatusLabels:
    """Localized status labels."""

    @given(status=st.sampled_from(list(DomainStatus)), language=st.sampled_from(sorted(SUPPORTED_LANGUAGES)))
    @settings(max_examples=20)
    def test_every_status_has_label(self, status: DomainStatus, language: str) -> None:
        label = status_label(status.value, language)
        assert label and label != status.value

    def test_known_labels(self) -> None:
        assert status_label("active", "zh") == "正常"
        assert status_label("expired", "en") == "Expired"
        assert status_label("pending") == "待激活"

    def test_unknown_status_passes_through(self) -> None:
        assert status_label("sold", "en") == "sold"
