"""Tests for settings and translations."""

from pathlib import Path

import pytest

from prayanswer.core import i18n
from prayanswer.core.config import Settings, get_settings
from prayanswer.core.i18n import load_translations, normalize_locale, t


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.image_quality == 70
        assert settings.thumbnail_size == 200
        assert settings.widget_max_items == 5
        assert settings.max_attachment_bytes == 20 * 1024 * 1024
        assert settings.locale == "ko"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LOCALE", "en")
        monkeypatch.setenv("AI_CLEANUP_ENABLED", "false")
        settings = Settings(_env_file=None)
        assert settings.locale == "en"
        assert settings.ai_cleanup_enabled is False

    def test_derived_directories(self, tmp_path):
        settings = Settings(_env_file=None, data_dir=str(tmp_path))
        assert settings.attachment_dir == tmp_path / "PrayerAttachments"
        assert settings.legacy_image_dir == tmp_path / "PrayerImages"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_unrelated_env_vars_are_ignored(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        Settings(_env_file=None)
        assert "environment" not in Settings.model_fields
        assert "debug" not in Settings.model_fields


class TestTranslations:
    def test_korean_is_default(self):
        assert t("storage.wait") == "기다림"

    def test_interpolation(self):
        text = t("target.title_format", "ko", target="엄마", category="건강")
        assert text == "엄마의 건강 기도"

    def test_english(self):
        assert t("target.title_format_self", "en", category="Work") == "Work prayer"

    def test_falls_back_to_korean_then_key(self):
        assert t("storage.yes", "fr") == "응답"
        assert t("does.not.exist", "en") == "does.not.exist"

    def test_missing_variable_returns_template(self):
        assert "{target}" in t("target.title_format", "ko")

    @pytest.mark.parametrize(
        "raw,expected", [("ko-KR", "ko"), ("en_US", "en"), (None, "ko"), ("xx", "ko")]
    )
    def test_normalize_locale(self, raw, expected):
        assert normalize_locale(raw) == expected

    def test_both_locales_define_the_same_keys(self):
        import yaml

        locales_dir = Path(__file__).resolve().parents[2] / "locales"

        def keys(data, prefix=""):
            out = set()
            for key, value in data.items():
                path = f"{prefix}{key}"
                if isinstance(value, dict):
                    out |= keys(value, path + ".")
                else:
                    out.add(path)
            return out

        ko = yaml.safe_load((locales_dir / "ko.yaml").read_text(encoding="utf-8"))
        en = yaml.safe_load((locales_dir / "en.yaml").read_text(encoding="utf-8"))
        assert keys(ko) == keys(en)

    def test_reload_from_custom_dir(self, tmp_path):
        (tmp_path / "ko.yaml").write_text('greeting: "안녕 {name}"\n', encoding="utf-8")
        try:
            load_translations(tmp_path)
            assert t("greeting", name="철수") == "안녕 철수"
            assert i18n.SUPPORTED_LOCALES == {"ko"}
        finally:
            load_translations()

    def test_every_dday_message_is_used_by_reminders(self):
        import yaml

        from prayanswer.services.reminder_scheduler import _OFFSET_MESSAGE_KEYS

        locales_dir = Path(__file__).resolve().parents[2] / "locales"
        ko = yaml.safe_load((locales_dir / "ko.yaml").read_text(encoding="utf-8"))
        used = set(_OFFSET_MESSAGE_KEYS.values()) | {
            "dday.notification_title",
            "dday.notification_dday_title",
            "dday.notification_generic",
        }
        assert {f"dday.{key}" for key in ko["dday"]} == used
