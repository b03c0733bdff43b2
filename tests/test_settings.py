"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values
- Nested SessionSettings and AudioSettings validation
- Loading top-level values from environment variables
- Log level validation
- Settings caching and clearing
"""

import pytest
from pydantic import ValidationError

from guild_jukebox.config.settings import (
    AudioSettings,
    SessionSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep a developer's .env and shell environment out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("ENVIRONMENT", "DEBUG", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestSessionSettings:
    """Unit tests for SessionSettings."""

    def test_defaults(self):
        settings = SessionSettings()

        assert settings.teardown_delay_seconds == 0.2
        assert settings.max_queue_size == 50
        assert settings.status_message_ttl_seconds == 30.0

    def test_aliases(self):
        settings = SessionSettings(teardown_delay=1.5, message_deletion=10.0)

        assert settings.teardown_delay_seconds == 1.5
        assert settings.status_message_ttl_seconds == 10.0

    @pytest.mark.parametrize("value", [0, 1001])
    def test_max_queue_size_bounds(self, value):
        with pytest.raises(ValidationError):
            SessionSettings(max_queue_size=value)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            SessionSettings(teardown_delay_seconds=-1.0)

    def test_frozen(self):
        settings = SessionSettings()

        with pytest.raises(ValidationError):
            settings.max_queue_size = 10


class TestAudioSettings:
    """Unit tests for AudioSettings."""

    def test_defaults(self):
        settings = AudioSettings()

        assert settings.default_volume == 0.5
        assert settings.ytdlp_format == "bestaudio/best"
        assert settings.ffmpeg_options["options"] == "-vn"
        assert "-reconnect 1" in settings.ffmpeg_options["before_options"]

    @pytest.mark.parametrize("value", [-0.1, 2.1])
    def test_default_volume_bounds(self, value):
        with pytest.raises(ValidationError):
            AudioSettings(default_volume=value)

    def test_pot_server_alias(self):
        settings = AudioSettings(bgutil_pot_server_url="http://pot:4416")

        assert settings.pot_server_url == "http://pot:4416"


class TestSettings:
    """Unit tests for the root Settings object."""

    def test_defaults(self):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.session == SessionSettings()
        assert settings.audio == AudioSettings()

    def test_loads_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "warning")

        settings = Settings()

        assert settings.environment == "production"
        assert settings.log_level == "WARNING"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="staging")


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self):
        first = get_settings()

        clear_settings_cache()

        assert get_settings() is not first
