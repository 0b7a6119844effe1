"""Tests for environment-backed settings."""

import pytest
from unittest.mock import patch

from clustermigrate.exceptions import ConfigError
from clustermigrate.setting import MigrationSettings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    for name in ("DATABASE_URL", "DB_KEY_BASE", "MIGRATION_BATCH_SIZE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    with patch("clustermigrate.setting.load_dotenv"):
        yield
    get_settings.cache_clear()


class TestGetSettings:

    def test_defaults(self):
        settings = get_settings()

        assert settings.database_url is None
        assert settings.db_key_base is None
        assert settings.batch_size == 1
        assert settings.log_level == "INFO"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://app@db/app")
        monkeypatch.setenv("DB_KEY_BASE", "k")
        monkeypatch.setenv("MIGRATION_BATCH_SIZE", "10")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = get_settings()

        assert settings.require_database_url() == "postgresql://app@db/app"
        assert settings.require_db_key_base() == "k"
        assert settings.batch_size == 10
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_invalid_batch_size(self, monkeypatch, value):
        monkeypatch.setenv("MIGRATION_BATCH_SIZE", value)

        with pytest.raises(ConfigError):
            get_settings()


class TestRequiredValues:

    def test_missing_database_url(self):
        with pytest.raises(ConfigError):
            MigrationSettings().require_database_url()

    def test_missing_key_base(self):
        with pytest.raises(ConfigError):
            MigrationSettings(database_url="sqlite://").require_db_key_base()
