"""Unit tests – environment settings loading and validation."""
from __future__ import annotations

import pytest

from catalog_sync.config import (
    CatalogSyncSettings,
    ConfigError,
    DotenvSettingsLoader,
    EnvSettingsLoader,
    InvalidSettingValueError,
)

SECRET = "env-secret-0123456789abcdef0123456789ab"


class TestDefaults:
    def test_defaults_are_valid(self) -> None:
        settings = CatalogSyncSettings()
        assert settings.batch_size == 100
        assert settings.elevated_roles == ["admin"]
        assert len(settings.key_ring()) == 0


class TestEnvSettingsLoader:
    def test_reads_prefixed_variables(self) -> None:
        env = {
            "CATALOG_SYNC_DATABASE_URL": "sqlite+aiosqlite:///tmp/x.db",
            "CATALOG_SYNC_BATCH_SIZE": "25",
            "CATALOG_SYNC_PARTITIONS": "4",
            "CATALOG_SYNC_BACKOFF_BASE_SECONDS": "0.25",
            "CATALOG_SYNC_SYNC_ENABLED": "false",
            "CATALOG_SYNC_SIGNING_KEYS": f"k1:{SECRET}, k2:{SECRET[::-1]}",
            "CATALOG_SYNC_ELEVATED_ROLES": "admin,moderator",
        }
        settings = EnvSettingsLoader(env).load(CatalogSyncSettings)
        assert settings.database_url == "sqlite+aiosqlite:///tmp/x.db"
        assert settings.batch_size == 25
        assert settings.partitions == 4
        assert settings.backoff_base_seconds == 0.25
        assert settings.sync_enabled is False
        assert settings.key_ring().kids == ["k1", "k2"]
        assert settings.elevated_roles == ["admin", "moderator"]

    def test_empty_optional_is_none(self) -> None:
        settings = EnvSettingsLoader({"CATALOG_SYNC_SEARCH_URL": ""}).load(CatalogSyncSettings)
        assert settings.search_url is None

    def test_unparseable_number(self) -> None:
        with pytest.raises(InvalidSettingValueError) as info:
            EnvSettingsLoader({"CATALOG_SYNC_BATCH_SIZE": "lots"}).load(CatalogSyncSettings)
        assert info.value.setting_name == "CATALOG_SYNC_BATCH_SIZE"

    def test_unparseable_bool(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader({"CATALOG_SYNC_SYNC_ENABLED": "maybe"}).load(CatalogSyncSettings)

    def test_secret_value_not_echoed(self) -> None:
        with pytest.raises(ConfigError) as info:
            EnvSettingsLoader({"CATALOG_SYNC_SIGNING_KEYS": f"k1:{SECRET},k1:{SECRET}"}).load(CatalogSyncSettings)
        assert SECRET not in info.value.message


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"batch_size": 0},
            {"retry_window_seconds": 0},
            {"backoff_base_seconds": 10, "backoff_max_seconds": 5},
            {"token_leeway_seconds": -1},
            {"partitions": 8, "batch_size": 4},
            {"signing_keys": ["missing-separator"]},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(InvalidSettingValueError):
            CatalogSyncSettings(**kwargs)


class TestDotenvSettingsLoader:
    def test_reads_env_file(self, tmp_path, monkeypatch) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("CATALOG_SYNC_HTTP_PORT=9100\nCATALOG_SYNC_LOG_JSON=no\n")
        monkeypatch.delenv("CATALOG_SYNC_HTTP_PORT", raising=False)
        monkeypatch.delenv("CATALOG_SYNC_LOG_JSON", raising=False)
        try:
            settings = DotenvSettingsLoader(str(env_file)).load(CatalogSyncSettings)
        finally:
            monkeypatch.delenv("CATALOG_SYNC_HTTP_PORT", raising=False)
            monkeypatch.delenv("CATALOG_SYNC_LOG_JSON", raising=False)
        assert settings.http_port == 9100
        assert settings.log_json is False
