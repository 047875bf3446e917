"""Config – 12-factor env-based configuration."""
from catalog_sync.config.base import Settings
from catalog_sync.config.catalog import CatalogSyncSettings
from catalog_sync.config.errors import ConfigError, InvalidSettingValueError, MissingRequiredSettingError
from catalog_sync.config.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = [
    "CatalogSyncSettings",
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
