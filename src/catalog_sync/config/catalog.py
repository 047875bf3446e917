"""Config – CatalogSyncSettings."""
from __future__ import annotations

import dataclasses

from catalog_sync.config.base import Settings
from catalog_sync.config.errors import InvalidSettingValueError
from catalog_sync.security.tokens import KeyRing

_POSITIVE_INTS = ("batch_size", "partitions", "drift_sample_size")
_POSITIVE_FLOATS = (
    "poll_interval_seconds",
    "backoff_base_seconds",
    "backoff_max_seconds",
    "retry_window_seconds",
    "claim_lease_seconds",
    "index_timeout_seconds",
    "drift_sweep_interval_seconds",
    "delivered_retention_seconds",
)


@dataclasses.dataclass
class CatalogSyncSettings(Settings):
    """Runtime configuration, read from ``CATALOG_SYNC_*`` variables.

    ``signing_keys`` is a comma-separated list of ``kid:secret`` pairs; list
    the new key next to the old one while a rotation is in progress.
    """

    _prefix = "CATALOG_SYNC"

    database_url: str = "sqlite+aiosqlite:///./catalog.db"
    auto_create_schema: bool = False
    search_url: str | None = None
    search_index: str = "listings"

    batch_size: int = 100
    partitions: int = 1
    poll_interval_seconds: float = 1.0
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 60.0
    retry_window_seconds: float = 3600.0
    claim_lease_seconds: float = 30.0
    index_timeout_seconds: float = 5.0
    drift_sweep_interval_seconds: float = 300.0
    drift_sample_size: int = 200
    delivered_retention_seconds: float = 86400.0
    sync_enabled: bool = True

    signing_keys: list[str] = dataclasses.field(default_factory=list)
    token_algorithm: str = "HS256"
    token_leeway_seconds: float = 0.0
    roles_claim: str = "roles"
    elevated_roles: list[str] = dataclasses.field(default_factory=lambda: ["admin"])

    log_level: str = "INFO"
    log_json: bool = True

    http_host: str = "127.0.0.1"
    http_port: int = 8000

    def _validate(self) -> None:
        for name in _POSITIVE_INTS:
            value = getattr(self, name)
            if value < 1:
                raise InvalidSettingValueError(name, value, "must be >= 1")
        for name in _POSITIVE_FLOATS:
            value = getattr(self, name)
            if value <= 0:
                raise InvalidSettingValueError(name, value, "must be > 0")
        if self.backoff_max_seconds < self.backoff_base_seconds:
            raise InvalidSettingValueError(
                "backoff_max_seconds", self.backoff_max_seconds, "must be >= backoff_base_seconds"
            )
        if self.token_leeway_seconds < 0:
            raise InvalidSettingValueError("token_leeway_seconds", self.token_leeway_seconds, "must be >= 0")
        if self.partitions > self.batch_size:
            raise InvalidSettingValueError("partitions", self.partitions, "must not exceed batch_size")
        self.key_ring()

    def key_ring(self) -> KeyRing:
        try:
            return KeyRing.from_specs(self.signing_keys, self.token_algorithm)
        except ValueError as exc:
            raise InvalidSettingValueError("signing_keys", "***", str(exc)) from exc


__all__ = ["CatalogSyncSettings"]
