"""Kernel security – Principal and Role."""
from catalog_sync.kernel.security.principal import Principal, Role

__all__ = ["Principal", "Role"]
