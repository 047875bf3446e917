"""
catalog_sync – listing consistency and search synchronization core.

Import path convention::

    from catalog_sync.security.tokens import KeyRing, TokenVerifier
    from catalog_sync.application.access import AccessGuard
    from catalog_sync.application.sync import SyncReconciler
    from catalog_sync.adapters.sqlalchemy import SqlAlchemyListingStore
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
