"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   ├── NotFoundError
    │   └── ConflictError
    │       └── VersionConflictError
    ├── ApplicationError         (application.py)
    │   ├── AuthenticationError
    │   │   ├── InvalidSignatureError
    │   │   ├── ExpiredTokenError
    │   │   ├── MalformedTokenError
    │   │   └── TokenNotYetValidError
    │   └── AuthorizationError
    └── InfrastructureError      (infrastructure.py)
        └── SyncError
            ├── TransientSyncError
            ├── PermanentSyncError
            └── DocumentRejectedError
"""

from catalog_sync.kernel.errors.application import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenNotYetValidError,
)
from catalog_sync.kernel.errors.base import BaseError
from catalog_sync.kernel.errors.domain import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from catalog_sync.kernel.errors.infrastructure import (
    DocumentRejectedError,
    InfrastructureError,
    PermanentSyncError,
    SyncError,
    TransientSyncError,
)

__all__ = [
    "ApplicationError",
    "AuthenticationError",
    "AuthorizationError",
    "BaseError",
    "ConflictError",
    "DocumentRejectedError",
    "DomainError",
    "ExpiredTokenError",
    "InfrastructureError",
    "InvalidSignatureError",
    "MalformedTokenError",
    "NotFoundError",
    "PermanentSyncError",
    "SyncError",
    "TokenNotYetValidError",
    "TransientSyncError",
    "ValidationError",
    "VersionConflictError",
]
