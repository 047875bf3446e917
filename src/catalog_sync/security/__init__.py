"""Security – bearer token verification."""
from catalog_sync.security.tokens import KeyRing, SigningKey, TokenVerifier

__all__ = ["KeyRing", "SigningKey", "TokenVerifier"]
