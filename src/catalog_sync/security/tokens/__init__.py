"""Security – bearer token verification with rotating key rings."""
from catalog_sync.security.tokens.keyring import KeyRing, SigningKey
from catalog_sync.security.tokens.verifier import TokenVerifier

__all__ = ["KeyRing", "SigningKey", "TokenVerifier"]
