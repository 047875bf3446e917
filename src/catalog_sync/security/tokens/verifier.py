"""Security – bearer token verification (PyJWT-backed)."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt as pyjwt

from catalog_sync.kernel.errors import (
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenNotYetValidError,
)
from catalog_sync.kernel.security import Principal, Role
from catalog_sync.kernel.time import Clock, SystemClock
from catalog_sync.observability.logging import get_logger
from catalog_sync.security.tokens.keyring import KeyRing, SigningKey

__all__ = ["TokenVerifier"]

_log = get_logger(__name__)

# Time-based claims are checked here against the injected clock.
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


def _numeric_date(payload: dict[str, Any], claim: str) -> datetime:
    value = payload[claim]
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MalformedTokenError(f"'{claim}' claim must be a numeric date")
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedTokenError(f"'{claim}' claim is out of range", cause=exc) from exc


def _parse_roles(value: Any) -> frozenset[Role]:
    if isinstance(value, str):
        names = value.split()
    elif isinstance(value, list) and all(isinstance(v, str) for v in value):
        names = value
    else:
        raise MalformedTokenError("roles claim must be a list of strings or a space-separated string")
    return frozenset(Role(name) for name in names if name)


class TokenVerifier:
    """Turns a compact JWS token into a :class:`Principal`.

    A pure function of the token, the key ring and the clock: there is no
    revocation list and no network call.

    Args:
        keys: Trusted keys. A token whose header names a ``kid`` is only
            checked against that key; otherwise every key using the
            header's algorithm is tried in ring order.
        clock: Source of "now" for the expiry and not-before checks.
        leeway: Tolerated clock skew.
        roles_claim: Claim carrying the role names.
    """

    def __init__(
        self,
        keys: KeyRing,
        clock: Clock | None = None,
        *,
        leeway: timedelta | float = 0,
        roles_claim: str = "roles",
    ) -> None:
        self._keys = keys
        self._clock = clock or SystemClock()
        self._leeway = leeway if isinstance(leeway, timedelta) else timedelta(seconds=leeway)
        self._roles_claim = roles_claim

    @property
    def keys(self) -> KeyRing:
        return self._keys

    def with_keys(self, keys: KeyRing) -> TokenVerifier:
        """Return a verifier trusting *keys*, e.g. after a rotation."""
        return TokenVerifier(keys, self._clock, leeway=self._leeway, roles_claim=self._roles_claim)

    def verify(self, token: str) -> Principal:
        try:
            header = pyjwt.get_unverified_header(token)
        except pyjwt.PyJWTError as exc:
            raise MalformedTokenError("Token header cannot be parsed", cause=exc) from exc
        payload = self._decode(token, header)
        principal = self._to_principal(payload)
        now = self._clock.now()
        if now > principal.expires_at + self._leeway:
            _log.info("auth.token_rejected", reason="token_expired", subject=principal.subject)
            raise ExpiredTokenError(
                "Token has expired",
                detail={"expired_at": principal.expires_at.isoformat()},
            )
        if "nbf" in payload:
            not_before = _numeric_date(payload, "nbf")
            if not_before > now + self._leeway:
                _log.info("auth.token_rejected", reason="token_not_yet_valid", subject=principal.subject)
                raise TokenNotYetValidError(
                    "Token is not valid yet",
                    detail={"not_before": not_before.isoformat()},
                )
        return principal

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _candidates(self, header: dict[str, Any]) -> list[SigningKey]:
        algorithm = header.get("alg")
        kid = header.get("kid")
        if kid is not None:
            key = self._keys.get(kid) if isinstance(kid, str) else None
            if key is None:
                _log.info("auth.token_rejected", reason="unknown_kid")
                raise InvalidSignatureError("Token signed with an unknown key", detail={"kid": str(kid)})
            if key.algorithm != algorithm:
                raise InvalidSignatureError("Token algorithm does not match its key", detail={"kid": kid})
            return [key]
        candidates = self._keys.for_algorithm(algorithm) if isinstance(algorithm, str) else []
        if not candidates:
            _log.info("auth.token_rejected", reason="untrusted_algorithm")
            raise InvalidSignatureError("No trusted key for the token algorithm")
        return candidates

    def _decode(self, token: str, header: dict[str, Any]) -> dict[str, Any]:
        for key in self._candidates(header):
            try:
                return pyjwt.decode(
                    token,
                    key.secret,
                    algorithms=[key.algorithm],
                    options=_DECODE_OPTIONS,
                )
            except pyjwt.InvalidSignatureError:
                continue
            except pyjwt.PyJWTError as exc:
                raise MalformedTokenError("Token claims cannot be parsed", cause=exc) from exc
        _log.info("auth.token_rejected", reason="invalid_signature", kid=header.get("kid"))
        raise InvalidSignatureError("Token signature does not verify against any trusted key")

    def _to_principal(self, payload: dict[str, Any]) -> Principal:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError("'sub' claim is missing")
        if "exp" not in payload:
            raise MalformedTokenError("'exp' claim is missing")
        if self._roles_claim not in payload:
            raise MalformedTokenError(f"'{self._roles_claim}' claim is missing")
        return Principal(
            subject=subject,
            expires_at=_numeric_date(payload, "exp"),
            roles=_parse_roles(payload[self._roles_claim]),
            claims=payload,
        )
