"""Security – trusted verification keys and their rotation."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

__all__ = ["KeyRing", "SigningKey"]


@dataclass(frozen=True)
class SigningKey:
    """A key trusted to verify token signatures.

    ``secret`` is the shared HMAC secret, or the PEM public key for
    asymmetric algorithms.
    """

    kid: str
    secret: str | bytes = field(repr=False)
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.kid:
            raise ValueError("SigningKey requires a non-empty kid")
        if not self.secret:
            raise ValueError(f"SigningKey {self.kid!r} has an empty secret")

    @classmethod
    def parse(cls, spec: str, algorithm: str = "HS256") -> SigningKey:
        """Build a key from ``"kid:secret"``."""
        kid, sep, secret = spec.strip().partition(":")
        if not sep:
            raise ValueError("signing key must look like 'kid:secret'")
        return cls(kid=kid.strip(), secret=secret, algorithm=algorithm)


class KeyRing:
    """Immutable, ordered set of trusted keys.

    During a rotation the ring holds both the old and the new key; rotating
    never mutates a ring, it returns a new one.
    """

    def __init__(self, keys: Iterable[SigningKey] = ()) -> None:
        ordered: dict[str, SigningKey] = {}
        for key in keys:
            if key.kid in ordered:
                raise ValueError(f"duplicate key id {key.kid!r}")
            ordered[key.kid] = key
        self._keys = ordered

    @classmethod
    def from_specs(cls, specs: Iterable[str], algorithm: str = "HS256") -> KeyRing:
        return cls(SigningKey.parse(spec, algorithm) for spec in specs if spec.strip())

    def get(self, kid: str) -> SigningKey | None:
        return self._keys.get(kid)

    def for_algorithm(self, algorithm: str) -> list[SigningKey]:
        return [k for k in self._keys.values() if k.algorithm == algorithm]

    @property
    def kids(self) -> list[str]:
        return list(self._keys)

    def rotate(self, new_key: SigningKey, *, retire: Iterable[str] = ()) -> KeyRing:
        """Return a ring that trusts *new_key* first and drops the *retire* ids."""
        retired = set(retire)
        kept = [k for k in self._keys.values() if k.kid not in retired and k.kid != new_key.kid]
        return KeyRing([new_key, *kept])

    def without(self, *kids: str) -> KeyRing:
        return KeyRing(k for k in self._keys.values() if k.kid not in kids)

    def __iter__(self) -> Iterator[SigningKey]:
        return iter(self._keys.values())

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, kid: object) -> bool:
        return kid in self._keys

    def __repr__(self) -> str:
        return f"KeyRing(kids={self.kids!r})"
