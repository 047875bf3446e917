"""Kernel security – Principal and Role."""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any


@dataclasses.dataclass(frozen=True)
class Role:
    """Named role (e.g. ``admin``, ``seller``)."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class Principal:
    """Identity recovered from a verified bearer token.

    Rebuilt for every request and never persisted.
    """
    subject: str
    expires_at: datetime
    roles: frozenset[Role] = frozenset()
    claims: dict[str, Any] = dataclasses.field(default_factory=dict, compare=False)

    def has_role(self, role: str | Role) -> bool:
        name = role.name if isinstance(role, Role) else role
        return any(r.name == name for r in self.roles)

    def has_any_role(self, names: frozenset[str] | set[str]) -> bool:
        return any(r.name in names for r in self.roles)

    @property
    def role_names(self) -> list[str]:
        return sorted(r.name for r in self.roles)


__all__ = ["Principal", "Role"]
