"""Application sync – DrainReport."""
from __future__ import annotations

import dataclasses


@dataclasses.dataclass
class DrainReport:
    """Counters for one or more reconciler passes.

    ``superseded`` events were fenced off by a newer indexed version and
    count as delivered. ``released`` events went back to the queue unattempted
    because an earlier event of the same listing failed in the same pass.
    ``lost`` events were reclaimed by another pass before this one settled
    them, so their outcome was left to that pass.
    """

    passes: int = 0
    fetched: int = 0
    delivered: int = 0
    superseded: int = 0
    retried: int = 0
    failed: int = 0
    released: int = 0
    lost: int = 0

    def merge(self, other: DrainReport) -> DrainReport:
        for f in dataclasses.fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def as_dict(self) -> dict[str, int]:
        return dataclasses.asdict(self)


__all__ = ["DrainReport"]
