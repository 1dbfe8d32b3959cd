"""
Audit entries: the atomic unit of an audit log.

An entry records one change-set (paths deleted, paths updated) together with
the identity and UTC instant assigned when it was created. Entries are never
modified once built; a log grows by adding new entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .identity import ShortId


def _utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _freeze_meta(meta: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (meta or {}).items()})


@dataclass(frozen=True)
class AuditEntry:
    """
    One recorded change-set.

    `updates` may name the same path more than once; replay applies them in
    order, so the last occurrence wins.
    """

    id: ShortId
    timestamp: datetime
    deletes: tuple[str, ...] = ()
    updates: tuple[tuple[str, str], ...] = ()
    meta: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def create(
        cls,
        deletes: Iterable[str] = (),
        updates: Iterable[tuple[str, str]] = (),
        meta: Mapping[str, str] | None = None,
    ) -> "AuditEntry":
        """Build a complete entry, assigning a fresh id and the current UTC time."""
        return cls(
            id=ShortId.generate(),
            timestamp=datetime.now(timezone.utc),
            deletes=tuple(deletes),
            updates=tuple((path, value) for path, value in updates),
            meta=_freeze_meta(meta),
        )

    def with_meta(self, **meta: str) -> "AuditEntry":
        """Return a copy with extra metadata; id and timestamp are kept."""
        merged = dict(self.meta)
        merged.update(meta)
        return replace(self, meta=_freeze_meta(merged))

    def is_empty(self) -> bool:
        return not self.deletes and not self.updates

    def touched_paths(self) -> list[str]:
        """Paths named by this entry, deletes first, without duplicates."""
        seen: dict[str, None] = {}
        for path in self.deletes:
            seen.setdefault(path, None)
        for path, _ in self.updates:
            seen.setdefault(path, None)
        return list(seen)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "id": self.id.to_text(),
            "timestamp": self.timestamp.isoformat(),
            "deletes": list(self.deletes),
            "updates": [[path, value] for path, value in self.updates],
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuditEntry":
        """Reconstruct from a dict produced by to_dict()."""
        return cls(
            id=ShortId.parse(data["id"]),
            timestamp=_utc(datetime.fromisoformat(data["timestamp"])),
            deletes=tuple(data.get("deletes", [])),
            updates=tuple((str(u[0]), str(u[1])) for u in data.get("updates", [])),
            meta=_freeze_meta(data.get("meta")),
        )
