"""
Audit log: an ordered, immutable sequence of audit entries.

Key property: a log is a value. Appending or unioning returns a new log and
never touches the storage of the logs it was built from, so a wrapped value
and anything merged from it can never share history by accident.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Hashable, Iterable, Iterator, Optional, TypeVar

from .entry import AuditEntry, _utc
from .identity import ShortId

T = TypeVar("T")


def distinct_by(items: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Drop items whose key was already seen; the first occurrence wins."""
    seen: set[Hashable] = set()
    result: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result


def _path_covers(parent: str, path: str) -> bool:
    return path == parent or parent == "" or path.startswith(parent + "/")


class AuditLog:
    """Ordered entries attached to one wrapped value."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[AuditEntry] = ()):
        self._entries: tuple[AuditEntry, ...] = tuple(entries)

    @classmethod
    def union(cls, *logs: "AuditLog") -> "AuditLog":
        """
        Combine sibling logs.

        Entries are concatenated in argument order, deduplicated by id (first
        occurrence wins) and stably sorted by timestamp, so entries with equal
        timestamps keep their concatenation order.
        """
        concatenated = [entry for log in logs for entry in log]
        unique = distinct_by(concatenated, key=lambda e: e.id)
        return cls(sorted(unique, key=lambda e: e.timestamp))

    def append(self, entry: AuditEntry) -> "AuditLog":
        """Return a new log with `entry` at the end."""
        return AuditLog(self._entries + (entry,))

    def chronological(self) -> list[AuditEntry]:
        """Entries by timestamp ascending; ties keep their log order."""
        return sorted(self._entries, key=lambda e: e.timestamp)

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> AuditEntry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuditLog):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(tuple(e.id for e in self._entries))

    def __repr__(self) -> str:
        return f"AuditLog({len(self._entries)} entries)"

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        return self._entries

    # --- Query methods ---

    def ids(self) -> list[ShortId]:
        return [e.id for e in self._entries]

    def get(self, entry_id: ShortId | str) -> AuditEntry | None:
        """Look up an entry by id (ShortId or any accepted text form)."""
        if isinstance(entry_id, str):
            entry_id, ok = ShortId.try_parse(entry_id)
            if not ok:
                return None
        for e in self._entries:
            if e.id == entry_id:
                return e
        return None

    def entries_in_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[AuditEntry]:
        """Entries with start <= timestamp <= end, in chronological order."""
        start = _utc(start) if start else None
        end = _utc(end) if end else None
        entries = []
        for e in self.chronological():
            if start and e.timestamp < start:
                continue
            if end and e.timestamp > end:
                continue
            entries.append(e)
        return entries

    def entries_by_meta(self, key: str, value: str) -> list[AuditEntry]:
        return [e for e in self._entries if e.meta.get(key) == value]

    def entries_touching(self, path: str) -> list[AuditEntry]:
        """Entries whose deletes or updates overlap `path` (a parent, the path itself, or a child)."""
        return [
            e
            for e in self._entries
            if any(_path_covers(p, path) or _path_covers(path, p) for p in e.touched_paths())
        ]

    # --- Summary methods ---

    def summary(self) -> dict:
        """Statistics about the recorded history."""
        if not self._entries:
            return {"total_entries": 0}

        path_counts: dict[str, int] = {}
        author_counts: dict[str, int] = {}
        total_deletes = 0
        total_updates = 0

        for e in self._entries:
            total_deletes += len(e.deletes)
            total_updates += len(e.updates)
            for p in e.touched_paths():
                path_counts[p] = path_counts.get(p, 0) + 1
            author = e.meta.get("author")
            if author:
                author_counts[author] = author_counts.get(author, 0) + 1

        ordered = self.chronological()
        most_changed = sorted(path_counts.items(), key=lambda x: (-x[1], x[0]))[:10]

        return {
            "total_entries": len(self._entries),
            "total_deletes": total_deletes,
            "total_updates": total_updates,
            "most_changed_paths": most_changed,
            "author_counts": author_counts,
            "time_range": {
                "earliest": ordered[0].timestamp.isoformat(),
                "latest": ordered[-1].timestamp.isoformat(),
            },
        }

    def format_summary(self) -> str:
        """Format summary as markdown."""
        s = self.summary()
        if s["total_entries"] == 0:
            return "No audit entries recorded."

        lines = [
            "# Audit Log Summary",
            "",
            f"- Total entries: {s['total_entries']}",
            f"- Time range: {s['time_range']['earliest']} to {s['time_range']['latest']}",
            f"- Deletes: {s['total_deletes']}",
            f"- Updates: {s['total_updates']}",
            "",
            "## Most Changed Paths",
            "",
            "| Path | Entries |",
            "|------|--------:|",
        ]
        for path, count in s["most_changed_paths"]:
            lines.append(f"| {path or '(root)'} | {count} |")

        if s["author_counts"]:
            lines.extend([
                "",
                "## Authors",
                "",
                "| Author | Entries |",
                "|--------|--------:|",
            ])
            for author, count in sorted(s["author_counts"].items(), key=lambda x: (-x[1], x[0])):
                lines.append(f"| {author} | {count} |")

        return "\n".join(lines) + "\n"
