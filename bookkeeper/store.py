"""
Append-only JSON Lines storage for audit entries.

Storage format: one serialized entry per line (see AuditEntry.to_dict).
An audit directory keeps the original snapshot next to its entries:

    <root>/original.json
    <root>/entries.jsonl
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from .audited import Audited
from .diff import Differ, Patcher
from .entry import AuditEntry
from .log import AuditLog
from .merge import build_entry

logger = logging.getLogger(__name__)

ORIGINAL_FILENAME = "original.json"
ENTRIES_FILENAME = "entries.jsonl"


class EntryStore:
    """Append-only file of audit entries.

    Entries are never modified or removed once written.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, entry: AuditEntry) -> None:
        """Append one entry. This and extend() are the only write operations."""
        self._ensure_dir()
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), separators=(",", ":")) + "\n")

    def extend(self, entries: Iterable[AuditEntry]) -> int:
        """Append entries whose ids are not already stored; returns how many were written."""
        known = {e.id for e in self.iter_entries()}
        written = 0
        self._ensure_dir()
        with self.path.open("a", encoding="utf-8") as f:
            for entry in entries:
                if entry.id in known:
                    continue
                known.add(entry.id)
                f.write(json.dumps(entry.to_dict(), separators=(",", ":")) + "\n")
                written += 1
        logger.debug("Stored %d new entries in %s", written, self.path)
        return written

    def iter_entries(self) -> Iterator[AuditEntry]:
        """Iterate over stored entries in file order."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield AuditEntry.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                    raise ValueError(f"{self.path}:{lineno}: malformed entry: {exc}") from exc

    def read_all(self) -> list[AuditEntry]:
        return list(self.iter_entries())

    def count(self) -> int:
        if not self.path.exists():
            return 0
        count = 0
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    count += 1
        return count

    def load_log(self) -> AuditLog:
        return AuditLog(self.iter_entries())


class AuditDirectory:
    """An original snapshot and its entry store, kept together on disk."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.original_path = self.root / ORIGINAL_FILENAME
        self.entries = EntryStore(self.root / ENTRIES_FILENAME)

    def exists(self) -> bool:
        return self.original_path.exists()

    def init(self, value: Any, *, overwrite: bool = False) -> None:
        """Write the original snapshot. Refuses to replace an existing one unless asked."""
        if self.exists() and not overwrite:
            raise FileExistsError(f"Audit directory already initialized: {self.root}")
        text = json.dumps(value, indent=2, sort_keys=True)
        self.root.mkdir(parents=True, exist_ok=True)
        self.original_path.write_text(text + "\n", encoding="utf-8")

    def read_original(self) -> Any:
        if not self.exists():
            raise FileNotFoundError(f"No original snapshot in {self.root}")
        return json.loads(self.original_path.read_text(encoding="utf-8"))

    def load(self, *, differ: Differ | None = None, patcher: Patcher | None = None) -> Audited[Any]:
        """Rebuild the wrapped value from disk."""
        wrapped = Audited.wrap(self.read_original(), differ=differ, patcher=patcher)
        return wrapped.with_log(self.entries.load_log())

    def record(self, new_value: Any, meta: Mapping[str, str] | None = None) -> AuditEntry:
        """Diff `new_value` against the stored original and append the resulting entry."""
        wrapped = self.load()
        entry = build_entry(wrapped.differ, wrapped.original, new_value, meta)
        self.entries.append(entry)
        return entry
