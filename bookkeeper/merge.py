"""
Merge engine: turns edits into entries and combines sibling histories.

Two operations:
- merge: diff a new value against the wrapped original and append one entry
- union: combine the logs of several wrapped values of the same original

Every edit is diffed against the same fixed original. The snapshot never
advances; each entry is self-contained relative to that baseline.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Sequence, TypeVar

from .diff import ChangeKind, Differ
from .entry import AuditEntry
from .log import AuditLog

if TYPE_CHECKING:
    from .audited import Audited

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_entry(
    differ: Differ,
    previous: Any,
    current: Any,
    meta: Mapping[str, str] | None = None,
) -> AuditEntry:
    """Diff two values and record the result as a new entry.

    Args:
        differ: Diff collaborator; its errors propagate unchanged
        previous: Baseline value
        current: Edited value
        meta: Optional metadata (e.g. {"author": "alice"})

    Returns:
        A complete entry; an empty diff still yields an entry
    """
    deletes: list[str] = []
    updates: list[tuple[str, str]] = []
    for change in differ.diff(previous, current):
        if change.kind == ChangeKind.DELETE:
            deletes.append(change.path)
        else:
            updates.append((change.path, change.value if change.value is not None else "null"))

    entry = AuditEntry.create(deletes=deletes, updates=updates, meta=meta)
    logger.debug(
        "Built entry %s: %d deletes, %d updates",
        entry.id,
        len(entry.deletes),
        len(entry.updates),
    )
    return entry


def merge(
    wrapped: "Audited[T]",
    new_value: T,
    meta: Mapping[str, str] | None = None,
) -> "Audited[T]":
    """
    Record `new_value` as an edit of `wrapped`.

    The result keeps `wrapped.original` and carries a new log: the input's
    entries plus one entry describing the diff. `wrapped` is left untouched.
    """
    entry = build_entry(wrapped.differ, wrapped.original, new_value, meta)
    return wrapped.with_log(wrapped.log.append(entry))


def union(items: Sequence["Audited[T]"]) -> "Audited[T]":
    """
    Combine sibling wrapped values into one.

    All items are assumed to wrap the same original; the result wraps the
    original (and collaborators) of the first item.

    Raises:
        ValueError: fewer than two items were supplied
    """
    if len(items) < 2:
        raise ValueError("Must merge 2 or more audited values")

    combined = AuditLog.union(*(item.log for item in items))
    logger.debug(
        "Union of %d logs: %d entries in, %d distinct",
        len(items),
        sum(len(item.log) for item in items),
        len(combined),
    )
    return items[0].with_log(combined)
