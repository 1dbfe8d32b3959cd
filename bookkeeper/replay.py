"""
Replay engine: materialize a wrapped value from its history.

The current value is computed state. It is derived by folding the log over
the original snapshot, never stored as the source of truth.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, TypeVar

from .diff import Patcher
from .entry import AuditEntry, _utc

if TYPE_CHECKING:
    from .audited import Audited

logger = logging.getLogger(__name__)

T = TypeVar("T")


def apply_entry(patcher: Patcher, value: Any, entry: AuditEntry) -> Any:
    """Apply one entry: all deletes in order, then all updates in order."""
    for path in entry.deletes:
        value = patcher.apply_delete(value, path)
    for path, serialized in entry.updates:
        value = patcher.apply_update(value, path, serialized)
    return value


def fold_entries(patcher: Patcher, original: Any, entries: Iterable[AuditEntry]) -> Any:
    """
    Apply `entries` to a deep copy of `original`.

    Entries are applied in the order given; callers pass them chronologically.
    """
    value = copy.deepcopy(original)
    count = 0
    for entry in entries:
        value = apply_entry(patcher, value, entry)
        count += 1
    logger.debug("Replayed %d entries", count)
    return value


def replay(wrapped: "Audited[T]") -> T:
    """Reconstruct the current value of `wrapped`."""
    return fold_entries(wrapped.patcher, wrapped.original, wrapped.log.chronological())


def replay_until(wrapped: "Audited[T]", moment: datetime) -> T:
    """Reconstruct the value as it stood at `moment` (inclusive); naive moments are UTC."""
    cutoff = _utc(moment)
    entries = [e for e in wrapped.log.chronological() if e.timestamp <= cutoff]
    return fold_entries(wrapped.patcher, wrapped.original, entries)
