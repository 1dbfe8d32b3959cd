"""
bookkeeper - append-only, mergeable change history for arbitrary values.

A value is wrapped once; every edit is recorded as an entry in its audit log;
sibling logs can be unioned; the current value is obtained by replaying the
log over the original snapshot.
"""

from .audited import Audited
from .diff import Change, ChangeKind, JsonPointerDiff
from .entry import AuditEntry
from .identity import ShortId, ShortIdFormatError
from .log import AuditLog, distinct_by
from .merge import build_entry, merge, union
from .replay import replay, replay_until

__version__ = "0.1.0"

__all__ = [
    "Audited",
    "AuditEntry",
    "AuditLog",
    "Change",
    "ChangeKind",
    "JsonPointerDiff",
    "ShortId",
    "ShortIdFormatError",
    "build_entry",
    "distinct_by",
    "merge",
    "replay",
    "replay_until",
    "union",
]
