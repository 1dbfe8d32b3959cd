"""
Audited values: an original snapshot paired with its audit log.

An Audited value is never modified. merge() and union() return new
instances that share the original snapshot and carry a new log; resolve()
replays the log to obtain the current value.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Generic, Mapping, Sequence, TypeVar

from .merge import merge as _merge, union as _union
from .replay import replay as _replay, replay_until as _replay_until
from .diff import Differ, JsonPointerDiff, Patcher
from .log import AuditLog

T = TypeVar("T")

_DEFAULT_DIFF = JsonPointerDiff()


@dataclass(frozen=True)
class Audited(Generic[T]):
    """
    A value with an append-only, mergeable change history.

    `differ` and `patcher` are the collaborators used to record edits and to
    replay them; both default to the JSON Pointer implementation.
    """

    original: T
    log: AuditLog = field(default_factory=AuditLog)
    differ: Differ = field(default=_DEFAULT_DIFF, repr=False, compare=False)
    patcher: Patcher = field(default=_DEFAULT_DIFF, repr=False, compare=False)

    @classmethod
    def wrap(
        cls,
        value: T,
        *,
        differ: Differ | None = None,
        patcher: Patcher | None = None,
    ) -> "Audited[T]":
        """Start an empty history for `value`."""
        return cls(
            original=value,
            log=AuditLog(),
            differ=differ or _DEFAULT_DIFF,
            patcher=patcher or _DEFAULT_DIFF,
        )

    def merge(self, new_value: T, meta: Mapping[str, str] | None = None) -> "Audited[T]":
        """Record `new_value` as an edit; see bookkeeper.merge.merge."""
        return _merge(self, new_value, meta)

    @staticmethod
    def union(items: Sequence["Audited[T]"]) -> "Audited[T]":
        """Combine sibling values; see bookkeeper.merge.union."""
        return _union(items)

    def resolve(self) -> T:
        """Replay the full log over the original snapshot."""
        return _replay(self)

    def as_of(self, moment: datetime) -> T:
        """Replay the entries recorded up to and including `moment`."""
        return _replay_until(self, moment)

    def with_log(self, log: AuditLog) -> "Audited[T]":
        return replace(self, log=log)
