from __future__ import annotations

import json
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from bookkeeper.entry import AuditEntry
from bookkeeper.identity import ShortId


def test_create_assigns_id_and_utc_timestamp() -> None:
    before = datetime.now(timezone.utc)
    entry = AuditEntry.create(deletes=["/a"], updates=[("/b", "1")], meta={"author": "alice"})
    after = datetime.now(timezone.utc)

    assert isinstance(entry.id, ShortId)
    assert not entry.id.is_empty()
    assert entry.timestamp.tzinfo is not None
    assert before <= entry.timestamp <= after
    assert entry.deletes == ("/a",)
    assert entry.updates == (("/b", "1"),)
    assert entry.meta["author"] == "alice"


def test_consecutive_entries_have_distinct_ids_and_ordered_timestamps() -> None:
    first = AuditEntry.create()
    second = AuditEntry.create()
    assert first.id != second.id
    assert first.timestamp <= second.timestamp


def test_entry_fields_are_immutable() -> None:
    entry = AuditEntry.create(meta={"author": "alice"})
    with pytest.raises(FrozenInstanceError):
        entry.id = ShortId.generate()  # type: ignore[misc]
    with pytest.raises(TypeError):
        entry.meta["author"] = "mallory"  # type: ignore[index]


def test_meta_is_copied_at_creation() -> None:
    meta = {"author": "alice"}
    entry = AuditEntry.create(meta=meta)
    meta["author"] = "bob"
    assert entry.meta["author"] == "alice"


def test_with_meta_keeps_identity() -> None:
    entry = AuditEntry.create(meta={"author": "alice"})
    tagged = entry.with_meta(ticket="ABC-1")

    assert tagged.id == entry.id
    assert tagged.timestamp == entry.timestamp
    assert dict(tagged.meta) == {"author": "alice", "ticket": "ABC-1"}
    assert "ticket" not in entry.meta


def test_serialized_shape() -> None:
    entry = AuditEntry.create(
        deletes=["/old"],
        updates=[("/name", '"x"'), ("/name", '"y"')],
        meta={"author": "alice"},
    )
    data = json.loads(json.dumps(entry.to_dict()))

    assert set(data) == {"id", "timestamp", "deletes", "updates", "meta"}
    assert len(data["id"]) == 22
    assert data["deletes"] == ["/old"]
    assert data["updates"] == [["/name", '"x"'], ["/name", '"y"']]
    assert data["meta"] == {"author": "alice"}

    restored = AuditEntry.from_dict(data)
    assert restored == entry


def test_from_dict_accepts_uuid_ids_and_naive_timestamps() -> None:
    sid = ShortId.generate()
    entry = AuditEntry.from_dict(
        {
            "id": str(sid.to_uuid()),
            "timestamp": "2024-01-01T12:00:00",
        }
    )
    assert entry.id == sid
    assert entry.timestamp == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    assert entry.deletes == ()
    assert entry.updates == ()
    assert dict(entry.meta) == {}


def test_touched_paths_and_is_empty() -> None:
    entry = AuditEntry.create(deletes=["/a", "/b"], updates=[("/b", "1"), ("/c", "2")])
    assert entry.touched_paths() == ["/a", "/b", "/c"]
    assert not entry.is_empty()
    assert AuditEntry.create().is_empty()
