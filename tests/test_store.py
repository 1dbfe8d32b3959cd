from __future__ import annotations

from pathlib import Path

import pytest

from bookkeeper.entry import AuditEntry
from bookkeeper.store import AuditDirectory, EntryStore


@pytest.fixture
def store(tmp_path: Path) -> EntryStore:
    return EntryStore(tmp_path / "nested" / "entries.jsonl")


def test_empty_store(store: EntryStore) -> None:
    assert store.read_all() == []
    assert store.count() == 0
    assert len(store.load_log()) == 0


def test_append_and_read_back(store: EntryStore, make_entry) -> None:
    e1 = make_entry(1, updates=(("/a", "1"),), meta={"author": "alice"})
    e2 = make_entry(2, deletes=("/a",))
    store.append(e1)
    store.append(e2)

    assert store.count() == 2
    assert store.read_all() == [e1, e2]
    assert store.path.read_text(encoding="utf-8").count("\n") == 2


def test_extend_skips_known_ids(store: EntryStore, make_entry) -> None:
    e1, e2, e3 = make_entry(1), make_entry(2), make_entry(3)
    store.append(e1)

    written = store.extend([e1, e2, e2, e3])

    assert written == 2
    assert [e.id for e in store.read_all()] == [e1.id, e2.id, e3.id]


def test_blank_lines_are_skipped(store: EntryStore, make_entry) -> None:
    store.append(make_entry(1))
    with store.path.open("a", encoding="utf-8") as f:
        f.write("\n   \n")
    store.append(make_entry(2))

    assert store.count() == 2
    assert len(store.read_all()) == 2


def test_malformed_line_names_line_number(store: EntryStore, make_entry) -> None:
    store.append(make_entry(1))
    with store.path.open("a", encoding="utf-8") as f:
        f.write('{"id": "nope", "timestamp": "2024-01-01T00:00:00"}\n')

    with pytest.raises(ValueError, match=r":2: malformed entry"):
        store.read_all()


def test_audit_directory_lifecycle(audit_dir: Path, document) -> None:
    directory = AuditDirectory(audit_dir)
    assert not directory.exists()

    directory.init(document)
    assert directory.exists()
    assert directory.read_original() == document

    entry = directory.record({**document, "name": "gadget"}, meta={"author": "alice"})
    assert isinstance(entry, AuditEntry)
    assert entry.updates == (("/name", '"gadget"'),)

    wrapped = directory.load()
    assert len(wrapped.log) == 1
    assert wrapped.resolve() == {**document, "name": "gadget"}


def test_audit_directory_refuses_reinit(audit_dir: Path, document) -> None:
    directory = AuditDirectory(audit_dir)
    directory.init(document)

    with pytest.raises(FileExistsError):
        directory.init({"other": True})

    directory.init({"other": True}, overwrite=True)
    assert directory.read_original() == {"other": True}


def test_read_original_requires_init(audit_dir: Path) -> None:
    with pytest.raises(FileNotFoundError):
        AuditDirectory(audit_dir).read_original()
