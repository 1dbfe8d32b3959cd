"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

from bookkeeper.entry import AuditEntry


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def document() -> dict:
    """A small nested document used as the original snapshot."""
    return {
        "name": "widget",
        "tags": ["a"],
        "owner": {"id": 7, "email": "owner@example.com"},
    }


@pytest.fixture
def make_entry() -> Callable[..., AuditEntry]:
    """Build entries with explicit timestamps (seconds after BASE_TIME)."""

    def _make(
        seconds: float,
        *,
        deletes: tuple[str, ...] = (),
        updates: tuple[tuple[str, str], ...] = (),
        meta: dict[str, str] | None = None,
    ) -> AuditEntry:
        entry = AuditEntry.create(deletes=deletes, updates=updates, meta=meta)
        return AuditEntry(
            id=entry.id,
            timestamp=BASE_TIME + timedelta(seconds=seconds),
            deletes=entry.deletes,
            updates=entry.updates,
            meta=entry.meta,
        )

    return _make


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def audit_dir(tmp_path: Path) -> Path:
    return tmp_path / "audit"
