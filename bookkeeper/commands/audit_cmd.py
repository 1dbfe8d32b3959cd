"""Audit directory CLI commands."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import yaml
from rich.console import Console
from rich.table import Table

from ..audited import Audited
from ..store import AuditDirectory

# Bad input documents, corrupt stores and unwritable paths.
_INPUT_ERRORS = (ValueError, TypeError, yaml.YAMLError, OSError)


def load_document(path: Path) -> Any:
    """Read a JSON or YAML document, chosen by file extension."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def _open(audit_dir: Path, err: Console) -> AuditDirectory | None:
    directory = AuditDirectory(audit_dir)
    if not directory.exists():
        err.print(f"Not an audit directory (run `bookkeeper init` first): {directory.root}", style="bold red")
        return None
    return directory


def run_init(audit_dir: Path, source: Path, *, overwrite: bool = False) -> int:
    err = Console(stderr=True)
    directory = AuditDirectory(audit_dir)
    if directory.exists() and not overwrite:
        err.print(f"Already initialized: {directory.root}", style="bold red")
        return 1

    try:
        directory.init(load_document(source), overwrite=overwrite)
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1
    err.print(f"Initialized {directory.root}", style="green")
    return 0


def run_record(
    audit_dir: Path,
    source: Path,
    *,
    author: str | None = None,
    meta: dict[str, str] | None = None,
) -> int:
    err = Console(stderr=True)
    directory = _open(audit_dir, err)
    if directory is None:
        return 1

    entry_meta = dict(meta or {})
    if author:
        entry_meta.setdefault("author", author)

    try:
        entry = directory.record(load_document(source), meta=entry_meta)
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1
    err.print(f"Recorded: {entry.id}", style="green")
    err.print(f"  Deletes: {len(entry.deletes)}")
    err.print(f"  Updates: {len(entry.updates)}")
    return 0


def run_show(
    audit_dir: Path,
    *,
    limit: int = 20,
    path: str | None = None,
    output_json: bool = False,
) -> int:
    err = Console(stderr=True)
    if limit < 1:
        err.print(f"limit must be at least 1, got {limit}", style="bold red")
        return 1
    directory = _open(audit_dir, err)
    if directory is None:
        return 1

    try:
        log = directory.entries.load_log()
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1
    entries = log.entries_touching(path) if path is not None else list(log)
    entries = sorted(entries, key=lambda e: e.timestamp)[-limit:]

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    table = Table(title=f"Audit log ({len(log)} entries)")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("timestamp")
    table.add_column("author", style="magenta")
    table.add_column("deletes")
    table.add_column("updates")

    for e in entries:
        table.add_row(
            e.id.to_text(),
            e.timestamp.isoformat(),
            e.meta.get("author", ""),
            ", ".join(e.deletes),
            ", ".join(p for p, _ in e.updates),
        )

    Console().print(table)
    return 0


def run_replay(
    audit_dir: Path,
    *,
    at: datetime | None = None,
    output: Path | None = None,
    indent: int = 2,
) -> int:
    err = Console(stderr=True)
    directory = _open(audit_dir, err)
    if directory is None:
        return 1

    try:
        wrapped = directory.load()
        value = wrapped.as_of(at) if at is not None else wrapped.resolve()
        text = json.dumps(value, indent=indent or None, sort_keys=True)
        if output is not None:
            output.write_text(text + "\n", encoding="utf-8")
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1

    if output is not None:
        err.print(f"Wrote {output}", style="green")
    else:
        print(text)
    return 0


def run_union(audit_dir: Path, sources: Sequence[Path]) -> int:
    """Union sibling audit directories into `audit_dir`, appending entries it lacks."""
    err = Console(stderr=True)
    target = AuditDirectory(audit_dir)

    directories: list[AuditDirectory] = []
    for source in sources:
        directory = _open(source, err)
        if directory is None:
            return 1
        directories.append(directory)

    try:
        siblings: list[Audited[Any]] = [d.load() for d in directories]
        if target.exists():
            siblings.insert(0, target.load())
        merged = Audited.union(siblings)
        if not target.exists():
            target.init(merged.original)
        written = target.entries.extend(merged.log)
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1

    err.print(f"Union: {len(merged.log)} distinct entries, {written} new", style="green")
    return 0


def run_summary(audit_dir: Path) -> int:
    err = Console(stderr=True)
    directory = _open(audit_dir, err)
    if directory is None:
        return 1

    try:
        log = directory.entries.load_log()
    except _INPUT_ERRORS as e:
        err.print(str(e), style="bold red")
        return 1
    print(log.format_summary())
    return 0
