"""
Command-line configuration loaded from bookkeeper.toml.

Example:

    [bookkeeper]
    author = "alice"
    dir = "audit"
    indent = 2

Flags passed on the command line take precedence over these values.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "bookkeeper.toml"


@dataclass(frozen=True)
class BookkeeperConfig:
    author: str | None = None
    dir: Path | None = None
    indent: int = 2
    source: Path | None = None  # File the values came from, if any


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def find_config(start: Path) -> Path | None:
    """Find bookkeeper.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def locate_config(audit_dir: Path | None, cwd: Path) -> Path | None:
    """Prefer bookkeeper.toml inside `audit_dir`, else walk up from `cwd`."""
    if audit_dir is not None:
        candidate = audit_dir / CONFIG_FILENAME
        if candidate.is_file():
            return candidate.resolve()
    return find_config(cwd)


def load_config(path: Path | None) -> BookkeeperConfig:
    """
    Load configuration from TOML.

    A missing path yields the defaults. Relative `dir` values are resolved
    against the directory holding the config file.
    """
    if path is None or not path.exists():
        return BookkeeperConfig()

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    section = _coerce_dict(data.get("bookkeeper"))

    author = section.get("author")
    author_str = str(author).strip() if isinstance(author, str) else None
    if author_str == "":
        author_str = None

    dir_value = section.get("dir")
    dir_path: Path | None = None
    if isinstance(dir_value, str) and dir_value.strip():
        dir_path = Path(dir_value.strip())
        if not dir_path.is_absolute():
            dir_path = (path.parent / dir_path).resolve()

    indent = section.get("indent", 2)
    if not isinstance(indent, int) or isinstance(indent, bool) or indent < 0:
        raise ValueError("indent must be a non-negative integer")

    return BookkeeperConfig(author=author_str, dir=dir_path, indent=indent, source=path)
