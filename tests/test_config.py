from __future__ import annotations

from pathlib import Path

import pytest

from bookkeeper.config import BookkeeperConfig, find_config, load_config, locate_config


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    assert load_config(None) == BookkeeperConfig()
    assert load_config(tmp_path / "bookkeeper.toml") == BookkeeperConfig()


def test_load_config(tmp_path: Path) -> None:
    path = tmp_path / "bookkeeper.toml"
    path.write_text(
        '[bookkeeper]\nauthor = "alice"\ndir = "audit"\nindent = 4\n',
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.author == "alice"
    assert config.dir == (tmp_path / "audit").resolve()
    assert config.indent == 4
    assert config.source == path


def test_blank_author_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "bookkeeper.toml"
    path.write_text('[bookkeeper]\nauthor = "  "\n', encoding="utf-8")
    assert load_config(path).author is None


def test_invalid_indent(tmp_path: Path) -> None:
    path = tmp_path / "bookkeeper.toml"
    path.write_text("[bookkeeper]\nindent = -1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="indent"):
        load_config(path)


def test_find_config_walks_up(tmp_path: Path) -> None:
    path = tmp_path / "bookkeeper.toml"
    path.write_text("[bookkeeper]\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config(nested) == path.resolve()


def test_locate_config_prefers_audit_dir(tmp_path: Path) -> None:
    outer = tmp_path / "bookkeeper.toml"
    outer.write_text("[bookkeeper]\n", encoding="utf-8")
    audit = tmp_path / "audit"
    audit.mkdir()

    assert locate_config(audit, tmp_path) == outer.resolve()
    assert locate_config(None, tmp_path) == outer.resolve()

    inner = audit / "bookkeeper.toml"
    inner.write_text('[bookkeeper]\nauthor = "dana"\n', encoding="utf-8")
    assert locate_config(audit, tmp_path) == inner.resolve()
    assert load_config(locate_config(audit, tmp_path)).author == "dana"
