"""
Structural diff and patch over JSON-like values.

The merge and replay engines only depend on the Differ and Patcher
protocols. JsonPointerDiff is the default implementation: it addresses
values with RFC 6901 JSON Pointers and serializes values as compact JSON.

This is a structural diff, not a text diff: mappings are compared key by
key, everything else is compared whole.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence


class ChangeKind(str, Enum):
    """What a reported change does to its path."""
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True)
class Change:
    """One path-level difference between two values."""
    kind: ChangeKind
    path: str
    value: str | None = None  # Serialized new value; None for deletes


class Differ(Protocol):
    def diff(self, previous: Any, current: Any) -> Sequence[Change]: ...


class Patcher(Protocol):
    def apply_delete(self, value: Any, path: str) -> Any: ...

    def apply_update(self, value: Any, path: str, serialized: str) -> Any: ...


def escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join_pointer(parent: str, key: Any) -> str:
    return f"{parent}/{escape_token(str(key))}"


def split_pointer(path: str) -> list[str]:
    """Split a JSON Pointer into unescaped tokens; "" is the root."""
    if path == "":
        return []
    if not path.startswith("/"):
        raise ValueError(f"JSON Pointer must be empty or start with '/': {path!r}")
    return [unescape_token(t) for t in path[1:].split("/")]


def _list_index(container: list, token: str, *, allow_end: bool) -> int:
    if token == "-" and allow_end:
        return len(container)
    if not token.isdigit():
        raise ValueError(f"Invalid list index in pointer: {token!r}")
    return int(token)


class JsonPointerDiff:
    """
    Default Differ and Patcher for dict/list/scalar values.

    Patching works on the value it is given and returns it; replay hands it
    a private deep copy, so the original snapshot is never touched.
    """

    def __init__(self, *, sort_keys: bool = True):
        self.sort_keys = sort_keys

    # --- Serialization ---

    def dumps(self, value: Any) -> str:
        return json.dumps(value, sort_keys=self.sort_keys, separators=(",", ":"))

    def loads(self, serialized: str) -> Any:
        return json.loads(serialized)

    # --- Differ ---

    def diff(self, previous: Any, current: Any) -> list[Change]:
        changes: list[Change] = []
        self._diff_into(changes, "", previous, current)
        return changes

    def _diff_into(self, changes: list[Change], path: str, before: Any, after: Any) -> None:
        if isinstance(before, Mapping) and isinstance(after, Mapping):
            removed = sorted((str(k) for k in before if k not in after))
            for key in removed:
                changes.append(Change(ChangeKind.DELETE, join_pointer(path, key)))
            for key in after:
                child = join_pointer(path, key)
                if key not in before:
                    changes.append(Change(ChangeKind.UPDATE, child, self.dumps(after[key])))
                else:
                    self._diff_into(changes, child, before[key], after[key])
            return

        if before != after or type(before) is not type(after):
            changes.append(Change(ChangeKind.UPDATE, path, self.dumps(after)))

    # --- Patcher ---

    def apply_delete(self, value: Any, path: str) -> Any:
        tokens = split_pointer(path)
        if not tokens:
            return None
        parent = self._resolve(value, tokens[:-1], create=False)
        last = tokens[-1]
        if isinstance(parent, dict):
            parent.pop(last, None)
        elif isinstance(parent, list):
            if last.isdigit() and int(last) < len(parent):
                del parent[int(last)]
        return value

    def apply_update(self, value: Any, path: str, serialized: str) -> Any:
        new_value = self.loads(serialized)
        tokens = split_pointer(path)
        if not tokens:
            return new_value
        if not isinstance(value, (dict, list)):
            value = {}
        parent = self._resolve(value, tokens[:-1], create=True)
        last = tokens[-1]
        if isinstance(parent, dict):
            parent[last] = new_value
        elif isinstance(parent, list):
            index = _list_index(parent, last, allow_end=True)
            if index == len(parent):
                parent.append(new_value)
            else:
                parent[index] = new_value
        else:
            raise ValueError(f"Cannot update {path!r}: parent is not a container")
        return value

    def _resolve(self, value: Any, tokens: list[str], *, create: bool) -> Any:
        """Walk to the container at `tokens`; returns None when absent and not creating."""
        node = value
        for token in tokens:
            if isinstance(node, dict):
                child = node.get(token)
                if not isinstance(child, (dict, list)):
                    if not create:
                        return None
                    child = {}
                    node[token] = child
                node = child
            elif isinstance(node, list):
                index = _list_index(node, token, allow_end=False)
                if index >= len(node):
                    if not create:
                        return None
                    raise ValueError(f"List index out of range in pointer: {token!r}")
                child = node[index]
                if not isinstance(child, (dict, list)):
                    if not create:
                        return None
                    child = {}
                    node[index] = child
                node = child
            else:
                return None
        return node
