"""
JSON Patch (RFC 6902) generation by structural diff.

``create_patch`` compares two JSON-like documents and returns the operations
that turn the first into the second. Dictionary keys are visited in sorted
order so the same change always yields the same operations.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

OP_ADD = "add"
OP_REMOVE = "remove"
OP_REPLACE = "replace"

_MISSING = object()


@dataclass(frozen=True)
class PatchOperation:
    op: str
    path: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        if self.op == OP_REMOVE:
            return {"op": self.op, "path": self.path}
        return {"op": self.op, "path": self.path, "value": self.value}


def escape_json_pointer(token: str) -> str:
    """Escape a single reference token: '~' becomes '~0' and '/' becomes '~1'."""
    return token.replace("~", "~0").replace("/", "~1")


def _join(path: str, token: str | int) -> str:
    return f"{path}/{escape_json_pointer(str(token))}"


def _diff_dict(
    path: str, original: dict, mutated: dict, ops: list[PatchOperation], additive: bool
) -> None:
    for key in sorted(set(original) | set(mutated)):
        child = _join(path, key)
        before = original.get(key, _MISSING)
        after = mutated.get(key, _MISSING)
        if before is _MISSING:
            ops.append(PatchOperation(OP_ADD, child, after))
        elif after is _MISSING:
            ops.append(PatchOperation(OP_REMOVE, child))
        elif additive and not _same_container(before, after) and _changed(before, after):
            # "add" on an existing member overwrites it.
            ops.append(PatchOperation(OP_ADD, child, after))
        else:
            _diff(child, before, after, ops, additive)


def _diff_list(
    path: str, original: list, mutated: list, ops: list[PatchOperation], additive: bool
) -> None:
    common = min(len(original), len(mutated))
    for index in range(common):
        _diff(_join(path, index), original[index], mutated[index], ops, additive)

    for item in mutated[common:]:
        ops.append(PatchOperation(OP_ADD, f"{path}/-", item))

    for index in reversed(range(common, len(original))):
        ops.append(PatchOperation(OP_REMOVE, _join(path, index)))


def _same_container(original: Any, mutated: Any) -> bool:
    return (isinstance(original, dict) and isinstance(mutated, dict)) or (
        isinstance(original, list) and isinstance(mutated, list)
    )


def _changed(original: Any, mutated: Any) -> bool:
    return type(original) is not type(mutated) or original != mutated


def _diff(path: str, original: Any, mutated: Any, ops: list[PatchOperation], additive: bool) -> None:
    if isinstance(original, dict) and isinstance(mutated, dict):
        _diff_dict(path, original, mutated, ops, additive)
    elif isinstance(original, list) and isinstance(mutated, list):
        _diff_list(path, original, mutated, ops, additive)
    elif _changed(original, mutated):
        ops.append(PatchOperation(OP_REPLACE, path, mutated))


def create_patch(original: Any, mutated: Any, additive: bool = False) -> list[PatchOperation]:
    """
    Compute the operations that transform ``original`` into ``mutated``.

    Appended list items are addressed with the ``-`` index, one operation per
    item in order. Trailing list items that disappeared are removed from the
    highest index down so earlier removals never shift later paths.

    With ``additive`` set, an object member whose value changed (a scalar
    update, or a null that became a map) is written with ``add`` instead of
    ``replace``. Changed list items are still emitted as ``replace``.
    """
    ops: list[PatchOperation] = []
    _diff("", original, mutated, ops, additive)
    return ops


def serialize_patch(ops: list[PatchOperation]) -> bytes:
    return json.dumps([op.to_dict() for op in ops], separators=(",", ":")).encode("utf-8")
