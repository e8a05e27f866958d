"""Recursive tree diff over JSON-like values.

``diff`` compares two values and returns a tagged tree:

- ``Leaf``: a key was added, removed or replaced by a different value;
- ``ArrayGroup``: membership changes of an embedded-key array, i.e. a field listed in
  ``DiffOptions.embedded_keys``. Elements are matched by their string-coerced identity,
  so reordering is not a change and elements are never diffed individually;
- ``RecordGroup``: nested changes below a key whose values are both mappings.

Mapping children are emitted in ``before`` key order followed by ``after``-only keys
in ``after`` order. Array items are removals in ``before`` order followed by additions
in ``after`` order. Arrays that are not embedded-key collections are compared as whole
values.

``to_payload`` renders a tree in the json-diff wire shape stored on change records:
``{"type", "key", "embeddedKey"?, "value"?, "oldValue"?, "changes"?}`` where a
``REMOVE`` carries the removed value under ``value``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

ROOT_KEY: Final[str] = "$root"
EMBEDDED_VALUE_KEY: Final[str] = "$value"


class ChangeType(StrEnum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    REMOVE = "REMOVE"


class _Missing:
    """Marker for the absent side of an ADD or REMOVE; distinct from ``None``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


@dataclass(frozen=True, slots=True)
class Leaf:
    type: ChangeType
    key: str
    old_value: Any = MISSING
    new_value: Any = MISSING


@dataclass(frozen=True, slots=True)
class ArrayGroup:
    key: str
    items: tuple[Leaf, ...]
    embedded_key: str = EMBEDDED_VALUE_KEY

    @property
    def added(self) -> tuple[Any, ...]:
        return tuple(item.new_value for item in self.items if item.type is ChangeType.ADD)

    @property
    def removed(self) -> tuple[Any, ...]:
        return tuple(item.old_value for item in self.items if item.type is ChangeType.REMOVE)


@dataclass(frozen=True, slots=True)
class RecordGroup:
    key: str
    children: tuple[DiffNode, ...]


type DiffNode = Leaf | ArrayGroup | RecordGroup


@dataclass(frozen=True, slots=True)
class DiffOptions:
    """Dotted paths (``"model.input_modalities"``) relative to the diffed root."""

    embedded_keys: frozenset[str] = frozenset()
    keys_to_skip: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        *,
        embedded_keys: Iterable[str] = (),
        keys_to_skip: Iterable[str] = (),
    ) -> DiffOptions:
        return cls(embedded_keys=frozenset(embedded_keys), keys_to_skip=frozenset(keys_to_skip))


DEFAULT_OPTIONS: Final = DiffOptions()


def diff(before: Any, after: Any, options: DiffOptions | None = None) -> DiffNode | None:
    """Return the diff tree between ``before`` and ``after``, or ``None`` when equal."""

    return _diff_value(ROOT_KEY, before, after, (), options or DEFAULT_OPTIONS)


def diff_fields(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    options: DiffOptions | None = None,
) -> list[DiffNode]:
    """Return one node per differing top-level field of two mappings."""

    node = diff(before, after, options)
    if node is None:
        return []
    if isinstance(node, RecordGroup):
        return list(node.children)
    return [node]


def values_equal(left: Any, right: Any) -> bool:
    """Deep JSON value equality.

    ``NaN`` equals ``NaN``; booleans never equal numbers; lists and tuples compare
    positionally; mappings compare by key set and values.
    """

    if left is right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if _is_number(left) and _is_number(right):
        if _is_nan(left) and _is_nan(right):
            return True
        return left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if _is_array(left) and _is_array(right):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right, strict=True))
    if left is None or right is None:
        return False
    if type(left) is not type(right) and not (isinstance(left, str) and isinstance(right, str)):
        return False
    return left == right


def element_identity(value: Any) -> str:
    """String-coerced identity used to match embedded-key array elements."""

    if isinstance(value, str):
        return value
    if _is_nan(value):
        return "NaN"
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def value_at(value: Any, segments: Sequence[str]) -> Any:
    """Follow ``segments`` through nested mappings; ``None`` once the path runs out."""

    current = value
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def to_payload(node: DiffNode) -> dict[str, Any]:
    if isinstance(node, Leaf):
        payload: dict[str, Any] = {"type": node.type.value, "key": node.key}
        if node.type is ChangeType.REMOVE:
            payload["value"] = node.old_value
        else:
            payload["value"] = node.new_value
        if node.type is ChangeType.UPDATE:
            payload["oldValue"] = node.old_value
        return payload
    if isinstance(node, ArrayGroup):
        return {
            "type": ChangeType.UPDATE.value,
            "key": node.key,
            "embeddedKey": node.embedded_key,
            "changes": [to_payload(item) for item in node.items],
        }
    return {
        "type": ChangeType.UPDATE.value,
        "key": node.key,
        "changes": [to_payload(child) for child in node.children],
    }


def _diff_value(
    key: str,
    before: Any,
    after: Any,
    path: tuple[str, ...],
    options: DiffOptions,
) -> DiffNode | None:
    if values_equal(before, after):
        return None
    if path and ".".join(path) in options.embedded_keys and _is_array(before) and _is_array(after):
        return _diff_embedded(key, before, after)
    if isinstance(before, Mapping) and isinstance(after, Mapping):
        children = _diff_mapping(before, after, path, options)  # pyright: ignore[reportUnknownArgumentType]
        if not children:
            return None
        return RecordGroup(key=key, children=tuple(children))
    return Leaf(ChangeType.UPDATE, key, old_value=before, new_value=after)


def _diff_mapping(
    before: Mapping[Any, Any],
    after: Mapping[Any, Any],
    path: tuple[str, ...],
    options: DiffOptions,
) -> list[DiffNode]:
    changes: list[DiffNode] = []
    for raw_key, old in before.items():
        key = str(raw_key)
        child_path = (*path, key)
        if ".".join(child_path) in options.keys_to_skip:
            continue
        if raw_key not in after:
            changes.append(Leaf(ChangeType.REMOVE, key, old_value=old))
            continue
        node = _diff_value(key, old, after[raw_key], child_path, options)
        if node is not None:
            changes.append(node)
    for raw_key, new in after.items():
        if raw_key in before:
            continue
        key = str(raw_key)
        if ".".join((*path, key)) in options.keys_to_skip:
            continue
        changes.append(Leaf(ChangeType.ADD, key, new_value=new))
    return changes


def _diff_embedded(key: str, before: Sequence[Any], after: Sequence[Any]) -> ArrayGroup | None:
    before_by_identity: dict[str, Any] = {}
    for value in before:
        before_by_identity.setdefault(element_identity(value), value)
    after_by_identity: dict[str, Any] = {}
    for value in after:
        after_by_identity.setdefault(element_identity(value), value)

    items = [
        Leaf(ChangeType.REMOVE, identity, old_value=value)
        for identity, value in before_by_identity.items()
        if identity not in after_by_identity
    ]
    items.extend(
        Leaf(ChangeType.ADD, identity, new_value=value)
        for identity, value in after_by_identity.items()
        if identity not in before_by_identity
    )
    if not items:
        return None
    return ArrayGroup(key=key, items=tuple(items))


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)
