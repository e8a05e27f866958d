"""Decide which stored changes are worth showing in the feed.

Creates and deletes are always shown. Updates are hidden when they match a
``HideRule``: upstream churn such as a field appearing as ``null`` or a provider
growing a new ``false`` data-policy flag is recorded but not surfaced.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from snapdiff.domain.diffing import ChangeType
from snapdiff.domain.model import ChangeKind, EntityType

if TYPE_CHECKING:
    from snapdiff.domain.model import ChangeRecord

WILDCARD: Final[str] = "*"


class ValueKind(StrEnum):
    NULL = "null"
    FALSE = "false"
    TRUE = "true"

    def matches(self, value: Any) -> bool:
        if self is ValueKind.NULL:
            return value is None
        if self is ValueKind.FALSE:
            return value is False
        return value is True


@dataclass(frozen=True, slots=True)
class HideRule:
    """All given conditions must hold for the rule to hide a change.

    ``path`` is matched segment-wise against the start of the change path, ``*``
    matching any segment. A rule with a ``change_type`` and a path of two or more
    segments looks at the children of the top-level payload instead.
    """

    entity_type: EntityType | None = None
    path: tuple[str, ...] = ()
    change_type: ChangeType | None = None
    value: ValueKind | None = None


HIDE_RULES: Final[tuple[HideRule, ...]] = (
    HideRule(change_type=ChangeType.ADD, value=ValueKind.NULL),
    HideRule(change_type=ChangeType.REMOVE, value=ValueKind.NULL),
    HideRule(entity_type=EntityType.MODEL, path=("features",)),
    HideRule(entity_type=EntityType.PROVIDER, path=("adapter_name",)),
    HideRule(
        entity_type=EntityType.PROVIDER,
        path=("data_policy", WILDCARD),
        change_type=ChangeType.ADD,
        value=ValueKind.FALSE,
    ),
    HideRule(entity_type=EntityType.PROVIDER, path=("data_policy", "paid_models")),
    HideRule(entity_type=EntityType.ENDPOINT, path=("pricing",), change_type=ChangeType.ADD),
    HideRule(entity_type=EntityType.ENDPOINT, path=("pricing",), change_type=ChangeType.REMOVE),
    HideRule(
        entity_type=EntityType.ENDPOINT,
        path=("pricing", "audio"),
        change_type=ChangeType.ADD,
    ),
    HideRule(
        entity_type=EntityType.ENDPOINT,
        path=("pricing", "audio"),
        change_type=ChangeType.REMOVE,
    ),
)


def should_display(change: ChangeRecord, rules: Sequence[HideRule] = HIDE_RULES) -> bool:
    if change.change_kind is not ChangeKind.UPDATE:
        return True
    return not any(matches_rule(change, rule) for rule in rules)


def matches_rule(change: ChangeRecord, rule: HideRule) -> bool:
    if rule.entity_type is not None and rule.entity_type is not change.entity_type:
        return False

    payload = change.raw if isinstance(change.raw, Mapping) else {}

    if rule.change_type is not None and len(rule.path) > 1:
        return _matches_nested(change, payload, rule)

    if rule.path and not _path_matches(rule.path, _segments(change)):
        return False
    if rule.change_type is not None and not _payload_matches(payload, rule):
        return False
    return True


def _matches_nested(change: ChangeRecord, payload: Mapping[str, Any], rule: HideRule) -> bool:
    root, child_key = rule.path[0], rule.path[1]
    if change.path_level_1 != root:
        return False
    children = payload.get("changes")
    if not isinstance(children, list):
        return False
    for child in children:  # pyright: ignore[reportUnknownVariableType]
        if not isinstance(child, Mapping) or "key" not in child:
            continue
        if child_key != WILDCARD and child["key"] != child_key:
            continue
        if _payload_matches(child, rule):  # pyright: ignore[reportUnknownArgumentType]
            return True
    return False


def _payload_matches(payload: Mapping[str, Any], rule: HideRule) -> bool:
    if payload.get("type") != rule.change_type:
        return False
    if rule.value is None:
        return True
    return "value" in payload and rule.value.matches(payload["value"])


def _path_matches(pattern: tuple[str, ...], segments: list[str]) -> bool:
    if len(pattern) > len(segments):
        return False
    return all(
        expected in (WILDCARD, actual) for expected, actual in zip(pattern, segments, strict=False)
    )


def _segments(change: ChangeRecord) -> list[str]:
    if change.path:
        return change.path.split(".")
    return [segment for segment in (change.path_level_1, change.path_level_2) if segment]
