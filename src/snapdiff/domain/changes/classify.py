"""Classify a stored diff payload into a renderable shape.

Payloads are read back from storage and may predate the current diff format, so
classification is total: anything unexpected becomes an ``UnknownShape`` carrying the
reason instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from snapdiff.domain.diffing import ArrayGroup, ChangeType, Leaf, RecordGroup, to_payload
from snapdiff.domain.model import ChangeKind

if TYPE_CHECKING:
    from snapdiff.domain.model import ChangeRecord


class _RawChange(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Literal["ADD", "UPDATE", "REMOVE"]
    key: str
    embedded_key: str | None = Field(default=None, alias="embeddedKey")
    value: Any = None
    old_value: Any = Field(default=None, alias="oldValue")
    changes: list[Any] | None = None


@dataclass(frozen=True, slots=True)
class ValueChange:
    key: str
    change_type: ChangeType
    old_value: Any = None
    new_value: Any = None
    path: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ArrayChange:
    key: str
    embedded_key: str
    added: tuple[Any, ...] = ()
    removed: tuple[Any, ...] = ()
    path: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UnknownShape:
    reason: str
    key: str | None = None
    path: tuple[str, ...] = ()
    raw: Any = field(default=None, compare=False)


type NestedShape = ValueChange | ArrayChange | UnknownShape


@dataclass(frozen=True, slots=True)
class RecordChange:
    key: str
    children: tuple[NestedShape, ...]
    path: tuple[str, ...] = ()


type ChangeShape = ValueChange | ArrayChange | RecordChange | UnknownShape


def classify(payload: object, path: tuple[str, ...] = ()) -> ChangeShape:
    """Classify a top-level diff payload; record groups are unfolded one level."""

    parsed = _parse(payload, path)
    if isinstance(parsed, UnknownShape):
        return parsed

    if parsed.changes is None:
        return _value_change(parsed, path)
    if parsed.embedded_key:
        return _array_change(parsed, payload, path)

    child_path = (*path, parsed.key)
    children = tuple(_classify_nested(child, child_path) for child in parsed.changes)
    return RecordChange(key=parsed.key, children=children, path=path)


def classify_record(change: ChangeRecord) -> ChangeShape:
    if change.change_kind is not ChangeKind.UPDATE:
        return UnknownShape(
            reason=f"{change.change_kind} changes carry no diff payload",
            key=change.path_level_1,
        )
    return classify(change.raw)


def summarize(shape: ChangeShape) -> str:
    """One-line description of a shape, e.g. ``supported_parameters: +1 -2``."""

    if isinstance(shape, ValueChange):
        return f"{shape.change_type.lower()} {shape.key}"
    if isinstance(shape, ArrayChange):
        return f"{shape.key}: +{len(shape.added)} -{len(shape.removed)}"
    if isinstance(shape, RecordChange):
        return f"{len(shape.children)} field(s) in {shape.key}"
    return f"unknown: {shape.reason}"


def changed_field_names(shape: ChangeShape, limit: int = 5) -> list[str]:
    if isinstance(shape, RecordChange):
        return [child.key or "unknown" for child in shape.children][:limit]
    if isinstance(shape, UnknownShape):
        return [shape.key] if shape.key else []
    return [shape.key]


def _classify_nested(payload: object, path: tuple[str, ...]) -> NestedShape:
    parsed = _parse(payload, path)
    if isinstance(parsed, UnknownShape):
        return parsed
    if parsed.changes is None:
        return _value_change(parsed, path)
    if parsed.embedded_key:
        return _array_change(parsed, payload, path)
    return UnknownShape(
        reason="nested record changes are not unfolded",
        key=parsed.key,
        path=path,
        raw=payload,
    )


def _parse(payload: object, path: tuple[str, ...]) -> _RawChange | UnknownShape:
    if isinstance(payload, (Leaf, ArrayGroup, RecordGroup)):
        payload = to_payload(payload)
    if payload is None:
        return UnknownShape(reason="change payload is empty", path=path)
    if not isinstance(payload, dict):
        return UnknownShape(
            reason=f"change payload is a {type(payload).__name__}, not an object",
            path=path,
            raw=payload,
        )
    try:
        return _RawChange.model_validate(payload)
    except ValidationError as exc:
        key = payload.get("key")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        return UnknownShape(
            reason=f"invalid change payload: {exc.error_count()} validation error(s)",
            key=key if isinstance(key, str) else None,
            path=path,
            raw=payload,
        )


def _value_change(parsed: _RawChange, path: tuple[str, ...]) -> ValueChange:
    change_type = ChangeType(parsed.type)
    if change_type is ChangeType.REMOVE:
        # the wire format keeps the removed value under "value"
        return ValueChange(parsed.key, change_type, old_value=parsed.value, path=path)
    if change_type is ChangeType.ADD:
        return ValueChange(parsed.key, change_type, new_value=parsed.value, path=path)
    return ValueChange(
        parsed.key,
        change_type,
        old_value=parsed.old_value,
        new_value=parsed.value,
        path=path,
    )


def _array_change(
    parsed: _RawChange,
    payload: object,
    path: tuple[str, ...],
) -> ArrayChange | UnknownShape:
    added: list[Any] = []
    removed: list[Any] = []
    for item in parsed.changes or []:
        item_type = item.get("type") if isinstance(item, dict) else None  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        if item_type == ChangeType.ADD:
            added.append(item.get("value"))  # pyright: ignore[reportUnknownMemberType, reportUnknownArgumentType]
        elif item_type == ChangeType.REMOVE:
            removed.append(item.get("value"))  # pyright: ignore[reportUnknownMemberType, reportUnknownArgumentType]
        else:
            return UnknownShape(
                reason="array changes may only add or remove members",
                key=parsed.key,
                path=path,
                raw=payload,
            )
    return ArrayChange(
        key=parsed.key,
        embedded_key=parsed.embedded_key or "",
        added=tuple(added),
        removed=tuple(removed),
        path=path,
    )
