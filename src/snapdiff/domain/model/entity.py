"""
Catalog entities materialized from snapshots:
natural keys, attribute bags and the availability lifecycle.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Self
from uuid import UUID, uuid4

from snapdiff.domain.model.enums import EntityType

if TYPE_CHECKING:
    from datetime import datetime


def new_id() -> UUID:
    return uuid4()


@dataclass(frozen=True, slots=True)
class Active:
    """Entity is advertised and has never dropped out of a snapshot."""


@dataclass(frozen=True, slots=True)
class Unavailable:
    """Entity dropped out of a snapshot at ``since`` (set once, never cleared)."""

    since: datetime


type Availability = Active | Unavailable


@dataclass(eq=False, kw_only=True)
class CatalogEntity:
    """Current-state row for one catalog entity.

    ``attributes`` is the mutable bag copied from the snapshot. ``updated_at`` and
    ``unavailable_at`` are bookkeeping and never take part in content comparison.
    """

    id: UUID = field(default_factory=new_id)
    attributes: dict[str, Any] = field(default_factory=dict[str, Any])
    unavailable_at: datetime | None = None
    updated_at: datetime | None = None

    # class-level discriminators; subclasses must override
    ENTITY_TYPE: ClassVar[EntityType]
    NATURAL_KEY: ClassVar[str]
    IDENTITY_FIELDS: ClassVar[tuple[str, ...]]

    @property
    def entity_type(self) -> EntityType:
        return self.ENTITY_TYPE

    @property
    def natural_key(self) -> str:
        return getattr(self, self.NATURAL_KEY)

    def identity(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in self.IDENTITY_FIELDS}

    def content(self) -> dict[str, Any]:
        """Comparable payload: attribute bag plus identity fields."""
        return {**self.attributes, **self.identity()}

    @property
    def availability(self) -> Availability:
        if self.unavailable_at is None:
            return Active()
        return Unavailable(since=self.unavailable_at)

    def mark_unavailable(self, at: datetime) -> bool:
        """Transition ``Active -> Unavailable(at)``; returns whether the transition happened."""

        if self.unavailable_at is not None:
            return False
        self.unavailable_at = at
        return True

    def replace_content(self, other: CatalogEntity, *, at: datetime) -> None:
        if other.ENTITY_TYPE is not self.ENTITY_TYPE:
            raise TypeError(
                f"cannot replace {self.ENTITY_TYPE} content with {other.ENTITY_TYPE} content"
            )
        if other.natural_key != self.natural_key:
            raise ValueError(
                f"natural key mismatch: {self.natural_key!r} != {other.natural_key!r}"
            )
        for name in self.IDENTITY_FIELDS:
            setattr(self, name, getattr(other, name))
        self.attributes = copy.deepcopy(other.attributes)
        self.updated_at = at

    def clone(self, *, at: datetime) -> Self:
        """Return a fresh, unpersisted copy carrying this entity's content."""

        return type(self)(
            attributes=copy.deepcopy(self.attributes),
            updated_at=at,
            **self.identity(),
        )


@dataclass(eq=False, kw_only=True)
class Model(CatalogEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.MODEL
    NATURAL_KEY: ClassVar[str] = "slug"
    IDENTITY_FIELDS: ClassVar[tuple[str, ...]] = ("slug",)

    slug: str


@dataclass(eq=False, kw_only=True)
class Endpoint(CatalogEntity):
    """A model served by one provider; denormalizes the slugs it is identified by."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ENDPOINT
    NATURAL_KEY: ClassVar[str] = "uuid"
    IDENTITY_FIELDS: ClassVar[tuple[str, ...]] = (
        "uuid",
        "model_slug",
        "provider_slug",
        "provider_tag_slug",
    )

    uuid: str
    model_slug: str
    provider_slug: str
    provider_tag_slug: str


@dataclass(eq=False, kw_only=True)
class Provider(CatalogEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PROVIDER
    NATURAL_KEY: ClassVar[str] = "slug"
    IDENTITY_FIELDS: ClassVar[tuple[str, ...]] = ("slug",)

    slug: str

