"""Compute change records between two adjacent catalog snapshots."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from snapdiff.domain.diffing import (
    DiffNode,
    DiffOptions,
    RecordGroup,
    diff_fields,
    to_payload,
    value_at,
)
from snapdiff.domain.model import (
    CatalogEntity,
    ChangeKind,
    ChangeRecord,
    Endpoint,
    EntityType,
)

if TYPE_CHECKING:
    from snapdiff.domain.model import CatalogSnapshot

type Identify = Callable[[CatalogEntity], dict[str, str]]

# fields that are bookkeeping or echo other entities and would only add noise
_COMMON_SKIP: Final = ("updated_at", "unavailable_at", "icon_url", "or_added_at")


def _identify_model(entity: CatalogEntity) -> dict[str, str]:
    return {"model_slug": entity.natural_key}


def _identify_endpoint(entity: CatalogEntity) -> dict[str, str]:
    if not isinstance(entity, Endpoint):
        raise TypeError(f"expected an endpoint, got {type(entity).__name__}")
    return {
        "model_slug": entity.model_slug,
        "provider_slug": entity.provider_slug,
        "provider_tag_slug": entity.provider_tag_slug,
        "endpoint_uuid": entity.uuid,
    }


def _identify_provider(entity: CatalogEntity) -> dict[str, str]:
    return {"provider_slug": entity.natural_key}


@dataclass(frozen=True, slots=True)
class EntityChangeConfig:
    entity_type: EntityType
    options: DiffOptions
    identify: Identify


ENTITY_CHANGE_CONFIGS: Final[Mapping[EntityType, EntityChangeConfig]] = {
    EntityType.MODEL: EntityChangeConfig(
        entity_type=EntityType.MODEL,
        options=DiffOptions.of(
            embedded_keys=("input_modalities", "output_modalities"),
            keys_to_skip=_COMMON_SKIP,
        ),
        identify=_identify_model,
    ),
    EntityType.ENDPOINT: EntityChangeConfig(
        entity_type=EntityType.ENDPOINT,
        options=DiffOptions.of(
            embedded_keys=(
                "supported_parameters",
                "model.input_modalities",
                "model.output_modalities",
            ),
            keys_to_skip=(
                *_COMMON_SKIP,
                "stats",
                "status",
                "provider.slug",
                "provider.name",
                "provider.icon_url",
                "provider.model_id",
                "provider.region",
                "model.name",
                "model.icon_url",
                "model.author_slug",
                "model.author_name",
                "model.or_added_at",
            ),
        ),
        identify=_identify_endpoint,
    ),
    EntityType.PROVIDER: EntityChangeConfig(
        entity_type=EntityType.PROVIDER,
        options=DiffOptions.of(embedded_keys=("datacenters",), keys_to_skip=_COMMON_SKIP),
        identify=_identify_provider,
    ),
}


def extract_changes(previous: CatalogSnapshot, current: CatalogSnapshot) -> list[ChangeRecord]:
    """Change records for every entity type between two adjacent snapshots."""

    changes: list[ChangeRecord] = []
    for entity_type in EntityType:
        changes.extend(
            extract_entity_changes(
                entity_type,
                previous.entities_by_key(entity_type),
                current.entities_by_key(entity_type),
                previous_crawl_id=previous.crawl_id,
                crawl_id=current.crawl_id,
            )
        )
    return changes


def extract_entity_changes(
    entity_type: EntityType,
    previous_by_key: Mapping[str, CatalogEntity],
    current_by_key: Mapping[str, CatalogEntity],
    *,
    previous_crawl_id: str,
    crawl_id: str,
    config: EntityChangeConfig | None = None,
) -> list[ChangeRecord]:
    """Create/delete records for entities present on one side, update records otherwise.

    Updates produce one record per differing top-level field. The record's ``path``
    follows single-child record chains (``data_policy.training``) so the two leading
    segments are meaningful for routing; the stored payload is always the node for the
    top-level field.
    """

    resolved = config or ENTITY_CHANGE_CONFIGS[entity_type]
    changes: list[ChangeRecord] = []

    for key in sorted(previous_by_key.keys() | current_by_key.keys()):
        before = previous_by_key.get(key)
        after = current_by_key.get(key)

        if before is None and after is not None:
            changes.append(
                ChangeRecord(
                    crawl_id=crawl_id,
                    previous_crawl_id=previous_crawl_id,
                    entity_type=entity_type,
                    change_kind=ChangeKind.CREATE,
                    **resolved.identify(after),
                )
            )
            continue

        if after is None and before is not None:
            changes.append(
                ChangeRecord(
                    crawl_id=crawl_id,
                    previous_crawl_id=previous_crawl_id,
                    entity_type=entity_type,
                    change_kind=ChangeKind.DELETE,
                    **resolved.identify(before),
                )
            )
            continue

        if before is None or after is None:
            continue

        before_content = before.content()
        after_content = after.content()
        identifiers = resolved.identify(before)
        for node in diff_fields(before_content, after_content, resolved.options):
            segments = _routing_path(node)
            changes.append(
                ChangeRecord(
                    crawl_id=crawl_id,
                    previous_crawl_id=previous_crawl_id,
                    entity_type=entity_type,
                    change_kind=ChangeKind.UPDATE,
                    path=".".join(segments),
                    path_level_1=segments[0],
                    path_level_2=segments[1] if len(segments) > 1 else None,
                    before=value_at(before_content, segments),
                    after=value_at(after_content, segments),
                    raw=to_payload(node),
                    **identifiers,
                )
            )

    return changes


def _routing_path(node: DiffNode) -> list[str]:
    segments = [node.key]
    while isinstance(node, RecordGroup) and len(node.children) == 1:
        node = node.children[0]
        segments.append(node.key)
    return segments
