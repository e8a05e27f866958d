"""SQLAlchemy mapping metadata for the snapdiff domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from snapdiff.domain.model import (
    CatalogEntity,
    ChangeCrawlIndex,
    ChangeKind,
    ChangeRecord,
    Endpoint,
    EntityType,
    Model,
    Provider,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _bookkeeping_columns() -> list[Column[Any]]:
    return [
        Column("attributes", JSON, nullable=False, default=dict),
        Column("unavailable_at", UTCDateTime(), nullable=True),
        Column("updated_at", UTCDateTime(), nullable=True),
    ]


# Current-state catalog tables --------------------------------------------------

model_table = Table(
    "catalog_model",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("slug", String, nullable=False, unique=True),
    *_bookkeeping_columns(),
)

endpoint_table = Table(
    "catalog_endpoint",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("uuid", String, nullable=False, unique=True),
    Column("model_slug", String, nullable=False, index=True),
    Column("provider_slug", String, nullable=False),
    Column("provider_tag_slug", String, nullable=False),
    *_bookkeeping_columns(),
)

provider_table = Table(
    "catalog_provider",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("slug", String, nullable=False, unique=True),
    *_bookkeeping_columns(),
)

# Change records ------------------------------------------------------------------

change_record_table = Table(
    "change_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("crawl_id", String, nullable=False),
    Column("previous_crawl_id", String, nullable=False),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("change_kind", Enum(ChangeKind, native_enum=False), nullable=False),
    Column("model_slug", String, nullable=True),
    Column("provider_slug", String, nullable=True),
    Column("provider_tag_slug", String, nullable=True),
    Column("endpoint_uuid", String, nullable=True),
    Column("path", String, nullable=True),
    Column("path_level_1", String, nullable=True),
    Column("path_level_2", String, nullable=True),
    Column("before", JSON, nullable=True),
    Column("after", JSON, nullable=True),
    Column("raw", JSON, nullable=True),
    Index("ix_change_record_pair", "previous_crawl_id", "crawl_id"),
    Index("ix_change_record_crawl_id", "crawl_id"),
)

change_crawl_index_table = Table(
    "change_crawl_index",
    mapper_registry.metadata,
    Column("previous_crawl_id", String, primary_key=True),
    Column("crawl_id", String, primary_key=True),
    Column("change_count", Integer, nullable=False, default=0),
    Column("crawl_day", Date, nullable=True, index=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

TABLE_BY_ENTITY_TYPE: Final[dict[EntityType, Table]] = {
    EntityType.MODEL: model_table,
    EntityType.ENDPOINT: endpoint_table,
    EntityType.PROVIDER: provider_table,
}


def natural_key_column(entity_cls: type[CatalogEntity]) -> Column[str]:
    table = TABLE_BY_ENTITY_TYPE[entity_cls.ENTITY_TYPE]
    return table.c[entity_cls.NATURAL_KEY]


@cache
def start_mappers() -> orm.registry:
    """Map the domain dataclasses imperatively; safe to call repeatedly."""

    mapper_registry.map_imperatively(Model, model_table)
    mapper_registry.map_imperatively(Endpoint, endpoint_table)
    mapper_registry.map_imperatively(Provider, provider_table)
    mapper_registry.map_imperatively(ChangeRecord, change_record_table)
    mapper_registry.map_imperatively(ChangeCrawlIndex, change_crawl_index_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
