"""Catalog state tables, change records and the crawl index.

Revision ID: 0001_catalog_and_changes
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_catalog_and_changes"
down_revision = None
branch_labels = None
depends_on = None


def _catalog_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.Column("unavailable_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "catalog_model",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        *_catalog_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_catalog_model")),
        sa.UniqueConstraint("slug", name=op.f("uq_catalog_model_catalog_model_slug")),
    )
    op.create_table(
        "catalog_endpoint",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column("model_slug", sa.String(), nullable=False),
        sa.Column("provider_slug", sa.String(), nullable=False),
        sa.Column("provider_tag_slug", sa.String(), nullable=False),
        *_catalog_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_catalog_endpoint")),
        sa.UniqueConstraint("uuid", name=op.f("uq_catalog_endpoint_catalog_endpoint_uuid")),
    )
    op.create_index(
        op.f("ix_catalog_endpoint_model_slug"), "catalog_endpoint", ["model_slug"], unique=False
    )
    op.create_table(
        "catalog_provider",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        *_catalog_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_catalog_provider")),
        sa.UniqueConstraint("slug", name=op.f("uq_catalog_provider_catalog_provider_slug")),
    )

    op.create_table(
        "change_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("crawl_id", sa.String(), nullable=False),
        sa.Column("previous_crawl_id", sa.String(), nullable=False),
        sa.Column(
            "entity_type",
            sa.Enum("MODEL", "ENDPOINT", "PROVIDER", name="entitytype", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "change_kind",
            sa.Enum("CREATE", "UPDATE", "DELETE", name="changekind", native_enum=False),
            nullable=False,
        ),
        sa.Column("model_slug", sa.String(), nullable=True),
        sa.Column("provider_slug", sa.String(), nullable=True),
        sa.Column("provider_tag_slug", sa.String(), nullable=True),
        sa.Column("endpoint_uuid", sa.String(), nullable=True),
        sa.Column("path", sa.String(), nullable=True),
        sa.Column("path_level_1", sa.String(), nullable=True),
        sa.Column("path_level_2", sa.String(), nullable=True),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("raw", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_change_record")),
    )
    op.create_index(
        "ix_change_record_pair", "change_record", ["previous_crawl_id", "crawl_id"], unique=False
    )
    op.create_index("ix_change_record_crawl_id", "change_record", ["crawl_id"], unique=False)

    op.create_table(
        "change_crawl_index",
        sa.Column("previous_crawl_id", sa.String(), nullable=False),
        sa.Column("crawl_id", sa.String(), nullable=False),
        sa.Column("change_count", sa.Integer(), nullable=False),
        sa.Column("crawl_day", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint(
            "previous_crawl_id", "crawl_id", name=op.f("pk_change_crawl_index")
        ),
    )
    op.create_index(
        op.f("ix_change_crawl_index_crawl_day"), "change_crawl_index", ["crawl_day"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_change_crawl_index_crawl_day"), table_name="change_crawl_index")
    op.drop_table("change_crawl_index")
    op.drop_index("ix_change_record_crawl_id", table_name="change_record")
    op.drop_index("ix_change_record_pair", table_name="change_record")
    op.drop_table("change_record")
    op.drop_table("catalog_provider")
    op.drop_index(op.f("ix_catalog_endpoint_model_slug"), table_name="catalog_endpoint")
    op.drop_table("catalog_endpoint")
    op.drop_table("catalog_model")
