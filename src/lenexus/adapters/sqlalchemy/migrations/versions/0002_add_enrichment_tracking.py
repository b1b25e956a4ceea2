"""Track enrichment time and user-edited fields on records.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-03 17:40:05

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("record") as batch_op:
        batch_op.add_column(sa.Column("enriched_at", sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(sa.Column("user_modified_fields", sa.Text(), nullable=True))
        batch_op.create_index(
            "ix_record_media_type_enriched_at",
            ["media_type", "enriched_at"],
            unique=False,
        )


def downgrade() -> None:
    with op.batch_alter_table("record") as batch_op:
        batch_op.drop_index("ix_record_media_type_enriched_at")
        batch_op.drop_column("user_modified_fields")
        batch_op.drop_column("enriched_at")
