"""Academy collections — one JSON payload per (academy, collection).

Revision ID: 001_academy_collections
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_academy_collections"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "academy_collections",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("academy_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("academy_id", "name", name="uq_academy_collection"),
    )
    op.create_index(
        "ix_academy_collections_academy_id", "academy_collections", ["academy_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_academy_collections_academy_id", table_name="academy_collections")
    op.drop_table("academy_collections")
