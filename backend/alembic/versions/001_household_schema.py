"""Household schema — households, member_households, household_invites.

Revision ID: 001_household_schema
Revises: None
Create Date: 2026-10-19

Child tables cascade on household delete; invite codes are unique so a
generated collision surfaces as an integrity error and is retried.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_household_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "households",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("theme", sa.String(20), nullable=False, server_default="default"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "member_households",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "household_id", UUID(as_uuid=True),
            sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "user_id", "household_id", name="uq_member_households_user_household",
        ),
    )
    op.create_index("ix_member_households_user_id", "member_households", ["user_id"])
    op.create_index("ix_member_households_household_id", "member_households", ["household_id"])

    op.create_table(
        "household_invites",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(8), nullable=False, unique=True),
        sa.Column(
            "household_id", UUID(as_uuid=True),
            sa.ForeignKey("households.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("uses_remaining", sa.Integer, nullable=True, server_default="10"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "uses_remaining IS NULL OR uses_remaining >= 0",
            name="ck_household_invites_uses_non_negative",
        ),
    )
    op.create_index("ix_household_invites_household_id", "household_invites", ["household_id"])


def downgrade() -> None:
    op.drop_table("household_invites")
    op.drop_table("member_households")
    op.drop_table("households")
