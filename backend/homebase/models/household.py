"""Household ORM — the aggregate root every membership and invite hangs off.

Invariants:
    - id is UUID primary key (generated on insert)
    - name is non-empty and at most 50 characters (validated before insert)
    - theme is one of HouseholdTheme values
    - Deleting a household cascades to member_households and household_invites

Design Decisions:
    - created_by is a plain string: user identities live in the external auth provider,
      so there is no users table to reference
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from homebase.db.base import Base


class Household(Base):
    """Household aggregate root — owns memberships and invites."""
    __tablename__ = "households"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    theme: Mapped[str] = mapped_column(
        String(20), nullable=False, default="default",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    members: Mapped[list["MemberHousehold"]] = relationship(
        "MemberHousehold", back_populates="household",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    invites: Mapped[list["HouseholdInvite"]] = relationship(
        "HouseholdInvite", back_populates="household",
        cascade="all, delete-orphan", passive_deletes=True,
    )
