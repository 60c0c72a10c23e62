"""HouseholdInvite ORM — a shareable code that admits users to a household.

Invariants:
    - code is unique across all invites (collisions regenerate at issue time)
    - expires_at is created_at + invite_ttl_days
    - uses_remaining is NULL (unlimited) or a non-negative counter
    - Rows are never deleted when dead: expiry and exhaustion are hard stops at redemption

Design Decisions:
    - No physical cleanup of dead codes: they stay for audit and cascade away with the household
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from homebase.db.base import Base


class HouseholdInvite(Base):
    """Invite code with expiry and remaining-uses counter."""
    __tablename__ = "household_invites"
    __table_args__ = (
        CheckConstraint(
            "uses_remaining IS NULL OR uses_remaining >= 0",
            name="ck_household_invites_uses_non_negative",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    household_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    uses_remaining: Mapped[int | None] = mapped_column(
        Integer, nullable=True, default=10,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    household: Mapped["Household"] = relationship(
        "Household", back_populates="invites",
    )
