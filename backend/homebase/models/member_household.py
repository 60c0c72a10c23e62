"""MemberHousehold ORM — a user's membership (and role) in a household.

Invariants:
    - Always belongs to a Household (household_id FK, ON DELETE CASCADE)
    - role is 'admin' or 'member'
    - (user_id, household_id) is unique: a user joins a household at most once
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from homebase.db.base import Base


class MemberHousehold(Base):
    """Membership row linking an external user id to a household."""
    __tablename__ = "member_households"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "household_id", name="uq_member_households_user_household",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    household_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member",
    )
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    household: Mapped["Household"] = relationship(
        "Household", back_populates="members",
    )
