"""ORM Models — SQLAlchemy declarative models for households, memberships and invites.

Invariants:
    - All models inherit from Base (db/base.py)
    - Household is the aggregate root; memberships and invites scoped by household_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from homebase.models.household import Household  # noqa: F401
from homebase.models.member_household import MemberHousehold  # noqa: F401
from homebase.models.household_invite import HouseholdInvite  # noqa: F401
