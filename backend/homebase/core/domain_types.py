"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - HouseholdId, InviteCode are NewTypes over str — ids travel as strings
      between the store, services and API
    - All valid states encoded as Enums — no raw string matching
    - Table names live here so core and shell agree on them

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Frozen dataclasses for service results: immutable values returned to the API layer
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

HouseholdId = NewType("HouseholdId", str)
InviteCode = NewType("InviteCode", str)


# ─── Tables ──────────────────────────────────────────────────────

HOUSEHOLDS = "households"
MEMBER_HOUSEHOLDS = "member_households"
HOUSEHOLD_INVITES = "household_invites"


# ─── Enums ───────────────────────────────────────────────────────

class MemberRole(str, Enum):
    """Membership roles — maps to member_households.role."""
    ADMIN = "admin"
    MEMBER = "member"


class HouseholdTheme(str, Enum):
    """Household colour themes offered at creation."""
    DEFAULT = "default"
    WARM = "warm"
    COOL = "cool"


# ─── Results ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class HouseholdCreationResult:
    household_id: HouseholdId
    invite_code: str  # "" when the invite could not be issued


@dataclass(frozen=True)
class JoinResult:
    household_id: HouseholdId
    household_name: str


@dataclass(frozen=True)
class InvitePreview:
    code: InviteCode
    household_id: HouseholdId
    household_name: str
    expires_at: datetime
    uses_remaining: int | None


@dataclass(frozen=True)
class IssuedInvite:
    code: InviteCode
    household_id: HouseholdId
    expires_at: datetime
    uses_remaining: int | None


@dataclass(frozen=True)
class CurrentHousehold:
    household_id: HouseholdId
    name: str
    theme: str
    role: MemberRole
    created_at: datetime | None
