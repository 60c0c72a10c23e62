"""Household Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - HouseholdCreate.name: stripped, non-empty; the upper bound is
      settings.household_name_max_length, enforced by the issuer
    - HouseholdCreate.theme: one of default / warm / cool
    - JoinHouseholdRequest.code is passed through raw: the redeemer normalizes it
      and owns the empty-code error
    - InviteCreate bounds expiry and uses to positive values
    - MemberRoleUpdate.role: admin or member

Design Decisions:
    - Literal type for theme over str enum: Pydantic handles validation natively
    - field_validator for side-effect-free transforms (strip) — keeps models pure
    - Responses built from core result dataclasses via from_attributes
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from homebase.core.domain_types import MemberRole


class HouseholdCreate(BaseModel):
    """Household creation — rejects blank names; length is checked by the issuer."""
    name: str = Field(min_length=1)
    theme: Literal["default", "warm", "cool"] = "default"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("name cannot be empty or whitespace")
        return v


class HouseholdCreateResponse(BaseModel):
    """Created household id and its first invite code ("" when none was issued)."""
    model_config = ConfigDict(from_attributes=True)

    household_id: str
    invite_code: str


class JoinHouseholdRequest(BaseModel):
    code: str = Field(max_length=64)


class JoinHouseholdResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    household_id: str
    household_name: str


class InviteCreate(BaseModel):
    """On-demand invite — uses_remaining None means unlimited."""
    expires_in_days: int | None = Field(None, ge=1, le=90)
    uses_remaining: int | None = Field(10, ge=1, le=1000)


class InviteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    household_id: str
    expires_at: datetime
    uses_remaining: int | None


class InvitePreviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    household_id: str
    household_name: str
    expires_at: datetime
    uses_remaining: int | None


class CurrentHouseholdResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    household_id: str
    name: str
    theme: str
    role: MemberRole
    created_at: datetime | None = None


class MemberRoleUpdate(BaseModel):
    role: MemberRole


class MemberResponse(BaseModel):
    id: str
    user_id: str
    household_id: str
    role: MemberRole
    created_at: datetime | None = None
