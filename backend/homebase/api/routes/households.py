"""Household Routes — create, join, invite, inspect and leave households.

Invariants:
    - Every endpoint requires the caller's identity (get_current_user_id)
    - Routes never contain business logic (delegate to services)
    - HomebaseError subclasses propagate to the global handler (structured envelope)
    - Static paths (/join, /current, /invites/{code}) declared before /{household_id}

Design Decisions:
    - Join is POST with the code in the body: codes are bearer secrets, kept out of URLs
      except for the read-only preview
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from homebase.api.deps import (
    get_current_user_id,
    get_issuer,
    get_membership,
    get_redeemer,
)
from homebase.schemas.household import (
    CurrentHouseholdResponse,
    HouseholdCreate,
    HouseholdCreateResponse,
    InviteCreate,
    InvitePreviewResponse,
    InviteResponse,
    JoinHouseholdRequest,
    JoinHouseholdResponse,
    MemberResponse,
    MemberRoleUpdate,
)
from homebase.services.household_membership import HouseholdMembership
from homebase.services.invite_issuer import InviteIssuer
from homebase.services.invite_redeemer import InviteRedeemer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/households", tags=["households"])


@router.post(
    "", response_model=HouseholdCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_household(
    body: HouseholdCreate,
    user_id: str = Depends(get_current_user_id),
    issuer: InviteIssuer = Depends(get_issuer),
):
    """Create a household; the caller becomes its admin."""
    result = await issuer.create_household(body.name, body.theme, user_id)
    return HouseholdCreateResponse.model_validate(result)


@router.post("/join", response_model=JoinHouseholdResponse)
async def join_household(
    body: JoinHouseholdRequest,
    user_id: str = Depends(get_current_user_id),
    redeemer: InviteRedeemer = Depends(get_redeemer),
):
    """Join the household behind an invite code."""
    result = await redeemer.join_household(body.code, user_id)
    return JoinHouseholdResponse.model_validate(result)


@router.get("/current", response_model=CurrentHouseholdResponse)
async def get_current_household(
    user_id: str = Depends(get_current_user_id),
    membership: HouseholdMembership = Depends(get_membership),
):
    """The caller's household, 404 when they have none."""
    current = await membership.get_current_household(user_id)
    if current is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND, detail="You do not belong to a household",
        )
    return CurrentHouseholdResponse.model_validate(current)


@router.get("/invites/{code}", response_model=InvitePreviewResponse)
async def preview_invite(
    code: str,
    user_id: str = Depends(get_current_user_id),
    redeemer: InviteRedeemer = Depends(get_redeemer),
):
    """Validate an invite code and show which household it opens."""
    preview = await redeemer.preview_invite(code)
    return InvitePreviewResponse.model_validate(preview)


@router.post(
    "/{household_id}/invites", response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite(
    household_id: str,
    body: InviteCreate,
    user_id: str = Depends(get_current_user_id),
    issuer: InviteIssuer = Depends(get_issuer),
):
    """Issue an additional invite code. Admins only."""
    kwargs = {}
    if "uses_remaining" in body.model_fields_set:
        kwargs["uses_remaining"] = body.uses_remaining
    invite = await issuer.create_invite(
        household_id, user_id, expires_in_days=body.expires_in_days, **kwargs,
    )
    return InviteResponse.model_validate(invite)


@router.get("/{household_id}/members", response_model=list[MemberResponse])
async def list_members(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: HouseholdMembership = Depends(get_membership),
):
    """Members of a household the caller belongs to."""
    members = await membership.list_members(household_id, user_id)
    return [MemberResponse.model_validate(m) for m in members]


@router.patch(
    "/{household_id}/members/{member_user_id}", response_model=MemberResponse,
)
async def update_member_role(
    household_id: str,
    member_user_id: str,
    body: MemberRoleUpdate,
    user_id: str = Depends(get_current_user_id),
    membership: HouseholdMembership = Depends(get_membership),
):
    """Promote or demote a member. Admins only; the last admin cannot step down."""
    member = await membership.update_member_role(
        user_id, household_id, member_user_id, body.role.value,
    )
    return MemberResponse.model_validate(member)


@router.post("/{household_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: HouseholdMembership = Depends(get_membership),
):
    """Leave a household; the last member leaving deletes it."""
    await membership.leave_household(user_id, household_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{household_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_household(
    household_id: str,
    user_id: str = Depends(get_current_user_id),
    membership: HouseholdMembership = Depends(get_membership),
):
    """Delete a household with all memberships and invites. Admins only."""
    await membership.delete_household(user_id, household_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
