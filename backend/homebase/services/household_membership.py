"""Household Membership — current household lookup, member listing, leave and delete.

Invariants:
    - Only members may list a household's members
    - The only admin cannot leave while other members remain (LastAdminError)
    - The last member leaving deletes the household (memberships/invites cascade)
    - Only admins may delete a household or change member roles
    - A role change never leaves the household without an admin (LastAdminError)
    - Store failures propagate as DatabaseError, except the best-effort household
      cleanup after the last member leaves (logged)
"""

import logging

from homebase.core.domain_types import (
    HOUSEHOLDS,
    MEMBER_HOUSEHOLDS,
    CurrentHousehold,
    HouseholdId,
    MemberRole,
)
from homebase.core.enforce_membership import (
    check_can_change_role,
    check_can_leave,
    check_is_admin,
    check_is_member,
)
from homebase.core.errors import (
    DatabaseError,
    ErrorContext,
    MemberNotFoundError,
    ValidationError,
)
from homebase.core.repository_protocols import DataStore, Row

logger = logging.getLogger(__name__)


class HouseholdMembership:
    """Membership queries and exits that surround the invite lifecycle."""

    def __init__(self, store: DataStore):
        self.store = store

    async def get_current_household(self, user_id: str) -> CurrentHousehold | None:
        """The user's (earliest) household with their role, or None."""
        membership = await self.store.select_one(MEMBER_HOUSEHOLDS, {"user_id": user_id})
        if not membership:
            return None
        household = await self.store.select_one(
            HOUSEHOLDS, {"id": membership["household_id"]},
        )
        if not household:
            logger.warning(
                "Membership points at a missing household",
                extra={"household_id": membership["household_id"], "user_id": user_id},
            )
            return None
        return CurrentHousehold(
            household_id=HouseholdId(household["id"]),
            name=household["name"],
            theme=household["theme"],
            role=MemberRole(membership["role"]),
            created_at=household.get("created_at"),
        )

    async def list_members(self, household_id: str, requester_id: str) -> list[Row]:
        ctx = ErrorContext(household_id=household_id, user_id=requester_id)
        members = await self.store.select(MEMBER_HOUSEHOLDS, {"household_id": household_id})
        requester = _find_member(members, requester_id)
        error = check_is_member(requester, ctx)
        if error:
            raise error
        return members

    async def leave_household(self, user_id: str, household_id: str) -> bool:
        """Remove user's membership. Returns True when the household was deleted too."""
        ctx = ErrorContext(household_id=household_id, user_id=user_id)
        members = await self.store.select(MEMBER_HOUSEHOLDS, {"household_id": household_id})
        membership = _find_member(members, user_id)
        error = check_is_member(membership, ctx) or check_can_leave(membership, members, ctx)
        if error:
            raise error

        await self.store.delete(
            MEMBER_HOUSEHOLDS, {"household_id": household_id, "user_id": user_id},
        )
        logger.info(
            "User left household", extra={"household_id": household_id, "user_id": user_id},
        )
        if len(members) > 1:
            return False

        try:
            await self.store.delete(HOUSEHOLDS, {"id": household_id})
        except DatabaseError as e:
            logger.warning(
                f"Failed to delete empty household: {e.message}",
                extra={"household_id": household_id},
            )
            return False
        return True

    async def delete_household(self, user_id: str, household_id: str) -> None:
        ctx = ErrorContext(household_id=household_id, user_id=user_id)
        membership = await self.store.select_one(
            MEMBER_HOUSEHOLDS, {"household_id": household_id, "user_id": user_id},
        )
        error = check_is_admin(membership, "delete a household", ctx)
        if error:
            raise error
        await self.store.delete(HOUSEHOLDS, {"id": household_id})
        logger.info(
            "Household deleted", extra={"household_id": household_id, "user_id": user_id},
        )

    async def update_member_role(
        self, requester_id: str, household_id: str, member_user_id: str, role: str,
    ) -> Row:
        """Set a member's role. Admins only; returns the updated membership row."""
        ctx = ErrorContext(household_id=household_id, user_id=requester_id)
        try:
            new_role = MemberRole(role)
        except ValueError:
            raise ValidationError(f"Unknown role: {role}", "role", ctx) from None

        members = await self.store.select(MEMBER_HOUSEHOLDS, {"household_id": household_id})
        error = check_is_admin(_find_member(members, requester_id), "change member roles", ctx)
        if error:
            raise error
        target = _find_member(members, member_user_id)
        if not target:
            raise MemberNotFoundError(member_user_id, ctx)
        error = check_can_change_role(target, new_role, members, ctx)
        if error:
            raise error

        if target["role"] != new_role.value:
            await self.store.update(
                MEMBER_HOUSEHOLDS, {"role": new_role.value},
                {"household_id": household_id, "user_id": member_user_id},
            )
            logger.info(
                f"Member role set to {new_role.value}",
                extra={"household_id": household_id, "user_id": member_user_id},
            )
        return {**target, "role": new_role.value}


def _find_member(members: list[Row], user_id: str) -> Row | None:
    return next((m for m in members if m["user_id"] == user_id), None)
