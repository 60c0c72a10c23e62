"""Membership Rule Enforcement — admin and last-admin rules over membership rows.

Invariants:
    - All functions are PURE: operate on already-fetched membership rows
    - Every household keeps >= 1 admin while it has >= 1 member
    - Return the error on violation, None on success
"""

from homebase.core.domain_types import MemberRole
from homebase.core.errors import (
    ErrorContext,
    LastAdminError,
    NotHouseholdAdminError,
    NotHouseholdMemberError,
)
from homebase.core.repository_protocols import Row


def is_admin(membership: Row | None) -> bool:
    return bool(membership) and membership["role"] == MemberRole.ADMIN.value


def check_is_member(
    membership: Row | None, context: ErrorContext | None = None,
) -> NotHouseholdMemberError | None:
    if not membership:
        return NotHouseholdMemberError(context)
    return None


def check_is_admin(
    membership: Row | None, action: str, context: ErrorContext | None = None,
) -> NotHouseholdMemberError | NotHouseholdAdminError | None:
    """Member check first, then role."""
    if not membership:
        return NotHouseholdMemberError(context)
    if not is_admin(membership):
        return NotHouseholdAdminError(action, context)
    return None


def check_can_leave(
    membership: Row, members: list[Row], context: ErrorContext | None = None,
) -> LastAdminError | None:
    """The only admin cannot leave while other members remain."""
    admins = [m for m in members if is_admin(m)]
    if is_admin(membership) and len(admins) == 1 and len(members) > 1:
        return LastAdminError(context)
    return None


def check_can_change_role(
    target: Row, role: MemberRole, members: list[Row], context: ErrorContext | None = None,
) -> LastAdminError | None:
    """Demoting the only admin would leave the household without one."""
    admins = [m for m in members if is_admin(m)]
    if is_admin(target) and role != MemberRole.ADMIN and len(admins) == 1:
        return LastAdminError(
            context, "Promote another member to admin before stepping down.",
        )
    return None
