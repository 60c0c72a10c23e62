"""Invite Redeemer — validates a submitted invite code and joins the user to its household.

Invariants:
    - Validation order (first failure wins):
        empty → malformed/unknown → expired → exhausted → already member → household missing
    - Expired/exhausted take precedence over already-member: a dead code always
      reports why it is dead
    - Join result returned only after the membership row is inserted
    - uses_remaining decremented AFTER the join with an atomic conditional update;
      a failed decrement is logged, never surfaced
    - A zero-row decrement means a concurrent redemption took the last use: the
      fresh membership is removed again and ExhaustedCodeError raised; if that
      removal fails the membership stands and the join is reported as succeeded
    - A unique violation on the membership insert (concurrent join by the same
      user) reports AlreadyMemberError, not JoinFailedError
    - NULL uses_remaining is never decremented (unlimited code)

Design Decisions:
    - Pure checks from core/enforce_invite shared with preview_invite: one source of rules
    - Malformed codes rejected as InvalidCodeError before the lookup: saves a round-trip
      and returns the same error an unknown code would
"""

import logging

from homebase.core.domain_types import (
    HOUSEHOLD_INVITES,
    HOUSEHOLDS,
    MEMBER_HOUSEHOLDS,
    HouseholdId,
    InviteCode,
    InvitePreview,
    JoinResult,
    MemberRole,
)
from homebase.core.enforce_invite import check_user_id, validate_invite_redeemable
from homebase.core.errors import (
    AlreadyInHouseholdError,
    AlreadyMemberError,
    DatabaseError,
    DuplicateKeyError,
    EmptyCodeError,
    ExhaustedCodeError,
    ErrorContext,
    HouseholdNotFoundError,
    InvalidCodeError,
    JoinFailedError,
)
from homebase.core.invite_codes import is_valid_invite_code, normalize_invite_code
from homebase.core.repository_protocols import Clock, DataStore, Row

logger = logging.getLogger(__name__)


class InviteRedeemer:
    """Join-by-code workflow."""

    def __init__(
        self,
        store: DataStore,
        clock: Clock,
        *,
        single_household_per_user: bool = False,
    ):
        self.store = store
        self.clock = clock
        self.single_household_per_user = single_household_per_user

    async def join_household(self, code: str, user_id: str) -> JoinResult:
        """Redeem code for user_id. Raises the first failing check's error."""
        error = check_user_id(user_id)
        if error:
            raise error
        ctx = ErrorContext(user_id=user_id)
        invite = await self._resolve(code, ctx)

        household_id = invite["household_id"]
        existing = await self.store.select_one(
            MEMBER_HOUSEHOLDS, {"household_id": household_id, "user_id": user_id},
        )
        if existing:
            raise AlreadyMemberError(ctx) from None
        if self.single_household_per_user:
            if await self.store.count(MEMBER_HOUSEHOLDS, {"user_id": user_id}) > 0:
                raise AlreadyInHouseholdError(ctx)

        household = await self._fetch_household(household_id, ctx)

        try:
            await self.store.insert(MEMBER_HOUSEHOLDS, {
                "user_id": user_id,
                "household_id": household_id,
                "role": MemberRole.MEMBER.value,
                "created_by": user_id,
            })
        except DuplicateKeyError:
            # Concurrent join by the same user won the unique (user_id, household_id) row
            raise AlreadyMemberError(ctx) from None
        except DatabaseError as e:
            logger.error(
                f"Error joining household: {e.message}",
                extra={"household_id": household_id, "user_id": user_id},
            )
            raise JoinFailedError(e.message, ctx) from e

        if invite["uses_remaining"] is not None:
            if not await self._consume_use(invite["code"], household_id):
                if await self._revoke_membership(household_id, user_id):
                    raise ExhaustedCodeError(ctx)

        logger.info(
            "User joined household",
            extra={"household_id": household_id, "user_id": user_id},
        )
        return JoinResult(
            household_id=HouseholdId(household_id),
            household_name=household["name"],
        )

    async def preview_invite(self, code: str) -> InvitePreview:
        """Validate a code and describe its household without joining."""
        ctx = ErrorContext()
        invite = await self._resolve(code, ctx)
        household = await self._fetch_household(invite["household_id"], ctx)
        return InvitePreview(
            code=InviteCode(invite["code"]),
            household_id=HouseholdId(invite["household_id"]),
            household_name=household["name"],
            expires_at=invite["expires_at"],
            uses_remaining=invite["uses_remaining"],
        )

    # ─── Steps ──────────────────────────────────────────────────

    async def _resolve(self, code: str, ctx: ErrorContext) -> Row:
        """Normalize, look up and check expiry/uses. Returns the live invite row."""
        normalized = normalize_invite_code(code)
        if not normalized:
            raise EmptyCodeError(ctx)
        ctx.invite_code = normalized
        if not is_valid_invite_code(normalized):
            raise InvalidCodeError(ctx)

        invite = await self.store.select_one(HOUSEHOLD_INVITES, {"code": normalized})
        if not invite:
            raise InvalidCodeError(ctx)
        ctx.household_id = invite["household_id"]

        error = validate_invite_redeemable(invite, self.clock.now(), ctx)
        if error:
            raise error
        return invite

    async def _fetch_household(self, household_id: str, ctx: ErrorContext) -> Row:
        household = await self.store.select_one(HOUSEHOLDS, {"id": household_id})
        if not household:
            logger.error(
                "Invite points at a missing household",
                extra={"household_id": household_id, "invite_code": ctx.invite_code},
            )
            raise HouseholdNotFoundError(household_id, ctx)
        return household

    async def _consume_use(self, code: str, household_id: str) -> bool:
        """Atomic conditional decrement. False only when no use was left to take."""
        try:
            updated = await self.store.decrement(
                HOUSEHOLD_INVITES, "uses_remaining", {"code": code},
            )
        except DatabaseError as e:
            logger.warning(
                f"Failed to decrement invite uses: {e.message}",
                extra={"invite_code": code, "household_id": household_id},
            )
            return True
        if updated == 0:
            logger.warning(
                "Invite exhausted by a concurrent redemption",
                extra={"invite_code": code, "household_id": household_id},
            )
            return False
        return True

    async def _revoke_membership(self, household_id: str, user_id: str) -> bool:
        """Undo a join that lost the last use. False when the row could not be removed."""
        try:
            await self.store.delete(
                MEMBER_HOUSEHOLDS, {"household_id": household_id, "user_id": user_id},
            )
        except DatabaseError as e:
            logger.critical(
                f"Could not remove membership admitted past the use limit; "
                f"keeping the join: {e.message}",
                extra={"household_id": household_id, "user_id": user_id},
            )
            return False
        return True
