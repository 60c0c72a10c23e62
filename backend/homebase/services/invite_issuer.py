"""Invite Issuer — creates households with their first invite, and on-demand invites.

Invariants:
    - Input validated (name, theme, user id) before any IO
    - create_household steps run in order: household → admin membership → invite
    - Membership failure deletes the household (compensation) then raises
      MembershipCreationFailed; a failed delete is logged CRITICAL and flagged
      on the error (rollback_failed=True, orphan id in context)
    - Invite failure is NON-FATAL: the household is usable, invite_code is ""
    - Invite codes retry on unique collision up to code_max_attempts
    - On success the household exists and the creator is its admin

Design Decisions:
    - Store injected via constructor (no global client): tests pass an in-memory fake
    - Saga over inline try/except: each step's compensation sits next to its action
"""

import logging
from typing import Callable

from homebase.core.domain_types import (
    HOUSEHOLD_INVITES,
    HOUSEHOLDS,
    MEMBER_HOUSEHOLDS,
    HouseholdCreationResult,
    HouseholdId,
    HouseholdTheme,
    InviteCode,
    IssuedInvite,
    MemberRole,
)
from homebase.core.enforce_invite import (
    HOUSEHOLD_NAME_MAX_LENGTH,
    check_household_name,
    check_theme,
    check_user_id,
    compute_invite_expiry,
)
from homebase.core.enforce_membership import check_is_admin
from homebase.core.errors import (
    AlreadyInHouseholdError,
    DatabaseError,
    DuplicateKeyError,
    ErrorContext,
    HouseholdCreationFailed,
    HouseholdNotFoundError,
    InviteCreationFailed,
    MembershipCreationFailed,
)
from homebase.core.invite_codes import generate_invite_code
from homebase.core.repository_protocols import Clock, DataStore, Row
from homebase.services.saga import Saga, StepResults

logger = logging.getLogger(__name__)

_UNSET = object()


class InviteIssuer:
    """Household creation saga and invite issuance."""

    def __init__(
        self,
        store: DataStore,
        clock: Clock,
        *,
        invite_ttl_days: int = 7,
        invite_default_uses: int | None = 10,
        code_max_attempts: int = 3,
        name_max_length: int = HOUSEHOLD_NAME_MAX_LENGTH,
        single_household_per_user: bool = False,
        code_generator: Callable[[], InviteCode] = generate_invite_code,
    ):
        self.store = store
        self.clock = clock
        self.invite_ttl_days = invite_ttl_days
        self.invite_default_uses = invite_default_uses
        self.code_max_attempts = code_max_attempts
        self.name_max_length = name_max_length
        self.single_household_per_user = single_household_per_user
        self.generate_code = code_generator

    async def create_household(
        self,
        name: str,
        theme: str = HouseholdTheme.DEFAULT.value,
        creator_user_id: str | None = None,
    ) -> HouseholdCreationResult:
        """Create household + admin membership + first invite."""
        error = (
            check_user_id(creator_user_id)
            or check_household_name(name, self.name_max_length)
            or check_theme(theme)
        )
        if error:
            raise error
        name = name.strip()
        ctx = ErrorContext(user_id=creator_user_id)
        if self.single_household_per_user:
            await self._ensure_no_household(creator_user_id, ctx)

        async def insert_household(results: StepResults) -> Row:
            try:
                return await self.store.insert(HOUSEHOLDS, {
                    "name": name,
                    "created_by": creator_user_id,
                    "theme": theme,
                })
            except DatabaseError as e:
                raise HouseholdCreationFailed(e.message, ctx) from e

        async def delete_household(results: StepResults) -> None:
            await self.store.delete(HOUSEHOLDS, {"id": results["household"]["id"]})

        async def insert_admin(results: StepResults) -> Row:
            household_id = results["household"]["id"]
            ctx.household_id = household_id
            try:
                return await self.store.insert(MEMBER_HOUSEHOLDS, {
                    "user_id": creator_user_id,
                    "household_id": household_id,
                    "role": MemberRole.ADMIN.value,
                    "created_by": creator_user_id,
                })
            except DatabaseError as e:
                raise MembershipCreationFailed(e.message, context=ctx) from e

        async def insert_invite(results: StepResults) -> Row:
            return await self._insert_invite(
                results["household"]["id"], creator_user_id,
                self.invite_ttl_days, self.invite_default_uses,
            )

        saga = (
            Saga("create_household")
            .add_step("household", insert_household, delete_household)
            .add_step("membership", insert_admin)
            .add_step("invite", insert_invite, fatal=False)
        )
        try:
            results = await saga.execute()
        except MembershipCreationFailed as e:
            if saga.rollback_failed:
                e.rollback_failed = True
                logger.critical(
                    "Orphaned household left without members after failed rollback",
                    extra={"household_id": ctx.household_id, "user_id": creator_user_id},
                )
            raise

        household_id = HouseholdId(results["household"]["id"])
        invite = results.get("invite")
        invite_code = invite["code"] if invite else ""
        logger.info(
            "Household created",
            extra={"household_id": household_id, "user_id": creator_user_id},
        )
        return HouseholdCreationResult(household_id=household_id, invite_code=invite_code)

    async def create_invite(
        self,
        household_id: str,
        created_by: str,
        *,
        expires_in_days: int | None = None,
        uses_remaining=_UNSET,
    ) -> IssuedInvite:
        """Issue an additional invite. Admins only."""
        error = check_user_id(created_by)
        if error:
            raise error
        ctx = ErrorContext(household_id=household_id, user_id=created_by)
        household = await self.store.select_one(HOUSEHOLDS, {"id": household_id})
        if not household:
            raise HouseholdNotFoundError(household_id, ctx)
        membership = await self.store.select_one(
            MEMBER_HOUSEHOLDS, {"household_id": household_id, "user_id": created_by},
        )
        error = check_is_admin(membership, "create invites", ctx)
        if error:
            raise error

        if uses_remaining is _UNSET:
            uses_remaining = self.invite_default_uses
        try:
            row = await self._insert_invite(
                household_id, created_by,
                expires_in_days or self.invite_ttl_days, uses_remaining,
            )
        except DatabaseError as e:
            raise InviteCreationFailed(e.message, ctx) from e
        return IssuedInvite(
            code=InviteCode(row["code"]),
            household_id=HouseholdId(row["household_id"]),
            expires_at=row["expires_at"],
            uses_remaining=row["uses_remaining"],
        )

    async def _insert_invite(
        self, household_id: str, created_by: str,
        ttl_days: int, uses_remaining: int | None,
    ) -> Row:
        """Insert an invite row, regenerating the code on unique collisions."""
        expires_at = compute_invite_expiry(self.clock.now(), ttl_days)
        for attempt in range(1, self.code_max_attempts + 1):
            code = self.generate_code()
            try:
                return await self.store.insert(HOUSEHOLD_INVITES, {
                    "household_id": household_id,
                    "code": code,
                    "created_by": created_by,
                    "expires_at": expires_at,
                    "uses_remaining": uses_remaining,
                })
            except DuplicateKeyError:
                logger.warning(
                    f"Invite code collision (attempt {attempt}/{self.code_max_attempts})",
                    extra={"household_id": household_id},
                )
        raise DatabaseError(
            f"no unique invite code after {self.code_max_attempts} attempts", "insert",
        )

    async def _ensure_no_household(self, user_id: str, ctx: ErrorContext) -> None:
        if await self.store.count(MEMBER_HOUSEHOLDS, {"user_id": user_id}) > 0:
            raise AlreadyInHouseholdError(ctx)
