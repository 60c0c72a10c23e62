"""Invite Issuer — household creation saga and on-demand invites against the in-memory store.

Tests cover:
    - Happy path: household, admin membership, invite with 7-day expiry and 10 uses
    - Validation rejects bad input before any store call
    - Household insert failure → HouseholdCreationFailed, nothing written
    - Membership failure deletes the household; failed delete flags rollback_failed
    - Invite failure is non-fatal: household kept, invite_code ""
    - Code collisions regenerate up to the attempt limit
    - single_household_per_user blocks a second household
    - create_invite: admin only, missing household, unlimited uses, custom expiry
"""

from datetime import timedelta

import pytest

from homebase.core.domain_types import InviteCode
from homebase.core.errors import (
    AlreadyInHouseholdError,
    DatabaseError,
    DuplicateKeyError,
    HouseholdCreationFailed,
    HouseholdNotFoundError,
    InviteCreationFailed,
    MembershipCreationFailed,
    NotHouseholdAdminError,
    NotHouseholdMemberError,
    ValidationError,
)
from homebase.core.invite_codes import is_valid_invite_code
from homebase.services.invite_issuer import InviteIssuer


# ─── create_household ────────────────────────────────────────────

async def test_create_household_writes_all_three_rows(issuer, store, clock):
    result = await issuer.create_household("The Smiths", "warm", "user-a")

    [household] = store.rows("households")
    assert household["id"] == result.household_id
    assert household["name"] == "The Smiths"
    assert household["theme"] == "warm"
    assert household["created_by"] == "user-a"

    [member] = store.rows("member_households")
    assert member["user_id"] == "user-a"
    assert member["household_id"] == result.household_id
    assert member["role"] == "admin"

    [invite] = store.rows("household_invites")
    assert invite["code"] == result.invite_code
    assert is_valid_invite_code(result.invite_code)
    assert invite["expires_at"] == clock.now() + timedelta(days=7)
    assert invite["uses_remaining"] == 10


async def test_create_household_trims_name(issuer, store):
    await issuer.create_household("  The Smiths  ", creator_user_id="user-a")
    assert store.rows("households")[0]["name"] == "The Smiths"


async def test_create_household_steps_run_in_order(issuer, store):
    await issuer.create_household("Home", creator_user_id="user-a")
    inserts = [table for op, table in store.calls if op == "insert"]
    assert inserts == ["households", "member_households", "household_invites"]


@pytest.mark.parametrize("name,theme,user_id", [
    ("", "default", "user-a"),
    ("   ", "default", "user-a"),
    ("x" * 51, "default", "user-a"),
    ("Home", "neon", "user-a"),
    ("Home", "default", None),
    ("Home", "default", ""),
])
async def test_invalid_input_rejected_before_io(issuer, store, name, theme, user_id):
    with pytest.raises(ValidationError):
        await issuer.create_household(name, theme, user_id)
    assert store.calls == []


async def test_household_insert_failure(issuer, store):
    store.fail("insert", "households")

    with pytest.raises(HouseholdCreationFailed):
        await issuer.create_household("Home", creator_user_id="user-a")

    assert store.rows("households") == []
    assert ("insert", "member_households") not in store.calls


async def test_membership_failure_rolls_back_household(issuer, store):
    store.fail("insert", "member_households")

    with pytest.raises(MembershipCreationFailed) as exc_info:
        await issuer.create_household("Home", creator_user_id="user-a")

    assert exc_info.value.rollback_failed is False
    assert store.rows("households") == []
    assert store.rows("household_invites") == []


async def test_membership_failure_with_failed_rollback_flags_orphan(issuer, store):
    store.fail("insert", "member_households")
    store.fail("delete", "households")

    with pytest.raises(MembershipCreationFailed) as exc_info:
        await issuer.create_household("Home", creator_user_id="user-a")

    error = exc_info.value
    assert error.rollback_failed is True
    [orphan] = store.rows("households")
    assert error.context.household_id == orphan["id"]


async def test_invite_failure_is_non_fatal(issuer, store):
    store.fail("insert", "household_invites")

    result = await issuer.create_household("Home", creator_user_id="user-a")

    assert result.invite_code == ""
    assert len(store.rows("households")) == 1
    assert store.rows("member_households")[0]["role"] == "admin"


async def test_code_collision_regenerates(store, clock):
    codes = iter(["AB3DE7GH", "AB3DE7GH", "ZZZZ2345"])
    issuer = InviteIssuer(store, clock, code_generator=lambda: InviteCode(next(codes)))

    first = await issuer.create_household("One", creator_user_id="user-a")
    second = await issuer.create_household("Two", creator_user_id="user-b")

    assert first.invite_code == "AB3DE7GH"
    assert second.invite_code == "ZZZZ2345"


async def test_code_collisions_exhaust_attempts(store, clock):
    issuer = InviteIssuer(
        store, clock, code_max_attempts=2,
        code_generator=lambda: InviteCode("AB3DE7GH"),
    )
    await issuer.create_household("One", creator_user_id="user-a")
    attempts_before = len([c for c in store.calls if c == ("insert", "household_invites")])

    second = await issuer.create_household("Two", creator_user_id="user-b")

    attempts = len([c for c in store.calls if c == ("insert", "household_invites")])
    assert attempts - attempts_before == 2
    assert second.invite_code == ""


async def test_custom_ttl_and_uses(store, clock):
    issuer = InviteIssuer(store, clock, invite_ttl_days=3, invite_default_uses=None)

    await issuer.create_household("Home", creator_user_id="user-a")

    [invite] = store.rows("household_invites")
    assert invite["expires_at"] == clock.now() + timedelta(days=3)
    assert invite["uses_remaining"] is None


async def test_single_household_per_user_blocks_second(store, clock):
    issuer = InviteIssuer(store, clock, single_household_per_user=True)
    await issuer.create_household("One", creator_user_id="user-a")

    with pytest.raises(AlreadyInHouseholdError):
        await issuer.create_household("Two", creator_user_id="user-a")

    assert len(store.rows("households")) == 1


async def test_many_households_allowed_by_default(issuer, store):
    await issuer.create_household("One", creator_user_id="user-a")
    await issuer.create_household("Two", creator_user_id="user-a")
    assert len(store.rows("households")) == 2


# ─── create_invite ───────────────────────────────────────────────

async def test_admin_creates_additional_invite(issuer, store, clock):
    created = await issuer.create_household("Home", creator_user_id="user-a")

    invite = await issuer.create_invite(created.household_id, "user-a")

    assert invite.household_id == created.household_id
    assert invite.code != created.invite_code
    assert invite.uses_remaining == 10
    assert invite.expires_at == clock.now() + timedelta(days=7)
    assert len(store.rows("household_invites")) == 2


async def test_create_invite_custom_expiry_and_unlimited(issuer, clock):
    created = await issuer.create_household("Home", creator_user_id="user-a")

    invite = await issuer.create_invite(
        created.household_id, "user-a", expires_in_days=30, uses_remaining=None,
    )

    assert invite.uses_remaining is None
    assert invite.expires_at == clock.now() + timedelta(days=30)


async def test_member_cannot_create_invite(issuer, redeemer):
    created = await issuer.create_household("Home", creator_user_id="user-a")
    await redeemer.join_household(created.invite_code, "user-b")

    with pytest.raises(NotHouseholdAdminError):
        await issuer.create_invite(created.household_id, "user-b")


async def test_outsider_cannot_create_invite(issuer):
    created = await issuer.create_household("Home", creator_user_id="user-a")

    with pytest.raises(NotHouseholdMemberError):
        await issuer.create_invite(created.household_id, "user-z")


async def test_create_invite_missing_household(issuer):
    with pytest.raises(HouseholdNotFoundError):
        await issuer.create_invite("no-such-household", "user-a")


async def test_create_invite_store_failure(issuer, store):
    created = await issuer.create_household("Home", creator_user_id="user-a")
    store.fail("insert", "household_invites")

    with pytest.raises(InviteCreationFailed):
        await issuer.create_invite(created.household_id, "user-a")


async def test_create_invite_collisions_exhausted(store, clock):
    issuer = InviteIssuer(store, clock, code_generator=lambda: InviteCode("AB3DE7GH"))
    created = await issuer.create_household("Home", creator_user_id="user-a")

    with pytest.raises(InviteCreationFailed) as exc_info:
        await issuer.create_invite(created.household_id, "user-a")

    assert isinstance(exc_info.value.__cause__, DatabaseError)
    assert not isinstance(exc_info.value.__cause__, DuplicateKeyError)
