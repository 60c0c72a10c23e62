"""API Dependencies — caller identity and service construction per request.

Invariants:
    - Every household endpoint requires X-User-Id (set by the upstream auth gateway)
    - Services receive the request-scoped store and the clock — never a global client

Design Decisions:
    - Identity via trusted header: authentication lives outside this service
    - get_clock as its own dependency so tests can pin time with dependency_overrides
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.config import Settings, get_settings
from homebase.core.repository_protocols import Clock, DataStore
from homebase.infrastructure.clock import SystemClock
from homebase.infrastructure.database import get_db
from homebase.infrastructure.sql_store import SqlDataStore
from homebase.services.household_membership import HouseholdMembership
from homebase.services.invite_issuer import InviteIssuer
from homebase.services.invite_redeemer import InviteRedeemer

_system_clock = SystemClock()


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_id.strip()


def get_clock() -> Clock:
    return _system_clock


async def get_store(db: AsyncSession = Depends(get_db)) -> DataStore:
    return SqlDataStore(db)


def get_issuer(
    store: DataStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> InviteIssuer:
    return InviteIssuer(
        store,
        clock,
        invite_ttl_days=settings.invite_ttl_days,
        invite_default_uses=settings.invite_default_uses,
        code_max_attempts=settings.invite_code_max_attempts,
        name_max_length=settings.household_name_max_length,
        single_household_per_user=settings.single_household_per_user,
    )


def get_redeemer(
    store: DataStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> InviteRedeemer:
    return InviteRedeemer(
        store, clock, single_household_per_user=settings.single_household_per_user,
    )


def get_membership(store: DataStore = Depends(get_store)) -> HouseholdMembership:
    return HouseholdMembership(store)
