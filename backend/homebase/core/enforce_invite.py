"""Invite Rule Enforcement — pure validation of household input and invite redeemability.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return the error on violation, None on success (callers raise)
    - validate_invite_redeemable chains expiry then uses — first error wins
    - A code is redeemable iff now <= expires_at AND (uses_remaining is None OR > 0)

Design Decisions:
    - Errors returned, not raised: the same checks back both join and preview,
      and tests assert on values without pytest.raises boilerplate
    - Naive datetimes are read as UTC: SQLite drops tzinfo on DateTime(timezone=True)
"""

from datetime import datetime, timedelta, timezone

from homebase.core.domain_types import HouseholdTheme
from homebase.core.errors import (
    ErrorContext,
    ExhaustedCodeError,
    ExpiredCodeError,
    HomebaseError,
    ValidationError,
)
from homebase.core.repository_protocols import Row

HOUSEHOLD_NAME_MAX_LENGTH = 50


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_invite_expiry(now: datetime, ttl_days: int) -> datetime:
    return as_utc(now) + timedelta(days=ttl_days)


# ─── Household input ─────────────────────────────────────────────

def check_household_name(
    name: str | None, max_length: int = HOUSEHOLD_NAME_MAX_LENGTH,
) -> ValidationError | None:
    """Name must be non-empty after trimming and at most max_length characters."""
    trimmed = (name or "").strip()
    if not trimmed:
        return ValidationError("Household name is required", "name")
    if len(trimmed) > max_length:
        return ValidationError(
            f"Household name must be at most {max_length} characters", "name",
        )
    return None


def check_theme(theme: str | None) -> ValidationError | None:
    valid = {t.value for t in HouseholdTheme}
    if theme not in valid:
        return ValidationError(
            f"Theme must be one of: {', '.join(sorted(valid))}", "theme",
        )
    return None


def check_user_id(user_id: str | None) -> ValidationError | None:
    if not user_id or not str(user_id).strip():
        return ValidationError("User ID is required", "user_id")
    return None


# ─── Invite redeemability ────────────────────────────────────────

def check_invite_expiry(
    invite: Row, now: datetime, context: ErrorContext | None = None,
) -> ExpiredCodeError | None:
    """Expired once now is past expires_at; the expiry instant itself still redeems."""
    if as_utc(invite["expires_at"]) < as_utc(now):
        return ExpiredCodeError(context)
    return None


def check_invite_uses(
    invite: Row, context: ErrorContext | None = None,
) -> ExhaustedCodeError | None:
    """NULL uses never exhaust; otherwise at least one use must remain."""
    uses = invite.get("uses_remaining")
    if uses is not None and uses <= 0:
        return ExhaustedCodeError(context)
    return None


def validate_invite_redeemable(
    invite: Row, now: datetime, context: ErrorContext | None = None,
) -> HomebaseError | None:
    """Run expiry then uses checks. Returns first error or None."""
    return (
        check_invite_expiry(invite, now, context)
        or check_invite_uses(invite, context)
    )

