"""Error Hierarchy — typed, categorized exceptions for all Homebase failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors are raised before any IO
    - Redemption errors (4xx) are user-correctable; issuance/infrastructure errors are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with HomebaseError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERMISSION = "permission"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    household_id: str | None = None
    user_id: str | None = None
    invite_code: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class HomebaseError(Exception):
    """Base exception for all Homebase errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "household_id": self.context.household_id,
                },
            }
        }


# ─── Validation Errors (400) ────────────────────────────────────

class ValidationError(HomebaseError):
    """Input rejected before any IO (empty or over-length name, bad theme, empty code)."""
    def __init__(
        self, message: str, field: str, context: ErrorContext | None = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class EmptyCodeError(ValidationError):
    """Invite code is empty after normalization."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Please enter an invite code", "code", context, code="EMPTY_CODE",
        )


# ─── Redemption Errors (user-correctable) ───────────────────────

class InvalidCodeError(HomebaseError):
    """No invite matches the submitted code."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid invite code",
            "INVALID_CODE", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class ExpiredCodeError(HomebaseError):
    """Invite code is past its expiry timestamp."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "This invite code has expired",
            "EXPIRED_CODE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 410,
        )


class ExhaustedCodeError(HomebaseError):
    """Invite code has no uses remaining."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "This invite code has reached its usage limit",
            "EXHAUSTED_CODE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 410,
        )


class AlreadyMemberError(HomebaseError):
    """User already belongs to the invite's household."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You are already a member of this household",
            "ALREADY_MEMBER", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class AlreadyInHouseholdError(HomebaseError):
    """User already belongs to a household and only one is allowed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You already belong to a household. Leave it before joining another.",
            "ALREADY_IN_HOUSEHOLD", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Household Rules ────────────────────────────────────────────

class HouseholdNotFoundError(HomebaseError):
    """Household row missing (data-integrity fallback on the join path)."""
    def __init__(self, household_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.household_id = ctx.household_id or household_id
        super().__init__(
            "Could not find the household",
            "HOUSEHOLD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class NotHouseholdMemberError(HomebaseError):
    """Requester is not a member of the household."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You are not a member of this household",
            "NOT_HOUSEHOLD_MEMBER", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )


class MemberNotFoundError(HomebaseError):
    """Target user of a member operation does not belong to the household."""
    def __init__(self, member_user_id: str, context: ErrorContext | None = None):
        super().__init__(
            "That user is not a member of this household",
            "MEMBER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.member_user_id = member_user_id


class NotHouseholdAdminError(HomebaseError):
    """Requester is a member but not an admin."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Only household administrators can {action}",
            "NOT_HOUSEHOLD_ADMIN", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action


class LastAdminError(HomebaseError):
    """Sole admin tried to leave or step down while other members remain."""
    def __init__(
        self, context: ErrorContext | None = None,
        message: str = "As the only admin, you must promote another member to admin before leaving.",
    ):
        super().__init__(
            message,
            "LAST_ADMIN", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(HomebaseError):
    """Data store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class DuplicateKeyError(DatabaseError):
    """Unique constraint violated (e.g. invite code collision)."""
    def __init__(self, message: str, operation: str = "insert", context: ErrorContext | None = None):
        super().__init__(message, operation, context)
        self.code = "DUPLICATE_KEY"
        self.category = ErrorCategory.CONFLICT
        self.http_status = 409


class HouseholdCreationFailed(HomebaseError):
    """Household row could not be inserted."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to create household: {reason}",
            "HOUSEHOLD_CREATION_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )


class MembershipCreationFailed(HomebaseError):
    """Creator's admin membership could not be inserted.

    rollback_failed is True when the compensating household delete also failed,
    leaving an orphaned household (id in context.household_id).
    """
    def __init__(
        self, reason: str, rollback_failed: bool = False,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Failed to add you to household: {reason}",
            "MEMBERSHIP_CREATION_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.rollback_failed = rollback_failed


class InviteCreationFailed(HomebaseError):
    """On-demand invite could not be inserted."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to create invite: {reason}",
            "INVITE_CREATION_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, 503,
        )


class JoinFailedError(HomebaseError):
    """Membership insert failed after the invite validated."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Failed to join household: {reason}",
            "JOIN_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, 503,
        )
