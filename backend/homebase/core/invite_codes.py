"""Invite Codes — generation, normalization and display of household invite codes.

Invariants:
    - All functions are PURE except generate_invite_code (reads the OS CSPRNG)
    - Generated codes are exactly CODE_LENGTH characters from INVITE_CODE_ALPHABET
    - The alphabet excludes 0, 1, I and O (visually ambiguous when transcribed)
    - No uniqueness check here: collisions are caught by the store's unique constraint

Design Decisions:
    - secrets.choice over random.choice: uniform and unpredictable at no extra cost
    - normalize drops whitespace and '-' so the ABCD-EFGH display form round-trips
"""

import re
import secrets

from homebase.core.domain_types import InviteCode

INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8

_CODE_PATTERN = re.compile(rf"^[{INVITE_CODE_ALPHABET}]{{{CODE_LENGTH}}}$")
_SEPARATORS = re.compile(r"[\s\-]+")


def generate_invite_code() -> InviteCode:
    """Random 8-character code drawn uniformly from the 32-symbol alphabet."""
    return InviteCode("".join(
        secrets.choice(INVITE_CODE_ALPHABET) for _ in range(CODE_LENGTH)
    ))


def normalize_invite_code(code: str | None) -> str:
    """Trim, uppercase and strip display separators. None → ''."""
    if not code:
        return ""
    return _SEPARATORS.sub("", code.strip()).upper()


def is_valid_invite_code(code: str | None) -> bool:
    """True if the normalized code has the generator's shape."""
    return bool(_CODE_PATTERN.match(normalize_invite_code(code)))


def format_invite_code(code: str | None) -> str:
    """Display form: ABCD-EFGH. Codes of unexpected length are returned normalized."""
    clean = normalize_invite_code(code)
    if len(clean) != CODE_LENGTH:
        return clean
    half = CODE_LENGTH // 2
    return f"{clean[:half]}-{clean[half:]}"
