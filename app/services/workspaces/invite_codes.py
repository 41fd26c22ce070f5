"""Short, human-enterable workspace invite codes."""

from __future__ import annotations

import re
import secrets

# Ambiguous glyphs (I, O, 0, 1) are left out.
INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6

_WHITESPACE = re.compile(r"\s+")


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    """Uppercase and strip all whitespace so ``" abc 123"`` matches ``ABC123``."""
    return _WHITESPACE.sub("", code).upper()
