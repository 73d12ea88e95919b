"""PKCE (RFC 7636) verifier and S256 challenge helpers."""

from __future__ import annotations

import base64
import hashlib
import re
import secrets

CODE_CHALLENGE_METHOD = "S256"
CODE_VERIFIER_LENGTH = 64

_VERIFIER_PATTERN = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")


def generate_code_verifier(length: int = CODE_VERIFIER_LENGTH) -> str:
    """
    Generate a cryptographically random code verifier.

    The verifier uses only unreserved characters (A-Z, a-z, 0-9, '-', '.',
    '_', '~') and is between 43 and 128 characters long.
    """
    if not 43 <= length <= 128:
        raise ValueError("PKCE code verifier length must be between 43 and 128 characters.")
    # token_urlsafe emits ~4/3 characters per byte; over-generate and truncate.
    return secrets.token_urlsafe(length)[:length]


def derive_code_challenge(code_verifier: str) -> str:
    """Return the unpadded base64url SHA-256 digest of ``code_verifier``."""
    if not is_valid_code_verifier(code_verifier):
        raise ValueError("PKCE code verifier must be 43-128 unreserved characters.")
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def is_valid_code_verifier(code_verifier: str) -> bool:
    return bool(_VERIFIER_PATTERN.fullmatch(code_verifier))


__all__ = [
    "CODE_CHALLENGE_METHOD",
    "derive_code_challenge",
    "generate_code_verifier",
    "is_valid_code_verifier",
]
