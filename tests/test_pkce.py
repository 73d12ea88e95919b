try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import hashlib

import pytest

from skillsync.utils.pkce import (
    CODE_CHALLENGE_METHOD,
    derive_code_challenge,
    generate_code_verifier,
    is_valid_code_verifier,
)


def test_generated_verifiers_are_valid_and_unique() -> None:
    verifiers = {generate_code_verifier() for _ in range(50)}

    assert len(verifiers) == 50
    for verifier in verifiers:
        assert 43 <= len(verifier) <= 128
        assert is_valid_code_verifier(verifier)


@pytest.mark.parametrize("length", [43, 128])
def test_verifier_length_bounds(length: int) -> None:
    assert len(generate_code_verifier(length)) == length


@pytest.mark.parametrize("length", [42, 129])
def test_verifier_rejects_out_of_range_length(length: int) -> None:
    with pytest.raises(ValueError):
        generate_code_verifier(length)


def test_challenge_is_deterministic_and_differs_from_verifier() -> None:
    verifier = generate_code_verifier()

    challenge = derive_code_challenge(verifier)

    assert challenge == derive_code_challenge(verifier)
    assert challenge != verifier
    assert "=" not in challenge
    assert CODE_CHALLENGE_METHOD == "S256"


def test_challenge_matches_rfc7636_example() -> None:
    # Appendix B of RFC 7636.
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

    assert derive_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGmSHRmO2Y"


def test_challenge_is_unpadded_urlsafe_sha256() -> None:
    verifier = generate_code_verifier()
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest())

    assert derive_code_challenge(verifier) == expected.decode().rstrip("=")


@pytest.mark.parametrize("verifier", ["too-short", "x" * 129, "space in verifier" * 4, ""])
def test_challenge_refuses_invalid_verifier(verifier: str) -> None:
    assert not is_valid_code_verifier(verifier)

    with pytest.raises(ValueError):
        derive_code_challenge(verifier)
