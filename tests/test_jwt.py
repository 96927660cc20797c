"""Token codec tests — issue, validate, expiry, tampering, malformed input."""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from authgate.auth.jwt import TokenCodec, TokenErrorKind

SECRET = "k" * 32


@pytest.fixture()
def codec():
    return TokenCodec(SECRET, default_ttl_seconds=900)


def _b64(data: dict) -> str:
    raw = json.dumps(data).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


# ═══════════════════════════════════════════════════════════
# Happy path
# ═══════════════════════════════════════════════════════════


def test_issue_then_validate_returns_subject(codec):
    result = codec.validate(codec.issue("alice@test.com"))
    assert result.ok
    assert result.subject == "alice@test.com"
    assert result.error is None


def test_token_has_three_segments_and_standard_claims(codec):
    token = codec.issue("alice@test.com", ttl_seconds=60)
    assert token.count(".") == 2
    claims = pyjwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["sub"] == "alice@test.com"
    assert claims["exp"] - claims["iat"] == 60


def test_validate_is_repeatable(codec):
    token = codec.issue("alice@test.com")
    assert codec.validate(token) == codec.validate(token)


# ═══════════════════════════════════════════════════════════
# Expiry
# ═══════════════════════════════════════════════════════════


def test_expired_token(codec):
    issued = datetime.now(timezone.utc) - timedelta(seconds=120)
    token = codec.issue("alice@test.com", ttl_seconds=60, now=issued)
    result = codec.validate(token)
    assert not result.ok
    assert result.error is TokenErrorKind.EXPIRED
    assert result.subject is None


def test_expired_by_one_second(codec):
    issued = datetime.now(timezone.utc) - timedelta(seconds=61)
    token = codec.issue("alice@test.com", ttl_seconds=60, now=issued)
    assert codec.validate(token).error is TokenErrorKind.EXPIRED


# ═══════════════════════════════════════════════════════════
# Signature
# ═══════════════════════════════════════════════════════════


def test_tampered_payload_fails_signature(codec):
    token = codec.issue("alice@test.com")
    header, payload, signature = token.split(".")
    for i in (0, len(payload) // 2, len(payload) - 2):
        swapped = "A" if payload[i] != "A" else "B"
        tampered_payload = payload[:i] + swapped + payload[i + 1:]
        tampered = ".".join([header, tampered_payload, signature])
        assert codec.validate(tampered).error is TokenErrorKind.SIGNATURE_INVALID


def test_forged_subject_fails_signature(codec):
    token = codec.issue("alice@test.com")
    header, _, signature = token.split(".")
    claims = pyjwt.decode(token, SECRET, algorithms=["HS256"])
    claims["sub"] = "mallory@test.com"
    forged = ".".join([header, _b64(claims), signature])
    assert codec.validate(forged).error is TokenErrorKind.SIGNATURE_INVALID


def test_token_from_other_key_fails_signature(codec):
    other = TokenCodec("z" * 32)
    result = codec.validate(other.issue("alice@test.com"))
    assert result.error is TokenErrorKind.SIGNATURE_INVALID


def test_unsigned_token_rejected(codec):
    claims = {"sub": "alice@test.com", "type": "access", "iat": 0, "exp": 9999999999}
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(claims)}."
    assert not codec.validate(token).ok


# ═══════════════════════════════════════════════════════════
# Malformed input
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "token",
    ["", "invalid_token_here", "a.b", "a.b.c.d", "!!!.@@@.###", "..", None, 42],
)
def test_malformed_tokens(codec, token):
    result = codec.validate(token)
    assert result.error is TokenErrorKind.MALFORMED


def test_missing_required_claim_is_malformed(codec):
    token = pyjwt.encode({"sub": "alice@test.com", "type": "access"}, SECRET, algorithm="HS256")
    assert codec.validate(token).error is TokenErrorKind.MALFORMED


def test_non_access_token_is_malformed(codec):
    now = datetime.now(timezone.utc)
    token = pyjwt.encode(
        {"sub": "alice@test.com", "type": "refresh", "iat": now, "exp": now + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    assert codec.validate(token).error is TokenErrorKind.MALFORMED


# ═══════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════


def test_short_secret_refused():
    with pytest.raises(ValueError):
        TokenCodec("too-short")


def test_from_settings_uses_configured_ttl():
    from authgate.config import settings

    codec = TokenCodec.from_settings(settings)
    assert codec.default_ttl_seconds == settings.access_token_expire_seconds
    assert codec.algorithm == "HS256"
