"""Unit tests for the PyJWT-backed token codec."""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from freezegun import freeze_time

from authcore.infra.jwt.pyjwt_token_codec import JWTTokenCodec
from authcore.services.auth.dto import AuthTokenConfig
from authcore.services.auth.errors import (
    InvalidTokenError,
    RefreshTokenInvalidError,
    TokenExpiredError,
)
from tests.helpers.utils import FakeClock

SECRET = "codec-test-secret-0123456789abcdef0123"
START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture
def codec(clock) -> JWTTokenCodec:
    return JWTTokenCodec(secret=SECRET, clock=clock)


def _forge(payload: dict, *, secret: str = SECRET, algorithm: str = "HS256") -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def _access_payload(**overrides) -> dict:
    payload = {
        "user_id": 7,
        "username": "ana",
        "email": "ana@example.com",
        "role": "user",
        "sub": "access",
        "iat": int(START.timestamp()),
        "exp": int((START + timedelta(minutes=15)).timestamp()),
        "jti": "fixed",
    }
    payload.update(overrides)
    return payload


# ------------------------------ Issuance ---------------------------------- #


def test_access_token_round_trip(codec):
    token, expires_at = codec.issue_access_token(7, "ana", "ana@example.com", "admin")

    claims = codec.verify_access_token(token)
    assert claims.user_id == 7
    assert claims.username == "ana"
    assert claims.email == "ana@example.com"
    assert claims.role == "admin"
    assert claims.subject == "access"
    assert claims.issued_at == START
    assert claims.expires_at == expires_at == START + timedelta(minutes=15)


def test_refresh_token_round_trip(codec):
    token, expires_at = codec.issue_refresh_token(7)

    claims = codec.verify_refresh_token(token)
    assert claims.user_id == 7
    assert claims.subject == "refresh"
    assert claims.expires_at == expires_at == START + timedelta(days=7)


def test_wire_format_is_compact_hs256_jws(codec):
    token, _ = codec.issue_access_token(7, "ana", "ana@example.com", "user")

    header_b64, payload_b64, signature = token.split(".")
    header = json.loads(base64.urlsafe_b64decode(header_b64 + "=" * (-len(header_b64) % 4)))
    assert header["alg"] == "HS256"
    assert signature

    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert {"user_id", "username", "email", "role", "exp", "iat", "sub", "jti"} <= set(payload)
    assert payload["sub"] == "access"


def test_refresh_payload_carries_no_profile_claims(codec):
    token, _ = codec.issue_refresh_token(7)

    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert "username" not in payload
    assert "role" not in payload


def test_tokens_minted_in_same_instant_are_distinct(codec):
    first, _ = codec.issue_refresh_token(7)
    second, _ = codec.issue_refresh_token(7)

    assert first != second


def test_microseconds_are_truncated_from_expiry():
    clock = FakeClock(START.replace(microsecond=654321))
    codec = JWTTokenCodec(secret=SECRET, clock=clock)

    token, expires_at = codec.issue_access_token(1, "a", "a@example.com", "user")

    assert expires_at == START + timedelta(minutes=15)
    assert codec.verify_access_token(token).expires_at == expires_at


def test_custom_ttls_are_honoured(clock):
    codec = JWTTokenCodec(
        secret=SECRET,
        access_ttl=timedelta(minutes=5),
        refresh_ttl=timedelta(days=1),
        clock=clock,
    )

    _, access_exp = codec.issue_access_token(1, "a", "a@example.com", "user")
    _, refresh_exp = codec.issue_refresh_token(1)

    assert access_exp == START + timedelta(minutes=5)
    assert refresh_exp == START + timedelta(days=1)


# ------------------------------ Expiry ------------------------------------ #


def test_access_token_valid_until_exp_then_expired(codec, clock):
    token, _ = codec.issue_access_token(7, "ana", "ana@example.com", "user")

    clock.advance(minutes=14, seconds=59)
    assert codec.verify_access_token(token).user_id == 7

    clock.advance(seconds=1)
    with pytest.raises(TokenExpiredError):
        codec.verify_access_token(token)


def test_expired_refresh_token_raises_expired(codec, clock):
    token, _ = codec.issue_refresh_token(7)

    clock.advance(days=7, seconds=1)
    with pytest.raises(TokenExpiredError):
        codec.verify_refresh_token(token)


def test_default_clock_follows_wall_time():
    with freeze_time("2026-05-01 08:00:00") as frozen:
        codec = JWTTokenCodec(secret=SECRET)
        token, expires_at = codec.issue_access_token(3, "bo", "bo@example.com", "user")
        assert expires_at == datetime(2026, 5, 1, 8, 15, tzinfo=UTC)

        frozen.tick(timedelta(minutes=16))
        with pytest.raises(TokenExpiredError):
            codec.verify_access_token(token)


# ---------------------------- Subject isolation ---------------------------- #


def test_refresh_token_rejected_as_access(codec):
    token, _ = codec.issue_refresh_token(7)

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)


def test_access_token_rejected_as_refresh(codec):
    token, _ = codec.issue_access_token(7, "ana", "ana@example.com", "user")

    with pytest.raises(RefreshTokenInvalidError):
        codec.verify_refresh_token(token)


# ---------------------------- Signature checks ----------------------------- #


def test_token_signed_with_foreign_secret_is_invalid(codec):
    other = JWTTokenCodec(secret="another-secret-0123456789abcdef01234", clock=codec.clock)
    token, _ = other.issue_access_token(7, "ana", "ana@example.com", "user")

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)


def test_tampered_payload_is_invalid(codec):
    token, _ = codec.issue_access_token(7, "ana", "ana@example.com", "user")
    header, _, signature = token.split(".")
    forged_payload = _forge(_access_payload(role="super_admin")).split(".")[1]

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(f"{header}.{forged_payload}.{signature}")


def test_unsigned_token_is_invalid(codec):
    token = jwt.encode(_access_payload(), "", algorithm="none")

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)


def test_other_hmac_algorithm_is_rejected(codec):
    token = _forge(_access_payload(), algorithm="HS512")

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c", "Bearer x.y.z"])
def test_malformed_tokens_are_invalid(codec, garbage):
    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(garbage)
    with pytest.raises(RefreshTokenInvalidError):
        codec.verify_refresh_token(garbage)


@pytest.mark.parametrize(
    "overrides",
    [
        {"user_id": "7"},
        {"user_id": True},
        {"role": None},
        {"email": 42},
    ],
)
def test_wrongly_typed_claims_are_invalid(codec, overrides):
    token = _forge(_access_payload(**overrides))

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)


@pytest.mark.parametrize("claim", ["exp", "iat"])
def test_out_of_range_timestamps_are_invalid(codec, claim):
    token = _forge(_access_payload(**{claim: 1e20}))
    refresh = _forge({"user_id": 7, "sub": "refresh", "iat": 0, "exp": 1e20, claim: 1e20})

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(token)
    with pytest.raises(RefreshTokenInvalidError):
        codec.verify_refresh_token(refresh)


def test_missing_required_claim_is_invalid(codec):
    payload = _access_payload()
    del payload["exp"]

    with pytest.raises(InvalidTokenError):
        codec.verify_access_token(_forge(payload))


# ---------------------------- Construction -------------------------------- #


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        JWTTokenCodec(secret="")


def test_asymmetric_algorithm_is_refused():
    with pytest.raises(ValueError):
        JWTTokenCodec(secret=SECRET, algorithm="RS256")


def test_from_config(clock):
    config = AuthTokenConfig(
        secret=SECRET,
        access_expires=timedelta(minutes=5),
        refresh_expires=timedelta(days=1),
        algorithm="HS384",
    )
    codec = JWTTokenCodec.from_config(config, clock=clock)

    token, expires_at = codec.issue_access_token(1, "u", "u@example.com", "user")

    assert expires_at == START + timedelta(minutes=5)
    assert jwt.get_unverified_header(token)["alg"] == "HS384"
    assert codec.verify_access_token(token).user_id == 1
