"""
Unit tests for password hashing and the token codec.
"""
from datetime import datetime, timedelta, timezone
import jwt
import pytest

from youapp_platform.youapp_platform.auth_service.auth import (
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
    TokenCodec,
)
from youapp_platform.youapp_platform.auth_service.errors import TokenError, TokenErrorReason
from youapp_platform.youapp_platform.auth_service.schemas import JwtPayload

from .conftest import ACCESS_SECRET, PASSWORD, REFRESH_SECRET


def _past_clock(days):
    return lambda: datetime.now(timezone.utc) - timedelta(days=days)


# Password hashing

def test_hash_is_salted(hasher):
    first = hasher.hash(PASSWORD)
    second = hasher.hash(PASSWORD)
    assert first != second
    assert first.startswith("$pbkdf2-sha256$")
    assert hasher.verify(PASSWORD, first)
    assert hasher.verify(PASSWORD, second)


def test_verify_rejects_wrong_password(hasher):
    digest = hasher.hash(PASSWORD)
    assert hasher.verify("not the password", digest) is False


def test_verify_malformed_digest_returns_false(hasher):
    assert hasher.verify(PASSWORD, "not-a-digest") is False
    assert hasher.verify(PASSWORD, "") is False


def test_empty_password_hashes(hasher):
    digest = hasher.hash("")
    assert hasher.verify("", digest)
    assert not hasher.verify("x", digest)


@pytest.mark.asyncio
async def test_async_hash_and_verify(hasher):
    digest = await hasher.hash_async(PASSWORD)
    assert await hasher.verify_async(PASSWORD, digest) is True
    assert await hasher.verify_async("wrong", digest) is False


# Token codec

def test_access_token_round_trip(tokens):
    token = tokens.issue_access(JwtPayload(sub="user-1"))
    assert tokens.verify_access(token) == JwtPayload(sub="user-1")


def test_refresh_token_round_trip(tokens):
    token = tokens.issue_refresh(JwtPayload(sub="user-1"))
    assert tokens.verify_refresh(token).sub == "user-1"


def test_access_and_refresh_tokens_are_not_interchangeable(tokens):
    access = tokens.issue_access(JwtPayload(sub="user-1"))
    refresh = tokens.issue_refresh(JwtPayload(sub="user-1"))

    with pytest.raises(TokenError) as exc:
        tokens.verify_refresh(access)
    assert exc.value.reason == TokenErrorReason.BAD_SIGNATURE

    with pytest.raises(TokenError) as exc:
        tokens.verify_access(refresh)
    assert exc.value.reason == TokenErrorReason.BAD_SIGNATURE


def test_expired_token(tokens):
    stale = TokenCodec(ACCESS_SECRET, REFRESH_SECRET, clock=_past_clock(8))
    token = stale.issue_refresh(JwtPayload(sub="user-1"))

    with pytest.raises(TokenError) as exc:
        tokens.verify_refresh(token)
    assert exc.value.reason == TokenErrorReason.EXPIRED


def test_expired_token_under_wrong_secret_is_bad_signature(tokens):
    stale = TokenCodec(ACCESS_SECRET, REFRESH_SECRET, clock=_past_clock(8))
    token = stale.issue_refresh(JwtPayload(sub="user-1"))

    with pytest.raises(TokenError) as exc:
        tokens.verify_access(token)
    assert exc.value.reason == TokenErrorReason.BAD_SIGNATURE


def test_access_token_expires_after_three_minutes(tokens):
    stale = TokenCodec(
        ACCESS_SECRET,
        REFRESH_SECRET,
        clock=lambda: datetime.now(timezone.utc) - timedelta(minutes=4),
    )
    token = stale.issue_access(JwtPayload(sub="user-1"))

    with pytest.raises(TokenError) as exc:
        tokens.verify_access(token)
    assert exc.value.reason == TokenErrorReason.EXPIRED


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer x.y.z"])
def test_malformed_token(tokens, token):
    with pytest.raises(TokenError) as exc:
        tokens.verify_access(token)
    assert exc.value.reason == TokenErrorReason.MALFORMED


def test_token_without_expiry_is_malformed(tokens):
    token = jwt.encode(
        {"sub": "user-1", "iat": datetime.now(timezone.utc)}, ACCESS_SECRET, algorithm="HS256"
    )
    with pytest.raises(TokenError) as exc:
        tokens.verify_access(token)
    assert exc.value.reason == TokenErrorReason.MALFORMED


def test_oversize_claim_rejected(tokens):
    with pytest.raises(ValueError):
        tokens.issue_access(JwtPayload(sub="x" * 2000))


@pytest.mark.parametrize("access, refresh", [("same-secret", "same-secret"), ("", "refresh"), ("access", "")])
def test_codec_requires_distinct_secrets(access, refresh):
    with pytest.raises(ValueError):
        TokenCodec(access, refresh)


@pytest.mark.asyncio
async def test_issue_pair(tokens):
    pair = await tokens.issue_pair(JwtPayload(sub="user-1"))

    assert tokens.verify_access(pair.access_token).sub == "user-1"
    assert tokens.verify_refresh(pair.refresh_token).sub == "user-1"

    access = jwt.decode(pair.access_token, options={"verify_signature": False})
    refresh = jwt.decode(pair.refresh_token, options={"verify_signature": False})
    assert access["exp"] - access["iat"] == int(ACCESS_TOKEN_TTL.total_seconds()) == 180
    assert refresh["exp"] - refresh["iat"] == int(REFRESH_TOKEN_TTL.total_seconds()) == 604800


def test_small_clock_skew_tolerated(tokens):
    ahead = TokenCodec(
        ACCESS_SECRET,
        REFRESH_SECRET,
        clock=lambda: datetime.now(timezone.utc) + timedelta(seconds=2),
    )
    token = ahead.issue_access(JwtPayload(sub="user-1"))

    assert tokens.verify_access(token).sub == "user-1"
