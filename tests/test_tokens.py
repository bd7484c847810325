"""Unit tests for signed session tokens."""

import base64
import json

import pytest

from tasktrack.service.tokens import (
    DEFAULT_TTL_SECONDS,
    InvalidSignature,
    MalformedToken,
    TokenExpired,
    TokenService,
    extract_bearer,
)

SECRET = "unit-test-secret-with-enough-length-0123456789"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, clock=clock)


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


class TestIssueAndVerify:
    def test_round_trip_returns_claims(self, tokens, clock):
        token = tokens.issue("user-1", "a@example.com", "user")

        claims = tokens.verify(token)

        assert claims.sub == "user-1"
        assert claims.email == "a@example.com"
        assert claims.role == "user"
        assert claims.exp == int(clock.now) + DEFAULT_TTL_SECONDS

    def test_token_has_three_segments(self, tokens):
        assert tokens.issue("user-1", "a@example.com", "admin").count(".") == 2

    def test_still_valid_after_one_hour(self, tokens, clock):
        token = tokens.issue("user-1", "a@example.com", "user")
        clock.advance(60 * 60)

        assert tokens.verify(token).sub == "user-1"

    def test_expired_after_twenty_five_hours(self, tokens, clock):
        token = tokens.issue("user-1", "a@example.com", "user")
        clock.advance(25 * 60 * 60)

        with pytest.raises(TokenExpired):
            tokens.verify(token)

    def test_valid_exactly_at_expiry(self, tokens, clock):
        token = tokens.issue("user-1", "a@example.com", "user")
        clock.advance(DEFAULT_TTL_SECONDS)

        assert tokens.verify(token).sub == "user-1"

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestTampering:
    """Any change to a signed token must fail verification."""

    def test_flipping_any_character_is_rejected(self, tokens):
        token = tokens.issue("user-1", "a@example.com", "user")
        for index, char in enumerate(token):
            if char == ".":
                continue
            replacement = "A" if char != "A" else "B"
            tampered = token[:index] + replacement + token[index + 1:]
            if tampered == token:
                continue
            with pytest.raises((InvalidSignature, MalformedToken)):
                tokens.verify(tampered)

    def test_role_escalation_is_rejected(self, tokens):
        header, _, signature = tokens.issue("user-1", "a@example.com", "user").split(".")
        forged_claims = _b64(
            {"sub": "user-1", "email": "a@example.com", "role": "admin", "exp": 9999999999}
        )

        with pytest.raises(InvalidSignature):
            tokens.verify(f"{header}.{forged_claims}.{signature}")

    def test_token_from_other_secret_is_rejected(self, clock):
        other = TokenService("another-secret-that-is-also-long-enough-000", clock=clock)
        token = other.issue("user-1", "a@example.com", "user")

        with pytest.raises(InvalidSignature):
            TokenService(SECRET, clock=clock).verify(token)

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d"])
    def test_malformed_shapes(self, tokens, token):
        with pytest.raises(MalformedToken):
            tokens.verify(token)


class TestExtractBearer:
    def test_extracts_token(self):
        assert extract_bearer("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header", [None, "", "abc.def.ghi", "Basic abc", "bearer abc", "Bearer ", "Bearer    "]
    )
    def test_rejects_other_shapes(self, header):
        assert extract_bearer(header) is None
