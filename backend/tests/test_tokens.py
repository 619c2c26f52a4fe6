"""
Token service tests.

Expiry boundaries use an injected clock instead of sleeping.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from errors import ServerError, TokenExpired, TokenInvalid
from security.tokens import TokenService

SECRET = "unit-test-secret"
START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class TestTokenService:
    def setup_method(self):
        self.clock = FakeClock(START)
        self.service = TokenService(SECRET, clock=self.clock)

    def test_issue_then_verify(self):
        token = self.service.issue("user-1", timedelta(hours=1))
        assert self.service.verify(token) == "user-1"

    def test_valid_until_just_before_expiry(self):
        token = self.service.issue("user-1", timedelta(minutes=5))
        self.clock.now = START + timedelta(minutes=5) - timedelta(seconds=1)
        assert self.service.verify(token) == "user-1"

    def test_expired_at_expiry_instant(self):
        token = self.service.issue("user-1", timedelta(minutes=5))
        self.clock.now = START + timedelta(minutes=5)
        with pytest.raises(TokenExpired):
            self.service.verify(token)

    def test_expired_after_expiry(self):
        token = self.service.issue("user-1", timedelta(minutes=5))
        self.clock.now = START + timedelta(days=1)
        with pytest.raises(TokenExpired):
            self.service.verify(token)

    def test_other_secret_is_invalid(self):
        other = TokenService("another-secret", clock=self.clock)
        token = other.issue("user-1", timedelta(hours=1))
        with pytest.raises(TokenInvalid):
            self.service.verify(token)

    def test_rotated_secret_invalidates_old_tokens(self):
        token = self.service.issue("user-1", timedelta(hours=1))
        rotated = TokenService("rotated-secret", clock=self.clock)
        with pytest.raises(TokenInvalid):
            rotated.verify(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_is_invalid(self, token):
        with pytest.raises(TokenInvalid):
            self.service.verify(token)

    def test_missing_subject_is_invalid(self):
        token = jwt.encode({"exp": int(START.timestamp()) + 60}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            self.service.verify(token)

    def test_missing_expiry_is_invalid(self):
        token = jwt.encode({"sub": "user-1"}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            self.service.verify(token)

    def test_unexpected_algorithm_is_invalid(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": int(START.timestamp()) + 60}, SECRET, algorithm="HS512"
        )
        with pytest.raises(TokenInvalid):
            self.service.verify(token)

    def test_claims_carry_subject_and_expiry(self):
        token = self.service.issue("user-1", timedelta(minutes=30))
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == "user-1"
        assert claims["exp"] == int((START + timedelta(minutes=30)).timestamp())

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService("")

    def test_signing_failure_is_server_error(self):
        service = TokenService(SECRET, algorithm="NOT-AN-ALG", clock=self.clock)
        with pytest.raises(ServerError):
            service.issue("user-1", timedelta(hours=1))
