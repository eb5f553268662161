"""Tests for token issuance and verification."""

from datetime import timedelta

import jwt
import pytest

from playground.auth.tokens import ACCESS, REFRESH, TokenService
from playground.core.config import AuthConfig, parse_duration
from playground.core.exceptions import InvalidToken
from playground.session.models import utcnow


class TestTokenService:
    """Test cases for TokenService."""

    def test_access_token_round_trip(self, token_service):
        """A freshly issued access token verifies to its user."""
        pair = token_service.issue_token_pair("user-1")
        claims = token_service.verify(pair.access_token)
        assert claims.user_id == "user-1"
        assert claims.token_type == ACCESS

    def test_pair_serializes_camel_case(self, token_service):
        pair = token_service.issue_token_pair("user-1")
        assert set(pair.to_dict()) == {"accessToken", "refreshToken"}

    def test_expired_access_token_rejected(self, token_service):
        """Access tokens expire after 15 minutes."""
        pair = token_service.issue_token_pair("user-1", now=utcnow() - timedelta(minutes=16))
        with pytest.raises(InvalidToken):
            token_service.verify(pair.access_token)

    def test_refresh_token_outlives_access_token(self, token_service):
        pair = token_service.issue_token_pair("user-1", now=utcnow() - timedelta(minutes=16))
        claims = token_service.verify(pair.refresh_token, expected_type=REFRESH)
        assert claims.user_id == "user-1"

    def test_refresh_token_not_accepted_as_access(self, token_service):
        pair = token_service.issue_token_pair("user-1")
        with pytest.raises(InvalidToken):
            token_service.verify(pair.refresh_token)

    def test_access_token_not_accepted_as_refresh(self, token_service):
        pair = token_service.issue_token_pair("user-1")
        with pytest.raises(InvalidToken):
            token_service.verify(pair.access_token, expected_type=REFRESH)

    def test_wrong_secret_rejected(self, token_service):
        other = TokenService(secret="another-secret")
        pair = other.issue_token_pair("user-1")
        with pytest.raises(InvalidToken):
            token_service.verify(pair.access_token)

    def test_garbage_rejected(self, token_service):
        with pytest.raises(InvalidToken):
            token_service.verify("not-a-jwt")

    def test_missing_user_claim_rejected(self, token_service):
        token = jwt.encode({"exp": utcnow() + timedelta(minutes=5)}, "test-secret", algorithm="HS256")
        with pytest.raises(InvalidToken):
            token_service.verify(token)

    def test_from_config_uses_configured_lifetimes(self):
        config = AuthConfig(jwt_secret="s", access_token_ttl_minutes=5, refresh_token_ttl="2h")
        service = TokenService.from_config(config)
        assert service.access_ttl == timedelta(minutes=5)
        assert service.refresh_ttl == timedelta(hours=2)


class TestParseDuration:
    """Test cases for duration strings such as ``7d``."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("7d", timedelta(days=7)),
            ("15m", timedelta(minutes=15)),
            ("12h", timedelta(hours=12)),
            ("30s", timedelta(seconds=30)),
            ("3600", timedelta(seconds=3600)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "7w", "d7", "abc"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)
