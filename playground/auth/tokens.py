"""Access/refresh token issuing and stateless verification."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from playground.core.config import AuthConfig
from playground.core.exceptions import InvalidToken
from playground.session.models import utcnow

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    """Short-lived access token plus longer-lived refresh token."""

    access_token: str
    refresh_token: str

    def to_dict(self) -> dict[str, str]:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}


@dataclass(frozen=True)
class TokenClaims:
    """Verified token payload."""

    user_id: str
    token_type: str
    expires_at: datetime


class TokenService:
    """Signs and verifies JWTs carrying a ``userId`` claim.

    Verification is a pure signature + expiry + type check. There is no
    revocation list: refreshing mints a new pair without looking at the old one.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_config(cls, config: AuthConfig) -> "TokenService":
        return cls(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            access_ttl=config.access_token_ttl,
            refresh_ttl=config.refresh_token_lifetime,
        )

    def _sign(self, user_id: str, token_type: str, issued_at: datetime, ttl: timedelta) -> str:
        payload: dict[str, Any] = {
            "userId": user_id,
            "type": token_type,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_token_pair(self, user_id: str, now: datetime | None = None) -> TokenPair:
        """Mint an access/refresh pair for ``user_id``.

        Args:
            user_id: Subject user ID
            now: Issue time (defaults to the current time)
        """
        now = now or utcnow()
        return TokenPair(
            access_token=self._sign(user_id, ACCESS, now, self.access_ttl),
            refresh_token=self._sign(user_id, REFRESH, now, self.refresh_ttl),
        )

    def verify(self, token: str, expected_type: str = ACCESS) -> TokenClaims:
        """Verify signature, expiry and token type.

        Raises:
            InvalidToken: For any failure. Expired and malformed tokens are
                not distinguished.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidToken(str(e)) from e

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken("Missing userId claim")
        # Tokens minted without a type claim are treated as access tokens
        if payload.get("type", ACCESS) != expected_type:
            raise InvalidToken(f"Expected {expected_type} token")

        return TokenClaims(
            user_id=user_id,
            token_type=expected_type,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
        )
