"""Account operations: registration, login, token refresh and profile changes."""

from typing import Any

from starlette.concurrency import run_in_threadpool

from playground.auth.models import (
    User,
    new_user,
    validate_login,
    validate_password_change,
    validate_profile_update,
    validate_registration,
)
from playground.auth.tokens import REFRESH, TokenPair, TokenService
from playground.core.exceptions import InvalidToken, Unauthenticated, ValidationFailed
from playground.core.logging import get_logger
from playground.core.protocols import PasswordHasher, UserStore
from playground.session.models import Invalid, utcnow

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
USER_NOT_FOUND = "User not found"


class AuthService:
    """Issues tokens for verified credentials and maintains user records."""

    def __init__(self, users: UserStore, hasher: PasswordHasher, tokens: TokenService):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    async def register(self, payload: dict[str, Any]) -> tuple[User, TokenPair]:
        """Create an account and sign the new user in.

        Raises:
            ValidationFailed: On invalid name, e-mail or password
            Conflict: If the e-mail is already registered
        """
        result = validate_registration(payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())
        fields = result.value

        # bcrypt is CPU-bound; keep it off the event loop
        password_hash = await run_in_threadpool(self.hasher.hash, fields["password"])
        user = new_user(fields["name"], fields["email"], password_hash)
        user.last_login = user.created_at
        user = await self.users.create(user)
        logger.info("user_registered", user_id=user.id, email=user.email)
        return user, self.tokens.issue_token_pair(user.id)

    async def login(self, payload: dict[str, Any]) -> tuple[User, TokenPair]:
        """Verify credentials and issue a token pair.

        Unknown e-mail and wrong password produce the same error.
        """
        result = validate_login(payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())
        fields = result.value

        user = await self.users.get_by_email(fields["email"])
        if user is None:
            logger.info("login_failed", reason="unknown_email")
            raise Unauthenticated(INVALID_CREDENTIALS)
        if not await run_in_threadpool(self.hasher.verify, fields["password"], user.password_hash):
            logger.info("login_failed", reason="bad_password", user_id=user.id)
            raise Unauthenticated(INVALID_CREDENTIALS)

        user = await self.users.update_fields(user.id, last_login=utcnow())
        if user is None:
            raise Unauthenticated(INVALID_CREDENTIALS)
        logger.info("user_logged_in", user_id=user.id)
        return user, self.tokens.issue_token_pair(user.id)

    async def refresh(self, refresh_token: Any) -> TokenPair:
        """Mint a fresh pair from a valid refresh token.

        Raises:
            Unauthenticated: If the token is missing, invalid, expired, not a
                refresh token, or its user no longer exists
        """
        if not isinstance(refresh_token, str) or not refresh_token:
            raise Unauthenticated("Refresh token required")
        try:
            claims = self.tokens.verify(refresh_token, expected_type=REFRESH)
        except InvalidToken as e:
            logger.info("token_refresh_failed", error=str(e))
            raise Unauthenticated("Invalid or expired refresh token") from e

        if await self.users.get(claims.user_id) is None:
            raise Unauthenticated(USER_NOT_FOUND)
        return self.tokens.issue_token_pair(claims.user_id)

    async def update_profile(self, user: User, payload: dict[str, Any]) -> User:
        result = validate_profile_update(payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())

        updated = await self.users.update_fields(user.id, **result.value, updated_at=utcnow())
        if updated is None:
            raise Unauthenticated(USER_NOT_FOUND)
        return updated

    async def change_password(self, user: User, payload: dict[str, Any]) -> None:
        result = validate_password_change(payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())
        fields = result.value

        # Check against the stored hash, not the copy resolved at request start
        current = await self.users.get(user.id)
        if current is None:
            raise Unauthenticated(USER_NOT_FOUND)
        if not await run_in_threadpool(self.hasher.verify, fields["current_password"], current.password_hash):
            raise ValidationFailed(
                [{"field": "currentPassword", "message": "Current password is incorrect"}],
                message="Current password is incorrect",
            )

        password_hash = await run_in_threadpool(self.hasher.hash, fields["new_password"])
        if await self.users.update_fields(user.id, password_hash=password_hash, updated_at=utcnow()) is None:
            raise Unauthenticated(USER_NOT_FOUND)
        logger.info("password_changed", user_id=user.id)
