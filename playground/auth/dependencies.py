"""FastAPI dependencies for authentication.

Two policies share one resolution path:

* ``get_current_user`` rejects the request with ``Unauthenticated`` when the
  header is missing or malformed, the token fails verification, or the user
  no longer exists. Unexpected faults become a generic ``InternalFault``.
* ``get_optional_user`` swallows every failure, including unexpected faults,
  and lets the request continue anonymously.
"""

from typing import Annotated

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from playground.auth.models import User
from playground.auth.tokens import TokenService
from playground.core.di_container import DIContainer
from playground.core.exceptions import InternalFault, InvalidToken, Unauthenticated
from playground.core.logging import get_logger
from playground.core.protocols import UserStore

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def resolve_user(token: str, tokens: TokenService, users: UserStore) -> User:
    """Verify an access token and load its user.

    Raises:
        Unauthenticated: Invalid/expired token, or token for a user that is gone
    """
    try:
        claims = tokens.verify(token)
    except InvalidToken as e:
        logger.debug("token_verification_failed", error=str(e))
        raise Unauthenticated("Invalid or expired token") from e

    user = await users.get(claims.user_id)
    if user is None:
        logger.info("token_user_missing", user_id=claims.user_id)
        raise Unauthenticated("User not found")
    return user


def _attach(request: Request, user: User | None) -> None:
    request.state.user = user
    if user is not None:
        structlog.contextvars.bind_contextvars(user_id=user.id)


@inject
async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(security)],
    tokens: TokenService = Depends(Provide[DIContainer.token_service]),  # noqa: B008
    users: UserStore = Depends(Provide[DIContainer.user_store]),  # noqa: B008
) -> User:
    """Get the authenticated user from the ``Authorization: Bearer`` header.

    Raises:
        Unauthenticated: If authentication fails
        InternalFault: If resolving the user fails unexpectedly
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")

    try:
        user = await resolve_user(credentials.credentials, tokens, users)
    except Unauthenticated:
        raise
    except Exception as e:
        logger.exception("auth_resolution_error", error=str(e))
        raise InternalFault("Authentication error") from e

    _attach(request, user)
    return user


@inject
async def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(security)],
    tokens: TokenService = Depends(Provide[DIContainer.token_service]),  # noqa: B008
    users: UserStore = Depends(Provide[DIContainer.user_store]),  # noqa: B008
) -> User | None:
    """Get the user if the request carries valid credentials, otherwise None.

    Used by endpoints that serve both anonymous and personalized views.
    """
    if credentials is None or not credentials.credentials:
        _attach(request, None)
        return None

    try:
        user = await resolve_user(credentials.credentials, tokens, users)
    except Unauthenticated as e:
        logger.debug("optional_auth_failed", reason=e.message)
        user = None
    except Exception as e:
        logger.warning("optional_auth_error", error=str(e))
        user = None

    _attach(request, user)
    return user


# Type aliases for convenience
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
