"""Account authentication module.

Provides bcrypt credential checks and JWT access/refresh tokens.
"""

from playground.auth.dependencies import get_current_user, get_optional_user
from playground.auth.models import User
from playground.auth.tokens import TokenPair, TokenService

__all__ = [
    "get_current_user",
    "get_optional_user",
    "User",
    "TokenPair",
    "TokenService",
]
