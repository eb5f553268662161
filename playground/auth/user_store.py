"""User store implementations."""

import threading
from dataclasses import replace
from typing import Any

import redis.asyncio as redis
from redis.exceptions import WatchError

from playground.auth.models import User, normalize_email
from playground.core.exceptions import Conflict
from playground.core.logging import get_logger
from playground.core.store_factory import USERS, StoreFactory

logger = get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"

# Fields a profile, login or password write may touch; the e-mail index never moves
UPDATABLE_FIELDS = frozenset({"name", "avatar", "password_hash", "last_login", "updated_at"})


def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")


@StoreFactory.register(USERS, "in_memory")
class InMemoryUserStore:
    """Dictionary-based user store for development/testing."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._by_email: dict[str, str] = {}
        self._lock = threading.Lock()

    async def create(self, user: User) -> User:
        email = normalize_email(user.email)
        with self._lock:
            if email in self._by_email:
                raise Conflict(DUPLICATE_EMAIL_MESSAGE)
            self._users[user.id] = user.copy()
            self._by_email[email] = user.id
        logger.debug("user_created", user_id=user.id)
        return user.copy()

    async def get(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return user.copy() if user else None

    async def get_by_email(self, email: str) -> User | None:
        with self._lock:
            user_id = self._by_email.get(normalize_email(email))
            return self._users[user_id].copy() if user_id else None

    async def update_fields(self, user_id: str, **fields: Any) -> User | None:
        """Merge ``fields`` into the stored record; other fields keep their stored values."""
        _check_fields(fields)
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            updated = replace(current, **fields)
            self._users[user_id] = updated
            return updated.copy()

    async def delete(self, user_id: str) -> bool:
        """Remove a user record. Account deletion itself is handled elsewhere."""
        with self._lock:
            user = self._users.pop(user_id, None)
            if user is None:
                return False
            self._by_email.pop(normalize_email(user.email), None)
            return True


@StoreFactory.register(USERS, "redis")
class RedisUserStore:
    """Redis-backed user store: one JSON document per user plus an e-mail index key."""

    def __init__(self, url: str, key_prefix: str = "playground"):
        self.url = url
        self.prefix = key_prefix
        self._client: redis.Redis | None = None

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
            logger.info("redis_user_store_connected", url=self.url)
        return self._client

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _user_key(self, user_id: str) -> str:
        return f"{self.prefix}:user:{user_id}"

    def _email_key(self, email: str) -> str:
        return f"{self.prefix}:user-email:{normalize_email(email)}"

    async def create(self, user: User) -> User:
        """Claim the e-mail and write the document in one transaction."""
        client = await self._get_client()
        email_key = self._email_key(user.email)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(email_key)
                    if await pipe.exists(email_key):
                        raise Conflict(DUPLICATE_EMAIL_MESSAGE)
                    pipe.multi()
                    pipe.set(email_key, user.id)
                    pipe.set(self._user_key(user.id), user.to_json())
                    await pipe.execute()
                    break
                except WatchError:
                    # Another registration touched the same address; re-check it
                    continue
        logger.debug("user_created", user_id=user.id)
        return user.copy()

    async def get(self, user_id: str) -> User | None:
        client = await self._get_client()
        raw = await client.get(self._user_key(user_id))
        return User.from_json(raw) if raw else None

    async def get_by_email(self, email: str) -> User | None:
        client = await self._get_client()
        user_id = await client.get(self._email_key(email))
        return await self.get(user_id) if user_id else None

    async def update_fields(self, user_id: str, **fields: Any) -> User | None:
        """Optimistic read-merge-write of selected fields."""
        _check_fields(fields)
        client = await self._get_client()
        key = self._user_key(user_id)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        return None
                    updated = replace(User.from_json(raw), **fields)
                    pipe.multi()
                    pipe.set(key, updated.to_json())
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.debug("user_write_conflict_retry", user_id=user_id)
                    continue

    async def delete(self, user_id: str) -> bool:
        """Remove a user record. Account deletion itself is handled elsewhere."""
        user = await self.get(user_id)
        if user is None:
            return False
        client = await self._get_client()
        await client.delete(self._user_key(user_id), self._email_key(user.email))
        return True
