"""Session store implementations."""

import threading
from collections import defaultdict
from collections.abc import Callable

import redis.asyncio as redis
from redis.exceptions import WatchError

from playground.core.logging import get_logger
from playground.core.store_factory import SESSIONS, StoreFactory
from playground.session.models import Session, SessionPage, SessionQuery

logger = get_logger(__name__)


def _paginate(matches: list[Session], query: SessionQuery) -> SessionPage:
    page = matches[query.offset : query.offset + query.limit]
    return SessionPage(sessions=[s.copy() for s in page], total_count=len(matches))


@StoreFactory.register(SESSIONS, "in_memory")
class InMemorySessionStore:
    """In-memory session storage with thread-safe access.

    Keeps secondary indexes by owner and by tag. Not persistent - data is
    lost on restart.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._by_owner: dict[str, set[str]] = defaultdict(set)
        self._by_tag: dict[str, set[str]] = defaultdict(set)
        self._lock = threading.Lock()

    def _index(self, session: Session) -> None:
        self._by_owner[session.owner_id].add(session.id)
        for tag in session.tags:
            self._by_tag[tag].add(session.id)

    def _unindex(self, session: Session) -> None:
        self._by_owner[session.owner_id].discard(session.id)
        for tag in session.tags:
            self._by_tag[tag].discard(session.id)

    async def insert(self, session: Session) -> Session:
        with self._lock:
            self._sessions[session.id] = session.copy()
            self._index(session)
        logger.debug("session_inserted", session_id=session.id, owner_id=session.owner_id)
        return session.copy()

    async def get(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.copy() if session else None

    async def get_owned(self, session_id: str, owner_id: str) -> Session | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.owner_id != owner_id:
                return None
            return session.copy()

    async def update_owned(
        self,
        session_id: str,
        owner_id: str,
        mutate: Callable[[Session], Session],
    ) -> Session | None:
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None or current.owner_id != owner_id:
                return None
            updated = mutate(current.copy())
            self._unindex(current)
            self._sessions[session_id] = updated.copy()
            self._index(updated)
            return updated.copy()

    async def delete_owned(self, session_id: str, owner_id: str) -> bool:
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None or current.owner_id != owner_id:
                return False
            del self._sessions[session_id]
            self._unindex(current)
            return True

    async def list_owned(self, owner_id: str, query: SessionQuery) -> SessionPage:
        with self._lock:
            matches = [
                self._sessions[sid]
                for sid in self._by_owner.get(owner_id, ())
                if not query.search or self._sessions[sid].matches_search(query.search)
            ]
            matches.sort(key=lambda s: s.last_modified, reverse=True)
            return _paginate(matches, query)

    async def list_public(self, query: SessionQuery) -> SessionPage:
        with self._lock:
            if query.tags:
                candidates = set().union(*(self._by_tag.get(tag, set()) for tag in query.tags))
            else:
                candidates = set(self._sessions)
            matches = [
                self._sessions[sid]
                for sid in candidates
                if self._sessions[sid].is_public
                and (not query.search or self._sessions[sid].matches_search(query.search, include_tags=False))
            ]
            matches.sort(key=lambda s: s.created_at, reverse=True)
            return _paginate(matches, query)

    def get_session_count(self) -> int:
        """Get the number of stored sessions (for monitoring)."""
        return len(self._sessions)


@StoreFactory.register(SESSIONS, "redis")
class RedisSessionStore:
    """Redis-backed session storage.

    Layout (``<p>`` is the key prefix):
        <p>:session:<id>     JSON document
        <p>:owner:<owner>    sorted set of ids scored by lastModified
        <p>:public           sorted set of public ids scored by createdAt
        <p>:tag:<tag>        set of ids carrying the tag

    Read-modify-write runs inside a WATCH/MULTI transaction on the document
    key, so concurrent writers to one session never interleave.
    """

    def __init__(self, url: str, key_prefix: str = "playground"):
        self.url = url
        self.prefix = key_prefix
        self._client: redis.Redis | None = None

    async def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
            logger.info("redis_session_store_connected", url=self.url)
        return self._client

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _session_key(self, session_id: str) -> str:
        return f"{self.prefix}:session:{session_id}"

    def _owner_key(self, owner_id: str) -> str:
        return f"{self.prefix}:owner:{owner_id}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    @property
    def _public_key(self) -> str:
        return f"{self.prefix}:public"

    def _queue_index(self, pipe, old: Session | None, new: Session | None) -> None:
        """Queue index maintenance for a transition from ``old`` to ``new``."""
        session_id = (new or old).id  # type: ignore[union-attr]
        old_tags = set(old.tags) if old else set()
        new_tags = set(new.tags) if new else set()
        for tag in old_tags - new_tags:
            pipe.srem(self._tag_key(tag), session_id)
        for tag in new_tags - old_tags:
            pipe.sadd(self._tag_key(tag), session_id)

        if new is None:
            pipe.zrem(self._owner_key(old.owner_id), session_id)  # type: ignore[union-attr]
            pipe.zrem(self._public_key, session_id)
            return
        pipe.zadd(self._owner_key(new.owner_id), {session_id: new.last_modified.timestamp()})
        if new.is_public:
            pipe.zadd(self._public_key, {session_id: new.created_at.timestamp()})
        else:
            pipe.zrem(self._public_key, session_id)

    async def insert(self, session: Session) -> Session:
        client = await self._get_client()
        async with client.pipeline(transaction=True) as pipe:
            pipe.set(self._session_key(session.id), session.to_json())
            self._queue_index(pipe, None, session)
            await pipe.execute()
        logger.debug("session_inserted", session_id=session.id, owner_id=session.owner_id)
        return session.copy()

    async def get(self, session_id: str) -> Session | None:
        client = await self._get_client()
        raw = await client.get(self._session_key(session_id))
        return Session.from_json(raw) if raw else None

    async def get_owned(self, session_id: str, owner_id: str) -> Session | None:
        session = await self.get(session_id)
        if session is None or session.owner_id != owner_id:
            return None
        return session

    async def _transact(
        self,
        session_id: str,
        owner_id: str,
        mutate: Callable[[Session], Session] | None,
    ) -> tuple[bool, Session | None]:
        """Optimistic check-and-write. ``mutate=None`` deletes the document."""
        client = await self._get_client()
        key = self._session_key(session_id)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        return False, None
                    current = Session.from_json(raw)
                    if current.owner_id != owner_id:
                        return False, None

                    updated = mutate(current.copy()) if mutate else None
                    pipe.multi()
                    if updated is None:
                        pipe.delete(key)
                    else:
                        pipe.set(key, updated.to_json())
                    self._queue_index(pipe, current, updated)
                    await pipe.execute()
                    return True, updated
                except WatchError:
                    logger.debug("session_write_conflict_retry", session_id=session_id)
                    continue

    async def update_owned(
        self,
        session_id: str,
        owner_id: str,
        mutate: Callable[[Session], Session],
    ) -> Session | None:
        _, updated = await self._transact(session_id, owner_id, mutate)
        return updated

    async def delete_owned(self, session_id: str, owner_id: str) -> bool:
        deleted, _ = await self._transact(session_id, owner_id, None)
        return deleted

    async def _load_many(self, ids: list[str]) -> list[Session]:
        if not ids:
            return []
        client = await self._get_client()
        raws = await client.mget([self._session_key(sid) for sid in ids])
        return [Session.from_json(raw) for raw in raws if raw]

    async def list_owned(self, owner_id: str, query: SessionQuery) -> SessionPage:
        client = await self._get_client()
        owner_key = self._owner_key(owner_id)
        if not query.search:
            total = await client.zcard(owner_key)
            ids = await client.zrevrange(owner_key, query.offset, query.offset + query.limit - 1)
            return SessionPage(sessions=await self._load_many(ids), total_count=total)

        ids = await client.zrevrange(owner_key, 0, -1)
        matches = [s for s in await self._load_many(ids) if s.matches_search(query.search)]
        return _paginate(matches, query)

    async def list_public(self, query: SessionQuery) -> SessionPage:
        client = await self._get_client()
        if not query.search and not query.tags:
            total = await client.zcard(self._public_key)
            ids = await client.zrevrange(self._public_key, query.offset, query.offset + query.limit - 1)
            return SessionPage(sessions=await self._load_many(ids), total_count=total)

        ids = await client.zrevrange(self._public_key, 0, -1)
        if query.tags:
            tagged = await client.sunion([self._tag_key(tag) for tag in query.tags])
            ids = [sid for sid in ids if sid in tagged]
        sessions = await self._load_many(ids)
        if query.search:
            sessions = [s for s in sessions if s.matches_search(query.search, include_tags=False)]
        return _paginate(sessions, query)
