"""Client-side working set of playground sessions.

``SessionCache`` mirrors the caller's server sessions locally so edits apply
immediately. The server stays authoritative; the cache only guarantees that
the last local write from this editor wins. Entries created while the server
is unreachable keep a ``local-<uuid>`` id and ``local_only=True`` until
``sync()`` pushes them.

``PlaygroundWorkspace`` adds the editor state (active code, language and
transcript) and the code assistant on top of the cache.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from playground.client.api_client import ApiError
from playground.client.endpoints import PlaygroundApi
from playground.core.exceptions import ProviderFailure
from playground.core.logging import get_logger
from playground.llm.assistant import CodeAssistant, is_code_request, looks_like_code
from playground.session.models import DEFAULT_LANGUAGE, to_iso, utcnow

logger = get_logger(__name__)

LOCAL_PREFIX = "local-"
SYNC_PAGE_SIZE = 100

# Python attribute -> wire field
WIRE_FIELDS = {
    "name": "name",
    "description": "description",
    "code": "code",
    "language": "language",
    "tags": "tags",
    "is_public": "isPublic",
}


def new_local_id() -> str:
    return f"{LOCAL_PREFIX}{uuid.uuid4()}"


def to_wire(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(WIRE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown session fields: {', '.join(sorted(unknown))}")
    return {WIRE_FIELDS[name]: value for name, value in fields.items()}


@dataclass
class CachedSession:
    """Local copy of one session plus its sync bookkeeping."""

    id: str
    name: str
    description: str = ""
    code: str = ""
    language: str = DEFAULT_LANGUAGE
    tags: list[str] = field(default_factory=list)
    is_public: bool = False
    messages: list[dict[str, Any]] = field(default_factory=list)
    last_modified: str | None = None
    local_only: bool = False
    # Fields edited locally that the server has not acknowledged
    dirty: set[str] = field(default_factory=set)
    # False for entries known only from a listing, which omits transcripts
    messages_loaded: bool = True

    @classmethod
    def from_server(cls, data: dict[str, Any]) -> "CachedSession":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            code=data.get("code", ""),
            language=data.get("language", DEFAULT_LANGUAGE),
            tags=list(data.get("tags", [])),
            is_public=data.get("isPublic", False),
            messages=[dict(m) for m in data.get("messages", [])],
            last_modified=data.get("lastModified"),
            messages_loaded="messages" in data,
        )

    def editable_fields(self, names: set[str] | None = None) -> dict[str, Any]:
        names = set(WIRE_FIELDS) if names is None else names
        return {name: getattr(self, name) for name in WIRE_FIELDS if name in names}


class SessionCache:
    """Two-tier store: ``PlaygroundApi`` remote plus an in-process dict."""

    def __init__(self, api: PlaygroundApi):
        self.api = api
        self.sessions: dict[str, CachedSession] = {}

    def get(self, session_id: str) -> CachedSession | None:
        return self.sessions.get(session_id)

    def entries(self) -> list[CachedSession]:
        return sorted(self.sessions.values(), key=lambda s: s.last_modified or "", reverse=True)

    async def create(self, name: str, **fields: Any) -> CachedSession:
        """Add a session locally right away, then try to persist it.

        On success the entry is re-keyed to the server id; otherwise it stays
        local-only until the next ``sync()``.
        """
        entry = CachedSession(id=new_local_id(), name=name, local_only=True, **fields)
        entry.last_modified = to_iso(utcnow())
        self.sessions[entry.id] = entry
        await self._push_new(entry)
        return entry

    async def fetch(self, session_id: str) -> CachedSession:
        """Return the entry with its transcript, loading it from the server when needed.

        Raises:
            KeyError: Unknown local id
            ApiError: The server lookup failed
        """
        entry = self.sessions.get(session_id)
        if entry is not None and (entry.local_only or entry.messages_loaded):
            return entry
        if entry is None and session_id.startswith(LOCAL_PREFIX):
            raise KeyError(session_id)

        data = await self.api.get_session(session_id)
        fresh = CachedSession.from_server(data)
        if entry is not None and entry.dirty:
            # Unsynced local edits win over the server copy
            for name, value in entry.editable_fields(entry.dirty).items():
                setattr(fresh, name, value)
            fresh.dirty = set(entry.dirty)
        self.sessions[session_id] = fresh
        return fresh

    async def update(self, session_id: str, **fields: Any) -> CachedSession:
        """Apply edits locally, then push them when the entry is synced.

        Push failures are logged and the edits stay pending for ``sync()``.
        """
        wire = to_wire(fields)
        entry = self.sessions[session_id]
        for name, value in fields.items():
            setattr(entry, name, list(value) if name == "tags" else value)
        entry.dirty.update(fields)
        entry.last_modified = to_iso(utcnow())

        if not entry.local_only:
            try:
                data = await self.api.update_session(session_id, **wire)
            except ApiError as e:
                logger.warning("session_push_failed", session_id=session_id, error=e.message)
            else:
                entry.dirty.difference_update(fields)
                entry.last_modified = data.get("lastModified", entry.last_modified)
        return entry

    async def add_message(
        self, session_id: str, role: str, content: str, push: bool = True
    ) -> CachedSession:
        """Append to the local transcript; synced entries also append on the server.

        With ``push=False`` the message is marked local and never sent.
        """
        entry = self.sessions[session_id]
        message = {"role": role, "content": content, "timestamp": to_iso(utcnow())}
        if not push:
            message["local"] = True
        entry.messages.append(message)

        if push and not entry.local_only:
            try:
                await self.api.add_message(session_id, role, content)
            except ApiError as e:
                logger.warning("message_push_failed", session_id=session_id, error=e.message)
        return entry

    async def delete(self, session_id: str) -> None:
        """Drop locally, then ask the server to delete synced entries."""
        entry = self.sessions.pop(session_id, None)
        if entry is None or entry.local_only:
            return
        try:
            await self.api.delete_session(session_id)
        except ApiError as e:
            logger.warning("session_delete_failed", session_id=session_id, error=e.message)

    async def sync(self) -> list[CachedSession]:
        """Push local-only entries and pending edits, then merge the server list.

        Raises:
            ApiError: If the server list cannot be fetched
        """
        for entry in [e for e in self.sessions.values() if e.local_only]:
            await self._push_new(entry)

        remote = await self._list_remote()
        remote_ids = {data["id"] for data in remote}

        for data in remote:
            local = self.sessions.get(data["id"])
            if local is not None and local.dirty:
                await self.update(local.id, **local.editable_fields(local.dirty))
                continue
            fresh = CachedSession.from_server(data)
            if local is not None and local.messages_loaded:
                fresh.messages = local.messages
                fresh.messages_loaded = True
            self.sessions[fresh.id] = fresh

        # Synced entries missing from the server were deleted elsewhere
        stale = [sid for sid, e in self.sessions.items() if not e.local_only and sid not in remote_ids]
        for session_id in stale:
            del self.sessions[session_id]

        logger.info("sessions_synced", remote=len(remote), cached=len(self.sessions))
        return self.entries()

    async def _push_new(self, entry: CachedSession) -> None:
        local_id = entry.id
        payload = to_wire(entry.editable_fields())
        try:
            data = await self.api.create_session(**payload)
        except ApiError as e:
            logger.warning("session_kept_local", local_id=local_id, error=e.message)
            return

        for message in [m for m in entry.messages if not m.get("local")]:
            try:
                await self.api.add_message(data["id"], message["role"], message["content"])
            except ApiError as e:
                logger.warning("message_push_failed", session_id=data["id"], error=e.message)

        self.sessions.pop(local_id, None)
        entry.id = data["id"]
        entry.local_only = False
        entry.dirty.clear()
        entry.last_modified = data.get("lastModified", entry.last_modified)
        self.sessions[entry.id] = entry
        logger.info("session_synced", local_id=local_id, session_id=entry.id)

    async def _list_remote(self) -> list[dict[str, Any]]:
        sessions: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self.api.get_sessions(page=page, limit=SYNC_PAGE_SIZE)
            sessions.extend(data["sessions"])
            if page >= data["pagination"]["total"]:
                return sessions
            page += 1


class PlaygroundWorkspace:
    """Editor state bound to at most one active cached session."""

    def __init__(self, cache: SessionCache, assistant: CodeAssistant | None = None):
        self.cache = cache
        self.assistant = assistant
        self.active_id: str | None = None
        self.code = ""
        self.language = DEFAULT_LANGUAGE
        self.messages: list[dict[str, Any]] = []

    @property
    def active(self) -> CachedSession | None:
        return self.cache.get(self.active_id) if self.active_id else None

    def _resync_active_id(self, entry: CachedSession) -> None:
        # Re-keying on sync changes the id under the editor
        self.active_id = entry.id

    async def create(self, name: str, **fields: Any) -> CachedSession:
        """Create a session from the current editor state and make it active."""
        fields.setdefault("code", self.code)
        fields.setdefault("language", self.language)
        fields.setdefault("messages", [dict(m) for m in self.messages])
        entry = await self.cache.create(name, **fields)
        self._resync_active_id(entry)
        return entry

    async def load(self, session_id: str) -> CachedSession:
        """Swap the editor's code, language and transcript for the session's."""
        entry = await self.cache.fetch(session_id)
        self.active_id = entry.id
        self.code = entry.code
        self.language = entry.language
        self.messages = [dict(m) for m in entry.messages]
        return entry

    async def update(self, session_id: str, **fields: Any) -> CachedSession:
        entry = await self.cache.update(session_id, **fields)
        if session_id == self.active_id:
            self.code = entry.code
            self.language = entry.language
        return entry

    async def set_code(self, code: str) -> None:
        self.code = code
        if self.active_id is not None:
            await self.cache.update(self.active_id, code=code)

    async def delete(self, session_id: str) -> None:
        await self.cache.delete(session_id)
        if session_id == self.active_id:
            self.active_id = None

    async def sync(self) -> list[CachedSession]:
        active = self.active
        sessions = await self.cache.sync()
        if active is not None:
            self._resync_active_id(active)
        return sessions

    async def add_message(self, role: str, content: str, push: bool = True) -> None:
        if self.active_id is not None:
            entry = await self.cache.add_message(self.active_id, role, content, push=push)
            self.messages.append(dict(entry.messages[-1]))
        else:
            self.messages.append({"role": role, "content": content, "timestamp": to_iso(utcnow())})

    async def ask(self, message: str) -> str:
        """Send a message to the code assistant and record the exchange.

        Code requests go through code generation, and a reply that looks like
        code replaces the editor's code. Provider failures become a local
        apology message; the stored code is left alone.
        """
        if self.assistant is None:
            raise RuntimeError("No code assistant configured")
        message = message.strip()
        if not message:
            raise ValueError("Message must not be empty")

        history = [{"role": m["role"], "content": m["content"]} for m in self.messages]
        await self.add_message("user", message)

        try:
            if is_code_request(message):
                reply = await self.assistant.generate_code(message)
                if looks_like_code(reply):
                    await self.set_code(reply)
            else:
                reply = await self.assistant.chat(message, history)
        except ProviderFailure as e:
            logger.warning("assistant_failed", provider=e.provider, error=e.message)
            reply = f"Sorry, I encountered an error: {e.message}"
            await self.add_message("assistant", reply, push=False)
            return reply

        await self.add_message("assistant", reply)
        return reply
