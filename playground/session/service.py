"""Playground session operations with ownership and validation rules.

Every owner-scoped operation goes through a single (id, owner) store query,
so a session that does not exist and a session owned by someone else both
surface as the same ``NotFound``. Validation always runs before the store is
touched.
"""

from typing import Any

from playground.auth.models import User
from playground.core.exceptions import NotFound, ValidationFailed
from playground.core.logging import get_logger
from playground.core.protocols import SessionStore, UserStore
from playground.session.models import (
    Invalid,
    Session,
    SessionQuery,
    append_message,
    apply_update,
    new_session,
    parse_tag_filter,
    validate_fields,
    validate_message,
)

logger = get_logger(__name__)

SESSION_NOT_FOUND = "Session not found"


class SessionService:
    """Create/read/update/delete/list over a ``SessionStore``."""

    def __init__(
        self,
        store: SessionStore,
        users: UserStore,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ):
        self.store = store
        self.users = users
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def build_query(
        self,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
        tags: str | None = None,
    ) -> SessionQuery:
        """Normalize list parameters; ``limit`` is capped at ``max_page_size``."""
        return SessionQuery(
            page=max(page or 1, 1),
            limit=min(max(limit or self.default_page_size, 1), self.max_page_size),
            search=search.strip() if search and search.strip() else None,
            tags=tuple(parse_tag_filter(tags)),
        )

    async def list_owned(self, owner: User, query: SessionQuery) -> dict[str, Any]:
        """Page of the caller's sessions without transcripts."""
        page = await self.store.list_owned(owner.id, query)
        return {
            "sessions": [s.to_dict(include_messages=False) for s in page.sessions],
            "pagination": page.pagination(query),
        }

    async def get(self, owner: User, session_id: str) -> Session:
        session = await self.store.get_owned(session_id, owner.id)
        if session is None:
            raise NotFound(SESSION_NOT_FOUND)
        return session

    async def create(self, owner: User, payload: dict[str, Any]) -> Session:
        result = validate_fields(payload, require_name=True)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())

        session = await self.store.insert(new_session(owner.id, result.value))
        logger.info("session_created", session_id=session.id, language=session.language)
        return session

    async def update(self, owner: User, session_id: str, payload: dict[str, Any]) -> Session:
        """Apply the supplied subset of fields; all-or-nothing per request."""
        result = validate_fields(payload, require_name=False)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts())
        fields = result.value

        session = await self.store.update_owned(session_id, owner.id, lambda s: apply_update(s, fields))
        if session is None:
            raise NotFound(SESSION_NOT_FOUND)
        logger.info("session_updated", session_id=session_id, fields=sorted(fields))
        return session

    async def append_message(self, owner: User, session_id: str, payload: dict[str, Any]) -> Session:
        result = validate_message(payload)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.to_dicts(), message=result.errors[0].message)
        role, content = result.value

        session = await self.store.update_owned(
            session_id, owner.id, lambda s: append_message(s, role, content)
        )
        if session is None:
            raise NotFound(SESSION_NOT_FOUND)
        logger.debug("session_message_appended", session_id=session_id, role=role, count=len(session.messages))
        return session

    async def delete(self, owner: User, session_id: str) -> None:
        if not await self.store.delete_owned(session_id, owner.id):
            raise NotFound(SESSION_NOT_FOUND)
        logger.info("session_deleted", session_id=session_id)

    async def list_public(self, query: SessionQuery) -> dict[str, Any]:
        """Page of public sessions with the owner projected to name/avatar."""
        page = await self.store.list_public(query)

        owners: dict[str, dict[str, Any] | None] = {}
        sessions = []
        for session in page.sessions:
            if session.owner_id not in owners:
                user = await self.users.get(session.owner_id)
                owners[session.owner_id] = user.to_owner_summary() if user else None
            data = session.to_dict(include_messages=False)
            del data["ownerId"]
            data["owner"] = owners[session.owner_id]
            sessions.append(data)

        return {"sessions": sessions, "pagination": page.pagination(query)}
