"""Tests for SessionService ownership and validation rules."""

import asyncio

import pytest

from playground.auth.models import new_user
from playground.core.exceptions import NotFound, ValidationFailed


@pytest.fixture
async def owners(user_store):
    alice = await user_store.create(new_user("Alice", "alice@example.com", "hash"))
    bob = await user_store.create(new_user("Bob", "bob@example.com", "hash"))
    return alice, bob


class TestSessionService:
    """Test cases for SessionService."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, session_service, owners):
        alice, _ = owners
        session = await session_service.create(alice, {"name": "Button Demo", "code": "export default 1"})
        fetched = await session_service.get(alice, session.id)
        assert fetched.name == "Button Demo"
        assert fetched.owner_id == alice.id

    @pytest.mark.asyncio
    async def test_create_ignores_supplied_owner(self, session_service, owners):
        alice, bob = owners
        session = await session_service.create(alice, {"name": "Demo", "ownerId": bob.id})
        assert session.owner_id == alice.id

    @pytest.mark.asyncio
    async def test_create_invalid(self, session_service, owners):
        alice, _ = owners
        with pytest.raises(ValidationFailed) as exc_info:
            await session_service.create(alice, {"name": "", "language": "python"})
        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"name", "language"}

    @pytest.mark.asyncio
    async def test_non_owner_sees_not_found_even_when_public(self, session_service, owners):
        alice, bob = owners
        session = await session_service.create(alice, {"name": "Shared", "isPublic": True})
        with pytest.raises(NotFound):
            await session_service.get(bob, session.id)
        with pytest.raises(NotFound):
            await session_service.update(bob, session.id, {"name": "Hijacked"})
        with pytest.raises(NotFound):
            await session_service.append_message(bob, session.id, {"role": "user", "content": "hi"})
        with pytest.raises(NotFound):
            await session_service.delete(bob, session.id)
        assert (await session_service.get(alice, session.id)).name == "Shared"

    @pytest.mark.asyncio
    async def test_validation_runs_before_lookup(self, session_service, owners):
        """An invalid body is rejected before ownership is considered."""
        _, bob = owners
        with pytest.raises(ValidationFailed):
            await session_service.update(bob, "does-not-exist", {"language": "cobol"})

    @pytest.mark.asyncio
    async def test_partial_update(self, session_service, owners):
        alice, _ = owners
        session = await session_service.create(alice, {"name": "Demo", "code": "const a = 1", "tags": ["ui"]})
        updated = await session_service.update(alice, session.id, {"description": "Now described"})
        assert updated.code == "const a = 1"
        assert updated.tags == ["ui"]
        assert updated.description == "Now described"
        assert updated.last_modified > session.last_modified

    @pytest.mark.asyncio
    async def test_append_message_error_message(self, session_service, owners):
        alice, _ = owners
        session = await session_service.create(alice, {"name": "Demo"})
        with pytest.raises(ValidationFailed) as exc_info:
            await session_service.append_message(alice, session.id, {"role": "system", "content": "x"})
        assert exc_info.value.message == 'Role must be either "user" or "assistant"'

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_atomic(self, session_service, owners):
        alice, _ = owners
        session = await session_service.create(alice, {"name": "Chatty"})
        await asyncio.gather(
            *(
                session_service.append_message(alice, session.id, {"role": "user", "content": f"m{i}"})
                for i in range(25)
            )
        )
        stored = await session_service.get(alice, session.id)
        assert len(stored.messages) == 25

    @pytest.mark.asyncio
    async def test_list_owned_omits_messages(self, session_service, owners):
        alice, _ = owners
        session = await session_service.create(alice, {"name": "Demo"})
        await session_service.append_message(alice, session.id, {"role": "user", "content": "hi"})

        result = await session_service.list_owned(alice, session_service.build_query())
        assert result["pagination"] == {"current": 1, "total": 1, "count": 1, "totalCount": 1}
        assert "messages" not in result["sessions"][0]

    @pytest.mark.asyncio
    async def test_list_public_projects_owner(self, session_service, owners):
        alice, _ = owners
        await session_service.create(alice, {"name": "Shared", "isPublic": True})
        result = await session_service.list_public(session_service.build_query())
        entry = result["sessions"][0]
        assert entry["owner"] == {"id": alice.id, "name": "Alice", "avatar": None}
        assert "ownerId" not in entry
        assert "messages" not in entry

    def test_build_query_clamps(self, session_service):
        query = session_service.build_query(page=0, limit=1000, search="  ", tags="ui, ,forms")
        assert query.page == 1
        assert query.limit == 100
        assert query.search is None
        assert query.tags == ("ui", "forms")

    def test_build_query_defaults(self, session_service):
        query = session_service.build_query()
        assert (query.page, query.limit) == (1, 10)
