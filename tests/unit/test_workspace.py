"""Tests for the client-side session cache and workspace."""

import uuid

import pytest

from playground.client.api_client import ApiError
from playground.client.workspace import LOCAL_PREFIX, PlaygroundWorkspace, SessionCache
from playground.core.exceptions import ProviderFailure
from playground.llm.assistant import CodeAssistant


class FakePlaygroundApi:
    """In-memory stand-in for PlaygroundApi; ``online=False`` simulates an outage."""

    def __init__(self):
        self.online = True
        self.sessions: dict[str, dict] = {}
        self.clock = 0

    def _check(self):
        if not self.online:
            raise ApiError(None, "Network error: offline")

    def _tick(self) -> str:
        self.clock += 1
        return f"2024-01-01T00:00:{self.clock:02d}Z"

    async def create_session(self, **fields):
        self._check()
        session = {
            "id": uuid.uuid4().hex,
            "description": "",
            "code": "",
            "language": "tsx",
            "tags": [],
            "isPublic": False,
            "messages": [],
            **fields,
            "lastModified": self._tick(),
        }
        self.sessions[session["id"]] = session
        return dict(session)

    async def get_session(self, session_id):
        self._check()
        if session_id not in self.sessions:
            raise ApiError(404, "Session not found")
        return dict(self.sessions[session_id])

    async def update_session(self, session_id, **updates):
        self._check()
        if session_id not in self.sessions:
            raise ApiError(404, "Session not found")
        self.sessions[session_id].update(updates, lastModified=self._tick())
        return dict(self.sessions[session_id])

    async def add_message(self, session_id, role, content):
        self._check()
        self.sessions[session_id]["messages"].append({"role": role, "content": content})
        return dict(self.sessions[session_id])

    async def delete_session(self, session_id):
        self._check()
        if self.sessions.pop(session_id, None) is None:
            raise ApiError(404, "Session not found")

    async def get_sessions(self, page=None, limit=None, search=None):
        self._check()
        listed = [{k: v for k, v in s.items() if k != "messages"} for s in self.sessions.values()]
        return {"sessions": listed, "pagination": {"current": 1, "total": 1, "count": len(listed), "totalCount": len(listed)}}


class FailingLLM:
    async def generate(self, prompt, history=None):
        raise ProviderFailure("Invalid Gemini API key. Please check your API key.", provider="gemini")


@pytest.fixture
def api() -> FakePlaygroundApi:
    return FakePlaygroundApi()


@pytest.fixture
def cache(api) -> SessionCache:
    return SessionCache(api)


class TestSessionCache:
    """Test cases for SessionCache."""

    @pytest.mark.asyncio
    async def test_create_rekeys_to_server_id(self, cache, api):
        entry = await cache.create("Button Demo", code="export default 1")
        assert not entry.local_only
        assert not entry.id.startswith(LOCAL_PREFIX)
        assert entry.id in api.sessions
        assert list(cache.sessions) == [entry.id]

    @pytest.mark.asyncio
    async def test_create_offline_keeps_local_entry(self, cache, api):
        api.online = False
        entry = await cache.create("Offline")
        assert entry.local_only
        assert entry.id.startswith(LOCAL_PREFIX)
        assert api.sessions == {}

    @pytest.mark.asyncio
    async def test_update_applies_locally_even_when_push_fails(self, cache, api):
        entry = await cache.create("Demo")
        api.online = False
        await cache.update(entry.id, code="const b = 2")
        assert cache.get(entry.id).code == "const b = 2"
        assert cache.get(entry.id).dirty == {"code"}
        assert api.sessions[entry.id]["code"] == ""

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, cache):
        entry = await cache.create("Demo")
        with pytest.raises(ValueError):
            await cache.update(entry.id, owner="someone")

    @pytest.mark.asyncio
    async def test_delete_removes_locally_and_remotely(self, cache, api):
        entry = await cache.create("Demo")
        await cache.delete(entry.id)
        assert cache.get(entry.id) is None
        assert entry.id not in api.sessions

    @pytest.mark.asyncio
    async def test_delete_tolerates_server_failure(self, cache, api):
        entry = await cache.create("Demo")
        api.online = False
        await cache.delete(entry.id)
        assert cache.get(entry.id) is None

    @pytest.mark.asyncio
    async def test_sync_pushes_local_only_and_pending_edits(self, cache, api):
        synced = await cache.create("Synced")
        api.online = False
        offline = await cache.create("Offline", code="const a = 1")
        await cache.update(synced.id, description="edited offline")
        api.online = True

        await cache.sync()

        assert not offline.local_only
        assert offline.id in api.sessions
        assert api.sessions[offline.id]["code"] == "const a = 1"
        assert api.sessions[synced.id]["description"] == "edited offline"
        assert cache.get(synced.id).dirty == set()

    @pytest.mark.asyncio
    async def test_sync_merges_server_changes_and_deletions(self, cache, api):
        kept = await cache.create("Kept")
        gone = await cache.create("Gone")
        api.sessions[kept.id]["name"] = "Renamed elsewhere"
        del api.sessions[gone.id]
        other = await api.create_session(name="Created elsewhere")

        await cache.sync()

        assert cache.get(kept.id).name == "Renamed elsewhere"
        assert cache.get(gone.id) is None
        assert not cache.get(other["id"]).messages_loaded

    @pytest.mark.asyncio
    async def test_fetch_loads_transcript_for_listed_entries(self, cache, api):
        remote = await api.create_session(name="Remote")
        await api.add_message(remote["id"], "user", "hello")
        await cache.sync()

        entry = await cache.fetch(remote["id"])
        assert entry.messages_loaded
        assert entry.messages[0]["content"] == "hello"


class TestPlaygroundWorkspace:
    """Test cases for PlaygroundWorkspace."""

    @pytest.mark.asyncio
    async def test_load_swaps_editor_state(self, cache):
        first = await cache.create("First", code="const first = 1", language="jsx")
        second = await cache.create("Second", code="<div/>", language="html")
        workspace = PlaygroundWorkspace(cache)

        await workspace.load(first.id)
        assert (workspace.code, workspace.language) == ("const first = 1", "jsx")
        await workspace.load(second.id)
        assert (workspace.code, workspace.language, workspace.active_id) == ("<div/>", "html", second.id)

    @pytest.mark.asyncio
    async def test_ask_code_request_updates_code(self, cache, api, mock_llm):
        mock_llm.reply = "export default function Button() { return <button/> }"
        workspace = PlaygroundWorkspace(cache, CodeAssistant(mock_llm))
        entry = await workspace.create("Button Demo")

        await workspace.ask("Generate a button component")

        assert workspace.code == mock_llm.reply
        stored = api.sessions[entry.id]
        assert stored["code"] == mock_llm.reply
        assert [m["role"] for m in stored["messages"]] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_ask_chat_passes_history(self, cache, mock_llm):
        workspace = PlaygroundWorkspace(cache, CodeAssistant(mock_llm))
        await workspace.create("Chat")
        await workspace.ask("What is a hook?")
        await workspace.ask("And state?")

        assert "user: What is a hook?" in mock_llm.prompts[1]
        assert workspace.code == ""
        assert len(workspace.messages) == 4

    @pytest.mark.asyncio
    async def test_ask_code_reply_without_code_keeps_editor(self, cache, mock_llm):
        mock_llm.reply = "I am not sure what you mean."
        workspace = PlaygroundWorkspace(cache, CodeAssistant(mock_llm))
        workspace.code = "original"
        await workspace.ask("make something")
        assert workspace.code == "original"

    @pytest.mark.asyncio
    async def test_ask_provider_failure_is_local_only(self, cache, api):
        workspace = PlaygroundWorkspace(cache, CodeAssistant(FailingLLM()))
        entry = await workspace.create("Demo", code="const keep = 1")

        reply = await workspace.ask("Generate a card")

        assert reply == "Sorry, I encountered an error: Invalid Gemini API key. Please check your API key."
        assert workspace.code == "const keep = 1"
        assert [m["role"] for m in api.sessions[entry.id]["messages"]] == ["user"]
        assert [m["role"] for m in workspace.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_sync_follows_rekeyed_active_session(self, cache, api, mock_llm):
        api.online = False
        workspace = PlaygroundWorkspace(cache, CodeAssistant(mock_llm))
        entry = await workspace.create("Offline")
        assert workspace.active_id.startswith(LOCAL_PREFIX)

        api.online = True
        await workspace.sync()

        assert workspace.active_id == entry.id
        assert entry.id in api.sessions
