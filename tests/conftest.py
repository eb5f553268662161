"""Common test fixtures."""

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from playground.auth.passwords import BcryptHasher
from playground.auth.tokens import TokenService
from playground.auth.user_store import InMemoryUserStore
from playground.core.config import AppConfig, AuthConfig, LLMConfig, StoreConfig
from playground.core.di_container import container as di_container
from playground.session.service import SessionService
from playground.session.store import InMemorySessionStore

TEST_SECRET = "test-secret"
PASSWORD = "secret123"


class MockLLM:
    """Mock text generator for testing."""

    def __init__(self, reply: str = "This is a mock response."):
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt, history=None) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def test_config() -> AppConfig:
    """Create test configuration."""
    return AppConfig(
        debug=True,
        log_level="DEBUG",
        auth=AuthConfig(jwt_secret=TEST_SECRET, bcrypt_rounds=4),
        store=StoreConfig(backend="in_memory"),
        llm=LLMConfig(provider="gemini", model="gemini-2.0-flash", google_api_key="test-key"),
    )


@pytest.fixture
def mock_llm() -> MockLLM:
    """Create mock LLM provider."""
    return MockLLM()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session_service(session_store, user_store) -> SessionService:
    return SessionService(store=session_store, users=user_store)


@pytest.fixture
def di_container_fixture(test_config):
    """Provide the DI container bound to the test configuration.

    Singletons are reset on both sides so every test starts from empty stores.
    """
    di_container.reset_singletons()
    with di_container.config.override(providers.Object(test_config)):
        yield di_container
    di_container.reset_singletons()


@pytest.fixture
def client(di_container_fixture):
    """Create test client with the application lifespan running."""
    from playground.main import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register_user(client):
    """Register an account and return ``{user, accessToken, refreshToken}``."""

    def _register(name: str = "Ada", email: str = "ada@example.com", password: str = PASSWORD) -> dict:
        response = client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


@pytest.fixture
def alice(register_user) -> dict:
    return register_user("Alice", "alice@example.com")


@pytest.fixture
def bob(register_user) -> dict:
    return register_user("Bob", "bob@example.com")
