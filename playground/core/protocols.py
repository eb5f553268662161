"""Protocol interfaces for dependency injection."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from playground.auth.models import User
    from playground.session.models import Session, SessionPage, SessionQuery


@runtime_checkable
class TextGenerator(Protocol):
    """Text-generation provider interface."""

    async def generate(self, prompt: str, history: list[dict[str, str]] | None = None) -> str:
        """Generate a reply for ``prompt``.

        Args:
            prompt: Prompt text
            history: Prior turns as ``{"role", "content"}`` pairs

        Raises:
            ProviderFailure: On any provider error
        """
        ...


@runtime_checkable
class PasswordHasher(Protocol):
    """Black-box credential hashing."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


@runtime_checkable
class UserStore(Protocol):
    """User record storage interface."""

    async def create(self, user: "User") -> "User":
        """Insert a user.

        Raises:
            Conflict: If the e-mail is already registered
        """
        ...

    async def get(self, user_id: str) -> "User | None":
        """Get a user by ID."""
        ...

    async def get_by_email(self, email: str) -> "User | None":
        """Get a user by normalized e-mail."""
        ...

    async def update_fields(self, user_id: str, **fields: Any) -> "User | None":
        """Atomically set the given fields; returns None for an unknown id."""
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Playground session storage interface.

    Every owner-scoped method takes both the session ID and the owner ID and
    treats "not found" and "owned by someone else" identically.
    """

    async def insert(self, session: "Session") -> "Session":
        """Persist a new session."""
        ...

    async def get(self, session_id: str) -> "Session | None":
        """Point lookup by ID without ownership check."""
        ...

    async def get_owned(self, session_id: str, owner_id: str) -> "Session | None":
        """Point lookup scoped to (id, owner)."""
        ...

    async def update_owned(
        self,
        session_id: str,
        owner_id: str,
        mutate: "Callable[[Session], Session]",
    ) -> "Session | None":
        """Atomically read, transform and write one owned session.

        Args:
            session_id: Session identifier
            owner_id: Caller user ID
            mutate: Pure function from the current to the new session

        Returns:
            The stored result, or None if not found / not owned
        """
        ...

    async def delete_owned(self, session_id: str, owner_id: str) -> bool:
        """Delete one owned session; False if not found / not owned."""
        ...

    async def list_owned(self, owner_id: str, query: "SessionQuery") -> "SessionPage":
        """Owner's sessions, most recently modified first, searched on name/description/tags."""
        ...

    async def list_public(self, query: "SessionQuery") -> "SessionPage":
        """Public sessions, newest first, searched on name/description and filtered by any tag."""
        ...
