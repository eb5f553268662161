"""Playground session storage and operations."""

from playground.session.models import Message, Session, SessionPage, SessionQuery
from playground.session.store import InMemorySessionStore, RedisSessionStore

__all__ = [
    "Message",
    "Session",
    "SessionPage",
    "SessionQuery",
    "InMemorySessionStore",
    "RedisSessionStore",
]
