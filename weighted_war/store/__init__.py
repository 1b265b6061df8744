"""
Store Module - Persistence and fan-out of session documents.

The store is an external collaborator of the engine: it keeps one
Session document per room and broadcasts every new version. The
engine only relies on the SessionStore contract.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .base import SessionStore, SessionListener, Unsubscribe
from .memory import InMemorySessionStore

if TYPE_CHECKING:
    from ..config import Settings


def create_store(settings: Settings) -> SessionStore:
    """Redis when WAR_REDIS_URL is configured, otherwise in-memory."""
    if settings.redis_url:
        from .redis_store import RedisSessionStore
        return RedisSessionStore(url=settings.redis_url)
    return InMemorySessionStore()


__all__ = [
    "SessionStore",
    "SessionListener",
    "Unsubscribe",
    "InMemorySessionStore",
    "create_store",
]
