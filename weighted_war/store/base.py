"""
Session Store - Durable keyed storage for one Session document per room.

Contract:
- create: fails with SessionAlreadyExists if the id is taken
- read: point read, fails with SessionNotFound
- write: whole-document replace; with expected_version it becomes a
  compare-and-swap that fails with WriteConflict
- subscribe: every persisted version goes to every current subscriber,
  including versions produced by the subscriber's own writes

Stores own `version`, `created_at` and `updated_at` on the documents
they persist. Whatever the caller passed in is overwritten.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

from ..engine_core.state import Session

SessionListener = Callable[[Session], None]
Unsubscribe = Callable[[], None]


class SessionStore(ABC):
    """Abstract base class for session stores."""

    @abstractmethod
    def create(self, session_id: str, session: Session) -> Session:
        """
        Persist a brand new session.

        Returns:
            The stored session (version 1)
        """
        pass

    @abstractmethod
    def read(self, session_id: str) -> Session:
        """Read the latest persisted version."""
        pass

    @abstractmethod
    def write(
        self,
        session_id: str,
        session: Session,
        expected_version: int | None = None,
    ) -> Session:
        """
        Replace the stored document.

        Args:
            session_id: Room to write
            session: Next document
            expected_version: Only write if the stored version still matches.
                None writes unconditionally (last write wins).

        Returns:
            The stored session with its new version
        """
        pass

    @abstractmethod
    def subscribe(self, session_id: str, on_change: SessionListener) -> Unsubscribe:
        """
        Register a listener for new versions of a session.

        Returns:
            Callable that removes the listener
        """
        pass
