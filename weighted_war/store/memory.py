"""
In-memory session store.

Used by tests, the CLI simulator, and single-process deployments.
Documents are kept in their serialized form so readers never share
mutable objects with the store.
"""

from __future__ import annotations
import threading
import time
from typing import Any, Callable

from ..engine_core.state import Session
from ..errors import SessionAlreadyExists, SessionNotFound, WriteConflict
from ..logging_utils import get_logger
from .base import SessionStore, SessionListener, Unsubscribe

log = get_logger(__name__)


class InMemorySessionStore(SessionStore):
    """
    Dict-backed store with synchronous fan-out.

    Usage:
        store = InMemorySessionStore()
        store.create("abc123", session)

        unsubscribe = store.subscribe("abc123", print)
        store.write("abc123", next_session, expected_version=1)
        unsubscribe()
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._documents: dict[str, dict[str, Any]] = {}
        self._listeners: dict[str, list[SessionListener]] = {}
        # Re-entrant so listeners may read back from the store
        self._lock = threading.RLock()

    def create(self, session_id: str, session: Session) -> Session:
        with self._lock:
            if session_id in self._documents:
                raise SessionAlreadyExists(
                    f"Session {session_id} already exists", session_id=session_id
                )
            now = self._clock()
            document = session.to_document()
            document.update(session_id=session_id, version=1, created_at=now, updated_at=now)
            self._documents[session_id] = document
            stored = Session.from_document(document)
            self._notify(session_id, document)
        return stored

    def read(self, session_id: str) -> Session:
        with self._lock:
            document = self._documents.get(session_id)
            if document is None:
                raise SessionNotFound(f"Session {session_id} not found", session_id=session_id)
            return Session.from_document(document)

    def write(
        self,
        session_id: str,
        session: Session,
        expected_version: int | None = None,
    ) -> Session:
        with self._lock:
            current = self._documents.get(session_id)
            if current is None:
                raise SessionNotFound(f"Session {session_id} not found", session_id=session_id)
            if expected_version is not None and current["version"] != expected_version:
                raise WriteConflict(
                    f"Session {session_id} is at version {current['version']}, "
                    f"expected {expected_version}",
                    session_id=session_id,
                    expected_version=expected_version,
                    actual_version=current["version"],
                )

            document = session.to_document()
            document.update(
                session_id=session_id,
                version=current["version"] + 1,
                created_at=current["created_at"],
                updated_at=self._clock(),
            )
            self._documents[session_id] = document
            stored = Session.from_document(document)
            # Notify under the lock so listeners see versions in order
            self._notify(session_id, document)
        return stored

    def subscribe(self, session_id: str, on_change: SessionListener) -> Unsubscribe:
        with self._lock:
            self._listeners.setdefault(session_id, []).append(on_change)

        def unsubscribe():
            with self._lock:
                listeners = self._listeners.get(session_id, [])
                if on_change in listeners:
                    listeners.remove(on_change)
                if not listeners:
                    self._listeners.pop(session_id, None)

        return unsubscribe

    def listener_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(session_id, []))

    def _notify(self, session_id: str, document: dict[str, Any]):
        for listener in list(self._listeners.get(session_id, [])):
            try:
                listener(Session.from_document(document))
            except Exception:
                # A broken listener must not undo a persisted write
                log.exception("Listener failed for session %s", session_id)
