"""
Redis-backed session store.

Each session is one JSON string under `weighted_war:session:<id>`.
Every persisted version is also published on
`weighted_war:session:<id>:updates` so subscribers in other processes
receive it.

Conditional writes use WATCH/MULTI/EXEC: a concurrent writer touching
the key between our read and EXEC aborts the transaction.
"""

from __future__ import annotations
import json
import time
from typing import Any, Callable

from redis import Redis
from redis.exceptions import RedisError, WatchError

from ..engine_core.state import Session
from ..errors import (
    SessionAlreadyExists,
    SessionNotFound,
    StoreError,
    StoreWriteError,
    WriteConflict,
)
from ..logging_utils import get_logger
from .base import SessionStore, SessionListener, Unsubscribe

log = get_logger(__name__)

KEY_PREFIX = "weighted_war:session:"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class RedisSessionStore(SessionStore):
    """
    Session store on top of redis-py.

    Usage:
        store = RedisSessionStore(url="redis://redis:6379/0")
        store.create("abc123", session)
    """

    def __init__(
        self,
        client: Redis | None = None,
        url: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._redis = client or Redis.from_url(
            url or DEFAULT_REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
        self._clock = clock

    @staticmethod
    def key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    @staticmethod
    def channel(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}:updates"

    def create(self, session_id: str, session: Session) -> Session:
        now = self._clock()
        document = session.to_document()
        document.update(session_id=session_id, version=1, created_at=now, updated_at=now)
        payload = json.dumps(document)

        try:
            created = self._redis.set(self.key(session_id), payload, nx=True)
            if not created:
                raise SessionAlreadyExists(
                    f"Session {session_id} already exists", session_id=session_id
                )
            self._redis.publish(self.channel(session_id), payload)
        except RedisError as e:
            log.error("Failed to create session %s: %s", session_id, e)
            raise StoreWriteError(
                f"Failed to create session {session_id}: {e}", session_id=session_id
            ) from e

        return Session.from_document(document)

    def read(self, session_id: str) -> Session:
        try:
            raw = self._redis.get(self.key(session_id))
        except RedisError as e:
            log.error("Failed to read session %s: %s", session_id, e)
            raise StoreError(f"Failed to read session {session_id}: {e}", session_id=session_id) from e

        if raw is None:
            raise SessionNotFound(f"Session {session_id} not found", session_id=session_id)
        return Session.from_document(json.loads(raw))

    def write(
        self,
        session_id: str,
        session: Session,
        expected_version: int | None = None,
    ) -> Session:
        key = self.key(session_id)
        try:
            with self._redis.pipeline() as pipe:
                if expected_version is not None:
                    pipe.watch(key)
                    raw = pipe.get(key)
                else:
                    raw = self._redis.get(key)
                if raw is None:
                    raise SessionNotFound(f"Session {session_id} not found", session_id=session_id)

                current = json.loads(raw)
                if expected_version is not None and current["version"] != expected_version:
                    raise WriteConflict(
                        f"Session {session_id} is at version {current['version']}, "
                        f"expected {expected_version}",
                        session_id=session_id,
                        expected_version=expected_version,
                        actual_version=current["version"],
                    )

                document = self._next_document(session_id, session, current)
                payload = json.dumps(document)

                pipe.multi()
                pipe.set(key, payload)
                pipe.publish(self.channel(session_id), payload)
                pipe.execute()
        except WatchError as e:
            raise WriteConflict(
                f"Session {session_id} changed during write",
                session_id=session_id,
                expected_version=expected_version,
            ) from e
        except RedisError as e:
            log.error("Failed to write session %s: %s", session_id, e)
            raise StoreWriteError(
                f"Failed to write session {session_id}: {e}", session_id=session_id
            ) from e

        return Session.from_document(document)

    def subscribe(self, session_id: str, on_change: SessionListener) -> Unsubscribe:
        pubsub = self._redis.pubsub(ignore_subscribe_messages=True)

        def handler(message: dict[str, Any]):
            try:
                on_change(Session.from_document(json.loads(message["data"])))
            except Exception:
                log.exception("Listener failed for session %s", session_id)

        try:
            pubsub.subscribe(**{self.channel(session_id): handler})
            worker = pubsub.run_in_thread(sleep_time=0.01, daemon=True)
        except RedisError as e:
            pubsub.close()
            raise StoreError(
                f"Failed to subscribe to session {session_id}: {e}", session_id=session_id
            ) from e

        def unsubscribe():
            log.info("Unsubscribing from %s", self.channel(session_id))
            worker.stop()
            pubsub.close()

        return unsubscribe

    def _next_document(
        self, session_id: str, session: Session, current: dict[str, Any]
    ) -> dict[str, Any]:
        document = session.to_document()
        document.update(
            session_id=session_id,
            version=current.get("version", 0) + 1,
            created_at=current.get("created_at", 0.0),
            updated_at=self._clock(),
        )
        return document
