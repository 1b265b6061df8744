"""
Tests for session stores.

Tests:
- In-memory create/read/write and versioning
- Compare-and-swap conflicts
- Subscription fan-out
- Redis store error mapping (against a mocked client)
"""

import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, WatchError

from ..engine_core.state import Session, Seat
from ..errors import (
    SessionAlreadyExists,
    SessionNotFound,
    StoreError,
    StoreWriteError,
    WriteConflict,
)
from ..store import InMemorySessionStore, create_store
from ..store.redis_store import RedisSessionStore
from ..config import Settings


class TestInMemoryStore:

    def test_create_and_read(self, store, waiting_session):
        created = store.create("room1", waiting_session)
        read = store.read("room1")

        assert created.version == 1
        assert read.to_document() == created.to_document()
        assert read.created_at == read.updated_at > 0

    def test_create_duplicate_fails(self, store, waiting_session):
        store.create("room1", waiting_session)

        with pytest.raises(SessionAlreadyExists):
            store.create("room1", waiting_session)

    def test_read_missing(self, store):
        with pytest.raises(SessionNotFound):
            store.read("nope")

    def test_write_missing(self, store, waiting_session):
        with pytest.raises(SessionNotFound):
            store.write("nope", waiting_session)

    def test_write_bumps_version(self, store, waiting_session):
        created = store.create("room1", waiting_session)
        updated = store.write("room1", created._copy_with(draw_index=1))

        assert updated.version == 2
        assert updated.draw_index == 1
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    def test_store_owns_version(self, store, waiting_session):
        """A caller-supplied version is ignored."""
        created = store.create("room1", waiting_session)
        updated = store.write("room1", created._copy_with(version=99))

        assert updated.version == 2

    def test_conditional_write_conflict(self, store, waiting_session):
        created = store.create("room1", waiting_session)
        store.write("room1", created)

        with pytest.raises(WriteConflict) as exc_info:
            store.write("room1", created, expected_version=created.version)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert isinstance(exc_info.value, StoreWriteError)

    def test_reads_are_copies(self, store, waiting_session):
        store.create("room1", waiting_session)
        read = store.read("room1")
        read.hands[Seat.LEFT].clear()

        assert store.read("room1").hands[Seat.LEFT] == list(range(1, 12))

    def test_subscribers_see_every_version(self, store, waiting_session):
        store.create("room1", waiting_session)
        seen_a, seen_b = [], []
        store.subscribe("room1", lambda s: seen_a.append(s.version))
        store.subscribe("room1", lambda s: seen_b.append(s.version))

        current = store.read("room1")
        store.write("room1", current)
        store.write("room1", current)

        assert seen_a == [2, 3]
        assert seen_b == [2, 3]

    def test_unsubscribe(self, store, waiting_session):
        store.create("room1", waiting_session)
        seen = []
        unsubscribe = store.subscribe("room1", lambda s: seen.append(s.version))
        unsubscribe()

        store.write("room1", store.read("room1"))

        assert seen == []
        assert store.listener_count("room1") == 0

    def test_failing_listener_does_not_block_others(self, store, waiting_session):
        store.create("room1", waiting_session)
        seen = []

        def broken(session):
            raise RuntimeError("boom")

        store.subscribe("room1", broken)
        store.subscribe("room1", lambda s: seen.append(s.version))

        stored = store.write("room1", store.read("room1"))

        assert stored.version == 2
        assert seen == [2]


class TestCreateStore:

    def test_in_memory_by_default(self):
        assert isinstance(create_store(Settings()), InMemorySessionStore)

    def test_redis_when_url_configured(self):
        store = create_store(Settings(redis_url="redis://localhost:6379/0"))
        assert isinstance(store, RedisSessionStore)


def _document(session: Session, version: int) -> str:
    document = session.to_document()
    document.update(version=version, created_at=1.0, updated_at=1.0)
    return json.dumps(document)


class TestRedisStore:
    """RedisSessionStore against a mocked redis client."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        self.pipe = MagicMock()
        client.pipeline.return_value.__enter__.return_value = self.pipe
        return client

    @pytest.fixture
    def redis_store(self, client):
        return RedisSessionStore(client=client, clock=lambda: 5.0)

    def test_create_sets_and_publishes(self, redis_store, client, waiting_session):
        client.set.return_value = True

        created = redis_store.create("room1", waiting_session)

        assert created.version == 1
        key, payload = client.set.call_args.args
        assert key == "weighted_war:session:room1"
        assert client.set.call_args.kwargs == {"nx": True}
        client.publish.assert_called_once_with("weighted_war:session:room1:updates", payload)

    def test_create_existing(self, redis_store, client, waiting_session):
        client.set.return_value = None

        with pytest.raises(SessionAlreadyExists):
            redis_store.create("room1", waiting_session)
        client.publish.assert_not_called()

    def test_read_round_trips_document(self, redis_store, client, two_player_session):
        client.get.return_value = _document(two_player_session, 4)

        session = redis_store.read("room1")

        assert session.version == 4
        assert session.participants["bob"].seat == Seat.RIGHT
        assert session.table_card == 7

    def test_read_missing(self, redis_store, client):
        client.get.return_value = None

        with pytest.raises(SessionNotFound):
            redis_store.read("room1")

    def test_read_backend_failure(self, redis_store, client):
        client.get.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreError):
            redis_store.read("room1")

    def test_conditional_write_version_mismatch(self, redis_store, waiting_session):
        self.pipe.get.return_value = _document(waiting_session, 3)

        with pytest.raises(WriteConflict):
            redis_store.write("room1", waiting_session, expected_version=2)
        self.pipe.watch.assert_called_once_with("weighted_war:session:room1")
        self.pipe.execute.assert_not_called()

    def test_conditional_write_watch_error(self, redis_store, waiting_session):
        self.pipe.get.return_value = _document(waiting_session, 2)
        self.pipe.execute.side_effect = WatchError("changed")

        with pytest.raises(WriteConflict):
            redis_store.write("room1", waiting_session, expected_version=2)

    def test_conditional_write_success(self, redis_store, waiting_session):
        self.pipe.get.return_value = _document(waiting_session, 2)

        stored = redis_store.write("room1", waiting_session, expected_version=2)

        assert stored.version == 3
        assert stored.updated_at == 5.0
        assert stored.created_at == 1.0
        self.pipe.multi.assert_called_once()
        self.pipe.execute.assert_called_once()

    def test_unconditional_write_skips_watch(self, redis_store, client, waiting_session):
        client.get.return_value = _document(waiting_session, 7)

        stored = redis_store.write("room1", waiting_session)

        assert stored.version == 8
        self.pipe.watch.assert_not_called()

    def test_write_backend_failure(self, redis_store, waiting_session):
        self.pipe.get.return_value = _document(waiting_session, 2)
        self.pipe.execute.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreWriteError):
            redis_store.write("room1", waiting_session, expected_version=2)

    def test_subscribe_delivers_published_versions(self, redis_store, client, two_player_session):
        pubsub = client.pubsub.return_value
        seen = []
        redis_store.subscribe("room1", seen.append)

        handler = pubsub.subscribe.call_args.kwargs["weighted_war:session:room1:updates"]
        handler({"data": _document(two_player_session, 2)})
        handler({"data": _document(two_player_session, 3)})

        assert [s.version for s in seen] == [2, 3]
        assert seen[0].participants["alice"].seat == Seat.LEFT
        pubsub.run_in_thread.assert_called_once()

    def test_failing_listener_is_contained(self, redis_store, client, two_player_session):
        pubsub = client.pubsub.return_value

        def broken(session):
            raise RuntimeError("boom")

        redis_store.subscribe("room1", broken)
        handler = pubsub.subscribe.call_args.kwargs["weighted_war:session:room1:updates"]

        # Logged, not raised into the pubsub worker thread
        assert handler({"data": _document(two_player_session, 2)}) is None

    def test_unsubscribe_stops_worker(self, redis_store, client):
        pubsub = client.pubsub.return_value
        worker = pubsub.run_in_thread.return_value

        unsubscribe = redis_store.subscribe("room1", lambda s: None)
        unsubscribe()

        worker.stop.assert_called_once()
        pubsub.close.assert_called_once()

    def test_subscribe_backend_failure(self, redis_store, client):
        pubsub = client.pubsub.return_value
        pubsub.subscribe.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreError):
            redis_store.subscribe("room1", lambda s: None)
        pubsub.close.assert_called_once()
