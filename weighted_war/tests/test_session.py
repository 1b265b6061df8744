"""
Tests for the session lifecycle and the game loop.

Tests:
- Creating and joining sessions
- Bid submission through the store
- Concurrent bids with and without optimistic writes
- Subscriptions
"""

import random

import pytest

from ..config import Settings
from ..engine_core.action import Action
from ..engine_core.reducer import Reducer
from ..engine_core.scoring import card_ledger
from ..engine_core.state import Seat, GamePhase, RANKS
from ..errors import (
    AlreadyJoined,
    RoomFull,
    SessionAlreadyExists,
    SessionNotFound,
    WriteConflict,
)
from ..session import SessionManager, GameLoop
from ..store import InMemorySessionStore
from .conftest import FakeClock


class RacingStore(InMemorySessionStore):
    """Lands one competing action just before the next write goes through."""

    def __init__(self):
        super().__init__(clock=FakeClock())
        self.competing_action = None

    def write(self, session_id, session, expected_version=None):
        if self.competing_action is not None:
            action, self.competing_action = self.competing_action, None
            current = self.read(session_id)
            super().write(session_id, Reducer().apply(current, action).new_state)
        return super().write(session_id, session, expected_version=expected_version)


class AlwaysConflictingStore(InMemorySessionStore):
    """Every conditional write loses."""

    def __init__(self):
        super().__init__(clock=FakeClock())
        self.conditional_writes = 0

    def write(self, session_id, session, expected_version=None):
        if expected_version is not None:
            self.conditional_writes += 1
            raise WriteConflict("lost", session_id=session_id, expected_version=expected_version)
        return super().write(session_id, session)


def _started(store, settings):
    manager = SessionManager(store=store, settings=settings, rng=random.Random(8))
    manager.create_session("room1", "alice", "Alice")
    manager.join_session("room1", "bob", "Bob")
    return manager


class TestSessionLifecycle:
    """Tests for create and join."""

    def test_create_seats_creator_left(self, manager):
        session = manager.create_session("room1", "alice", "Alice")

        assert session.version == 1
        assert session.phase == GamePhase.WAITING
        assert session.participants["alice"].seat == Seat.LEFT
        assert session.participants["alice"].display_name == "Alice"
        assert session.table_card is None

    def test_create_deals_full_deck(self, manager):
        session = manager.create_session("room1", "alice")

        assert len(session.draw_pile) == len(RANKS) - 1
        assert session.hands[Seat.LEFT] == list(RANKS)
        assert session.hands[Seat.RIGHT] == list(RANKS)

    def test_create_duplicate(self, manager):
        manager.create_session("room1", "alice")

        with pytest.raises(SessionAlreadyExists):
            manager.create_session("room1", "carol")

    def test_join_starts_play(self, started_room):
        assert started_room.version == 2
        assert started_room.phase == GamePhase.PLAYING
        assert started_room.participants["bob"].seat == Seat.RIGHT
        assert started_room.table_card == started_room.draw_pile[0]
        assert started_room.draw_index == 0

    def test_join_full_room_changes_nothing(self, manager, started_room):
        with pytest.raises(RoomFull):
            manager.join_session("room1", "carol", "Carol")

        assert manager.get_session("room1").version == started_room.version

    def test_join_twice(self, manager):
        manager.create_session("room1", "alice")

        with pytest.raises(AlreadyJoined):
            manager.join_session("room1", "alice")

    def test_join_unknown_room(self, manager):
        with pytest.raises(SessionNotFound):
            manager.join_session("nope", "bob")

    def test_new_session_ids_are_short_and_distinct(self, manager):
        ids = {manager.new_session_id() for _ in range(20)}

        assert len(ids) == 20
        assert all(len(i) == 6 for i in ids)


class TestGameLoop:
    """Tests for bid submission."""

    def test_first_bid_is_stored(self, game_loop, started_room):
        result = game_loop.submit_bid("room1", "alice", Seat.LEFT, 3)

        assert result.accepted
        assert not result.round_resolved
        assert result.session.version == started_room.version + 1
        assert result.session.pending_bids[Seat.LEFT] == 3

    def test_second_bid_resolves_round(self, game_loop, started_room):
        table = started_room.table_card
        game_loop.submit_bid("room1", "alice", Seat.LEFT, 3)
        result = game_loop.submit_bid("room1", "bob", Seat.RIGHT, 9)

        assert result.round_resolved
        assert result.outcome.table_card == table
        assert result.outcome.winner == Seat.RIGHT
        assert result.session.won_cards[Seat.RIGHT] == [table]
        assert result.session.draw_index == 1

    def test_ignored_bid_does_not_write(self, manager, game_loop, started_room):
        result = game_loop.submit_bid("room1", "bob", Seat.LEFT, 3)

        assert not result.accepted
        assert result.ignored_reason
        assert result.session.version == started_room.version
        assert manager.get_session("room1").version == started_room.version

    def test_unknown_room(self, game_loop):
        with pytest.raises(SessionNotFound):
            game_loop.submit_bid("nope", "alice", Seat.LEFT, 3)

    def test_full_game(self, manager, game_loop, started_room):
        """Both seats bid their hand in order until the pile runs out."""
        session = started_room
        rounds = 0
        while session.phase == GamePhase.PLAYING:
            for identity, seat in (("alice", Seat.LEFT), ("bob", Seat.RIGHT)):
                value = min(session.hands[seat])
                session = game_loop.submit_bid("room1", identity, seat, value).session
            rounds += 1

        assert rounds == len(started_room.draw_pile)
        assert session.phase == GamePhase.FINISHED
        assert card_ledger(session).balanced
        # Equal bids every round: every card ends in the forfeited pot
        assert sorted(session.pot_cards) == sorted(started_room.draw_pile)


class TestConcurrentBids:
    """Both seats bidding on the same version of a session."""

    def test_optimistic_write_keeps_both_bids(self):
        store = RacingStore()
        manager = _started(store, Settings())
        table = manager.get_session("room1").table_card

        store.competing_action = Action.bid("bob", Seat.RIGHT, 5)
        result = GameLoop(manager).submit_bid("room1", "alice", Seat.LEFT, 3)

        assert result.accepted
        assert result.round_resolved
        assert result.outcome.bids == {Seat.LEFT: 3, Seat.RIGHT: 5}
        stored = manager.get_session("room1")
        assert stored.won_cards[Seat.RIGHT] == [table]
        assert 3 not in stored.hands[Seat.LEFT]
        assert 5 not in stored.hands[Seat.RIGHT]
        assert card_ledger(stored).balanced

    def test_last_write_wins_loses_a_bid(self):
        """Without version checks the later write erases the competing bid."""
        store = RacingStore()
        manager = _started(store, Settings(optimistic_writes=False))

        store.competing_action = Action.bid("bob", Seat.RIGHT, 5)
        result = GameLoop(manager).submit_bid("room1", "alice", Seat.LEFT, 3)

        assert result.accepted
        assert not result.round_resolved
        stored = manager.get_session("room1")
        assert stored.pending_bids == {Seat.LEFT: 3, Seat.RIGHT: None}
        assert 5 in stored.hands[Seat.RIGHT]

    def test_gives_up_after_max_retries(self):
        store = AlwaysConflictingStore()
        manager = SessionManager(store=store, settings=Settings(max_write_retries=3))
        manager.create_session("room1", "alice")

        with pytest.raises(WriteConflict):
            manager.join_session("room1", "bob")

        assert store.conditional_writes == 3
        assert manager.get_session("room1").version == 1


class TestSubscriptions:

    def test_subscriber_sees_every_version(self, manager, game_loop, started_room):
        versions = []
        unsubscribe = manager.subscribe("room1", lambda s: versions.append(s.version))

        game_loop.submit_bid("room1", "alice", Seat.LEFT, 3)
        game_loop.submit_bid("room1", "alice", Seat.LEFT, 4)  # ignored
        game_loop.submit_bid("room1", "bob", Seat.RIGHT, 3)
        unsubscribe()
        game_loop.submit_bid("room1", "alice", Seat.LEFT, 4)

        assert versions == [3, 4]

    def test_subscriber_sees_own_writes(self, manager):
        manager.create_session("room1", "alice")
        seen = []
        manager.subscribe("room1", seen.append)

        joined = manager.join_session("room1", "bob")

        assert [s.version for s in seen] == [joined.version]
        assert seen[0].phase == GamePhase.PLAYING
