"""
Pytest fixtures for Weighted War tests.
"""

import random

import pytest

from ..config import Settings
from ..engine_core.state import Session, Seat, GamePhase, Participant
from ..session import SessionManager, GameLoop
from ..store import InMemorySessionStore


class FakeClock:
    """Deterministic clock for store timestamps."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def two_player_session() -> Session:
    """A started session with a known draw pile: 7, 4, 9, 2."""
    return Session(
        session_id="room1",
        participants={
            "alice": Participant(identity="alice", display_name="Alice", seat=Seat.LEFT),
            "bob": Participant(identity="bob", display_name="Bob", seat=Seat.RIGHT),
        },
        draw_pile=[7, 4, 9, 2],
        phase=GamePhase.PLAYING,
    )


@pytest.fixture
def waiting_session() -> Session:
    """A fresh session with only the creator seated."""
    return Session(
        session_id="room1",
        participants={
            "alice": Participant(identity="alice", display_name="Alice", seat=Seat.LEFT),
        },
        draw_pile=[5, 3, 8],
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore(clock=FakeClock())


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def manager(store, settings) -> SessionManager:
    return SessionManager(store=store, settings=settings, rng=random.Random(42))


@pytest.fixture
def game_loop(manager) -> GameLoop:
    return GameLoop(manager)


@pytest.fixture
def started_room(manager) -> Session:
    """Room 'room1' created by alice and joined by bob."""
    manager.create_session("room1", "alice", "Alice")
    return manager.join_session("room1", "bob", "Bob")
