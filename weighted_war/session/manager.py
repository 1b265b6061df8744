"""
Session Manager - Creates sessions and seats players.

LIFECYCLE:
1. Creator opens a room -> deck dealt, creator seated LEFT, phase WAITING
2. Second player joins -> seated RIGHT, phase PLAYING, first table card up
3. Bids are handled by the GameLoop until the draw pile runs out
4. Phase FINISHED -> the document never changes again

PERSISTENCE RULES:
- The store holds the only copy of a session
- Every entry point reads, applies a pure transition, and writes back
- With optimistic writes on, a lost compare-and-swap re-reads and
  re-applies the transition instead of overwriting a concurrent update
"""

from __future__ import annotations
import random
import uuid
from typing import Callable

from ..config import Settings
from ..engine_core.action import Action, ActionResult
from ..engine_core.deck import build_deck
from ..engine_core.reducer import Reducer
from ..engine_core.state import Session, Seat, Participant
from ..errors import AlreadyJoined, RoomFull, WarError, WriteConflict
from ..logging_utils import get_logger
from ..store import SessionStore, InMemorySessionStore, Unsubscribe

log = get_logger(__name__)

_FAILURES = {
    "ALREADY_JOINED": AlreadyJoined,
    "ROOM_FULL": RoomFull,
}


class SessionManager:
    """
    Manages game sessions on top of a SessionStore.

    Responsibilities:
    - Create sessions with a freshly dealt deck
    - Seat participants
    - Run read-apply-write cycles for every action

    Identity and room id are always passed in explicitly.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store or InMemorySessionStore()
        self.settings = settings or Settings()
        self.reducer = Reducer()
        self._rng = rng or random.Random()

    def new_session_id(self) -> str:
        """Short room id suitable for share links."""
        return uuid.uuid4().hex[:6]

    def create_session(
        self,
        session_id: str,
        creator_identity: str,
        display_name: str = "Player",
    ) -> Session:
        """
        Create a new game session.

        Args:
            session_id: Room id
            creator_identity: Opaque id of the creating player
            display_name: Name shown to the opponent

        Returns:
            The stored session, phase WAITING

        Raises:
            SessionAlreadyExists: the room id is taken
        """
        deck = build_deck(self._rng)
        creator = Participant(
            identity=creator_identity,
            display_name=display_name,
            seat=Seat.LEFT,
        )
        session = Session(
            session_id=session_id,
            participants={creator_identity: creator},
            hands=deck.hands,
            draw_pile=deck.draw_pile,
        )

        stored = self.store.create(session_id, session)
        log.info("Session %s created by %s (%s)", session_id, display_name, creator_identity)
        return stored

    def join_session(
        self,
        session_id: str,
        joiner_identity: str,
        display_name: str = "Player",
    ) -> Session:
        """
        Seat a second player.

        Raises:
            SessionNotFound: no such room
            AlreadyJoined: the identity is already seated
            RoomFull: both seats are taken
        """
        result = self.apply(session_id, Action.join(joiner_identity, display_name))
        if not result.success:
            error_cls = _FAILURES.get(result.error_code, WarError)
            log.info("Join rejected for %s on %s: %s", joiner_identity, session_id, result.error)
            raise error_cls(result.error, session_id=session_id)
        return result.new_state

    def get_session(self, session_id: str) -> Session:
        """Get a session by ID. Raises SessionNotFound."""
        return self.store.read(session_id)

    def subscribe(self, session_id: str, on_change: Callable[[Session], None]) -> Unsubscribe:
        """Receive every new version of a session until unsubscribed."""
        return self.store.subscribe(session_id, on_change)

    def apply(self, session_id: str, action: Action) -> ActionResult:
        """
        Read the session, apply an action, and persist the result.

        Ignored actions and failures are returned without writing.
        On success result.new_state is the stored session (new version).
        """
        optimistic = self.settings.optimistic_writes
        attempts = max(self.settings.max_write_retries, 1) if optimistic else 1
        last_conflict: WriteConflict | None = None

        for attempt in range(1, attempts + 1):
            current = self.store.read(session_id)
            result = self.reducer.apply(current, action)
            if not result.success or not result.applied:
                return result

            expected = current.version if optimistic else None
            try:
                stored = self.store.write(session_id, result.new_state, expected_version=expected)
            except WriteConflict as e:
                log.warning(
                    "Write conflict on %s (attempt %d/%d): %s",
                    session_id, attempt, attempts, e,
                )
                last_conflict = e
                continue

            for change in result.state_changes:
                log.info("[%s v%d] %s", session_id, stored.version, change)
            result.new_state = stored
            return result

        log.error("Giving up on %s after %d conflicting writes", session_id, attempts)
        raise WriteConflict(
            f"Session {session_id} kept changing; gave up after {attempts} attempts",
            session_id=session_id,
        ) from last_conflict
