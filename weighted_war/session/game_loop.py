"""
Game Loop - Bid submission.

Each call performs one read, at most one round resolution, and one
write. Bids the reducer ignores (wrong phase, wrong seat, card not in
hand, second bid in a round) cost nothing: no write, no error.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.action import Action, RoundOutcome
from ..engine_core.state import Session, Seat
from ..logging_utils import get_logger

if TYPE_CHECKING:
    from .manager import SessionManager

log = get_logger(__name__)


@dataclass
class BidResult:
    """
    Result of submitting a bid.

    `session` is always the latest known document: the stored one
    after an accepted bid, the one that was read for an ignored bid.
    """
    session: Session
    accepted: bool
    outcome: RoundOutcome | None = None
    ignored_reason: str | None = None

    @property
    def round_resolved(self) -> bool:
        return self.outcome is not None


class GameLoop:
    """
    Drives rounds for sessions held by a SessionManager.

    Usage:
        loop = GameLoop(manager)
        result = loop.submit_bid(room_id, my_identity, Seat.LEFT, 7)
        if result.round_resolved:
            show(result.outcome)
    """

    def __init__(self, manager: SessionManager):
        self.manager = manager

    def submit_bid(
        self,
        session_id: str,
        actor_identity: str,
        claimed_seat: Seat,
        value: int,
    ) -> BidResult:
        """
        Place a bid for the actor's seat.

        Raises:
            SessionNotFound: no such room
            StoreWriteError: the store rejected the write
        """
        result = self.manager.apply(session_id, Action.bid(actor_identity, claimed_seat, value))

        if not result.applied:
            log.debug(
                "Ignored bid %s from %s at %s on %s: %s",
                value, actor_identity, claimed_seat.value, session_id, result.ignored_reason,
            )
            return BidResult(
                session=result.new_state,
                accepted=False,
                ignored_reason=result.ignored_reason,
            )

        return BidResult(session=result.new_state, accepted=True, outcome=result.outcome)
