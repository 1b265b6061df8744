"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to lifecycle and game loop calls
2. Converts sessions to response models
3. Builds seat-relative views for clients

This layer is framework-agnostic. Engine errors (WarError subclasses)
propagate to the caller, which maps them to transport errors.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable

from .schemas import (
    CreateSessionRequest,
    JoinSessionRequest,
    BidRequest,
    SessionResponse,
    BidResponse,
    SeatView,
    ParticipantInfo,
    RoundOutcomeInfo,
    Phase,
)
from ..config import Settings
from ..engine_core.action import RoundOutcome
from ..engine_core.scoring import score, standings, winner, outcome_for
from ..engine_core.state import Session, Seat
from ..errors import SessionAlreadyExists
from ..session import SessionManager, GameLoop
from ..store import Unsubscribe

GENERATED_ID_ATTEMPTS = 5


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        created = service.create_session(CreateSessionRequest(identity="p1"))
        service.join_session(created.session_id, JoinSessionRequest(identity="p2"))
        service.submit_bid(created.session_id, BidRequest(identity="p1", seat="left", value=7))
    """
    settings: Settings = field(default_factory=Settings)
    session_manager: SessionManager | None = None
    game_loop: GameLoop | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(settings=self.settings)
        if self.game_loop is None:
            self.game_loop = GameLoop(self.session_manager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        if request.session_id:
            session = self.session_manager.create_session(
                request.session_id,
                request.identity,
                request.display_name,
            )
            return self.session_to_response(session)

        # Generated ids are redrawn on collision
        for attempt in range(1, GENERATED_ID_ATTEMPTS + 1):
            try:
                session = self.session_manager.create_session(
                    self.session_manager.new_session_id(),
                    request.identity,
                    request.display_name,
                )
            except SessionAlreadyExists:
                if attempt == GENERATED_ID_ATTEMPTS:
                    raise
                continue
            return self.session_to_response(session)

    def join_session(self, session_id: str, request: JoinSessionRequest) -> SessionResponse:
        session = self.session_manager.join_session(
            session_id,
            request.identity,
            request.display_name,
        )
        return self.session_to_response(session)

    def submit_bid(self, session_id: str, request: BidRequest) -> BidResponse:
        result = self.game_loop.submit_bid(
            session_id,
            request.identity,
            request.seat,
            request.value,
        )
        return BidResponse(
            session_id=session_id,
            accepted=result.accepted,
            outcome=self.outcome_to_info(result.outcome) if result.outcome else None,
            session=self.session_to_response(result.session),
        )

    def get_session(self, session_id: str) -> SessionResponse:
        return self.session_to_response(self.session_manager.get_session(session_id))

    def get_view(
        self,
        session_id: str,
        identity: str | None = None,
        seat: Seat | None = None,
    ) -> SeatView:
        """
        Build the view for one seat.

        The seat is the viewer's choice. It is only derived from the
        identity when auto_bind_seat is enabled and no seat was given.
        """
        session = self.session_manager.get_session(session_id)
        return self.session_to_view(session, self.resolve_seat(session, identity, seat))

    def resolve_seat(
        self, session: Session, identity: str | None, seat: Seat | None
    ) -> Seat | None:
        if seat is not None:
            return seat
        if self.settings.auto_bind_seat and identity:
            return session.seat_of(identity)
        return None

    def subscribe(
        self, session_id: str, on_change: Callable[[Session], None]
    ) -> Unsubscribe:
        return self.session_manager.subscribe(session_id, on_change)

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def session_to_response(self, session: Session) -> SessionResponse:
        best = winner(session)
        return SessionResponse(
            session_id=session.session_id,
            phase=Phase(session.phase.value),
            version=session.version,
            participants=self._participants(session),
            table_card=session.table_card,
            draw_index=session.draw_index,
            cards_remaining=session.cards_remaining,
            hands={seat.value: sorted(cards) for seat, cards in session.hands.items()},
            pending_bids={seat.value: bid for seat, bid in session.pending_bids.items()},
            pot_cards=list(session.pot_cards),
            won_cards={seat.value: list(cards) for seat, cards in session.won_cards.items()},
            scores={seat.value: points for seat, points in standings(session).items()},
            winner=best,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )

    def session_to_view(self, session: Session, seat: Seat | None) -> SeatView:
        view = SeatView(
            session_id=session.session_id,
            phase=Phase(session.phase.value),
            seat=seat,
            participants=self._participants(session),
            table_card=session.table_card,
            pot_cards=list(session.pot_cards),
            pot_value=score(session.pot_cards),
        )
        if seat is None:
            return view

        opponent = seat.other
        view.my_hand = sorted(session.hands[seat])
        view.my_bid = session.pending_bids[seat]
        view.opponent_bid = session.pending_bids[opponent]
        view.my_won_cards = list(session.won_cards[seat])
        view.opponent_won_cards = list(session.won_cards[opponent])
        view.my_score = score(session.won_cards[seat])
        view.opponent_score = score(session.won_cards[opponent])
        view.result = outcome_for(session, seat)
        return view

    @staticmethod
    def outcome_to_info(outcome: RoundOutcome) -> RoundOutcomeInfo:
        return RoundOutcomeInfo(
            table_card=outcome.table_card,
            bids={seat.value: bid for seat, bid in outcome.bids.items()},
            winner=outcome.winner,
            awarded_cards=list(outcome.awarded_cards),
            pot_after=list(outcome.pot_after),
            game_finished=outcome.game_finished,
        )

    @staticmethod
    def _participants(session: Session) -> list[ParticipantInfo]:
        ordered = sorted(session.participants.values(), key=lambda p: p.seat != Seat.LEFT)
        return [
            ParticipantInfo(identity=p.identity, display_name=p.display_name, seat=p.seat)
            for p in ordered
        ]
