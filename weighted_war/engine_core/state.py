"""
Session State - The single shared document both seats play against.

Design principles:
- Immutable-friendly: transitions return a new Session
- Serializable: to_document()/from_document() give a JSON-safe dict
- Whole-document: stores read and rewrite a Session as a unit
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from enum import Enum

RANKS = tuple(range(1, 12))
HAND_SIZE = len(RANKS)
MAX_PARTICIPANTS = 2


class Seat(str, Enum):
    """The two fixed player slots."""
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> Seat:
        return Seat.RIGHT if self is Seat.LEFT else Seat.LEFT


class GamePhase(Enum):
    """Coarse lifecycle stage. Only moves forward."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


def _per_seat(factory) -> dict[Seat, Any]:
    return {seat: factory() for seat in Seat}


@dataclass
class Participant:
    """A player seated in a session."""
    identity: str
    display_name: str
    seat: Seat

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "display_name": self.display_name,
            "seat": self.seat.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Participant:
        return cls(
            identity=data["identity"],
            display_name=data["display_name"],
            seat=Seat(data["seat"]),
        )


@dataclass
class Session:
    """
    Complete game state at a point in time.

    All transitions go through the reducer; stores persist whole
    documents and bump `version` on every write.
    """
    session_id: str

    participants: dict[str, Participant] = field(default_factory=dict)

    # Bid cards: hand -> pending bid -> played
    hands: dict[Seat, list[int]] = field(default_factory=lambda: _per_seat(lambda: list(RANKS)))
    pending_bids: dict[Seat, int | None] = field(default_factory=lambda: _per_seat(lambda: None))
    played_cards: dict[Seat, list[int]] = field(default_factory=lambda: _per_seat(list))

    # Table cards: draw pile -> (pot ->) won
    draw_pile: list[int] = field(default_factory=list)
    draw_index: int = 0
    pot_cards: list[int] = field(default_factory=list)
    won_cards: dict[Seat, list[int]] = field(default_factory=lambda: _per_seat(list))

    phase: GamePhase = GamePhase.WAITING

    # Optimistic concurrency token, owned by the store
    version: int = 0
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def table_card(self) -> int | None:
        """The card both seats are bidding on, if play is underway."""
        if self.phase != GamePhase.PLAYING:
            return None
        if 0 <= self.draw_index < len(self.draw_pile):
            return self.draw_pile[self.draw_index]
        return None

    @property
    def cards_remaining(self) -> int:
        return max(len(self.draw_pile) - self.draw_index, 0)

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= MAX_PARTICIPANTS

    @property
    def is_finished(self) -> bool:
        return self.phase == GamePhase.FINISHED

    def occupied_seats(self) -> set[Seat]:
        return {p.seat for p in self.participants.values()}

    def seat_of(self, identity: str) -> Seat | None:
        participant = self.participants.get(identity)
        return participant.seat if participant else None

    def both_bids_in(self) -> bool:
        return all(bid is not None for bid in self.pending_bids.values())

    def _copy_with(self, **kwargs) -> Session:
        """Create a copy with some fields replaced."""
        return Session(
            session_id=kwargs.get("session_id", self.session_id),
            participants=kwargs.get("participants", self.participants),
            hands=kwargs.get("hands", self.hands),
            pending_bids=kwargs.get("pending_bids", self.pending_bids),
            played_cards=kwargs.get("played_cards", self.played_cards),
            draw_pile=kwargs.get("draw_pile", self.draw_pile),
            draw_index=kwargs.get("draw_index", self.draw_index),
            pot_cards=kwargs.get("pot_cards", self.pot_cards),
            won_cards=kwargs.get("won_cards", self.won_cards),
            phase=kwargs.get("phase", self.phase),
            version=kwargs.get("version", self.version),
            created_at=kwargs.get("created_at", self.created_at),
            updated_at=kwargs.get("updated_at", self.updated_at),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-safe document the stores persist."""
        return {
            "session_id": self.session_id,
            "participants": {
                identity: p.to_dict() for identity, p in self.participants.items()
            },
            "hands": {seat.value: sorted(cards) for seat, cards in self.hands.items()},
            "pending_bids": {seat.value: bid for seat, bid in self.pending_bids.items()},
            "played_cards": {seat.value: list(cards) for seat, cards in self.played_cards.items()},
            "draw_pile": list(self.draw_pile),
            "draw_index": self.draw_index,
            "pot_cards": list(self.pot_cards),
            "won_cards": {seat.value: list(cards) for seat, cards in self.won_cards.items()},
            "phase": self.phase.value,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Session:
        def seat_map(raw: dict[str, Any], convert) -> dict[Seat, Any]:
            return {seat: convert(raw.get(seat.value)) for seat in Seat}

        return cls(
            session_id=data["session_id"],
            participants={
                identity: Participant.from_dict(p)
                for identity, p in data.get("participants", {}).items()
            },
            hands=seat_map(data["hands"], lambda cards: sorted(cards or [])),
            pending_bids=seat_map(data.get("pending_bids", {}), lambda bid: bid),
            played_cards=seat_map(data.get("played_cards", {}), lambda cards: list(cards or [])),
            draw_pile=list(data["draw_pile"]),
            draw_index=data.get("draw_index", 0),
            pot_cards=list(data.get("pot_cards", [])),
            won_cards=seat_map(data.get("won_cards", {}), lambda cards: list(cards or [])),
            phase=GamePhase(data.get("phase", GamePhase.WAITING.value)),
            version=data.get("version", 0),
            created_at=data.get("created_at", 0.0),
            updated_at=data.get("updated_at", 0.0),
        )
