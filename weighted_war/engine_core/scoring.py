"""
Scoring and query helpers over a session.

A seat's score is the sum of the card values it captured. Cards left
in the pot when the deck runs out score for nobody.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from .state import Session, Seat, GamePhase, HAND_SIZE


def score(cards: Iterable[int]) -> int:
    """Sum of card values."""
    return sum(cards)


def standings(state: Session) -> dict[Seat, int]:
    """Current score per seat."""
    return {seat: score(state.won_cards[seat]) for seat in Seat}


def winner(state: Session) -> Seat | None:
    """Seat with the higher score once finished; None on a draw or mid-game."""
    if state.phase != GamePhase.FINISHED:
        return None
    scores = standings(state)
    if scores[Seat.LEFT] == scores[Seat.RIGHT]:
        return None
    return max(scores, key=scores.get)


def outcome_for(state: Session, seat: Seat) -> str | None:
    """'win', 'lose' or 'tie' from one seat's point of view, None mid-game."""
    if state.phase != GamePhase.FINISHED:
        return None
    best = winner(state)
    if best is None:
        return "tie"
    return "win" if best == seat else "lose"


@dataclass
class CardLedger:
    """Where every card of a session currently sits."""
    bid_cards: dict[Seat, int]
    table_cards_consumed: int
    table_cards_accounted: int

    @property
    def balanced(self) -> bool:
        return (
            all(count == HAND_SIZE for count in self.bid_cards.values())
            and self.table_cards_consumed == self.table_cards_accounted
        )


def card_ledger(state: Session) -> CardLedger:
    """
    Count cards per location.

    Per seat, hand + pending bid + played must equal the dealt hand.
    Table cards drawn so far must all be in the pot or a won pile.
    """
    bid_cards = {
        seat: (
            len(state.hands[seat])
            + (1 if state.pending_bids[seat] is not None else 0)
            + len(state.played_cards[seat])
        )
        for seat in Seat
    }
    accounted = len(state.pot_cards) + sum(len(cards) for cards in state.won_cards.values())
    return CardLedger(
        bid_cards=bid_cards,
        table_cards_consumed=state.draw_index,
        table_cards_accounted=accounted,
    )
