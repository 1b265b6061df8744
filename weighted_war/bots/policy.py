"""
Bid Policy - Interface for automatic bidders.

A BidPolicy looks at a session from one seat and picks a card from
that seat's hand. Policies only see what a player could see: the
table card, the pot, their own hand, and captured cards.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import random

from ..engine_core.state import Session, Seat


class BidPolicy(ABC):
    """Abstract base class for bid policies."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    @abstractmethod
    def select_bid(self, state: Session, seat: Seat) -> int:
        """
        Select a card to bid.

        Args:
            state: Current session, phase PLAYING
            seat: Seat the policy plays

        Returns:
            A card value from that seat's hand
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BidPolicy):
    """Bids a uniformly random card from hand."""

    def select_bid(self, state: Session, seat: Seat) -> int:
        return self.rng.choice(state.hands[seat])


class MatchTablePolicy(BidPolicy):
    """
    Bids the table card's own rank when still in hand.

    Weighs the prize by the pot: a rich pot is worth the cheapest card
    that still beats the table rank, otherwise it falls back to the
    lowest card left.
    """

    def select_bid(self, state: Session, seat: Seat) -> int:
        hand = sorted(state.hands[seat])
        table = state.table_card or 0
        prize = table + sum(state.pot_cards)

        if prize > table and any(card > table for card in hand):
            return min(card for card in hand if card > table)
        if table in hand:
            return table
        return hand[0]


POLICIES: dict[str, type[BidPolicy]] = {
    "random": RandomPolicy,
    "match": MatchTablePolicy,
}


def create_policy(name: str, rng: random.Random | None = None) -> BidPolicy:
    """Build a policy by name. Raises ValueError on unknown names."""
    try:
        return POLICIES[name](rng=rng)
    except KeyError:
        raise ValueError(f"Unknown policy: {name} (choose from {', '.join(POLICIES)})")
