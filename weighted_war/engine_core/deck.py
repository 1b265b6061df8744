"""
Deck Model - Draw pile and starting hands.

One rank is removed from the table deck at random and never drawn,
but both hands still hold every rank. A bid of the excluded rank can
never mirror the table card; that asymmetry is part of the game.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from .state import RANKS, Seat


@dataclass
class Deck:
    """Freshly dealt cards for a new session."""
    draw_pile: list[int]
    hands: dict[Seat, list[int]] = field(default_factory=dict)
    excluded_rank: int | None = None


def build_deck(rng: random.Random | None = None) -> Deck:
    """
    Deal a new game.

    Args:
        rng: Random source (a fresh random.Random if not provided)

    Returns:
        Deck with 10 shuffled table cards and two full hands
    """
    rng = rng or random.Random()

    ranks = list(RANKS)
    excluded = ranks.pop(rng.randrange(len(ranks)))
    # random.shuffle is Fisher-Yates
    rng.shuffle(ranks)

    return Deck(
        draw_pile=ranks,
        hands={seat: list(RANKS) for seat in Seat},
        excluded_rank=excluded,
    )
