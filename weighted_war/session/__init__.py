"""
Session Module - Lifecycle and bidding against a session store.

A session represents one game between two seats:
- Created by the first player (seat LEFT)
- Started when the second player joins (seat RIGHT)
- Advanced one round per pair of bids
- Frozen once the draw pile is exhausted
"""

from .manager import SessionManager
from .game_loop import GameLoop, BidResult

__all__ = [
    "SessionManager",
    "GameLoop",
    "BidResult",
]
