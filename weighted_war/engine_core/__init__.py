"""
Engine Core - Deterministic session state and round resolution.

The engine:
1. Deals a deck
2. Holds the Session document
3. Applies join and bid actions via the reducer
4. Resolves rounds, wars and pots
5. Scores captured cards
"""

from .state import Session, Seat, GamePhase, Participant, RANKS, HAND_SIZE
from .deck import Deck, build_deck
from .action import Action, ActionType, ActionPayload, ActionResult, RoundOutcome
from .reducer import Reducer, apply_action, resolve_round
from .scoring import score, standings, winner, outcome_for, card_ledger, CardLedger

__all__ = [
    "Session",
    "Seat",
    "GamePhase",
    "Participant",
    "RANKS",
    "HAND_SIZE",
    "Deck",
    "build_deck",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RoundOutcome",
    "Reducer",
    "apply_action",
    "resolve_round",
    "score",
    "standings",
    "winner",
    "outcome_for",
    "card_ledger",
    "CardLedger",
]
