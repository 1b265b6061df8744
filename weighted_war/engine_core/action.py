"""
Action System - Actions, payloads, and results.

Actions represent the two player intents that change a session:
1. Joining a seat
2. Bidding a card from hand

Creating a session is not an action; it builds the first document.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import Seat


class ActionType(Enum):
    """Types of actions in the system."""
    JOIN = "join"
    BID = "bid"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Validation happens in the reducer.
    """
    identity: str
    display_name: str | None = None
    seat: Seat | None = None
    value: int | None = None


@dataclass
class Action:
    """A complete action to be applied to a session."""
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def join(cls, identity: str, display_name: str) -> Action:
        """Factory for join action."""
        return cls(
            action_type=ActionType.JOIN,
            payload=ActionPayload(identity=identity, display_name=display_name),
        )

    @classmethod
    def bid(cls, identity: str, seat: Seat, value: int) -> Action:
        """Factory for bid action."""
        return cls(
            action_type=ActionType.BID,
            payload=ActionPayload(identity=identity, seat=seat, value=value),
        )


@dataclass
class RoundOutcome:
    """How a round resolved once both bids were in."""
    table_card: int
    bids: dict[Seat, int]
    winner: Seat | None  # None means war
    awarded_cards: list[int] = field(default_factory=list)
    pot_after: list[int] = field(default_factory=list)
    game_finished: bool = False

    @property
    def is_war(self) -> bool:
        return self.winner is None

    def describe(self) -> str:
        left, right = self.bids[Seat.LEFT], self.bids[Seat.RIGHT]
        if self.is_war:
            text = f"War on {self.table_card}: both bid {left}, pot now {self.pot_after}"
        else:
            text = (
                f"{self.winner.value} takes {self.awarded_cards} "
                f"(left bid {left}, right bid {right})"
            )
        if self.game_finished:
            text += "; deck exhausted"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_card": self.table_card,
            "bids": {seat.value: bid for seat, bid in self.bids.items()},
            "winner": self.winner.value if self.winner else None,
            "awarded_cards": list(self.awarded_cards),
            "pot_after": list(self.pot_after),
            "game_finished": self.game_finished,
        }


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Three shapes:
    - applied: new_state holds the next session
    - ignored: the action was not allowed; new_state is the input session
    - failure: a structural violation the caller must surface (error_code set)
    """
    success: bool
    new_state: Any | None = None  # Session
    applied: bool = False
    error: str | None = None
    error_code: str | None = None
    ignored_reason: str | None = None

    # For presentation and logging
    state_changes: list[str] = field(default_factory=list)
    outcome: RoundOutcome | None = None

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ignored(cls, state: Any, reason: str) -> ActionResult:
        """Create a no-op result that leaves the state untouched."""
        return cls(success=True, new_state=state, applied=False, ignored_reason=reason)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        outcome: RoundOutcome | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            applied=True,
            state_changes=changes or [],
            outcome=outcome,
        )
