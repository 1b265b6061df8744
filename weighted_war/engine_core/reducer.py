"""
Reducer - Applies actions to a session.

The reducer is the single point of state change.
All transitions go through apply_action().

Design principles:
- Pure function: (session, action) -> ActionResult
- Never mutates its input; the caller persists new_state
- Invalid bids are ignored, not rejected
- A bid that completes a round resolves it in the same transition
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import Session, Seat, GamePhase, Participant, MAX_PARTICIPANTS
from .action import Action, ActionType, ActionResult, RoundOutcome


@dataclass
class Reducer:
    """
    Reducer applies actions to sessions.

    Stateless - all state is in Session.
    """

    def apply(self, state: Session, action: Action) -> ActionResult:
        """
        Apply an action to the session.

        Returns ActionResult with new state, an ignored marker, or an error.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="INTERNAL_ERROR",
            )
        return handler(state, action)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.JOIN: self._handle_join,
            ActionType.BID: self._handle_bid,
        }
        return handlers.get(action_type)

    def _handle_join(self, state: Session, action: Action) -> ActionResult:
        """Seat a new participant; start play when the second seat fills."""
        identity = action.payload.identity

        if identity in state.participants:
            return ActionResult.failure(
                f"{identity} already joined session {state.session_id}",
                error_code="ALREADY_JOINED",
            )

        taken = state.occupied_seats()
        if state.is_full or taken >= set(Seat):
            return ActionResult.failure(
                f"Session {state.session_id} is full",
                error_code="ROOM_FULL",
            )

        seat = Seat.LEFT if Seat.LEFT not in taken else Seat.RIGHT
        participant = Participant(
            identity=identity,
            display_name=action.payload.display_name or "Player",
            seat=seat,
        )
        participants = {**state.participants, identity: participant}
        changes = [f"{participant.display_name} took the {seat.value} seat"]

        phase = state.phase
        if len(participants) == MAX_PARTICIPANTS and phase == GamePhase.WAITING:
            # A fresh deck always has a card at draw_index 0
            phase = GamePhase.PLAYING
            changes.append(f"Game started, table card {state.draw_pile[state.draw_index]}")

        new_state = state._copy_with(participants=participants, phase=phase)
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_bid(self, state: Session, action: Action) -> ActionResult:
        """Place a sealed bid and resolve the round once both are in."""
        identity = action.payload.identity
        seat = action.payload.seat
        value = action.payload.value

        reason = self._validate_bid(state, identity, seat, value)
        if reason:
            return ActionResult.ignored(state, reason)

        hand = list(state.hands[seat])
        hand.remove(value)
        hands = {**state.hands, seat: hand}
        pending = {**state.pending_bids, seat: value}
        new_state = state._copy_with(hands=hands, pending_bids=pending)
        changes = [f"{seat.value} placed a bid"]

        if not new_state.both_bids_in():
            return ActionResult.success_with_state(new_state, changes=changes)

        new_state, outcome = resolve_round(new_state)
        changes.append(outcome.describe())
        return ActionResult.success_with_state(new_state, changes=changes, outcome=outcome)

    def _validate_bid(
        self, state: Session, identity: str, seat: Seat | None, value: int | None
    ) -> str | None:
        """
        Check a bid against the current session.

        Returns the reason it is ignored, None if it may be placed.
        """
        if state.phase != GamePhase.PLAYING:
            return f"phase is {state.phase.value}"
        if state.table_card is None:
            return "no table card"
        if seat is None or state.seat_of(identity) != seat:
            return f"{identity} is not seated at {seat.value if seat else None}"
        if value is None or value not in state.hands[seat]:
            return f"{value} is not in the {seat.value} hand"
        if state.pending_bids[seat] is not None:
            return f"{seat.value} already bid this round"
        return None


def resolve_round(state: Session) -> tuple[Session, RoundOutcome]:
    """
    Resolve a round with both bids present.

    Equal bids are a war: the table card joins the pot. Otherwise the
    higher bid takes the table card followed by the whole pot. Either
    way the cursor advances and the game finishes when the pile runs
    out; a pot left over at that point is forfeited.
    """
    table = state.table_card
    left = state.pending_bids[Seat.LEFT]
    right = state.pending_bids[Seat.RIGHT]
    if table is None or left is None or right is None:
        raise ValueError("resolve_round needs a table card and two bids")

    won_cards = {seat: list(cards) for seat, cards in state.won_cards.items()}
    pot = list(state.pot_cards)

    if left == right:
        winner = None
        awarded: list[int] = []
        pot.append(table)
    else:
        winner = Seat.LEFT if left > right else Seat.RIGHT
        awarded = [table, *pot]
        won_cards[winner].extend(awarded)
        pot = []

    played = {
        Seat.LEFT: [*state.played_cards[Seat.LEFT], left],
        Seat.RIGHT: [*state.played_cards[Seat.RIGHT], right],
    }
    draw_index = state.draw_index + 1
    finished = draw_index >= len(state.draw_pile)

    new_state = state._copy_with(
        won_cards=won_cards,
        pot_cards=pot,
        played_cards=played,
        pending_bids={seat: None for seat in Seat},
        draw_index=draw_index,
        phase=GamePhase.FINISHED if finished else state.phase,
    )
    outcome = RoundOutcome(
        table_card=table,
        bids={Seat.LEFT: left, Seat.RIGHT: right},
        winner=winner,
        awarded_cards=awarded,
        pot_after=list(pot),
        game_finished=finished,
    )
    return new_state, outcome


def apply_action(state: Session, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
