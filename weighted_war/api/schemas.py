"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist
- ALREADY_EXISTS: A session with that id was already created
- ALREADY_JOINED: The identity already holds a seat
- ROOM_FULL: Both seats are taken
- WRITE_CONFLICT: Concurrent updates kept winning; retry later
- WRITE_ERROR / STORE_ERROR: The session store failed
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..engine_core.state import Seat


# =============================================================================
# Enums
# =============================================================================

class Phase(str, Enum):
    """Session phase values."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ALREADY_JOINED = "ALREADY_JOINED"
    ROOM_FULL = "ROOM_FULL"
    WRITE_CONFLICT = "WRITE_CONFLICT"
    WRITE_ERROR = "WRITE_ERROR"
    STORE_ERROR = "STORE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ParticipantInfo(BaseModel):
    """A seated player."""
    identity: str
    display_name: str
    seat: Seat

    model_config = {"from_attributes": True}


class RoundOutcomeInfo(BaseModel):
    """How the last round resolved."""
    table_card: int
    bids: dict[str, int]
    winner: Optional[Seat] = Field(default=None, description="None means war")
    awarded_cards: list[int] = Field(default_factory=list)
    pot_after: list[int] = Field(default_factory=list)
    game_finished: bool = False


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """
    Request to create a new session.

    POST /api/v1/sessions
    """
    identity: str = Field(min_length=1, description="Opaque id of the creating player")
    display_name: str = Field(default="Player", max_length=64)
    session_id: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Room id to use; generated when omitted",
    )


class JoinSessionRequest(BaseModel):
    """
    Request to take the free seat.

    POST /api/v1/sessions/{id}/join
    """
    identity: str = Field(min_length=1)
    display_name: str = Field(default="Player", max_length=64)


class BidRequest(BaseModel):
    """
    Request to bid a card.

    POST /api/v1/sessions/{id}/bids

    Invalid bids are accepted by the endpoint and ignored by the game.
    """
    identity: str = Field(min_length=1)
    seat: Seat
    value: int


# =============================================================================
# Response Models
# =============================================================================

class SessionResponse(BaseModel):
    """Full session snapshot."""
    session_id: str
    phase: Phase
    version: int
    participants: list[ParticipantInfo] = Field(default_factory=list)

    table_card: Optional[int] = None
    draw_index: int = 0
    cards_remaining: int = 0

    hands: dict[str, list[int]] = Field(default_factory=dict)
    pending_bids: dict[str, Optional[int]] = Field(default_factory=dict)
    pot_cards: list[int] = Field(default_factory=list)
    won_cards: dict[str, list[int]] = Field(default_factory=dict)
    scores: dict[str, int] = Field(default_factory=dict)
    winner: Optional[Seat] = None

    created_at: float = 0.0
    updated_at: float = 0.0
    api_version: str = "v1"


class BidResponse(BaseModel):
    """Result of a bid submission."""
    session_id: str
    accepted: bool
    outcome: Optional[RoundOutcomeInfo] = None
    session: SessionResponse


class SeatView(BaseModel):
    """
    A session seen from one seat.

    `seat` is None for a viewer that has not picked a seat.
    """
    session_id: str
    phase: Phase
    seat: Optional[Seat] = None
    participants: list[ParticipantInfo] = Field(default_factory=list)

    table_card: Optional[int] = None
    pot_cards: list[int] = Field(default_factory=list)
    pot_value: int = 0

    my_hand: list[int] = Field(default_factory=list)
    my_bid: Optional[int] = None
    opponent_bid: Optional[int] = None

    my_won_cards: list[int] = Field(default_factory=list)
    opponent_won_cards: list[int] = Field(default_factory=list)
    my_score: int = 0
    opponent_score: int = 0

    result: Optional[str] = Field(default=None, description="win, lose or tie once finished")


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    store: str
