"""
API Module - Client interface.

Exposes the engine via REST + WebSocket. A client:
1. Creates a session or joins one by id
2. Picks the seat it plays
3. Submits bids
4. Receives every new session snapshot over the WebSocket
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    JoinSessionRequest,
    BidRequest,
    # Responses
    SessionResponse,
    BidResponse,
    SeatView,
    ErrorResponse,
    HealthResponse,
    # Shared
    ParticipantInfo,
    RoundOutcomeInfo,
    Phase,
    ErrorCode,
)
from .service import APIService

__all__ = [
    # Requests
    "CreateSessionRequest",
    "JoinSessionRequest",
    "BidRequest",
    # Responses
    "SessionResponse",
    "BidResponse",
    "SeatView",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "ParticipantInfo",
    "RoundOutcomeInfo",
    "Phase",
    "ErrorCode",
    # Service
    "APIService",
]
