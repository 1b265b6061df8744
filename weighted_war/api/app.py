"""
FastAPI Application - REST + WebSocket API for game clients.

Endpoints:
    POST   /api/v1/sessions                 Create a session (creator sits LEFT)
    GET    /api/v1/sessions/{id}            Full session snapshot
    POST   /api/v1/sessions/{id}/join       Take the free seat
    POST   /api/v1/sessions/{id}/bids       Bid a card for a seat
    GET    /api/v1/sessions/{id}/view       Session seen from one seat
    WS     /api/v1/sessions/{id}/ws         Live session snapshots

Clients pick the seat they play. The view endpoint only derives a seat
from the caller's identity when WAR_AUTO_BIND_SEAT is enabled.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional
import asyncio
import contextlib
import json

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..engine_core.state import Seat, Session
from ..errors import (
    WarError,
    SessionNotFound,
    SessionAlreadyExists,
    AlreadyJoined,
    RoomFull,
    StoreError,
    WriteConflict,
)
from ..logging_utils import get_logger, setup_logging
from ..session import SessionManager
from ..store import create_store
from .service import APIService
from .schemas import (
    CreateSessionRequest,
    JoinSessionRequest,
    BidRequest,
    SessionResponse,
    BidResponse,
    SeatView,
    ErrorResponse,
    HealthResponse,
    ErrorCode,
)

log = get_logger(__name__)

_STATUS_BY_ERROR = {
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    SessionAlreadyExists: status.HTTP_409_CONFLICT,
    AlreadyJoined: status.HTTP_409_CONFLICT,
    RoomFull: status.HTTP_409_CONFLICT,
    WriteConflict: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(error: WarError) -> int:
    for error_cls in type(error).__mro__:
        if error_cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or (service.settings if service else Settings.from_env())
    setup_logging(settings.log_level)

    if service is None:
        manager = SessionManager(store=create_store(settings), settings=settings)
        service = APIService(settings=settings, session_manager=manager)
    api_service = service

    app = FastAPI(
        title="Weighted War API",
        description="""
Two-seat sealed-bid card game.

## Flow

1. `POST /api/v1/sessions` creates a room; the creator sits `left`
2. `POST /api/v1/sessions/{id}/join` seats the second player and starts play
3. Both seats `POST /bids`; the second bid of a round resolves it
4. Listen on `WS /api/v1/sessions/{id}/ws` for every new snapshot

Bids that are not allowed (wrong seat, card not in hand, second bid in
a round, game not running) are ignored: `accepted=false`, no change.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `ALREADY_EXISTS` | Session id already taken |
| `ALREADY_JOINED` | Identity already seated |
| `ROOM_FULL` | Both seats taken |
| `WRITE_CONFLICT` | Concurrent updates kept winning |
| `WRITE_ERROR` | Session store failed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(WarError)
    async def handle_war_error(request: Request, exc: WarError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return make_error_response(
            ErrorCode(exc.error_code),
            exc.message,
            status_code=status_code,
            details={"session_id": exc.session_id} if exc.session_id else None,
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=status.HTTP_201_CREATED,
        responses={409: {"model": ErrorResponse, "description": "Session id taken"}},
        tags=["Sessions"],
        summary="Create a new session",
    )
    def create_session(body: CreateSessionRequest) -> SessionResponse:
        """Deal a new game and seat the creator at `left`."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get a session snapshot",
    )
    def get_session(session_id: str) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/join",
        response_model=SessionResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Already joined or room full"},
        },
        tags=["Sessions"],
        summary="Join a session",
    )
    def join_session(session_id: str, body: JoinSessionRequest) -> SessionResponse:
        """Take the free seat. The second join starts the game."""
        return api_service.join_session(session_id, body)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/bids",
        response_model=BidResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Bid a card",
    )
    def submit_bid(session_id: str, body: BidRequest) -> BidResponse:
        """
        Bid a card from the seat's hand for the current table card.

        **Request Body:**
        ```json
        {"identity": "p1", "seat": "left", "value": 7}
        ```
        """
        return api_service.submit_bid(session_id, body)

    @app.get(
        "/api/v1/sessions/{session_id}/view",
        response_model=SeatView,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Session seen from one seat",
    )
    def get_view(
        session_id: str,
        seat: Annotated[Optional[Seat], Query(description="Seat the viewer plays")] = None,
        identity: Annotated[Optional[str], Query(description="Viewer identity")] = None,
    ) -> SeatView:
        return api_service.get_view(session_id, identity=identity, seat=seat)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def session_updates(websocket: WebSocket, session_id: str):
        """
        WebSocket for live snapshots.

        Messages from server:
        - session_update: a new version of the session was persisted
        - error: session not found / invalid message

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        loop = asyncio.get_running_loop()
        updates: asyncio.Queue = asyncio.Queue()

        def on_change(session: Session):
            # Store listeners may run on another thread
            loop.call_soon_threadsafe(updates.put_nowait, session)

        # Subscribe before reading so no version lands in between unseen
        unsubscribe = await run_in_threadpool(api_service.subscribe, session_id, on_change)
        try:
            current = await run_in_threadpool(api_service.session_manager.get_session, session_id)
        except SessionNotFound as e:
            await run_in_threadpool(unsubscribe)
            await websocket.send_json({
                "type": "error",
                "payload": {"message": e.message, "error_code": e.error_code},
            })
            await websocket.close(code=4404)
            return

        # Duplicates of a listener-delivered version are dropped below
        updates.put_nowait(current)

        async def forward_updates():
            last_version = -1
            while True:
                session = await updates.get()
                if session.version <= last_version:
                    continue
                last_version = session.version
                await websocket.send_json({
                    "type": "session_update",
                    "payload": api_service.session_to_response(session).model_dump(mode="json"),
                })

        sender = asyncio.create_task(forward_updates())
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except (json.JSONDecodeError, AttributeError):
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
        except WebSocketDisconnect:
            log.info("WebSocket for session %s disconnected", session_id)
        finally:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await sender
                except Exception:
                    log.exception("Sending updates for session %s failed", session_id)
            await run_in_threadpool(unsubscribe)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="weighted-war",
            version=__version__,
            store=type(api_service.session_manager.store).__name__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Weighted War API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn weighted_war.api.app:app
app = create_app()
