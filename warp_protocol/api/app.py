"""
FastAPI Application - REST API for Warp Protocol clients.

Endpoints:
    POST   /api/v1/sessions                  Start a run (random, seeded, daily or share link)
    GET    /api/v1/sessions                  List active sessions
    GET    /api/v1/sessions/{id}             Get session summary and share link
    DELETE /api/v1/sessions/{id}             End session
    GET    /api/v1/sessions/{id}/state       Get full run state
    POST   /api/v1/sessions/{id}/actions     Dispatch one action
    GET    /api/v1/catalog                   Shop listing (optionally for a session)

Actions that are not legal in the current phase are not errors: the
response has applied=false and the state is unchanged.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import logging
import os

# Environment configuration
WARP_ENV = os.getenv("WARP_ENV", "development")
WARP_LOG_LEVEL = os.getenv("WARP_LOG_LEVEL", "INFO").upper()
WARP_SESSION_TTL = int(os.getenv("WARP_SESSION_TTL", "3600"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logging.basicConfig(level=WARP_LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..session import SessionManager
    from .service import APIService
    from .schemas import (
        ActionRequest,
        ActionResponse,
        CatalogResponse,
        CreateSessionRequest,
        EndSessionResponse,
        ErrorCode,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        SessionListResponse,
        SessionResponse,
    )

    app = FastAPI(
        title="Warp Protocol API",
        description="""
Push-your-luck engine. Draw modules, bank before instability melts the reactor.

## Play Flow

1. `POST /sessions` to start a run (pass a `share_query` to replay a friend's run)
2. `POST /sessions/{id}/actions` with `draw-module` or `stop-and-bank`
3. Between rounds: `buy-module`, `buy-upgrade`, then `start-next-round`

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_ACTION` | Unknown action type or kind |
| `VALIDATION_ERROR` | Malformed mode or date |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(
        session_manager=SessionManager(max_age_seconds=WARP_SESSION_TTL)
    )
    logger.info("Warp Protocol API starting (env=%s)", WARP_ENV)

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.INVALID_ACTION: 400,
        ErrorCode.VALIDATION_ERROR: 400,
    }

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_codes.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid mode or date"}},
        tags=["Sessions"],
        summary="Start a new run",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Start a new run.

        **Examples:**
        ```json
        {"mode": "seeded", "seed": "abc123"}
        {"mode": "daily", "daily_date": "2026-03-01"}
        {"share_query": "mode=seeded&seed=abc123"}
        ```
        """
        api_service.session_manager.cleanup_stale_sessions()
        response = api_service.create_session(body)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session summary",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the summary, share link and result text of a session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "ended",
    ) -> EndSessionResponse:
        """End a session and release it."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Get current run state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Get the complete current run state for display."""
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Unknown action"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Game Loop"],
        summary="Dispatch an action",
    )
    async def dispatch_action(
        session_id: str,
        body: ActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Dispatch one action to the session's run.

        **Request Body:**
        ```json
        {"type": "buy-module", "kind": "warp-core"}
        ```
        """
        response = api_service.dispatch_action(session_id, body)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/catalog",
        response_model=CatalogResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Shop listing",
    )
    async def get_catalog(
        session_id: Annotated[Optional[str], Query(description="Include upgrade costs for this session")] = None,
    ) -> Union[CatalogResponse, JSONResponse]:
        """Purchasable modules and upgrade tracks."""
        response = api_service.get_catalog(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

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
            service="warp-protocol",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Warp Protocol API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn warp_protocol.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
