"""
API Module - HTTP interface to the engine.

Clients:
1. Start a session (random, seeded, daily or from a share link)
2. Dispatch actions one at a time
3. Read back the run state after each action
4. Share the run's link and result summary

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    # Responses
    ActionResponse,
    CatalogResponse,
    ErrorResponse,
    GameStateResponse,
    SessionResponse,
    # Shared
    ErrorCode,
    ModuleInfo,
    RoundInfo,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateSessionRequest",
    # Responses
    "ActionResponse",
    "CatalogResponse",
    "ErrorResponse",
    "GameStateResponse",
    "SessionResponse",
    # Shared
    "ErrorCode",
    "ModuleInfo",
    "RoundInfo",
    "SessionStatus",
    # Service
    "APIService",
    "create_app",
]
