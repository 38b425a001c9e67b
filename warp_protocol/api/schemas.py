"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has expired
- INVALID_ACTION: Action type or kind is not recognized
- VALIDATION_ERROR: Malformed request (bad mode, bad date, ...)
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ModuleInfo(BaseModel):
    """A module instance for display."""
    id: str
    name: str
    kind: str
    tier: int
    cost_flux: int
    cost_credits: int
    gen_flux: int
    gen_credits: int
    add_instability: int
    sponsored: bool = False
    is_warp_core: bool = False

    model_config = {"from_attributes": True}


class RoundInfo(BaseModel):
    """Snapshot of the most recently completed round."""
    number: int
    status: str = Field(description="stopped or busted")
    bank_reason: Optional[str] = Field(None, description="manual or auto-capacity")
    drawn: list[ModuleInfo] = Field(default_factory=list)
    round_flux: int = 0
    round_credits: int = 0
    round_instability: int = 0
    warp_cores: int = 0


class ModuleTemplateInfo(BaseModel):
    """A purchasable module kind."""
    kind: str
    name: str
    tier: int
    cost_flux: int
    cost_credits: int
    gen_flux: int
    gen_credits: int
    add_instability: int
    sponsored: bool = False
    is_warp_core: bool = False

    model_config = {"from_attributes": True}


class UpgradeInfo(BaseModel):
    """An upgrade track with its current level and next cost."""
    kind: str
    label: str
    current_value: Optional[int] = None
    next_cost: Optional[int] = None
    cost_step: int


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start a new session."""
    mode: Optional[str] = Field(None, description="random, seeded or daily")
    seed: Optional[str] = Field(None, description="Seed for random/seeded runs")
    daily_date: Optional[str] = Field(None, description="YYYY-MM-DD for daily runs")
    share_query: Optional[str] = Field(
        None, description="Share link query, e.g. 'mode=seeded&seed=abc'; overrides other fields"
    )


class ActionRequest(BaseModel):
    """
    An action to dispatch.

    `kind` is required for buy-module and buy-upgrade.
    `seed`, `mode` and `daily_date` apply to new-run; a missing seed is generated.
    """
    type: str = Field(..., description="draw-module, stop-and-bank, buy-module, buy-upgrade, start-next-round, new-run")
    kind: Optional[str] = None
    seed: Optional[str] = None
    mode: Optional[str] = None
    daily_date: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete run state for display."""
    session_id: str
    mode: str
    seed: str
    daily_date: Optional[str] = None
    status: str
    round_status: str
    rounds: int
    score: Optional[int] = None
    volatility_exceeded_count: int = 0

    banked_flux: int
    banked_credits: int
    round_flux: int
    round_credits: int
    round_instability: int

    slot_capacity: int
    instability_threshold: int
    next_slot_capacity_cost: int
    next_instability_cost: int
    warp_core_target: int

    bag: list[ModuleInfo] = Field(default_factory=list)
    discard: list[ModuleInfo] = Field(default_factory=list)
    active_pile: list[ModuleInfo] = Field(default_factory=list)
    last_discarded: list[ModuleInfo] = Field(default_factory=list)
    last_round: Optional[RoundInfo] = None

    can_draw: bool = False
    can_manage_between_rounds: bool = False
    seed_modifier: str = ""
    log: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    mode: str
    seed: str
    daily_date: Optional[str] = None
    rounds: int = 0
    share_query: str = Field(..., description="Query string that reproduces this run")
    result_summary: str
    created_at: float = 0.0
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Response after dispatching an action."""
    session_id: str
    applied: bool = Field(..., description="False when the action was not legal in this phase")
    new_log_entries: list[str] = Field(default_factory=list)
    game_state: GameStateResponse
    api_version: str = "v1"


class CatalogResponse(BaseModel):
    """The shop: purchasable modules and upgrade tracks."""
    modules: list[ModuleTemplateInfo]
    upgrades: list[UpgradeInfo]
    warp_core_target: int


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
