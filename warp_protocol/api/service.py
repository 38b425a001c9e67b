"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions
3. Formats state for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.action import Action, ActionType
from ..engine_core.modules import MODULE_TEMPLATES, UPGRADE_TRACKS
from ..engine_core.reducer import WARP_CORE_TARGET
from ..engine_core.state import CoreModule, GameState, RoundSnapshot
from ..session import RunDescriptor, Session, SessionManager, result_summary
from .schemas import (
    ActionRequest,
    ActionResponse,
    CatalogResponse,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    ModuleInfo,
    ModuleTemplateInfo,
    RoundInfo,
    SessionResponse,
    SessionStatus,
    UpgradeInfo,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a run
        session = service.create_session(CreateSessionRequest(mode="seeded", seed="abc"))

        # Play
        response = service.dispatch_action(session.session_id, ActionRequest(type="draw-module"))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """Create a new game session."""
        try:
            session = self.session_manager.create_session(
                mode=request.mode,
                seed=request.seed,
                daily_date=request.daily_date,
                share_query=request.share_query,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Get session status."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "ended") -> bool:
        """End a session."""
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """Get the complete current run state."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._state_to_response(session_id, session.game_state)

    def dispatch_action(
        self,
        session_id: str,
        request: ActionRequest,
    ) -> ActionResponse | ErrorResponse:
        """
        Parse and apply one action.

        Illegal-for-phase actions succeed with applied=False.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        try:
            action = self._parse_action(request)
        except ValueError as e:
            logger.warning("Rejected action for session %s: %s", session_id, e)
            return ErrorResponse(
                error=str(e),
                error_code=ErrorCode.INVALID_ACTION,
                details={"type": request.type, "kind": request.kind},
            )

        result = session.dispatch(action)
        logger.debug(
            "Session %s: %s applied=%s",
            session_id, action.action_type.value, result.applied,
        )
        return ActionResponse(
            session_id=session_id,
            applied=result.applied,
            new_log_entries=result.new_log_entries,
            game_state=self._state_to_response(session_id, result.state),
        )

    def get_catalog(self, session_id: str | None = None) -> CatalogResponse | ErrorResponse:
        """
        The shop listing.

        With a session, upgrade tracks include the current level and next cost.
        """
        state = None
        if session_id:
            session = self.session_manager.get_session(session_id)
            if not session:
                return self._not_found(session_id)
            state = session.game_state

        return CatalogResponse(
            modules=[
                ModuleTemplateInfo(
                    kind=template.kind.value,
                    name=template.name,
                    tier=template.tier,
                    cost_flux=template.cost_flux,
                    cost_credits=template.cost_credits,
                    gen_flux=template.gen_flux,
                    gen_credits=template.gen_credits,
                    add_instability=template.add_instability,
                    sponsored=template.sponsored,
                    is_warp_core=template.is_warp_core,
                )
                for template in MODULE_TEMPLATES.values()
            ],
            upgrades=[
                UpgradeInfo(
                    kind=track.kind.value,
                    label=track.label,
                    current_value=getattr(state, track.stat_field) if state else None,
                    next_cost=getattr(state, track.cost_field) if state else None,
                    cost_step=track.cost_step,
                )
                for track in UPGRADE_TRACKS.values()
            ],
            warp_core_target=state.warp_core_target if state else WARP_CORE_TARGET,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _parse_action(self, request: ActionRequest) -> Action:
        """Resolve a request into an Action. new-run may omit its seed."""
        data = request.model_dump(exclude_none=True)
        if data.get("type") == ActionType.NEW_RUN.value:
            descriptor = RunDescriptor.create(
                mode=request.mode,
                seed=request.seed,
                daily_date=request.daily_date,
                seed_source=self.session_manager.seed_source,
            )
            return Action.new_run(descriptor.seed, mode=descriptor.mode, daily_date=descriptor.daily_date)
        return Action.from_dict(data)

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.game_state
        descriptor = session.descriptor
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus.GAME_OVER if state.is_over else SessionStatus.ACTIVE,
            mode=state.mode.value,
            seed=state.seed,
            daily_date=state.daily_date,
            rounds=state.rounds,
            share_query=descriptor.to_query(),
            result_summary=result_summary(state),
            created_at=session.created_at,
        )

    def _state_to_response(self, session_id: str, state: GameState) -> GameStateResponse:
        return GameStateResponse(
            session_id=session_id,
            mode=state.mode.value,
            seed=state.seed,
            daily_date=state.daily_date,
            status=state.status.value,
            round_status=state.round_status.value,
            rounds=state.rounds,
            score=state.score,
            volatility_exceeded_count=state.volatility_exceeded_count,
            banked_flux=state.banked_flux,
            banked_credits=state.banked_credits,
            round_flux=state.round_flux,
            round_credits=state.round_credits,
            round_instability=state.round_instability,
            slot_capacity=state.slot_capacity,
            instability_threshold=state.instability_threshold,
            next_slot_capacity_cost=state.next_slot_capacity_cost,
            next_instability_cost=state.next_instability_cost,
            warp_core_target=state.warp_core_target,
            bag=[_module_info(m) for m in state.bag],
            discard=[_module_info(m) for m in state.discard],
            active_pile=[_module_info(m) for m in state.active_pile],
            last_discarded=[_module_info(m) for m in state.last_discarded],
            last_round=_round_info(state.last_round) if state.last_round else None,
            can_draw=state.can_draw,
            can_manage_between_rounds=state.can_manage_between_rounds,
            seed_modifier=state.seed_modifier,
            log=list(state.log),
        )


def _module_info(module: CoreModule) -> ModuleInfo:
    return ModuleInfo(
        id=module.id,
        name=module.name,
        kind=module.kind.value,
        tier=module.tier,
        cost_flux=module.cost_flux,
        cost_credits=module.cost_credits,
        gen_flux=module.gen_flux,
        gen_credits=module.gen_credits,
        add_instability=module.add_instability,
        sponsored=module.sponsored,
        is_warp_core=module.is_warp_core,
    )


def _round_info(snapshot: RoundSnapshot) -> RoundInfo:
    return RoundInfo(
        number=snapshot.number,
        status=snapshot.status.value,
        bank_reason=snapshot.bank_reason.value if snapshot.bank_reason else None,
        drawn=[_module_info(m) for m in snapshot.drawn],
        round_flux=snapshot.round_flux,
        round_credits=snapshot.round_credits,
        round_instability=snapshot.round_instability,
        warp_cores=snapshot.warp_cores,
    )
