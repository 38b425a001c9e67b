"""
Pytest fixtures for Warp Protocol tests.
"""

import pytest

from ..engine_core.state import GameState, ModuleKind, RoundStatus
from ..engine_core.modules import create_module
from ..engine_core.reducer import create_initial_state
from ..engine_core.rng import FixedSeedSource
from ..session import SessionManager
from ..api.service import APIService


@pytest.fixture
def initial_state() -> GameState:
    """Fresh run on a fixed seed."""
    return create_initial_state("baseline-seed")


@pytest.fixture
def between_rounds_state(initial_state: GameState) -> GameState:
    """A run parked between rounds with 10 flux and 10 credits banked."""
    return initial_state._copy_with(
        round_status=RoundStatus.STOPPED,
        banked_flux=10,
        banked_credits=10,
    )


@pytest.fixture
def make_module():
    """Factory for module instances with explicit ids."""
    def _make(kind: str, module_id: int):
        return create_module(ModuleKind(kind), module_id)
    return _make


@pytest.fixture
def seed_source() -> FixedSeedSource:
    return FixedSeedSource(["fixed-seed-1", "fixed-seed-2", "fixed-seed-3"])


@pytest.fixture
def session_manager(seed_source) -> SessionManager:
    return SessionManager(seed_source=seed_source)


@pytest.fixture
def service(session_manager) -> APIService:
    """Create a fresh API service."""
    return APIService(session_manager=session_manager)
