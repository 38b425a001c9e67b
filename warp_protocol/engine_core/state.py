"""
Game State - Immutable run state for Warp Protocol.

Design principles:
- Immutable: every record is a frozen dataclass, pools are tuples
- Serializable: plain values only, safe to snapshot for replays
- Owned by the reducer: all changes go through apply_action()
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum


class ModuleKind(str, Enum):
    """Drawable module kinds."""
    FLUX_COIL = "flux-coil"
    SPONSORED_RELAY = "sponsored-relay"
    STABILIZER = "stabilizer"
    VOLATILE_LENS = "volatile-lens"
    WARP_CORE = "warp-core"


class GameMode(str, Enum):
    """How the run's seed was chosen."""
    RANDOM = "random"
    SEEDED = "seeded"
    DAILY = "daily"


class GameStatus(str, Enum):
    """Run status. WON is terminal."""
    PLAYING = "playing"
    WON = "won"


class RoundStatus(str, Enum):
    """Round status within a run."""
    DRAWING = "drawing"
    STOPPED = "stopped"
    BUSTED = "busted"


class BankReason(str, Enum):
    """Why a round was banked."""
    MANUAL = "manual"
    AUTO_CAPACITY = "auto-capacity"


@dataclass(frozen=True)
class CoreModule:
    """
    A module instance owned by the player.

    Instances are created by the catalog factory; `id` is unique per run.
    """
    id: str
    name: str
    kind: ModuleKind
    tier: int
    cost_flux: int
    cost_credits: int
    gen_flux: int
    gen_credits: int
    add_instability: int
    sponsored: bool = False
    is_warp_core: bool = False


@dataclass(frozen=True)
class RoundSnapshot:
    """Record of one completed round, kept for display."""
    number: int
    status: RoundStatus
    drawn: tuple[CoreModule, ...]
    round_flux: int
    round_credits: int
    round_instability: int
    bank_reason: BankReason | None = None

    @property
    def warp_cores(self) -> int:
        return sum(1 for module in self.drawn if module.is_warp_core)


@dataclass(frozen=True)
class GameState:
    """
    Complete run state at a point in time.

    Round-scoped fields (round_*, active_pile) are at risk until banked.
    Banked totals survive busts.
    """
    seed: str
    mode: GameMode = GameMode.RANDOM
    daily_date: str | None = None

    # Run / round status
    status: GameStatus = GameStatus.PLAYING
    round_status: RoundStatus = RoundStatus.DRAWING
    rounds: int = 0
    score: int | None = None
    volatility_exceeded_count: int = 0

    # Resources
    banked_flux: int = 0
    banked_credits: int = 0
    round_flux: int = 0
    round_credits: int = 0
    round_instability: int = 0

    # Upgrades
    slot_capacity: int = 4
    instability_threshold: int = 4
    next_slot_capacity_cost: int = 4
    next_instability_cost: int = 5

    # Win condition
    warp_core_target: int = 4

    # Token pools
    bag: tuple[CoreModule, ...] = ()
    discard: tuple[CoreModule, ...] = ()
    active_pile: tuple[CoreModule, ...] = ()
    last_discarded: tuple[CoreModule, ...] = ()

    # Determinism
    rng_state: int = 0
    next_module_id: int = 1

    # Display
    last_round: RoundSnapshot | None = None
    seed_modifier: str = ""
    log: tuple[str, ...] = field(default_factory=tuple)

    @property
    def owned_modules(self) -> tuple[CoreModule, ...]:
        """Every module the player owns, across all three pools."""
        return self.bag + self.discard + self.active_pile

    @property
    def owned_warp_cores(self) -> int:
        return sum(1 for module in self.owned_modules if module.is_warp_core)

    @property
    def is_over(self) -> bool:
        return self.status == GameStatus.WON

    @property
    def can_draw(self) -> bool:
        return self.status == GameStatus.PLAYING and self.round_status == RoundStatus.DRAWING

    @property
    def can_manage_between_rounds(self) -> bool:
        return self.status == GameStatus.PLAYING and self.round_status != RoundStatus.DRAWING

    def with_log(self, *entries: str, **changes) -> GameState:
        """Return new state with log entries appended (and other fields replaced)."""
        return self._copy_with(log=self.log + entries, **changes)

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
