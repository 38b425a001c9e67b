"""
Engine Core - Deterministic Warp Protocol state machine.

The engine is the runtime that:
1. Hashes a seed into an RNG cursor
2. Builds the initial GameState
3. Applies actions via the reducer
4. Threads all randomness through the state itself
"""

from .state import (
    BankReason,
    CoreModule,
    GameMode,
    GameState,
    GameStatus,
    ModuleKind,
    RoundSnapshot,
    RoundStatus,
)
from .modules import (
    MODULE_TEMPLATES,
    UPGRADE_TRACKS,
    ModuleTemplate,
    UpgradeKind,
    UpgradeTrack,
    create_module,
    starting_bag,
)
from .action import Action, ActionType, ActionPayload
from .reducer import Reducer, apply_action, create_initial_state, reduce_game_state, replay
from .rng import (
    FixedSeedSource,
    SeedSource,
    SystemSeedSource,
    daily_date_from_seed,
    generate_daily_seed,
    generate_seed,
    hash_seed,
    next_random,
    resolve_daily_run,
    today_date_string,
    validate_daily_date,
)

__all__ = [
    "BankReason",
    "CoreModule",
    "GameMode",
    "GameState",
    "GameStatus",
    "ModuleKind",
    "RoundSnapshot",
    "RoundStatus",
    "MODULE_TEMPLATES",
    "UPGRADE_TRACKS",
    "ModuleTemplate",
    "UpgradeKind",
    "UpgradeTrack",
    "create_module",
    "starting_bag",
    "Action",
    "ActionType",
    "ActionPayload",
    "Reducer",
    "apply_action",
    "create_initial_state",
    "reduce_game_state",
    "replay",
    "FixedSeedSource",
    "SeedSource",
    "SystemSeedSource",
    "daily_date_from_seed",
    "generate_daily_seed",
    "generate_seed",
    "hash_seed",
    "next_random",
    "resolve_daily_run",
    "today_date_string",
    "validate_daily_date",
]
