"""
Action System - The closed set of actions a caller can dispatch.

Actions represent:
1. Round play (draw a module, stop and bank)
2. Between-round management (buy modules, buy upgrades, start next round)
3. Run lifecycle (new run)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import GameMode, ModuleKind
from .modules import UpgradeKind
from .rng import resolve_daily_run, validate_daily_date


class ActionType(str, Enum):
    """Types of actions in the system."""
    # Round play
    DRAW_MODULE = "draw-module"
    STOP_AND_BANK = "stop-and-bank"

    # Between rounds
    BUY_MODULE = "buy-module"
    BUY_UPGRADE = "buy-upgrade"
    START_NEXT_ROUND = "start-next-round"

    # Run lifecycle
    NEW_RUN = "new-run"


@dataclass(frozen=True)
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Only the fields relevant to the action type are set.
    """
    module_kind: ModuleKind | None = None
    upgrade_kind: UpgradeKind | None = None

    # For new-run
    seed: str | None = None
    mode: GameMode | None = None
    daily_date: str | None = None


@dataclass(frozen=True)
class Action:
    """
    A complete action to be applied to the game state.

    Build actions with the factory classmethods; from_dict() is the
    validating entry point for untrusted input.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def draw_module(cls) -> Action:
        """Factory for draw action."""
        return cls(action_type=ActionType.DRAW_MODULE)

    @classmethod
    def stop_and_bank(cls) -> Action:
        """Factory for manual bank action."""
        return cls(action_type=ActionType.STOP_AND_BANK)

    @classmethod
    def buy_module(cls, kind: ModuleKind | str) -> Action:
        """Factory for module purchase."""
        return cls(
            action_type=ActionType.BUY_MODULE,
            payload=ActionPayload(module_kind=ModuleKind(kind)),
        )

    @classmethod
    def buy_upgrade(cls, kind: UpgradeKind | str) -> Action:
        """Factory for upgrade purchase."""
        return cls(
            action_type=ActionType.BUY_UPGRADE,
            payload=ActionPayload(upgrade_kind=UpgradeKind(kind)),
        )

    @classmethod
    def start_next_round(cls) -> Action:
        """Factory for starting the next round."""
        return cls(action_type=ActionType.START_NEXT_ROUND)

    @classmethod
    def new_run(
        cls,
        seed: str,
        mode: GameMode | str | None = None,
        daily_date: str | None = None,
    ) -> Action:
        """
        Factory for resetting to a fresh run.

        Raises ValueError when daily_date disagrees with a daily seed.
        """
        mode = GameMode(mode) if mode is not None else None
        if mode is not None:
            resolve_daily_run(seed, mode, daily_date)
        return cls(
            action_type=ActionType.NEW_RUN,
            payload=ActionPayload(seed=seed, mode=mode, daily_date=daily_date),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """
        Parse an action from a JSON-style dict.

        Format: {"type": "buy-module", "kind": "flux-coil"}

        Raises ValueError for unknown types, unknown kinds, missing fields
        or a daily date that is not YYYY-MM-DD.
        """
        action_type = data.get("type")
        if not action_type:
            raise ValueError("Action missing 'type' field")
        try:
            action_type = ActionType(action_type)
        except ValueError:
            raise ValueError(f"Unknown action type: {action_type}")

        if action_type == ActionType.BUY_MODULE:
            kind = data.get("kind")
            try:
                return cls.buy_module(kind)
            except ValueError:
                raise ValueError(f"Unknown module kind: {kind}")

        if action_type == ActionType.BUY_UPGRADE:
            kind = data.get("kind")
            try:
                return cls.buy_upgrade(kind)
            except ValueError:
                raise ValueError(f"Unknown upgrade kind: {kind}")

        if action_type == ActionType.NEW_RUN:
            seed = data.get("seed")
            if not seed or not isinstance(seed, str):
                raise ValueError("new-run requires a non-empty 'seed'")
            mode = data.get("mode")
            try:
                mode = GameMode(mode) if mode is not None else None
            except ValueError:
                raise ValueError(f"Unknown game mode: {mode}")
            daily_date = data.get("daily_date")
            if daily_date is not None:
                validate_daily_date(daily_date)
            return cls.new_run(seed, mode=mode, daily_date=daily_date)

        return cls(action_type=action_type)

    def to_dict(self) -> dict[str, Any]:
        """Inverse of from_dict(), for logging and replay files."""
        data: dict[str, Any] = {"type": self.action_type.value}
        if self.payload.module_kind is not None:
            data["kind"] = self.payload.module_kind.value
        if self.payload.upgrade_kind is not None:
            data["kind"] = self.payload.upgrade_kind.value
        if self.action_type == ActionType.NEW_RUN:
            data["seed"] = self.payload.seed
            if self.payload.mode is not None:
                data["mode"] = self.payload.mode.value
            if self.payload.daily_date is not None:
                data["daily_date"] = self.payload.daily_date
        return data
