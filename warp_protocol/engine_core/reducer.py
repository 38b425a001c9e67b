"""
Reducer - Applies actions to game state.

The reducer is the single point of state change.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Illegal actions are no-ops that return the SAME state object
- Affordability failures are no-ops that only append a log entry
- All randomness comes from the state's own RNG cursor
"""

from __future__ import annotations
from functools import reduce
from typing import Callable, Iterable

from .state import (
    BankReason,
    GameMode,
    GameState,
    GameStatus,
    RoundSnapshot,
    RoundStatus,
)
from .action import Action, ActionType
from .modules import UPGRADE_TRACKS, create_module, get_template, starting_bag
from .rng import draw_one, hash_seed, reshuffle, resolve_daily_run

START_FLUX = 0
START_CREDITS = 0
START_SLOT_CAPACITY = 4
START_INSTABILITY_THRESHOLD = 4
START_SLOT_CAPACITY_COST = 4
START_INSTABILITY_COST = 5
MIN_INSTABILITY_THRESHOLD = 2
WARP_CORE_TARGET = 4

Handler = Callable[[GameState, Action], GameState]


def seed_instability_modifier(seed_hash: int) -> tuple[int, str]:
    """Seed-derived reactor modifier: (threshold delta, log label)."""
    mod = seed_hash % 3
    if mod == 0:
        return -1, "Seed modifier: volatile reactor (-1 instability threshold)."
    if mod == 1:
        return 0, "Seed modifier: neutral reactor (no instability modifier)."
    return 1, "Seed modifier: reinforced reactor (+1 instability threshold)."


def create_initial_state(
    seed: str,
    mode: GameMode | str | None = None,
    daily_date: str | None = None,
) -> GameState:
    """
    Build the opening state of a run.

    Args:
        seed: Seed string; fixes the whole RNG trajectory of the run
        mode: How the seed was chosen (defaults to random)
        daily_date: Challenge date for daily runs; read from the seed
            when omitted

    Returns:
        Fresh GameState in the drawing phase of round 1

    Raises:
        ValueError: daily_date disagrees with the date in a daily seed
    """
    mode, daily_date = resolve_daily_run(
        seed,
        GameMode(mode) if mode is not None else GameMode.RANDOM,
        daily_date,
    )

    bag = starting_bag()
    seed_hash = hash_seed(seed)
    delta, modifier_label = seed_instability_modifier(seed_hash)
    threshold = max(MIN_INSTABILITY_THRESHOLD, START_INSTABILITY_THRESHOLD + delta)

    return GameState(
        seed=seed,
        mode=mode,
        daily_date=daily_date,
        status=GameStatus.PLAYING,
        round_status=RoundStatus.DRAWING,
        rounds=0,
        score=None,
        volatility_exceeded_count=0,
        banked_flux=START_FLUX,
        banked_credits=START_CREDITS,
        slot_capacity=START_SLOT_CAPACITY,
        instability_threshold=threshold,
        next_slot_capacity_cost=START_SLOT_CAPACITY_COST,
        next_instability_cost=START_INSTABILITY_COST,
        warp_core_target=WARP_CORE_TARGET,
        bag=bag,
        rng_state=seed_hash,
        next_module_id=len(bag) + 1,
        seed_modifier=modifier_label,
        log=(f'Run initialized with seed "{seed}".', modifier_label),
    )


class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, action: Action) -> GameState:
        """
        Apply an action to the game state.

        Returns the new state, or `state` itself when the action is not
        legal right now.
        """
        if not self._is_legal(state, action):
            return state

        handler = self._get_handler(action.action_type)
        if handler is None:
            return state
        return handler(state, action)

    def _is_legal(self, state: GameState, action: Action) -> bool:
        """Phase gating. Affordability is checked by the handlers."""
        if action.action_type == ActionType.NEW_RUN:
            return True

        if state.status != GameStatus.PLAYING:
            return False

        if action.action_type in {ActionType.DRAW_MODULE, ActionType.STOP_AND_BANK}:
            return state.round_status == RoundStatus.DRAWING

        return state.round_status != RoundStatus.DRAWING

    def _get_handler(self, action_type: ActionType) -> Handler | None:
        """Get the handler function for an action type."""
        handlers: dict[ActionType, Handler] = {
            ActionType.DRAW_MODULE: self._handle_draw_module,
            ActionType.STOP_AND_BANK: self._handle_stop_and_bank,
            ActionType.BUY_MODULE: self._handle_buy_module,
            ActionType.BUY_UPGRADE: self._handle_buy_upgrade,
            ActionType.START_NEXT_ROUND: self._handle_start_next_round,
            ActionType.NEW_RUN: self._handle_new_run,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Round play
    # =========================================================================

    def _handle_draw_module(self, state: GameState, action: Action) -> GameState:
        """Draw one module, then check capacity and instability."""
        bag = state.bag
        discard = state.discard
        cursor = state.rng_state
        entries: list[str] = []

        if not bag and discard:
            bag, cursor = reshuffle(discard, cursor)
            discard = ()
            entries.append("Reshuffled discard into bag.")

        if not bag:
            return state.with_log(*entries, "No modules available to draw.")

        module, bag, cursor = draw_one(bag, cursor)
        round_flux = state.round_flux + module.gen_flux
        round_credits = state.round_credits + module.gen_credits
        round_instability = state.round_instability + module.add_instability
        entries.append(
            f"Drew {module.name}. Round totals: {round_flux} flux, {round_credits} credits, "
            f"instability {round_instability}/{state.instability_threshold}."
        )

        drawn = state.with_log(
            *entries,
            bag=bag,
            discard=discard,
            rng_state=cursor,
            active_pile=state.active_pile + (module,),
            round_flux=round_flux,
            round_credits=round_credits,
            round_instability=round_instability,
        )

        if len(drawn.active_pile) >= drawn.slot_capacity:
            return self._bank_round(drawn, BankReason.AUTO_CAPACITY)
        if drawn.round_instability >= drawn.instability_threshold:
            return self._bust_round(drawn)
        return drawn

    def _handle_stop_and_bank(self, state: GameState, action: Action) -> GameState:
        return self._bank_round(state, BankReason.MANUAL)

    def _bank_round(self, state: GameState, reason: BankReason) -> GameState:
        """Move round gains into banked totals and close the round."""
        number = state.rounds + 1
        drawn = state.active_pile
        snapshot = RoundSnapshot(
            number=number,
            status=RoundStatus.STOPPED,
            drawn=drawn,
            round_flux=state.round_flux,
            round_credits=state.round_credits,
            round_instability=state.round_instability,
            bank_reason=reason,
        )

        if reason == BankReason.AUTO_CAPACITY:
            message = (
                f"Round {number} auto-banked at slot capacity ({len(drawn)}/{state.slot_capacity}): "
                f"+{state.round_flux} flux, +{state.round_credits} credits."
            )
        else:
            message = f"Banked round {number}: +{state.round_flux} flux, +{state.round_credits} credits."

        banked = state.with_log(
            message,
            rounds=number,
            banked_flux=state.banked_flux + state.round_flux,
            banked_credits=state.banked_credits + state.round_credits,
            **self._closed_round_fields(state, RoundStatus.STOPPED, snapshot),
        )
        return self._apply_win_check(banked, snapshot)

    def _bust_round(self, state: GameState) -> GameState:
        """Meltdown: forfeit unbanked gains and close the round."""
        number = state.rounds + 1
        snapshot = RoundSnapshot(
            number=number,
            status=RoundStatus.BUSTED,
            drawn=state.active_pile,
            round_flux=state.round_flux,
            round_credits=state.round_credits,
            round_instability=state.round_instability,
        )
        return state.with_log(
            f"Round {number} busted: instability {state.round_instability}/{state.instability_threshold}. "
            f"Lost unbanked rewards ({state.round_flux} flux, {state.round_credits} credits).",
            rounds=number,
            volatility_exceeded_count=state.volatility_exceeded_count + 1,
            **self._closed_round_fields(state, RoundStatus.BUSTED, snapshot),
        )

    def _closed_round_fields(
        self,
        state: GameState,
        round_status: RoundStatus,
        snapshot: RoundSnapshot,
    ) -> dict:
        """Fields shared by every round ending: pile to discard, accumulators to zero."""
        return {
            "round_status": round_status,
            "discard": state.discard + state.active_pile,
            "active_pile": (),
            "last_discarded": state.active_pile,
            "round_flux": 0,
            "round_credits": 0,
            "round_instability": 0,
            "last_round": snapshot,
        }

    def _apply_win_check(self, state: GameState, snapshot: RoundSnapshot) -> GameState:
        """Win when one banked round carried enough warp cores."""
        warp_cores = snapshot.warp_cores
        if warp_cores < state.warp_core_target:
            return state
        return state.with_log(
            f"Warp protocol complete in {state.rounds} rounds: "
            f"{warp_cores}/{state.warp_core_target} warp cores banked in one round.",
            status=GameStatus.WON,
            score=state.rounds,
        )

    # =========================================================================
    # Between rounds
    # =========================================================================

    def _handle_buy_module(self, state: GameState, action: Action) -> GameState:
        kind = action.payload.module_kind
        if kind is None:
            return state

        template = get_template(kind)
        if state.banked_flux < template.cost_flux or state.banked_credits < template.cost_credits:
            return state.with_log(f"Not enough resources for {template.name}.")

        module = create_module(kind, state.next_module_id)
        return state.with_log(
            f"Purchased {template.name} for {template.cost_label()}.",
            banked_flux=state.banked_flux - template.cost_flux,
            banked_credits=state.banked_credits - template.cost_credits,
            bag=state.bag + (module,),
            next_module_id=state.next_module_id + 1,
        )

    def _handle_buy_upgrade(self, state: GameState, action: Action) -> GameState:
        kind = action.payload.upgrade_kind
        if kind is None:
            return state

        track = UPGRADE_TRACKS[kind]
        cost = getattr(state, track.cost_field)
        if state.banked_credits < cost:
            return state.with_log(f"Not enough credits for {track.label} upgrade (cost {cost}).")

        new_value = getattr(state, track.stat_field) + track.stat_step
        return state.with_log(
            f"Upgraded {track.stat_label} to {new_value}.",
            banked_credits=state.banked_credits - cost,
            **{
                track.stat_field: new_value,
                track.cost_field: cost + track.cost_step,
            },
        )

    def _handle_start_next_round(self, state: GameState, action: Action) -> GameState:
        """Recycle discard into the bag. Shuffling waits for the next empty-bag draw."""
        return state.with_log(
            f"Starting round {state.rounds + 1}.",
            bag=state.bag + state.discard,
            discard=(),
            round_status=RoundStatus.DRAWING,
        )

    # =========================================================================
    # Run lifecycle
    # =========================================================================

    def _handle_new_run(self, state: GameState, action: Action) -> GameState:
        payload = action.payload
        if not payload.seed:
            return state
        return create_initial_state(payload.seed, mode=payload.mode, daily_date=payload.daily_date)


_reducer = Reducer()


def apply_action(state: GameState, action: Action) -> GameState:
    """
    Convenience function to apply an action.

    Uses a shared stateless Reducer.
    """
    return _reducer.apply(state, action)


# Function form of the reducer, for folds and event dispatchers.
reduce_game_state = apply_action


def replay(
    seed: str,
    actions: Iterable[Action],
    mode: GameMode | str | None = None,
    daily_date: str | None = None,
) -> GameState:
    """Rebuild a run from its seed and action sequence."""
    return reduce(reduce_game_state, actions, create_initial_state(seed, mode=mode, daily_date=daily_date))
