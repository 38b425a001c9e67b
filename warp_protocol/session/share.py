"""
Share Links - Encode a run's (mode, seed, date) triple and decode it back.

A share query is all a friend needs to replay the same run:
    mode=seeded&seed=abc123
    mode=daily&date=2026-03-01

Also builds the plain-text result summary players paste into chat.
"""

from __future__ import annotations
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode

from ..engine_core.rng import (
    SeedSource,
    daily_date_from_seed,
    generate_daily_seed,
    generate_seed,
    today_date_string,
    validate_daily_date,
)
from ..engine_core.state import GameMode, GameState, GameStatus


@dataclass(frozen=True)
class RunDescriptor:
    """The (mode, seed, date) triple that fully determines a run's start."""
    mode: GameMode
    seed: str
    daily_date: str | None = None

    @classmethod
    def create(
        cls,
        mode: GameMode | str | None = None,
        seed: str | None = None,
        daily_date: str | None = None,
        seed_source: SeedSource | None = None,
    ) -> RunDescriptor:
        """
        Resolve a descriptor from partial input.

        - daily: date defaults to today (UTC), seed is derived from the date
        - seeded/random: a missing seed is generated once from seed_source

        Raises ValueError for an unknown mode or a malformed date.
        """
        try:
            mode = GameMode(mode) if mode else GameMode.RANDOM
        except ValueError:
            raise ValueError(f"Unknown game mode: {mode}")

        if mode == GameMode.DAILY:
            daily_date = validate_daily_date(daily_date or today_date_string())
            return cls(mode=mode, seed=generate_daily_seed(daily_date), daily_date=daily_date)

        seed = (seed or "").strip() or generate_seed(seed_source)
        return cls(mode=mode, seed=seed)

    @classmethod
    def from_state(cls, state: GameState) -> RunDescriptor:
        return cls(mode=state.mode, seed=state.seed, daily_date=state.daily_date)

    @classmethod
    def from_query(cls, query: str, seed_source: SeedSource | None = None) -> RunDescriptor:
        """Rebuild a descriptor from a share query string (leading '?' allowed)."""
        params = parse_qs(query.lstrip("?"))

        def first(name: str) -> str | None:
            values = params.get(name)
            return values[0] if values else None

        return cls.create(
            mode=first("mode"),
            seed=first("seed"),
            daily_date=first("date"),
            seed_source=seed_source,
        )

    def to_query(self) -> str:
        if self.mode == GameMode.DAILY:
            if self.challenge_date:
                return urlencode({"mode": self.mode.value, "date": self.challenge_date})
            return urlencode({"mode": GameMode.SEEDED.value, "seed": self.seed})
        return urlencode({"mode": self.mode.value, "seed": self.seed})

    @property
    def challenge_date(self) -> str | None:
        """Daily date, read from the seed when the descriptor lacks one."""
        return self.daily_date or daily_date_from_seed(self.seed)

    @property
    def challenge_label(self) -> str:
        if self.mode == GameMode.DAILY:
            return f"Daily {self.challenge_date}"
        return f"Seed {self.seed}"


def result_summary(state: GameState) -> str:
    """One-line result text for sharing."""
    label = RunDescriptor.from_state(state).challenge_label
    if state.status == GameStatus.WON:
        status_text = f"won in {state.rounds} rounds"
    else:
        status_text = f"{state.rounds} rounds played"
    count = state.volatility_exceeded_count
    plural = "" if count == 1 else "s"
    return f"Warp Protocol {label}: {status_text}, volatility exceeded {count} time{plural}."
