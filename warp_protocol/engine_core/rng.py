"""
Deterministic RNG - Seeded random stream threaded through game state.

The generator has no hidden state: the caller owns a 32-bit cursor,
passes it in, and receives the next cursor back. This keeps the reducer
pure and makes every run reproducible from its seed string.

True randomness lives only in SeedSource, which is consulted once when a
fresh unseeded run is created. Nothing in the reducer calls it.
"""

from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Protocol, Sequence, TypeVar
import re
import secrets

from .state import GameMode

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
CURSOR_INCREMENT = 0x6D2B79F5

SEED_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SEED_LENGTH = 8
DAILY_SEED_PREFIX = "daily-"

_DAILY_SEED_PATTERN = re.compile(r"^daily-(\d{4}-\d{2}-\d{2})$")


def _imul(a: int, b: int) -> int:
    """32-bit multiply, wrapping like a C uint32."""
    return (a * b) & UINT32_MASK


def _utf16_units(text: str) -> list[int]:
    data = text.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def hash_seed(seed: str) -> int:
    """
    Fold a seed string into a 32-bit cursor (FNV-1a).

    Works on UTF-16 code units so that seeds hash identically on every
    client, including astral characters.
    """
    value = FNV_OFFSET_BASIS
    for unit in _utf16_units(seed):
        value ^= unit
        value = _imul(value, FNV_PRIME)
    return value


def next_random(cursor: int) -> tuple[float, int]:
    """
    Advance the cursor and return (value in [0, 1), next cursor).

    mulberry32 mixing: xor-shift plus two multiply-xor rounds.
    """
    next_cursor = (cursor + CURSOR_INCREMENT) & UINT32_MASK
    t = next_cursor
    t = _imul(t ^ (t >> 15), t | 1)
    t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
    value = ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296
    return value, next_cursor


def random_index(cursor: int, size: int) -> tuple[int, int]:
    """Uniform index in [0, size) and the next cursor."""
    value, next_cursor = next_random(cursor)
    return int(value * size), next_cursor


def reshuffle(modules: Sequence[T], cursor: int) -> tuple[tuple[T, ...], int]:
    """Fisher-Yates shuffle driven by the cursor. Returns (shuffled, cursor)."""
    items = list(modules)
    for i in range(len(items) - 1, 0, -1):
        j, cursor = random_index(cursor, i + 1)
        items[i], items[j] = items[j], items[i]
    return tuple(items), cursor


def draw_one(bag: Sequence[T], cursor: int) -> tuple[T, tuple[T, ...], int]:
    """
    Remove one uniformly chosen item from the bag.

    The remaining items keep their relative order.
    """
    if not bag:
        raise ValueError("Cannot draw from an empty bag")
    index, cursor = random_index(cursor, len(bag))
    remaining = tuple(bag[:index]) + tuple(bag[index + 1:])
    return bag[index], remaining, cursor


# =============================================================================
# Seed sources (boundary only)
# =============================================================================

class SeedSource(Protocol):
    """Capability that produces fresh seed strings for unseeded runs."""

    def new_seed(self) -> str:
        ...


class SystemSeedSource:
    """Seed source backed by system entropy."""

    def __init__(self, length: int = SEED_LENGTH):
        self.length = length

    def new_seed(self) -> str:
        return "".join(secrets.choice(SEED_ALPHABET) for _ in range(self.length))


class FixedSeedSource:
    """Seed source that hands out a fixed sequence (tests, replays)."""

    def __init__(self, seeds: Sequence[str]):
        self._seeds = list(seeds)
        self._index = 0

    def new_seed(self) -> str:
        seed = self._seeds[self._index % len(self._seeds)]
        self._index += 1
        return seed


def generate_seed(source: SeedSource | None = None) -> str:
    """Produce a seed for a fresh random run."""
    return (source or SystemSeedSource()).new_seed()


def generate_daily_seed(daily_date: str) -> str:
    """Daily challenge seed: everyone playing on the same date shares it."""
    return f"{DAILY_SEED_PREFIX}{daily_date}"


def daily_date_from_seed(seed: str) -> str | None:
    """Recover the date from a 'daily-YYYY-MM-DD' seed, if it is one."""
    match = _DAILY_SEED_PATTERN.match(seed)
    return match.group(1) if match else None


def resolve_daily_run(
    seed: str,
    mode: GameMode,
    daily_date: str | None = None,
) -> tuple[GameMode, str | None]:
    """
    Settle the (mode, daily_date) pair for a seed.

    A daily run takes its date from its seed, so the share link always
    rebuilds the same run. Daily mode on an undated seed is a seeded run.

    Raises ValueError when daily_date disagrees with the seed.
    """
    if mode != GameMode.DAILY:
        return mode, None

    seed_date = daily_date_from_seed(seed)
    if daily_date is not None and daily_date != seed_date:
        raise ValueError(f"Daily date {daily_date!r} does not match seed {seed!r}")
    if seed_date is None:
        return GameMode.SEEDED, None
    return mode, seed_date


def validate_daily_date(value: str) -> str:
    """Return the date unchanged if it is ISO YYYY-MM-DD, else raise ValueError."""
    try:
        parsed = date.fromisoformat(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None or parsed.isoformat() != value:
        raise ValueError(f"Invalid daily date: {value!r} (expected YYYY-MM-DD)")
    return value


def today_date_string() -> str:
    """Today's date in UTC as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()
