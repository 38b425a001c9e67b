"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Caller starts a session -> a RunDescriptor is resolved (seed generated
   here, once, if the caller did not supply one) and the initial state built
2. During play:
   - Caller dispatches actions one at a time
   - Each dispatch runs the reducer under the session lock
   - The session keeps the action history for replay
3. Session ends -> removed from memory

PERSISTENCE RULES:
- NO database, sessions are in-memory only
- A run is always reconstructible from (descriptor, action history)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import threading
import time
import uuid

from ..engine_core.action import Action, ActionType
from ..engine_core.reducer import apply_action, create_initial_state, replay
from ..engine_core.rng import SeedSource, SystemSeedSource
from ..engine_core.state import GameState
from .share import RunDescriptor

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Run in progress
    GAME_OVER = "game_over"  # Run won
    ENDED = "ended"  # Removed by the caller
    ABANDONED = "abandoned"  # Cleaned up as stale


@dataclass
class TurnResult:
    """
    Result of dispatching one action to a session.

    `applied` is False when the reducer returned the same state object
    (illegal-for-phase no-op). Affordability failures count as applied
    because they add a log entry.
    """
    state: GameState
    applied: bool
    new_log_entries: list[str] = field(default_factory=list)


@dataclass
class Session:
    """
    An ephemeral game session.

    Holds the current canonical state and the actions that produced it.
    """
    session_id: str
    game_state: GameState
    created_at: float
    last_active_at: float = 0.0
    state: SessionState = SessionState.ACTIVE

    # Actions since the current run started (reset by new-run)
    history: list[Action] = field(default_factory=list)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def descriptor(self) -> RunDescriptor:
        return RunDescriptor.from_state(self.game_state)

    def is_active(self) -> bool:
        return self.state in {SessionState.ACTIVE, SessionState.GAME_OVER}

    def dispatch(self, action: Action) -> TurnResult:
        """
        Apply one action. Concurrent callers are serialized.
        """
        with self._lock:
            before = self.game_state
            after = apply_action(before, action)
            self.last_active_at = time.time()

            if after is before:
                return TurnResult(state=before, applied=False)

            if action.action_type == ActionType.NEW_RUN:
                self.history = []
                new_entries = list(after.log)
            else:
                self.history.append(action)
                new_entries = list(after.log[len(before.log):])

            self.game_state = after
            self.state = SessionState.GAME_OVER if after.is_over else SessionState.ACTIVE
            return TurnResult(state=after, applied=True, new_log_entries=new_entries)

    def replay_state(self) -> GameState:
        """Rebuild the current state from the descriptor and history."""
        descriptor = self.descriptor
        return replay(
            descriptor.seed,
            self.history,
            mode=descriptor.mode,
            daily_date=descriptor.daily_date,
        )


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from run descriptors
    - Track active sessions
    - Clean up stale sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, seed_source: SeedSource | None = None, max_age_seconds: int = 3600):
        self.seed_source = seed_source or SystemSeedSource()
        self.max_age_seconds = max_age_seconds
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        mode: str | None = None,
        seed: str | None = None,
        daily_date: str | None = None,
        share_query: str | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            mode: random, seeded or daily
            seed: Seed string (generated when missing, ignored for daily)
            daily_date: YYYY-MM-DD for daily runs (defaults to today)
            share_query: A share link query; overrides the other arguments

        Returns:
            New Session in the drawing phase of round 1

        Raises:
            ValueError: unknown mode or malformed date
        """
        if share_query:
            descriptor = RunDescriptor.from_query(share_query, seed_source=self.seed_source)
        else:
            descriptor = RunDescriptor.create(
                mode=mode,
                seed=seed,
                daily_date=daily_date,
                seed_source=self.seed_source,
            )

        now = time.time()
        session = Session(
            session_id=str(uuid.uuid4()),
            game_state=create_initial_state(
                descriptor.seed,
                mode=descriptor.mode,
                daily_date=descriptor.daily_date,
            ),
            created_at=now,
            last_active_at=now,
        )
        with self._lock:
            self._sessions[session.session_id] = session

        logger.info(
            "Created session %s (mode=%s, seed=%s)",
            session.session_id, descriptor.mode.value, descriptor.seed,
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "ended") -> bool:
        """
        End a session and drop it from memory.

        Returns True if the session existed.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if not session:
            return False

        session.state = SessionState.ABANDONED if reason == "stale" else SessionState.ENDED
        session.history.clear()
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in list(self._sessions.items())
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int | None = None) -> int:
        """
        Remove sessions idle for longer than max_age_seconds.

        Returns the number of sessions removed.
        """
        max_age = self.max_age_seconds if max_age_seconds is None else max_age_seconds
        cutoff = time.time() - max_age
        stale = [
            sid for sid, session in list(self._sessions.items())
            if session.last_active_at < cutoff
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        if stale:
            logger.info("Cleaned up %d stale session(s)", len(stale))
        return len(stale)
