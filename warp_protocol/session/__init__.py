"""
Session Module - Manages ephemeral game sessions.

A session represents one seat at the game:
- Created when a caller starts playing
- Holds the current run state and its action history
- Serializes action dispatch
- Destroyed when the caller ends it or it goes stale

Sessions are EPHEMERAL:
- No persistence to database
- Any run can be rebuilt from its share link and action history
"""

from .manager import SessionManager, Session, SessionState, TurnResult
from .share import RunDescriptor, result_summary, validate_daily_date

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "TurnResult",
    "RunDescriptor",
    "result_summary",
    "validate_daily_date",
]
