"""
Session Module - Who is playing and what they are playing.

Two kinds of ephemeral state live here:
- Login sessions (session id -> identity)
- Active puzzles (game id -> board)

Neither is persisted. A restart drops both; finished games survive
only as ledger records.
"""

from .store import SessionStore, Session, Identity
from .game import GameRegistry, PuzzleGame

__all__ = [
    "SessionStore",
    "Session",
    "Identity",
    "GameRegistry",
    "PuzzleGame",
]
