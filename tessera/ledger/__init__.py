"""
Ledger Module - Persistent outcomes.

The ledger is the only state that outlives a process:
- Completed game scores
- Per-player totals
- The leaderboard derived from them
"""

from .scores import (
    GameScore,
    LeaderboardEntry,
    ScoreLedger,
    InMemoryScoreLedger,
    validate_score,
)
from .accounts import AccountDirectory, InMemoryAccountDirectory

__all__ = [
    "GameScore",
    "LeaderboardEntry",
    "ScoreLedger",
    "InMemoryScoreLedger",
    "validate_score",
    "AccountDirectory",
    "InMemoryAccountDirectory",
]
