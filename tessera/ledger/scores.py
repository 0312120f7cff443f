"""
Score Ledger - Completed games and the leaderboard.

One record per completed game. The leaderboard ranks individual games,
not per-user totals: the same player can hold several places. A per-user
running total is still kept for profile display.

Ordering: score descending, then elapsed seconds ascending, then oldest
first, so equal scores favour the faster (then earlier) game.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import threading

from ..engine_core.errors import LedgerError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GameScore:
    """A completed game, ready to persist."""
    user_id: str
    difficulty: str
    grid_size: int | None
    score: int
    elapsed_seconds: int
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_name: str
    score: int
    elapsed_seconds: int
    difficulty: str
    grid_size: int | None
    date: datetime


def validate_score(
    score: int,
    elapsed_seconds: int,
    points_per_tile: int,
    grid_size: int | None = None,
) -> str | None:
    """
    Check a submitted score.

    Returns an error message if invalid, None if valid.
    """
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        return "Score must be a non-negative integer"
    if points_per_tile > 0 and score % points_per_tile != 0:
        return f"Score must be a multiple of {points_per_tile}"
    if isinstance(elapsed_seconds, bool) or not isinstance(elapsed_seconds, int) or elapsed_seconds < 0:
        return "Elapsed seconds must be a non-negative integer"
    if grid_size is not None and score > grid_size * grid_size * points_per_tile:
        return f"Score {score} exceeds the maximum for a {grid_size}x{grid_size} grid"
    return None


class ScoreLedger(ABC):
    """
    Abstract score store.

    Implementations:
    - InMemoryScoreLedger: process-local, for development and tests
    - Database-backed ledgers plug in behind the same interface
    """

    @abstractmethod
    def record(self, score: GameScore, player_name: str) -> int:
        """Persist a game and return the player's new total score."""

    @abstractmethod
    def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        """All games ranked by score."""

    @abstractmethod
    def total_score(self, user_id: str) -> int:
        """Sum of a player's recorded scores."""


@dataclass
class _Record:
    score: GameScore
    player_name: str
    sequence: int


class InMemoryScoreLedger(ScoreLedger):
    """Process-local ledger guarded by one lock."""

    def __init__(self):
        self._records: list[_Record] = []
        self._totals: dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, score: GameScore, player_name: str) -> int:
        if score.score < 0:
            raise LedgerError("Refusing to store a negative score")
        with self._lock:
            self._records.append(_Record(score, player_name, len(self._records)))
            total = self._totals.get(score.user_id, 0) + score.score
            self._totals[score.user_id] = total
        logger.info("Recorded score %d for %s (%s). Total: %d",
                    score.score, player_name, score.difficulty, total)
        return total

    def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        with self._lock:
            records = list(self._records)

        records.sort(key=lambda r: (-r.score.score, r.score.elapsed_seconds, r.sequence))
        if limit is not None:
            records = records[:max(limit, 0)]

        return [
            LeaderboardEntry(
                rank=index + 1,
                player_name=record.player_name or "Unknown",
                score=record.score.score,
                elapsed_seconds=record.score.elapsed_seconds,
                difficulty=record.score.difficulty,
                grid_size=record.score.grid_size,
                date=record.score.timestamp,
            )
            for index, record in enumerate(records)
        ]

    def total_score(self, user_id: str) -> int:
        with self._lock:
            return self._totals.get(user_id, 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
