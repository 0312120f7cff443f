"""
Puzzle Game - One player's puzzle and the registry of active puzzles.

A PuzzleGame owns exactly one Board together with what the board was
built from (difficulty, cached image) and who is playing it. Games are
ephemeral: leaving or finishing discards them; only the resulting
GameScore is handed to the ledger.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import random
import threading
import time
import uuid

from ..engine_core.board import Board, DEFAULT_POINTS_PER_TILE
from ..engine_core.errors import GameNotFound
from ..engine_core.placement import PlacementResult
from ..engine_core.tiles import validate_grid_size
from ..ledger.scores import GameScore

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 60 * 60


@dataclass
class PuzzleGame:
    """
    An active puzzle.

    session_id is the login session of the player, if any. Games started
    without one can be played but their scores are not recorded.
    """
    game_id: str
    board: Board
    difficulty: str
    cache_id: str
    created_at: float
    image_url: str | None = None
    photographer: str | None = None
    session_id: str | None = None
    score_recorded: bool = False

    @property
    def grid_size(self) -> int:
        return self.board.grid_size

    def place(self, tile_id: str, slot_index: int) -> PlacementResult:
        return self.board.place(tile_id, slot_index)

    def to_score(self, user_id: str) -> GameScore:
        """GameScore from the current board: correct tiles x points per tile."""
        return GameScore(
            user_id=user_id,
            difficulty=self.difficulty,
            grid_size=self.grid_size,
            score=self.board.correct_count * self.board.points_per_tile,
            elapsed_seconds=self.board.elapsed_seconds,
        )


class GameRegistry:
    """
    Active puzzles by id.

    Finished and abandoned games are reclaimed whenever a new game starts,
    so a completed board stays readable until the next start() and no
    longer.

    Usage:
        registry = GameRegistry(points_per_tile=10)
        game = registry.start(grid_size=3, difficulty="mudah", cache_id=cid)
        registry.get(game.game_id).place("tile-4", 4)
        registry.leave(game.game_id)
    """

    def __init__(
        self,
        points_per_tile: int = DEFAULT_POINTS_PER_TILE,
        rng_factory: Callable[[], random.Random] = random.Random,
        clock: Callable[[], float] = time.monotonic,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
    ):
        self.points_per_tile = points_per_tile
        self.max_age_seconds = max_age_seconds
        self._rng_factory = rng_factory
        self._clock = clock
        self._games: dict[str, PuzzleGame] = {}
        self._lock = threading.Lock()

    def start(
        self,
        grid_size: int,
        difficulty: str,
        cache_id: str,
        session_id: str | None = None,
        image_url: str | None = None,
        photographer: str | None = None,
    ) -> PuzzleGame:
        """Create a fresh shuffled board and register it."""
        validate_grid_size(grid_size)
        self.reap()
        board = Board(
            grid_size=grid_size,
            points_per_tile=self.points_per_tile,
            rng=self._rng_factory(),
            clock=self._clock,
        )
        game = PuzzleGame(
            game_id=f"game_{uuid.uuid4().hex}",
            board=board,
            difficulty=difficulty,
            cache_id=cache_id,
            created_at=time.time(),
            image_url=image_url,
            photographer=photographer,
            session_id=session_id,
        )
        with self._lock:
            self._games[game.game_id] = game

        logger.info("Started %s %dx%d puzzle %s on %s",
                    difficulty, grid_size, grid_size, game.game_id, cache_id)
        return game

    def get(self, game_id: str) -> PuzzleGame:
        with self._lock:
            game = self._games.get(game_id)
        if game is None:
            raise GameNotFound(f"Game {game_id} not found")
        return game

    def leave(self, game_id: str) -> bool:
        """Stop the timer and discard the game. Returns False if unknown."""
        with self._lock:
            game = self._games.pop(game_id, None)
        if game is None:
            return False
        game.board.stop()
        logger.info("Game %s discarded", game_id)
        return True

    def list_active(self) -> list[str]:
        with self._lock:
            return [gid for gid, game in self._games.items() if not game.board.is_complete]

    def cleanup_stale(self, max_age_seconds: int | None = None) -> int:
        """Discard games older than max_age_seconds."""
        if max_age_seconds is None:
            max_age_seconds = self.max_age_seconds
        now = time.time()
        with self._lock:
            stale = [gid for gid, g in self._games.items() if now - g.created_at > max_age_seconds]
        for game_id in stale:
            self.leave(game_id)
        return len(stale)

    def reap(self) -> int:
        """Discard completed games and games older than max_age_seconds."""
        with self._lock:
            finished = [gid for gid, g in self._games.items() if g.board.is_complete]
        for game_id in finished:
            self.leave(game_id)
        removed = len(finished) + self.cleanup_stale()
        if removed:
            logger.debug("Reclaimed %d finished or stale games", removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
