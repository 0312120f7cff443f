"""
Board - Placement validation and completion state machine.

States:
    EMPTY     no slot filled (initial, and after reset)
    PARTIAL   0 < k < n*n slots filled
    COMPLETE  every slot filled (terminal until reset)

The board is the single point of puzzle state mutation. All changes go
through place() or reset(); each call runs under the board's own lock,
so a placement either commits completely (slot filled, score updated,
completion checked) or not at all.
"""

from __future__ import annotations
from enum import Enum
from typing import Callable
import logging
import random
import threading
import time

from .placement import PlacementOutcome, PlacementResult
from .tiles import Tile, canonical_tiles, shuffle_tiles
from .timer import ElapsedTimer

logger = logging.getLogger(__name__)

DEFAULT_POINTS_PER_TILE = 10


class BoardPhase(Enum):
    """High-level board phases."""
    EMPTY = "empty"
    PARTIAL = "partial"
    COMPLETE = "complete"


class Board:
    """
    An n x n puzzle board with a pool of unplaced tiles.

    Usage:
        board = Board(grid_size=3, rng=random.Random(7))

        result = board.place("tile-0", 0)
        if result.accepted and result.completed:
            score = board.score
    """

    def __init__(
        self,
        grid_size: int,
        points_per_tile: int = DEFAULT_POINTS_PER_TILE,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        tiles: list[Tile] | None = None,
    ):
        self.grid_size = grid_size
        self.points_per_tile = points_per_tile
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        self._tiles: list[Tile] = list(tiles) if tiles is not None else canonical_tiles(grid_size)
        self._by_id: dict[str, Tile] = {tile.id: tile for tile in self._tiles}
        if len(self._by_id) != grid_size * grid_size:
            raise ValueError(f"Expected {grid_size * grid_size} distinct tiles, got {len(self._by_id)}")
        if tiles is None:
            shuffle_tiles(self._tiles, self._rng)

        self.slots: list[str | None] = [None] * self.slot_count
        self._placed: set[str] = set()
        self.score = 0
        self.timer = ElapsedTimer(clock=clock)

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def slot_count(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def tiles(self) -> list[Tile]:
        """All tiles in current presentation order."""
        return list(self._tiles)

    @property
    def pool(self) -> list[Tile]:
        """Unplaced tiles in presentation order."""
        return [tile for tile in self._tiles if tile.id not in self._placed]

    @property
    def filled_count(self) -> int:
        return sum(1 for slot in self.slots if slot is not None)

    @property
    def correct_count(self) -> int:
        """Number of tiles sitting in their target slot."""
        return sum(
            1 for index, tile_id in enumerate(self.slots)
            if tile_id is not None and self._by_id[tile_id].target_slot == index
        )

    @property
    def phase(self) -> BoardPhase:
        filled = self.filled_count
        if filled == 0:
            return BoardPhase.EMPTY
        if filled == self.slot_count:
            return BoardPhase.COMPLETE
        return BoardPhase.PARTIAL

    @property
    def is_complete(self) -> bool:
        return self.phase == BoardPhase.COMPLETE

    @property
    def elapsed_seconds(self) -> int:
        return self.timer.elapsed_seconds

    def empty_slots(self) -> list[int]:
        return [index for index, slot in enumerate(self.slots) if slot is None]

    def get_tile(self, tile_id: str) -> Tile | None:
        return self._by_id.get(tile_id)

    # =========================================================================
    # Transitions
    # =========================================================================

    def place(self, tile_id: str, slot_index: int) -> PlacementResult:
        """
        Attempt to place a tile into a slot.

        Checks, in order: board complete, slot range, slot occupied,
        tile known and unplaced, tile belongs in this slot. Only the last
        check passing mutates the board.
        """
        with self._lock:
            if self.is_complete:
                return PlacementResult.rejected(
                    PlacementOutcome.BOARD_COMPLETE, tile_id, slot_index, self.score
                )

            if not 0 <= slot_index < self.slot_count:
                return PlacementResult.rejected(
                    PlacementOutcome.SLOT_OUT_OF_RANGE, tile_id, slot_index, self.score
                )

            if self.slots[slot_index] is not None:
                return PlacementResult.rejected(
                    PlacementOutcome.SLOT_ALREADY_FILLED, tile_id, slot_index, self.score
                )

            tile = self._by_id.get(tile_id)
            if tile is None or tile_id in self._placed:
                return PlacementResult.rejected(
                    PlacementOutcome.TILE_NOT_FOUND, tile_id, slot_index, self.score
                )

            if tile.target_slot != slot_index:
                logger.debug("Tile %s rejected at slot %d (belongs at %d)",
                             tile_id, slot_index, tile.target_slot)
                return PlacementResult.rejected(
                    PlacementOutcome.INCORRECT_PLACEMENT, tile_id, slot_index, self.score
                )

            self.slots[slot_index] = tile_id
            self._placed.add(tile_id)
            self.score += self.points_per_tile

            completed = self.is_complete
            if completed:
                self.timer.stop()
                logger.info("Board %dx%d complete: score=%d time=%ds",
                            self.grid_size, self.grid_size, self.score, self.elapsed_seconds)

            return PlacementResult(
                outcome=PlacementOutcome.ACCEPTED,
                tile_id=tile_id,
                slot_index=slot_index,
                score=self.score,
                points_awarded=self.points_per_tile,
                completed=completed,
            )

    def reset(self):
        """
        Return to EMPTY from any state.

        Same tiles and target slots, fresh presentation order, zero score,
        timer zeroed and restarted.
        """
        with self._lock:
            self.slots = [None] * self.slot_count
            self._placed.clear()
            self.score = 0
            shuffle_tiles(self._tiles, self._rng)
            self.timer.restart()

    def hint(self) -> int | None:
        """
        A uniformly chosen empty slot index, or None if every slot is filled.

        Never mutates the board.
        """
        with self._lock:
            empty = self.empty_slots()
            if not empty:
                return None
            return self._rng.choice(empty)

    def pause(self):
        with self._lock:
            if not self.is_complete:
                self.timer.pause()

    def resume(self):
        with self._lock:
            if not self.is_complete:
                self.timer.resume()

    def stop(self):
        """Stop the timer permanently (player left the puzzle)."""
        with self._lock:
            self.timer.stop()

    def snapshot(self) -> dict:
        """Serializable view of the board."""
        with self._lock:
            return {
                "grid_size": self.grid_size,
                "phase": self.phase.value,
                "slots": list(self.slots),
                "pool": [tile.id for tile in self.pool],
                "score": self.score,
                "elapsed_seconds": self.elapsed_seconds,
                "timer": self.timer.state.value,
            }
