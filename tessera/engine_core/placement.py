"""
Placement - Outcomes of attempting to drop a tile into a slot.

Every attempt produces a PlacementResult. Only ACCEPTED changes the
board; all other outcomes leave it exactly as it was.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class PlacementOutcome(Enum):
    """Result of a placement attempt."""
    ACCEPTED = "accepted"
    INCORRECT_PLACEMENT = "incorrect_placement"
    SLOT_ALREADY_FILLED = "slot_already_filled"
    TILE_NOT_FOUND = "tile_not_found"
    SLOT_OUT_OF_RANGE = "slot_out_of_range"
    BOARD_COMPLETE = "board_complete"


@dataclass(frozen=True)
class PlacementResult:
    """
    Result of Board.place().

    score is the board score after the attempt; completed is True only on
    the placement that filled the last slot.
    """
    outcome: PlacementOutcome
    tile_id: str
    slot_index: int
    score: int
    points_awarded: int = 0
    completed: bool = False

    @property
    def accepted(self) -> bool:
        return self.outcome == PlacementOutcome.ACCEPTED

    @classmethod
    def rejected(cls, outcome: PlacementOutcome, tile_id: str, slot_index: int, score: int) -> PlacementResult:
        """Create a no-op result."""
        return cls(outcome=outcome, tile_id=tile_id, slot_index=slot_index, score=score)
