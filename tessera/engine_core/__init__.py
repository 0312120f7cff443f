"""
Engine Core - Puzzle generation and board state.

The engine:
1. Cuts an n x n puzzle into tiles with fixed target slots
2. Shuffles their presentation order
3. Validates placements and tracks score
4. Detects completion and times the play
"""

from .errors import (
    TesseraError,
    DecodeError,
    CapacityError,
    InvalidGridSize,
    SessionInvalid,
    UpstreamError,
    UpstreamTimeout,
    LedgerError,
    GameNotFound,
    ImageNotFound,
    InvalidScore,
    AuthenticationFailed,
)
from .tiles import (
    Tile,
    MIN_GRID_SIZE,
    MAX_GRID_SIZE,
    canonical_tiles,
    shuffle_tiles,
    generate_tiles,
    validate_grid_size,
)
from .placement import PlacementOutcome, PlacementResult
from .timer import ElapsedTimer, TimerState
from .board import Board, BoardPhase, DEFAULT_POINTS_PER_TILE

__all__ = [
    "TesseraError",
    "DecodeError",
    "CapacityError",
    "InvalidGridSize",
    "SessionInvalid",
    "UpstreamError",
    "UpstreamTimeout",
    "LedgerError",
    "GameNotFound",
    "ImageNotFound",
    "InvalidScore",
    "AuthenticationFailed",
    "Tile",
    "MIN_GRID_SIZE",
    "MAX_GRID_SIZE",
    "canonical_tiles",
    "shuffle_tiles",
    "generate_tiles",
    "validate_grid_size",
    "PlacementOutcome",
    "PlacementResult",
    "ElapsedTimer",
    "TimerState",
    "Board",
    "BoardPhase",
    "DEFAULT_POINTS_PER_TILE",
]
