"""
Tiles - Puzzle generation.

A puzzle is an n x n partition of a square image. Tiles are emitted in
raster order, which fixes each tile's target slot and source region,
and then shuffled. Shuffling only changes the order in which tiles are
offered to the player; a tile's id, target slot and source coordinates
never change after generation.
"""

from __future__ import annotations
from dataclasses import dataclass
import random

from .errors import InvalidGridSize


MIN_GRID_SIZE = 2
MAX_GRID_SIZE = 8

# Board size in pixels used by the browser client
DEFAULT_BOARD_PX = 420


@dataclass(frozen=True)
class Tile:
    """
    One square region of the source image.

    target_slot is the only slot where the tile is a correct placement.
    """
    id: str
    target_slot: int
    source_row: int
    source_col: int

    def offset(self, grid_size: int, board_px: int = DEFAULT_BOARD_PX) -> tuple[float, float]:
        """Pixel offset of this tile's region on a board_px square board."""
        tile_px = board_px / grid_size
        return self.source_col * tile_px, self.source_row * tile_px

    def to_dict(self, grid_size: int | None = None, board_px: int = DEFAULT_BOARD_PX) -> dict:
        data = {
            "id": self.id,
            "target_slot": self.target_slot,
            "source_row": self.source_row,
            "source_col": self.source_col,
        }
        if grid_size:
            offset_x, offset_y = self.offset(grid_size, board_px)
            data["offset_x"] = offset_x
            data["offset_y"] = offset_y
        return data


def validate_grid_size(grid_size: int):
    """Raise InvalidGridSize unless grid_size is in [MIN_GRID_SIZE, MAX_GRID_SIZE]."""
    if isinstance(grid_size, bool) or not isinstance(grid_size, int):
        raise InvalidGridSize(f"Grid size must be an integer, got {grid_size!r}")
    if not MIN_GRID_SIZE <= grid_size <= MAX_GRID_SIZE:
        raise InvalidGridSize(
            f"Grid size {grid_size} outside [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}]"
        )


def tile_id_for(target_slot: int) -> str:
    return f"tile-{target_slot}"


def canonical_tiles(grid_size: int) -> list[Tile]:
    """Tiles in raster order (unshuffled)."""
    validate_grid_size(grid_size)
    tiles = []
    for row in range(grid_size):
        for col in range(grid_size):
            slot = row * grid_size + col
            tiles.append(Tile(
                id=tile_id_for(slot),
                target_slot=slot,
                source_row=row,
                source_col=col,
            ))
    return tiles


def shuffle_tiles(tiles: list[Tile], rng: random.Random | None = None) -> list[Tile]:
    """
    Fisher-Yates shuffle of the presentation order, in place.

    Returns the same list for chaining.
    """
    rng = rng or random.Random()
    for i in range(len(tiles) - 1, 0, -1):
        j = rng.randint(0, i)
        tiles[i], tiles[j] = tiles[j], tiles[i]
    return tiles


def generate_tiles(
    grid_size: int,
    cache_id: str | None = None,
    rng: random.Random | None = None,
) -> list[Tile]:
    """
    Generate a shuffled tile set for a grid_size x grid_size puzzle.

    cache_id names the image the tiles are cut from. It is not resolved
    here; the cache answers for it when the image is served.
    """
    return shuffle_tiles(canonical_tiles(grid_size), rng)
