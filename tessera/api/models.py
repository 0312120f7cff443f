"""
API Models - Framework-agnostic results returned by the service.

The service hands these to whichever web layer sits on top; the FastAPI
app converts them to the Pydantic schemas in schemas.py.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.placement import PlacementResult
from ..imaging.provider import PhotoReference
from ..ledger.scores import GameScore


@dataclass
class RandomImage:
    """A photo fetched, cropped and cached for a new puzzle."""
    photo: PhotoReference
    cache_id: str
    side: int

    @property
    def image_path(self) -> str:
        return f"/api/gambar/{self.cache_id}"


@dataclass
class RecordedScore:
    """A score stored in the ledger, with what the broadcast needs."""
    score: GameScore
    player_name: str
    total_score: int


@dataclass
class MoveOutcome:
    """Result of a server-side placement."""
    result: PlacementResult
    elapsed_seconds: int
    recorded: RecordedScore | None = None
