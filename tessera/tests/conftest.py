"""
Pytest fixtures for Tessera tests.
"""

import io
import random

import pytest
from PIL import Image

from ..config import Settings
from ..imaging import ImageCache, StaticImageProvider
from ..ledger import InMemoryAccountDirectory, InMemoryScoreLedger
from ..session import GameRegistry, SessionStore
from ..api.service import PuzzleService


class FakeClock:
    """Manually advanced clock for timer and expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_image_bytes(width: int = 800, height: int = 600, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    """Encode a solid-colour image of the given size."""
    color = (200, 80, 40) if mode == "RGB" else (200, 80, 40, 255)
    image = Image.new(mode, (width, height), color)
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """An 800x600 JPEG."""
    return make_image_bytes(800, 600)


@pytest.fixture
def accounts() -> InMemoryAccountDirectory:
    directory = InMemoryAccountDirectory()
    directory.add("u1", "Ani", "ani@example.com", "rahasia")
    directory.add("u2", "Budi", "budi@example.com", "sandi")
    return directory


@pytest.fixture
def service(jpeg_bytes, accounts, clock) -> PuzzleService:
    """A service wired to in-memory stores and a static image source."""
    settings = Settings()
    return PuzzleService(
        settings=settings,
        image_cache=ImageCache(expiry_seconds=settings.cache_expiry_seconds),
        session_store=SessionStore(ttl_seconds=settings.session_ttl_seconds),
        games=GameRegistry(
            points_per_tile=settings.points_per_tile,
            rng_factory=lambda: random.Random(42),
            clock=clock,
        ),
        ledger=InMemoryScoreLedger(),
        accounts=accounts,
        provider=StaticImageProvider(jpeg_bytes, photographer="Tester"),
    )


@pytest.fixture
def client(service):
    """FastAPI TestClient over the service."""
    from fastapi.testclient import TestClient
    from ..api.app import create_app

    with TestClient(create_app(service=service)) as test_client:
        yield test_client


def solve(board):
    """Place every remaining tile into its target slot. Returns the last result."""
    result = None
    for tile in board.pool:
        result = board.place(tile.id, tile.target_slot)
    return result
