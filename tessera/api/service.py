"""
API Service - Business logic layer between the web app and the core.

The service:
1. Logs players in and out (session store)
2. Fetches, crops and caches puzzle images
3. Runs server-side puzzles (game registry)
4. Validates and records scores, builds the leaderboard

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Every store is an explicit object created once and shared by reference.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .models import RandomImage, RecordedScore, MoveOutcome
from ..config import Settings, resolve_grid_size
from ..engine_core.errors import (
    AuthenticationFailed,
    ImageNotFound,
    InvalidScore,
    SessionInvalid,
    UpstreamError,
)
from ..imaging import ImageCache, CacheEntry, SquareCropper, ImageProvider, PexelsImageProvider
from ..ledger import (
    AccountDirectory,
    InMemoryAccountDirectory,
    GameScore,
    InMemoryScoreLedger,
    LeaderboardEntry,
    ScoreLedger,
    validate_score,
)
from ..session import GameRegistry, Identity, PuzzleGame, SessionStore
from ..session.store import short_id

logger = logging.getLogger(__name__)


def _default_provider() -> ImageProvider:
    return PexelsImageProvider()


@dataclass
class PuzzleService:
    """
    Main service for the puzzle app.

    Usage:
        service = PuzzleService.from_settings(Settings.from_env())

        session_id, identity = service.login(email, password)
        image = service.fetch_random_image()
        game = service.start_game(image.cache_id, "mudah", session_id=session_id)
        outcome = service.place(game.game_id, "tile-0", 0)
    """
    settings: Settings = field(default_factory=Settings)
    image_cache: ImageCache = field(default_factory=ImageCache)
    session_store: SessionStore = field(default_factory=SessionStore)
    games: GameRegistry = field(default_factory=GameRegistry)
    ledger: ScoreLedger = field(default_factory=InMemoryScoreLedger)
    accounts: AccountDirectory = field(default_factory=InMemoryAccountDirectory)
    provider: ImageProvider = field(default_factory=_default_provider)
    cropper: SquareCropper = field(default_factory=SquareCropper)

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> PuzzleService:
        """Build a service with every store configured from settings."""
        components = dict(
            settings=settings,
            image_cache=ImageCache(
                expiry_seconds=settings.cache_expiry_seconds,
                max_bytes=settings.cache_max_bytes,
            ),
            session_store=SessionStore(ttl_seconds=settings.session_ttl_seconds),
            games=GameRegistry(
                points_per_tile=settings.points_per_tile,
                max_age_seconds=settings.game_max_age_seconds,
            ),
            provider=PexelsImageProvider(
                api_key=settings.pexels_api_key,
                base_url=settings.pexels_base_url,
                timeout=settings.upstream_timeout,
                fallback_url=settings.fallback_image_url,
            ),
        )
        components.update(overrides)
        return cls(**components)

    @property
    def points_per_tile(self) -> int:
        return self.settings.points_per_tile

    # =========================================================================
    # Auth
    # =========================================================================

    def login(self, email: str, password: str) -> tuple[str, Identity]:
        """Check credentials and open a session."""
        identity = self.accounts.authenticate(email, password)
        if identity is None:
            logger.info("Login rejected for %s", email)
            raise AuthenticationFailed("Email atau password salah")
        return self.session_store.create(identity), identity

    def logout(self, session_id: str | None):
        self.session_store.destroy(session_id)

    def require_session(self, session_id: str | None) -> Identity:
        session = self.session_store.lookup(session_id)
        if session is None:
            raise SessionInvalid("Sesi tidak valid")
        return session.identity

    # =========================================================================
    # Images
    # =========================================================================

    def fetch_random_image(self) -> RandomImage:
        """
        Pick a photo, crop it square and cache it.

        A failed download of the chosen photo retries once with the
        fallback photo before giving up. Blocking; run it off the
        event loop.
        """
        photo = self.provider.random_photo()
        try:
            data = self.provider.download(photo.url)
        except UpstreamError as e:
            fallback = None if photo.is_fallback else self.provider.fallback_photo()
            if fallback is None:
                raise
            logger.warning("Download of photo %s failed (%s); retrying with fallback",
                           photo.photo_id, e)
            photo = fallback
            data = self.provider.download(photo.url)

        cropped = self.cropper.crop(data)
        cache_id = self.image_cache.put(
            cropped.data,
            content_type=cropped.content_type,
            photo_id=photo.photo_id,
        )
        return RandomImage(photo=photo, cache_id=cache_id, side=cropped.side)

    def get_image(self, cache_id: str) -> CacheEntry:
        entry = self.image_cache.get(cache_id)
        if entry is None:
            raise ImageNotFound(f"Gambar tidak ditemukan: {cache_id}")
        return entry

    # =========================================================================
    # Scores
    # =========================================================================

    def save_score(
        self,
        session_id: str | None,
        difficulty: str,
        score: int,
        elapsed_seconds: int,
        grid_size: int | None = None,
    ) -> RecordedScore:
        """Validate a client-submitted score against its session and record it."""
        identity = self.require_session(session_id)

        grid_size = resolve_grid_size(difficulty, grid_size)
        error = validate_score(score, elapsed_seconds, self.points_per_tile, grid_size)
        if error:
            raise InvalidScore(error)

        game_score = GameScore(
            user_id=identity.user_id,
            difficulty=difficulty,
            grid_size=grid_size,
            score=score,
            elapsed_seconds=elapsed_seconds,
        )
        return self._record(game_score, identity)

    def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        return self.ledger.leaderboard(limit)

    def _record(self, game_score: GameScore, identity: Identity) -> RecordedScore:
        total = self.ledger.record(game_score, identity.name)
        return RecordedScore(score=game_score, player_name=identity.name, total_score=total)

    # =========================================================================
    # Server-side puzzles
    # =========================================================================

    def start_game(
        self,
        cache_id: str,
        difficulty: str,
        grid_size: int | None = None,
        session_id: str | None = None,
        image_url: str | None = None,
        photographer: str | None = None,
    ) -> PuzzleGame:
        """Start a puzzle on a cached image."""
        if self.image_cache.get(cache_id) is None:
            raise ImageNotFound(f"Gambar tidak ditemukan: {cache_id}")
        if session_id is not None:
            self.require_session(session_id)

        size = resolve_grid_size(difficulty, grid_size)
        return self.games.start(
            grid_size=size,
            difficulty=difficulty,
            cache_id=cache_id,
            session_id=session_id,
            image_url=image_url or f"/api/gambar/{cache_id}",
            photographer=photographer,
        )

    def get_game(self, game_id: str) -> PuzzleGame:
        return self.games.get(game_id)

    def place(self, game_id: str, tile_id: str, slot_index: int) -> MoveOutcome:
        """
        Apply a placement. On the completing placement, record the score
        if the game belongs to a live session.
        """
        game = self.games.get(game_id)
        result = game.place(tile_id, slot_index)
        outcome = MoveOutcome(result=result, elapsed_seconds=game.board.elapsed_seconds)

        if result.completed and game.session_id and not game.score_recorded:
            session = self.session_store.lookup(game.session_id)
            if session is None:
                logger.info("Game %s finished but session %s is gone; score not recorded",
                            game_id, short_id(game.session_id))
            else:
                game.score_recorded = True
                outcome.recorded = self._record(game.to_score(session.identity.user_id), session.identity)
        return outcome

    def hint(self, game_id: str) -> int | None:
        return self.games.get(game_id).board.hint()

    def reset_game(self, game_id: str) -> PuzzleGame:
        game = self.games.get(game_id)
        game.board.reset()
        game.score_recorded = False
        return game

    def pause_game(self, game_id: str) -> PuzzleGame:
        game = self.games.get(game_id)
        game.board.pause()
        return game

    def resume_game(self, game_id: str) -> PuzzleGame:
        game = self.games.get(game_id)
        game.board.resume()
        return game

    def leave_game(self, game_id: str) -> bool:
        return self.games.leave(game_id)

