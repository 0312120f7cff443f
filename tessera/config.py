"""
Configuration - Environment-driven settings and difficulty presets.

All settings come from environment variables so the same build runs
locally, in tests and behind a process manager. Nothing here reaches
the network; collaborators read what they need from a Settings object
handed to them at construction.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

from .engine_core.errors import InvalidGridSize
from .engine_core.tiles import MIN_GRID_SIZE, MAX_GRID_SIZE


FALLBACK_IMAGE_URL = "https://images.pexels.com/photos/3945683/pexels-photo-3945683.jpeg"
FALLBACK_PHOTOGRAPHER = "Default"

# Difficulty label -> grid size
DIFFICULTY_PRESETS: dict[str, int] = {
    "mudah": 3,
    "sedang": 4,
    "sulit": 5,
}
CUSTOM_DIFFICULTY = "custom"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Runtime settings for the service."""
    env: str = "development"

    # Image provider
    pexels_api_key: str = ""
    pexels_base_url: str = "https://api.pexels.com/v1"
    upstream_timeout: float = 10.0
    fallback_image_url: str = FALLBACK_IMAGE_URL

    # Game
    points_per_tile: int = 10

    # Stores
    cache_expiry_seconds: int = 30 * 60
    cache_max_bytes: int = 256 * 1024 * 1024  # 0 disables the budget
    session_ttl_seconds: int = 24 * 60 * 60  # 0 disables expiry
    game_max_age_seconds: int = 60 * 60

    # HTTP
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables."""
        return cls(
            env=os.getenv("TESSERA_ENV", "development"),
            pexels_api_key=os.getenv("PEXELS_API_KEY", ""),
            pexels_base_url=os.getenv("PEXELS_BASE_URL", "https://api.pexels.com/v1"),
            upstream_timeout=float(os.getenv("TESSERA_UPSTREAM_TIMEOUT", "10")),
            points_per_tile=_env_int("TESSERA_POINTS_PER_TILE", 10),
            cache_expiry_seconds=_env_int("TESSERA_CACHE_EXPIRY_SECONDS", 30 * 60),
            cache_max_bytes=_env_int("TESSERA_CACHE_MAX_BYTES", 256 * 1024 * 1024),
            session_ttl_seconds=_env_int("TESSERA_SESSION_TTL_SECONDS", 24 * 60 * 60),
            game_max_age_seconds=_env_int("TESSERA_GAME_MAX_AGE_SECONDS", 60 * 60),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            log_level=os.getenv("TESSERA_LOG_LEVEL", "INFO"),
        )


def resolve_grid_size(difficulty: str, grid_size: int | None = None) -> int:
    """
    Resolve the grid size for a difficulty label.

    Presets ignore grid_size. The custom difficulty requires one in
    [MIN_GRID_SIZE, MAX_GRID_SIZE]. Unknown labels are treated as custom.
    """
    if difficulty in DIFFICULTY_PRESETS:
        return DIFFICULTY_PRESETS[difficulty]

    if grid_size is None:
        raise InvalidGridSize(f"Difficulty '{difficulty}' needs an explicit grid size")
    if not MIN_GRID_SIZE <= grid_size <= MAX_GRID_SIZE:
        raise InvalidGridSize(
            f"Grid size {grid_size} outside [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}]"
        )
    return grid_size


def configure_logging(level: str = "INFO"):
    """Configure root logging once for the CLI and the app."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
