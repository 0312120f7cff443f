"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Field names follow the browser client's JSON contract (Indonesian keys,
camelCase for requests, snake_case for leaderboard rows). Every response
carries a `sukses` flag; failures add `pesan` and a machine-readable
`kode`.

Error Codes:
- SESSION_INVALID: Session id unknown or expired
- INVALID_CREDENTIALS: Email or password wrong
- IMAGE_NOT_FOUND: Cache id unknown or expired
- GAME_NOT_FOUND: Puzzle id unknown or already left
- INVALID_GRID_SIZE: Grid size outside 2..8
- INVALID_SCORE: Score breaks the scoring rules
- UPSTREAM_ERROR: Image could not be fetched or decoded
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_INVALID = "SESSION_INVALID"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    INVALID_GRID_SIZE = "INVALID_GRID_SIZE"
    INVALID_SCORE = "INVALID_SCORE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    LEDGER_ERROR = "LEDGER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PlacementHasil(str, Enum):
    """Placement outcomes as sent to the client."""
    ACCEPTED = "accepted"
    INCORRECT_PLACEMENT = "incorrect_placement"
    SLOT_ALREADY_FILLED = "slot_already_filled"
    TILE_NOT_FOUND = "tile_not_found"
    SLOT_OUT_OF_RANGE = "slot_out_of_range"
    BOARD_COMPLETE = "board_complete"


# =============================================================================
# Shared
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    sukses: bool = False
    pesan: str = Field(..., description="Human-readable error message")
    kode: ErrorCode = Field(..., description="Machine-readable error code")
    detail: Optional[dict[str, Any]] = Field(None, description="Additional error context")


class MessageResponse(BaseModel):
    sukses: bool = True
    pesan: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str


# =============================================================================
# Auth
# =============================================================================

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginData(BaseModel):
    sesiId: str
    nama: str
    email: str


class LoginResponse(BaseModel):
    sukses: bool = True
    pesan: str = "Login berhasil"
    data: LoginData


class LogoutRequest(BaseModel):
    sesiId: Optional[str] = None


# =============================================================================
# Images
# =============================================================================

class RandomImageData(BaseModel):
    idGambar: str
    idCache: str
    urlGambar: str = Field(..., description="Path to GET the cropped image")
    fotografer: str


class RandomImageResponse(BaseModel):
    sukses: bool = True
    pesan: str = "Gambar berhasil diambil dan di-crop ke square"
    data: RandomImageData


# =============================================================================
# Scores & Leaderboard
# =============================================================================

class SaveScoreRequest(BaseModel):
    """Score submitted by the client after completing a puzzle."""
    sesiId: Optional[str] = None
    tingkatKesulitan: str = Field(..., description="mudah, sedang, sulit or custom")
    skor: int
    waktuDetik: int
    ukuranGrid: Optional[int] = Field(None, description="Required for custom difficulty")


class LeaderboardRow(BaseModel):
    rank: int
    nama_pemain: str
    skor: int
    waktu_detik: int
    tingkat_kesulitan: str
    ukuran_grid: Optional[int] = None
    tanggal: datetime


class LeaderboardResponse(BaseModel):
    sukses: bool = True
    pesan: str = "Peringkat berhasil diambil"
    data: list[LeaderboardRow] = Field(default_factory=list)


# =============================================================================
# Puzzle
# =============================================================================

class StartGameRequest(BaseModel):
    idCache: str
    tingkatKesulitan: str = "mudah"
    ukuranGrid: Optional[int] = Field(None, description="Required for custom difficulty")
    sesiId: Optional[str] = Field(None, description="Record the score on completion")
    urlGambar: Optional[str] = None
    fotografer: Optional[str] = None


class TileInfo(BaseModel):
    """A tile as the client renders it."""
    id: str
    baris: int
    kolom: int
    posisiTarget: int
    offsetX: float
    offsetY: float


class GameStateData(BaseModel):
    idPermainan: str
    idCache: str
    urlGambar: Optional[str] = None
    fotografer: Optional[str] = None
    tingkatKesulitan: str
    ukuranGrid: int
    fase: str = Field(..., description="empty, partial, complete")
    slot: list[Optional[str]] = Field(default_factory=list, description="Tile id per slot")
    tiles: list[TileInfo] = Field(default_factory=list, description="Unplaced tiles in presentation order")
    skor: int = 0
    waktuDetik: int = 0
    timer: str = "running"
    selesai: bool = False


class GameStateResponse(BaseModel):
    sukses: bool = True
    data: GameStateData


class PlaceRequest(BaseModel):
    idTile: str
    indeksSlot: int


class PlaceData(BaseModel):
    hasil: PlacementHasil
    idTile: str
    indeksSlot: int
    poin: int = 0
    skor: int
    selesai: bool = False
    waktuDetik: int = 0
    skorTersimpan: bool = Field(False, description="Score recorded in the ledger")


class PlaceResponse(BaseModel):
    sukses: bool = True
    data: PlaceData


class HintData(BaseModel):
    indeksSlot: Optional[int] = Field(None, description="Empty slot, or null when none left")


class HintResponse(BaseModel):
    sukses: bool = True
    data: HintData
