"""
FastAPI Application - REST API for the browser puzzle client.

Endpoints:
    POST   /api/masuk                          Log in, open a session
    POST   /api/keluar                         Log out
    GET    /api/gambar-acak                    Fetch, crop and cache a random photo
    GET    /api/gambar/{idCache}               Serve a cached photo
    POST   /api/simpan-skor                    Record a completed game
    GET    /api/papan-peringkat                Leaderboard (per game)
    POST   /api/permainan                      Start a server-side puzzle
    GET    /api/permainan/{id}                 Puzzle state
    POST   /api/permainan/{id}/tempatkan       Place a tile
    POST   /api/permainan/{id}/petunjuk        Hint: a random empty slot
    POST   /api/permainan/{id}/reset           Reshuffle and restart
    POST   /api/permainan/{id}/jeda            Pause the timer
    POST   /api/permainan/{id}/lanjut          Resume the timer
    DELETE /api/permainan/{id}                 Leave the puzzle
    WS     /ws                                 Live leaderboard updates

Scoring Flow:
    1. GET /gambar-acak caches a square photo and returns its idCache
    2. The client plays, either locally or through /permainan
    3. Completion records the score (POST /simpan-skor, or automatically
       for a /permainan game started with a sesiId)
    4. A leaderboard-update message goes out on /ws

All responses are JSON with explicit Pydantic schemas, except the raw
image from /api/gambar/{idCache}.
"""

from typing import Optional, Union
import json
import logging

from .. import __version__
from ..config import Settings, configure_logging
from ..engine_core.errors import (
    TesseraError,
    AuthenticationFailed,
    GameNotFound,
    ImageNotFound,
    InvalidGridSize,
    InvalidScore,
    LedgerError,
    SessionInvalid,
)

logger = logging.getLogger(__name__)

# Exception -> (status code, error code name)
ERROR_STATUS = {
    SessionInvalid: (401, "SESSION_INVALID"),
    AuthenticationFailed: (401, "INVALID_CREDENTIALS"),
    InvalidGridSize: (400, "INVALID_GRID_SIZE"),
    InvalidScore: (400, "INVALID_SCORE"),
    ImageNotFound: (404, "IMAGE_NOT_FOUND"),
    GameNotFound: (404, "GAME_NOT_FOUND"),
    LedgerError: (500, "LEDGER_ERROR"),
}


def create_app(service=None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional PuzzleService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
    from fastapi.concurrency import run_in_threadpool
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse, Response

    from .broadcast import LeaderboardHub, leaderboard_update_message
    from .service import PuzzleService
    from .schemas import (
        # Request models
        LoginRequest,
        LogoutRequest,
        SaveScoreRequest,
        StartGameRequest,
        PlaceRequest,
        # Response models
        ErrorResponse,
        MessageResponse,
        HealthResponse,
        LoginResponse,
        LoginData,
        RandomImageResponse,
        RandomImageData,
        LeaderboardResponse,
        LeaderboardRow,
        GameStateResponse,
        GameStateData,
        TileInfo,
        PlaceResponse,
        PlaceData,
        HintResponse,
        HintData,
        # Enums
        ErrorCode,
        PlacementHasil,
    )

    settings = settings or (service.settings if service else Settings.from_env())
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Tessera Puzzle API",
        description="""
Sliding-image puzzle backend: random photos cropped to squares, puzzle
boards with placement validation, scores and a live leaderboard.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_INVALID` | Session id unknown or expired |
| `INVALID_CREDENTIALS` | Email or password wrong |
| `IMAGE_NOT_FOUND` | Cached image unknown or expired |
| `GAME_NOT_FOUND` | Puzzle unknown or already left |
| `INVALID_GRID_SIZE` | Grid size outside 2..8 |
| `INVALID_SCORE` | Score breaks the scoring rules |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    api_service = service or PuzzleService.from_settings(settings)
    hub = LeaderboardHub()

    app.state.service = api_service
    app.state.hub = hub

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                pesan=message,
                kode=error_code,
                detail=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(TesseraError)
    async def handle_service_error(request: Request, exc: TesseraError):
        for error_type, (status_code, code) in ERROR_STATUS.items():
            if isinstance(exc, error_type):
                if status_code >= 500:
                    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
                return make_error_response(ErrorCode(code), str(exc), status_code)
        logger.error("Unhandled service error on %s %s", request.method, request.url.path, exc_info=exc)
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Terjadi kesalahan server", 500)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Data permintaan tidak valid",
            details={"errors": json.loads(json.dumps(exc.errors(), default=str))},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Terjadi kesalahan server", 500)

    async def announce_score(recorded):
        await hub.broadcast(leaderboard_update_message(recorded.player_name, recorded.score))

    # =========================================================================
    # System
    # =========================================================================

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "aplikasi": "Tessera Puzzle",
            "versi": __version__,
            "status": "Online",
            "docs": "/api/docs",
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(status="healthy", service="tessera", version=__version__)

    # =========================================================================
    # Auth Endpoints
    # =========================================================================

    @app.post(
        "/api/masuk",
        response_model=LoginResponse,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
        tags=["Auth"],
        summary="Log in and open a session",
    )
    async def login(body: LoginRequest) -> Union[LoginResponse, JSONResponse]:
        if not body.email or not body.password:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR,
                "Email dan password harus diisi",
            )
        session_id, identity = api_service.login(body.email, body.password)
        return LoginResponse(
            data=LoginData(sesiId=session_id, nama=identity.name, email=identity.email),
        )

    @app.post("/api/keluar", response_model=MessageResponse, tags=["Auth"], summary="Log out")
    async def logout(body: Optional[LogoutRequest] = None) -> MessageResponse:
        api_service.logout(body.sesiId if body else None)
        return MessageResponse(pesan="Logout berhasil")

    # =========================================================================
    # Image Endpoints
    # =========================================================================

    @app.get(
        "/api/gambar-acak",
        response_model=RandomImageResponse,
        responses={500: {"model": ErrorResponse}},
        tags=["Images"],
        summary="Fetch, crop and cache a random photo",
    )
    async def random_image() -> Union[RandomImageResponse, JSONResponse]:
        try:
            image = await run_in_threadpool(api_service.fetch_random_image)
        except TesseraError as e:
            logger.error("Random image failed: %s", e)
            return make_error_response(ErrorCode.UPSTREAM_ERROR, "Gagal mengambil gambar", 500)

        return RandomImageResponse(
            data=RandomImageData(
                idGambar=image.photo.photo_id,
                idCache=image.cache_id,
                urlGambar=image.image_path,
                fotografer=image.photo.photographer,
            ),
        )

    @app.get(
        "/api/gambar/{cache_id}",
        responses={
            200: {"content": {"image/jpeg": {}}},
            404: {"model": ErrorResponse},
        },
        tags=["Images"],
        summary="Serve a cached square photo",
    )
    async def cached_image(cache_id: str):
        entry = api_service.get_image(cache_id)
        return Response(
            content=entry.data,
            media_type=entry.content_type,
            headers={"Cache-Control": "public, max-age=3600"},
        )

    # =========================================================================
    # Score Endpoints
    # =========================================================================

    @app.post(
        "/api/simpan-skor",
        response_model=MessageResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
        tags=["Scores"],
        summary="Record a completed game",
    )
    async def save_score(body: SaveScoreRequest) -> MessageResponse:
        recorded = api_service.save_score(
            session_id=body.sesiId,
            difficulty=body.tingkatKesulitan,
            score=body.skor,
            elapsed_seconds=body.waktuDetik,
            grid_size=body.ukuranGrid,
        )
        await announce_score(recorded)
        return MessageResponse(pesan="Skor berhasil disimpan")

    @app.get(
        "/api/papan-peringkat",
        response_model=LeaderboardResponse,
        tags=["Scores"],
        summary="Every recorded game, highest score first",
    )
    async def leaderboard(
        batas: Optional[int] = Query(None, ge=1, description="Maximum rows"),
    ) -> LeaderboardResponse:
        entries = api_service.leaderboard(batas)
        return LeaderboardResponse(
            data=[
                LeaderboardRow(
                    rank=entry.rank,
                    nama_pemain=entry.player_name,
                    skor=entry.score,
                    waktu_detik=entry.elapsed_seconds,
                    tingkat_kesulitan=entry.difficulty,
                    ukuran_grid=entry.grid_size,
                    tanggal=entry.date,
                )
                for entry in entries
            ],
        )

    # =========================================================================
    # Puzzle Endpoints
    # =========================================================================

    @app.post(
        "/api/permainan",
        response_model=GameStateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Puzzle"],
        summary="Start a puzzle on a cached photo",
    )
    async def start_game(body: StartGameRequest) -> GameStateResponse:
        game = api_service.start_game(
            cache_id=body.idCache,
            difficulty=body.tingkatKesulitan,
            grid_size=body.ukuranGrid,
            session_id=body.sesiId,
            image_url=body.urlGambar,
            photographer=body.fotografer,
        )
        return _game_state(game)

    @app.get(
        "/api/permainan/{game_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
    )
    async def get_game(game_id: str) -> GameStateResponse:
        return _game_state(api_service.get_game(game_id))

    @app.post(
        "/api/permainan/{game_id}/tempatkan",
        response_model=PlaceResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
        summary="Place a tile into a slot",
    )
    async def place_tile(game_id: str, body: PlaceRequest) -> PlaceResponse:
        """
        Wrong slots, filled slots and unknown tiles are normal outcomes,
        reported in `hasil` with `sukses=true` and no change to the board.
        """
        outcome = api_service.place(game_id, body.idTile, body.indeksSlot)
        if outcome.recorded:
            await announce_score(outcome.recorded)

        result = outcome.result
        return PlaceResponse(
            data=PlaceData(
                hasil=PlacementHasil(result.outcome.value),
                idTile=result.tile_id,
                indeksSlot=result.slot_index,
                poin=result.points_awarded,
                skor=result.score,
                selesai=result.completed,
                waktuDetik=outcome.elapsed_seconds,
                skorTersimpan=outcome.recorded is not None,
            ),
        )

    @app.post(
        "/api/permainan/{game_id}/petunjuk",
        response_model=HintResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Puzzle"],
        summary="Pick a random empty slot",
    )
    async def hint(game_id: str) -> HintResponse:
        return HintResponse(data=HintData(indeksSlot=api_service.hint(game_id)))

    @app.post("/api/permainan/{game_id}/reset", response_model=GameStateResponse, tags=["Puzzle"])
    async def reset_game(game_id: str) -> GameStateResponse:
        return _game_state(api_service.reset_game(game_id))

    @app.post("/api/permainan/{game_id}/jeda", response_model=GameStateResponse, tags=["Puzzle"])
    async def pause_game(game_id: str) -> GameStateResponse:
        return _game_state(api_service.pause_game(game_id))

    @app.post("/api/permainan/{game_id}/lanjut", response_model=GameStateResponse, tags=["Puzzle"])
    async def resume_game(game_id: str) -> GameStateResponse:
        return _game_state(api_service.resume_game(game_id))

    @app.delete("/api/permainan/{game_id}", response_model=MessageResponse, tags=["Puzzle"])
    async def leave_game(game_id: str) -> MessageResponse:
        api_service.leave_game(game_id)
        return MessageResponse(pesan="Permainan ditinggalkan")

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket for live leaderboard updates.

        Messages from server:
        - user-online-count: Connected clients changed
        - leaderboard-update: A score was recorded
        - error: Invalid message

        Messages from client:
        - ping: Keep-alive
        - user-login: Announce player name
        """
        await hub.connect(websocket)
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue

                message_type = message.get("type") if isinstance(message, dict) else None
                if message_type == "ping":
                    await websocket.send_json({"type": "pong"})
                elif message_type == "user-login":
                    logger.info("%s joined via socket", message.get("nama", "anonymous"))
        except WebSocketDisconnect:
            pass
        finally:
            await hub.disconnect(websocket)

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _game_state(game) -> GameStateResponse:
        """Convert a PuzzleGame to its response model."""
        board = game.board
        snapshot = board.snapshot()
        tiles = []
        for tile in board.pool:
            offset_x, offset_y = tile.offset(board.grid_size)
            tiles.append(TileInfo(
                id=tile.id,
                baris=tile.source_row,
                kolom=tile.source_col,
                posisiTarget=tile.target_slot,
                offsetX=offset_x,
                offsetY=offset_y,
            ))

        return GameStateResponse(
            data=GameStateData(
                idPermainan=game.game_id,
                idCache=game.cache_id,
                urlGambar=game.image_url,
                fotografer=game.photographer,
                tingkatKesulitan=game.difficulty,
                ukuranGrid=board.grid_size,
                fase=snapshot["phase"],
                slot=snapshot["slots"],
                tiles=tiles,
                skor=snapshot["score"],
                waktuDetik=snapshot["elapsed_seconds"],
                timer=snapshot["timer"],
                selesai=snapshot["phase"] == "complete",
            ),
        )

    return app


# Default app instance for uvicorn
app = create_app()
