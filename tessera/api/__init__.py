"""
API Module - Browser client interface.

Exposes the puzzle core over REST and a WebSocket. The browser client:
1. Logs in and gets a session id
2. Asks for a random, square-cropped photo
3. Plays the puzzle locally or through the server-side game endpoints
4. Submits its score and watches the live leaderboard

Sessions, images and games live in memory; only scores go to the ledger.
"""

from .models import RandomImage, RecordedScore, MoveOutcome
from .service import PuzzleService
from .broadcast import LeaderboardHub, leaderboard_update_message, online_count_message
from .app import create_app

__all__ = [
    # Models
    "RandomImage",
    "RecordedScore",
    "MoveOutcome",
    # Service
    "PuzzleService",
    # Broadcast
    "LeaderboardHub",
    "leaderboard_update_message",
    "online_count_message",
    "create_app",
]
