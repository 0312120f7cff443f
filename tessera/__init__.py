"""
Tessera - Sliding-Image Puzzle Service

A backend for a browser puzzle game built from random photographs.
The service provides:
- Photo fetching and square cropping
- Short-lived image cache
- Puzzle generation and placement validation
- Login sessions, score ledger and leaderboard
- Real-time leaderboard broadcast
"""

__version__ = "0.1.0"
