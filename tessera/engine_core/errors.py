"""
Errors - Exception taxonomy shared by the engine, stores and API.

Expected gameplay outcomes (wrong slot, filled slot) are NOT exceptions;
they are PlacementOutcome values on a PlacementResult. Cache and session
misses return None. Everything here is a real failure the caller has to
handle or surface.
"""


class TesseraError(Exception):
    """Base class for all service errors."""


class DecodeError(TesseraError):
    """Image bytes could not be decoded."""


class CapacityError(TesseraError):
    """The image cache cannot hold the entry."""


class InvalidGridSize(TesseraError, ValueError):
    """Grid size outside the supported range."""


class SessionInvalid(TesseraError):
    """Session id unknown or expired."""


class UpstreamError(TesseraError):
    """The image provider failed."""


class UpstreamTimeout(UpstreamError):
    """The image provider did not answer in time."""


class LedgerError(TesseraError):
    """The score ledger could not store or read records."""


class GameNotFound(TesseraError):
    """No active puzzle with that id."""


class ImageNotFound(TesseraError):
    """Cache id unknown or expired."""


class InvalidScore(TesseraError, ValueError):
    """Submitted score breaks the scoring rules."""


class AuthenticationFailed(TesseraError):
    """Credentials did not match an account."""
